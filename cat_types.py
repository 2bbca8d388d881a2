from collections import namedtuple

# ===================================================================
#      TERMS AND VALUES
# ===================================================================

class Word(namedtuple("Word", "name")):
    """A reference to a dictionary word. Its repr is just its name."""
    def __repr__(self):
        return str(self.name)

    def __eq__(self, other):
        if isinstance(other, Word):
            return self.name == other.name
        if isinstance(other, tuple):
            return False
        return NotImplemented

    def __ne__(self, other):
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    def __hash__(self):
        return hash(("word", self.name))


# A literal term: pushes `value` as-is. Needed where the value would
# otherwise be taken for a word reference (e.g. ' foo).
Literal = namedtuple("Literal", "value")

class StackEffect(namedtuple("StackEffect", "inputs outputs")):
    """Advisory `[ a b -- c ]` annotation. Never checked."""
    def __str__(self):
        return "[ " + " ".join(list(self.inputs) + ["--"] + list(self.outputs)) + " ]"

# Both the term produced by `: name ... ;` and the dictionary entry.
Definition = namedtuple("Definition", "name doc effect body")


class Invocable:
    """Capability tag for values that `invoke` can run."""
    __slots__ = ()


class Quotation(tuple, Invocable):
    """An immutable sequence of terms. Equality is structural."""
    __slots__ = ()

    def __repr__(self):
        if not self:
            return "#[ ]"
        return "#[ " + " ".join(format_value(t) for t in self) + " ]"

    def __add__(self, other):
        return Quotation(tuple(self) + tuple(other))

    def __eq__(self, other):
        if isinstance(other, Quotation):
            return tuple.__eq__(self, other)
        if isinstance(other, tuple):
            return False
        return NotImplemented

    def __ne__(self, other):
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    __hash__ = tuple.__hash__


class Native(Invocable):
    """A word implemented in Python. `fn` takes no arguments and works
    on the owning interpreter's stack directly."""
    __slots__ = ("name", "fn")

    def __init__(self, name: str, fn):
        self.name = name
        self.fn = fn

    def __call__(self):
        self.fn()

    def __repr__(self):
        return f"<native {self.name}>"


def is_invocable(value) -> bool:
    return isinstance(value, Invocable)


# Values of these types only ever equal values of exactly the same type.
STRICT_TYPES = (bool, Word, Quotation, Literal, list)


def values_equal(a, b) -> bool:
    """
    Structural equality between language values. Unlike Python's ==,
    false is not 0, true is not 1, and a quotation never equals a word
    reference or a list. Lists and quotations compare element-wise.
    """
    if isinstance(a, STRICT_TYPES) or isinstance(b, STRICT_TYPES):
        if type(a) is not type(b):
            return False
    if isinstance(a, (list, Quotation, Literal)):
        return len(a) == len(b) and all(values_equal(x, y) for x, y in zip(a, b))
    return a == b


def truthy(value) -> bool:
    """Only nil and false are falsey. 0, "" and [] are all true."""
    return value is not None and value is not False


# ===================================================================
#      DISPLAY
# ===================================================================

def format_value(value) -> str:
    """Developer representation, used by '.s' and quotation reprs."""
    if value is None:
        return "nil"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, str):
        return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'
    if isinstance(value, Literal):
        return "' " + format_value(value.value)
    if isinstance(value, list):
        return "[ " + " ".join(format_value(v) for v in value) + " ]" if value else "[ ]"
    if isinstance(value, Definition):
        return f": {value.name} ... ;"
    return repr(value)


def to_str(value) -> str:
    """End-user representation, used by 'str' and '.'."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return format_value(value)


# ===================================================================
#      ERRORS
# ===================================================================

class CatError(Exception):
    """Base class for every error the runtime raises itself."""


class StackUnderflow(CatError, IndexError):
    def __init__(self, message="Stack underflow"):
        super().__init__(message)


class UnknownWord(CatError, NameError):
    def __init__(self, name):
        super().__init__(f"Unknown word: '{name}'")
        self.name = name


class MalformedClauses(CatError, ValueError):
    pass


class ParseError(CatError, ValueError):
    pass
