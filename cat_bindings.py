"""
Host bindings: words that forward straight to Python operations.

Each entry is installed through `cat_stack.host_word`, which pops the
declared number of arguments in logical order, so `10 3 -` calls
`operator.sub(10, 3)`.
"""
import operator

from cat_stack import host_word
from cat_types import truthy, to_str, values_equal


def _count(coll):
    return 0 if coll is None else len(coll)


def _first(coll):
    if not coll:
        return None
    return coll[0]


def _rest(coll):
    if not coll:
        return []
    return list(coll[1:])


HOST_WORDS = {
    # name:    (function, arity, doc)
    '+':       (operator.add, 2, "[ a b -- a+b ]"),
    '-':       (operator.sub, 2, "[ a b -- a-b ]"),
    '*':       (operator.mul, 2, "[ a b -- a*b ]"),
    '/':       (operator.truediv, 2, "[ a b -- a/b ]"),
    'mod':     (operator.mod, 2, "[ a b -- a%b ]"),
    'inc':     (lambda x: x + 1, 1, None),
    'dec':     (lambda x: x - 1, 1, None),
    '=':       (values_equal, 2, "Structural equality; false is not 0."),
    '!=':      (lambda a, b: not values_equal(a, b), 2, None),
    '<':       (operator.lt, 2, None),
    '>':       (operator.gt, 2, None),
    '<=':      (operator.le, 2, None),
    '>=':      (operator.ge, 2, None),
    'and':     (lambda a, b: truthy(a) and truthy(b), 2, "True when neither value is nil or false."),
    'or':      (lambda a, b: truthy(a) or truthy(b), 2, "True when either value is neither nil nor false."),
    'not':     (lambda a: not truthy(a), 1, None),
    'str':     (to_str, 1, "Render a value as a string; nil becomes \"\"."),
    'str2':    (lambda a, b: to_str(a) + to_str(b), 2, "Concatenate two values as strings."),
    'str3':    (lambda a, b, c: to_str(a) + to_str(b) + to_str(c), 3, None),
    'count':   (_count, 1, None),
    'first':   (_first, 1, None),
    'rest':    (_rest, 1, None),
    'cons':    (lambda x, coll: [x] + list(coll or ()), 2, "[ x coll -- coll' ]"),
    'conj':    (lambda coll, x: list(coll or ()) + [x], 2, "[ coll x -- coll' ]"),
    'concat':  (lambda a, b: list(a or ()) + list(b or ()), 2, None),
    'empty?':  (lambda coll: not coll, 1, None),
    'nil?':    (lambda x: x is None, 1, None),
}


def install(interpreter, table=None):
    """Register host words on an interpreter's dictionary."""
    for name, (fn, arity, doc) in (table or HOST_WORDS).items():
        interpreter.register(name, host_word(interpreter.stack, fn, arity), doc)
