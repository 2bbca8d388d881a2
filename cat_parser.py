import re

from cat_types import (Word, Literal, Quotation, Definition, StackEffect,
                       ParseError)

# Tokens that end whatever atom is in front of them.
DELIMITERS = ('#[', '[', ']')

QUOTE_OPEN = Word('#[')
LIST_OPEN = Word('[')
CLOSE = Word(']')
DEFINE = Word(':')
TERMINATOR = Word(';')
QUOTE_WORD = Word("'")
EFFECT_SEPARATOR = Word('--')
COMMENT_OPEN = '(//'
COMMENT_CLOSE = '//)'

# Returned by next_token/next_term at end of input; None is the nil literal.
END_OF_INPUT = object()


class Parser:
    """
    Parses a string of source code into terms, one at a time.

    Tokens are the raw lexical units (numbers, strings, words, brackets);
    terms are what the interpreter evaluates (literals, word references,
    quotations, list literals and definitions).
    """
    def __init__(self, code: str):
        self.code = code
        self.pos = 0

    def terms(self):
        """Yield every remaining term."""
        while (term := self.next_term()) is not END_OF_INPUT:
            yield term

    def next_term(self):
        """Return the next complete term, or END_OF_INPUT."""
        token = self.next_token()
        if token is END_OF_INPUT:
            return END_OF_INPUT
        return self._term_from(token)

    def next_token(self):
        """
        Return the very next token from the input stream.
        Returns END_OF_INPUT if the end of the stream is reached.
        """
        self._skip_whitespace_and_comments()
        if self.pos >= len(self.code):
            return END_OF_INPUT
        return self._parse_next_token()

    # --- Terms ---

    def _term_from(self, token):
        if not isinstance(token, Word):
            return token
        if token == QUOTE_OPEN:
            return self._parse_quotation()
        if token == LIST_OPEN:
            return self._parse_list()
        if token == DEFINE:
            return self._parse_definition()
        if token == QUOTE_WORD:
            quoted = self.next_token()
            if not isinstance(quoted, Word):
                raise ParseError(f"Word expected after ' but got {quoted!r}")
            return Literal(quoted)
        if token in (CLOSE, TERMINATOR):
            raise ParseError(f"Unexpected '{token.name}'")
        return token

    def _parse_quotation(self) -> Quotation:
        body = []
        while (token := self.next_token()) is not END_OF_INPUT:
            if token == CLOSE:
                return Quotation(body)
            if token == DEFINE:
                raise ParseError("Definitions cannot appear inside a quotation")
            body.append(self._term_from(token))
        raise ParseError("Unterminated quotation: ']' expected")

    def _parse_list(self) -> list:
        items = []
        while (token := self.next_token()) is not END_OF_INPUT:
            if token == CLOSE:
                return items
            if token == QUOTE_OPEN:
                items.append(self._parse_quotation())
            elif token == LIST_OPEN:
                items.append(self._parse_list())
            elif token in (DEFINE, TERMINATOR):
                raise ParseError(f"Unexpected '{token.name}' inside a list")
            else:
                # Words inside a list stay as word references.
                items.append(token)
        raise ParseError("Unterminated list: ']' expected")

    def _parse_definition(self) -> Definition:
        name = self.next_token()
        if not isinstance(name, Word) or name in DELIMITERS_AS_WORDS:
            raise ParseError(f"Word name expected after ':' but got {name!r}")

        doc = None
        effect = None
        body = []

        token = self.next_token()
        if isinstance(token, str):
            doc = token
            token = self.next_token()
        if token == LIST_OPEN:
            group = self._parse_list()
            if EFFECT_SEPARATOR in group:
                effect = _stack_effect(group)
            else:
                body.append(group)
            token = self.next_token()

        while token is not END_OF_INPUT:
            if token == TERMINATOR:
                return Definition(name.name, doc, effect, Quotation(body))
            if token == DEFINE:
                raise ParseError(f"Definitions cannot nest (inside '{name.name}')")
            body.append(self._term_from(token))
            token = self.next_token()
        raise ParseError(f"Unterminated definition of '{name.name}': ';' expected")

    # --- Tokens ---

    def _skip_whitespace_and_comments(self):
        while self.pos < len(self.code):
            if self.code[self.pos].isspace():
                self.pos += 1
            elif self._at_word(COMMENT_OPEN):
                self._skip_comment()
            else:
                break

    def _at_word(self, text):
        end = self.pos + len(text)
        return (self.code.startswith(text, self.pos)
                and (end >= len(self.code) or self.code[end].isspace()))

    def _skip_comment(self):
        nesting_level = 0
        while self.pos < len(self.code):
            if self.code[self.pos].isspace():
                self.pos += 1
                continue
            start = self.pos
            while self.pos < len(self.code) and not self.code[self.pos].isspace():
                self.pos += 1
            word = self.code[start:self.pos]
            if word == COMMENT_OPEN:
                nesting_level += 1
            elif word == COMMENT_CLOSE:
                nesting_level -= 1
                if nesting_level == 0:
                    return
        raise ParseError("Unterminated nested comment: end of input reached.")

    def _parse_next_token(self):
        char = self.code[self.pos]
        if char == '"':
            return self._parse_string_literal()
        for delimiter in DELIMITERS:
            if self.code.startswith(delimiter, self.pos):
                self.pos += len(delimiter)
                return Word(delimiter)
        return self._parse_atom()

    def _parse_string_literal(self) -> str:
        body = STRING_BODY.match(self.code, self.pos + 1)
        end = body.end()
        if end < len(self.code) and self.code[end] == '"':
            self.pos = end + 1
            return ESCAPE.sub(_decode_escape, body.group())
        if end >= len(self.code):
            raise ParseError("Unterminated string literal: end of input reached.")
        if self.code[end] == '\n':
            raise ParseError("Unterminated string literal: newline encountered.")
        # only a lone backslash before the end of input stops the body
        raise ParseError("Unterminated escape sequence at end of input.")

    def _parse_atom(self):
        start = self.pos
        while self.pos < len(self.code) and not self.code[self.pos].isspace():
            # '[' and ']' end an atom, so `#[1 2]` needs no inner spaces.
            if self.pos > start and self.code[self.pos] in '[]':
                break
            self.pos += 1

        token_str = self.code[start:self.pos]

        if token_str in ATOM_LITERALS:
            return ATOM_LITERALS[token_str]

        try: return int(token_str)
        except ValueError:
            # digit-led only: inf, nan and friends stay word names
            if FLOAT_LITERAL.fullmatch(token_str):
                return float(token_str)
            return Word(token_str)


SIMPLE_ESCAPES = {
    'n': '\n', 't': '\t', 'r': '\r', 'b': '\b', 'f': '\f',
    '"': '"', '\\': '\\',
}

ATOM_LITERALS = {'true': True, 'false': False, 'nil': None}

FLOAT_LITERAL = re.compile(r"[+-]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?")

# Everything between the quotes: no bare quote or newline, any escaped char.
STRING_BODY = re.compile(r'(?:[^"\\\n]|\\.)*', re.DOTALL)

# \xHH, \uHHHH, \UHHHHHHHH or a single-character escape.
ESCAPE = re.compile(r"\\(?:x(.{0,2})|u(.{0,4})|U(.{0,8})|(.))", re.DOTALL)
HEX_ESCAPES = {1: ("hex", 2), 2: ("unicode", 4), 3: ("unicode", 8)}
HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

DELIMITERS_AS_WORDS = (QUOTE_OPEN, LIST_OPEN, CLOSE, DEFINE, TERMINATOR)


def _decode_escape(match) -> str:
    kind = match.lastindex
    if kind not in HEX_ESCAPES:
        char = match.group(kind)
        # unknown escape: keep it verbatim
        return SIMPLE_ESCAPES.get(char, '\\' + char)

    escape_type, width = HEX_ESCAPES[kind]
    digits = match.group(kind)
    if len(digits) < width:
        raise ParseError(f"Incomplete \\{escape_type} escape sequence.")
    if not HEX_DIGITS.issuperset(digits):
        raise ParseError(f"Invalid characters in \\{escape_type} escape sequence: '{digits}'")
    codepoint = int(digits, 16)
    try:
        return chr(codepoint)
    except (ValueError, OverflowError):
        raise ParseError(f"Invalid Unicode codepoint U+{codepoint:04X} in \\{escape_type} escape sequence.")


def _stack_effect(group: list) -> StackEffect:
    names = [item.name if isinstance(item, Word) else str(item) for item in group]
    split = names.index(EFFECT_SEPARATOR.name)
    return StackEffect(tuple(names[:split]), tuple(names[split + 1:]))


def parse(code: str) -> list:
    """Parse a whole source string into a list of terms."""
    return list(Parser(code).terms())
