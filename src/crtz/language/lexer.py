"""Hand-written lexer for CRTZ dialogue scripts."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List

from crtz.core.types import TokenKind
from crtz.language.expressions import is_digit

TWO_CHAR_OPERATORS = ("<=", ">=", "==", "!=", "->")
BOOL_WORDS = {"true", "false"}
KEYWORD_WORDS = {"picture", "load"}

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1


@dataclass(slots=True)
class Token:
    """Single lexical token with the source line it started on."""

    kind: TokenKind
    text: str = ""
    line: int = 0
    number: int = 0

    def is_symbol(self, text: str) -> bool:
        return self.kind == "symbol" and self.text == text

    def is_ident(self, text: str | None = None) -> bool:
        if self.kind != "ident":
            return False
        return text is None or self.text == text


class Lexer:
    """Produces tokens one at a time from raw source text.

    Malformed input never raises: an unterminated string simply runs to the end
    of the source.
    """

    def __init__(self, source: str) -> None:
        self._src = source
        self._pos = 0
        self.line = 1

    def _peek(self, offset: int = 0) -> str:
        index = self._pos + offset
        return self._src[index] if index < len(self._src) else ""

    def _get(self) -> str:
        if self._pos >= len(self._src):
            return ""
        char = self._src[self._pos]
        self._pos += 1
        if char == "\n":
            self.line += 1
        return char

    def _skip_space(self) -> None:
        while self._peek() and self._peek().isspace():
            self._get()

    def _starts_with(self, text: str) -> bool:
        return self._src.startswith(text, self._pos)

    def next(self) -> Token:
        """Return the next token, or an ``eof`` token once input is exhausted."""
        while True:
            self._skip_space()
            if not self._starts_with("//"):
                break
            while self._peek() and self._peek() != "\n":
                self._get()

        line = self.line
        char = self._peek()
        if not char:
            return Token("eof", "", line)

        if char == '"':
            return Token("string", self._read_double_quoted(), line)
        if char == "'":
            return Token("string_dec", self._read_single_quoted(), line)

        if char.isalpha() or char == "_":
            word = self._read_word()
            if word in BOOL_WORDS:
                return Token("bool", word, line)
            if word in KEYWORD_WORDS:
                return Token("keyword", word, line)
            return Token("ident", word, line)

        if is_digit(char) or (char == "-" and is_digit(self._peek(1))):
            text = self._read_number()
            return Token("number", text, line, _to_int32(text))

        for operator in TWO_CHAR_OPERATORS:
            if self._starts_with(operator):
                self._get()
                self._get()
                return Token("symbol", operator, line)

        return Token("symbol", self._get(), line)

    def _read_double_quoted(self) -> str:
        self._get()
        out: List[str] = []
        while self._peek():
            char = self._get()
            if char == '"':
                break
            if char == "\\" and self._peek():
                out.append(_unescape(self._get()))
            else:
                out.append(char)
        return "".join(out)

    def _read_single_quoted(self) -> str:
        self._get()
        out: List[str] = []
        while self._peek() and self._peek() != "'":
            char = self._get()
            if char == "\\" and self._peek():
                out.append(_unescape(self._get()))
            else:
                out.append(char)
        if self._peek() == "'":
            self._get()
        return "".join(out)

    def _read_word(self) -> str:
        start = self._pos
        while self._peek() and (self._peek().isalnum() or self._peek() in "_."):
            self._get()
        return self._src[start:self._pos]

    def _read_number(self) -> str:
        start = self._pos
        if self._peek() == "-":
            self._get()
        while is_digit(self._peek()):
            self._get()
        return self._src[start:self._pos]


def tokenize(source: str) -> List[Token]:
    """Lex the whole source, including the trailing ``eof`` token."""
    lexer = Lexer(source)
    tokens: List[Token] = []
    while True:
        token = lexer.next()
        tokens.append(token)
        if token.kind == "eof":
            return tokens


def _unescape(char: str) -> str:
    return "\n" if char == "n" else char


def _to_int32(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        return 0
    if value < _INT32_MIN or value > _INT32_MAX:
        return 0
    return value
