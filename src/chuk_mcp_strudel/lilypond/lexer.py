"""
LilyPond tokenizer.

Turns raw notation text into a lazy stream of tokens. Braces, chord
brackets and simultaneity brackets are kept as explicit tokens so the
parser can match blocks; << and >> win over < and > (longest match).

Ordinary % comments are dropped. Comments tagged for this tool,

    % @strudel-of-lilypond@ red punchcard

become DIRECTIVE tokens carrying the payload after the tag.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from chuk_mcp_strudel.constants import DIRECTIVE_TAG
from chuk_mcp_strudel.errors import LexError

_DIRECTIVE_RE = re.compile(r"^%\s*@" + re.escape(DIRECTIVE_TAG) + r"@(.*)$")
_COMMAND_RE = re.compile(r"\\([A-Za-z][A-Za-z-]*[A-Za-z]|[A-Za-z])")
_NUMBER_RE = re.compile(r"\d+(?:/\d+|\.\d+|\.*)")
_WORD_RE = re.compile(r"[A-Za-z][A-Za-z0-9_'.,]*(?:-[A-Za-z][A-Za-z0-9_'.,]*)*")
# Direction mark plus shorthand articulation: -> -. ^> _!
_ARTICULATION_RE = re.compile(r"[-^_][>^.\-_!+]")


class TokenKind(str, Enum):
    """Token categories."""

    COMMAND = "command"  # \name, value without the backslash
    WORD = "word"  # notes, rests, drum names, identifiers
    NUMBER = "number"  # 4, 4., 4/4, 120
    STRING = "string"  # "text", value without quotes
    EQUALS = "equals"
    LBRACE = "lbrace"
    RBRACE = "rbrace"
    CHORD_OPEN = "chord_open"  # <
    CHORD_CLOSE = "chord_close"  # >
    SIM_OPEN = "sim_open"  # <<
    SIM_CLOSE = "sim_close"  # >>
    BAR = "bar"  # |
    TIE = "tie"  # ~
    DIRECTIVE = "directive"  # tagged comment, value is the payload
    SCHEME = "scheme"  # #(...) or #t
    SYMBOL = "symbol"  # articulation shorthand or any other single character


@dataclass(frozen=True)
class Token:
    """A lexical token with its 1-based source position."""

    kind: TokenKind
    value: str
    line: int
    column: int
    offset: int

    def __str__(self) -> str:
        return f"{self.kind.value}({self.value!r}) at {self.line}:{self.column}"


_SINGLE_CHAR_KINDS = {
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    "|": TokenKind.BAR,
    "~": TokenKind.TIE,
    "=": TokenKind.EQUALS,
}


class Lexer:
    """
    Single-pass scanner over one text.

    Tracks the stack of open brackets so unterminated nesting can be
    reported at the position of its opener.
    """

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.line = 1
        self.column = 1
        self._open: list[tuple[str, int, int]] = []

    def _advance(self, count: int) -> None:
        chunk = self.text[self.pos : self.pos + count]
        newlines = chunk.count("\n")
        if newlines:
            self.line += newlines
            self.column = count - chunk.rfind("\n")
        else:
            self.column += count
        self.pos += count

    def _token(self, kind: TokenKind, value: str, length: int) -> Token:
        token = Token(kind, value, self.line, self.column, self.pos)
        self._advance(length)
        return token

    def tokens(self) -> Iterator[Token]:
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]

            if ch.isspace():
                self._advance(1)
                continue

            if ch == "%":
                token = self._comment()
                if token is not None:
                    yield token
                continue

            if ch == '"':
                yield self._string()
                continue

            if ch == "#":
                yield self._scheme()
                continue

            if ch == "\\":
                match = _COMMAND_RE.match(text, self.pos)
                if match:
                    yield self._token(TokenKind.COMMAND, match.group(1), match.end() - self.pos)
                else:
                    yield self._token(TokenKind.SYMBOL, text[self.pos : self.pos + 2], 2)
                continue

            if _ARTICULATION_RE.match(text, self.pos):
                yield self._token(TokenKind.SYMBOL, text[self.pos : self.pos + 2], 2)
                continue

            two = text[self.pos : self.pos + 2]
            if two == "<<":
                self._open.append(("<<", self.line, self.column))
                yield self._token(TokenKind.SIM_OPEN, two, 2)
                continue
            if two == ">>":
                self._close("<<")
                yield self._token(TokenKind.SIM_CLOSE, two, 2)
                continue
            if ch == "<":
                self._open.append(("<", self.line, self.column))
                yield self._token(TokenKind.CHORD_OPEN, ch, 1)
                continue
            if ch == ">":
                self._close("<")
                yield self._token(TokenKind.CHORD_CLOSE, ch, 1)
                continue
            if ch == "{":
                self._open.append(("{", self.line, self.column))
            elif ch == "}":
                self._close("{")
            if ch in _SINGLE_CHAR_KINDS:
                yield self._token(_SINGLE_CHAR_KINDS[ch], ch, 1)
                continue

            if ch.isdigit():
                match = _NUMBER_RE.match(text, self.pos)
                assert match is not None
                yield self._token(TokenKind.NUMBER, match.group(0), match.end() - self.pos)
                continue

            if ch.isalpha():
                match = _WORD_RE.match(text, self.pos)
                assert match is not None
                yield self._token(TokenKind.WORD, match.group(0), match.end() - self.pos)
                continue

            yield self._token(TokenKind.SYMBOL, ch, 1)

        if self._open:
            opener, line, column = self._open[-1]
            raise LexError(f"Unterminated '{opener}'", line, column)

    def _close(self, opener: str) -> None:
        # A mismatched closer is left for the parser to report with context
        if self._open and self._open[-1][0] == opener:
            self._open.pop()

    def _comment(self) -> Token | None:
        text = self.text
        if text.startswith("%{", self.pos):
            end = text.find("%}", self.pos + 2)
            if end < 0:
                raise LexError("Unterminated block comment", self.line, self.column)
            self._advance(end + 2 - self.pos)
            return None

        end = text.find("\n", self.pos)
        if end < 0:
            end = len(text)
        line_text = text[self.pos : end]
        match = _DIRECTIVE_RE.match(line_text)
        if match:
            return self._token(TokenKind.DIRECTIVE, match.group(1).strip(), len(line_text))
        self._advance(len(line_text))
        return None

    def _string(self) -> Token:
        text = self.text
        i = self.pos + 1
        chars: list[str] = []
        while i < len(text):
            ch = text[i]
            if ch == "\\" and i + 1 < len(text):
                chars.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                return self._token(TokenKind.STRING, "".join(chars), i + 1 - self.pos)
            chars.append(ch)
            i += 1
        raise LexError("Unterminated string", self.line, self.column)

    def _scheme(self) -> Token:
        text = self.text
        i = self.pos + 1
        # #'symbol and #` quoting forms
        while i < len(text) and text[i] in "'`":
            i += 1

        if i < len(text) and text[i] == "(":
            depth = 0
            in_string = False
            while i < len(text):
                ch = text[i]
                if in_string:
                    if ch == "\\":
                        i += 1
                    elif ch == '"':
                        in_string = False
                elif ch == '"':
                    in_string = True
                elif ch == ";":
                    newline = text.find("\n", i)
                    i = len(text) if newline < 0 else newline
                    continue
                elif ch == "(":
                    depth += 1
                elif ch == ")":
                    depth -= 1
                    if depth == 0:
                        return self._token(TokenKind.SCHEME, text[self.pos : i + 1], i + 1 - self.pos)
                i += 1
            raise LexError("Unterminated scheme expression", self.line, self.column)

        if i < len(text) and text[i] == '"':
            end = i + 1
            while end < len(text) and text[end] != '"':
                end += 2 if text[end] == "\\" else 1
            if end >= len(text):
                raise LexError("Unterminated string", self.line, self.column)
            return self._token(TokenKind.SCHEME, text[self.pos : end + 1], end + 1 - self.pos)

        while i < len(text) and not text[i].isspace() and text[i] not in "{}<>|":
            i += 1
        return self._token(TokenKind.SCHEME, text[self.pos : i], i - self.pos)


def tokenize(text: str) -> Iterator[Token]:
    """
    Lazily tokenize LilyPond text.

    The stream is finite and single-use; call again to restart.

    Raises:
        LexError: On unterminated brackets, strings, block comments or
            scheme expressions (raised when the scanner reaches them)
    """
    return Lexer(text).tokens()
