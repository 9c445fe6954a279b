"""
LilyPond front end.

- tokenize: lazy token stream with tagged directive comments
- resolve_includes: \\include expansion with cycle detection
- EventResolver: note/rest/drum words to typed events
- DocumentParser / parse_document: tokens to a resolved Document
"""

from chuk_mcp_strudel.lilypond.events import EventResolver
from chuk_mcp_strudel.lilypond.includes import (
    FileSystemIncludeSource,
    IncludeSource,
    MappingIncludeSource,
    resolve_includes,
)
from chuk_mcp_strudel.lilypond.lexer import Token, TokenKind, tokenize
from chuk_mcp_strudel.lilypond.parser import DocumentParser, parse_document

__all__ = [
    "DocumentParser",
    "EventResolver",
    "FileSystemIncludeSource",
    "IncludeSource",
    "MappingIncludeSource",
    "Token",
    "TokenKind",
    "parse_document",
    "resolve_includes",
    "tokenize",
]
