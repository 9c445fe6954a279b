"""
Error taxonomy for the translation pipeline.

Every error is terminal for the document being processed: the pipeline
fails fast and never emits best-effort output.
"""

from __future__ import annotations


class StrudelError(Exception):
    """Base class for all translation errors."""


class LexError(StrudelError):
    """Unterminated nesting, string, comment or scheme expression."""

    def __init__(self, message: str, line: int, column: int):
        super().__init__(f"{message} (line {line}, column {column})")
        self.line = line
        self.column = column


class ParseError(StrudelError):
    """Malformed score, staff, voice, repeat or note syntax."""

    def __init__(self, message: str, line: int | None = None, column: int | None = None):
        location = f" (line {line}, column {column})" if line is not None else ""
        super().__init__(f"{message}{location}")
        self.line = line
        self.column = column


class UndefinedVariableError(ParseError):
    """A \\name reference that is neither a command nor a definition."""


class MissingTempoError(StrudelError):
    """The document has no \\tempo directive."""


class CycleError(StrudelError):
    """A reference chain that leads back to itself."""

    kind = "reference"

    def __init__(self, path: list[str]):
        super().__init__(f"Circular {self.kind} detected: {' -> '.join(path)}")
        self.path = list(path)


class IncludeError(StrudelError):
    """Failure while expanding \\include directives."""


class IncludeCycleError(CycleError, IncludeError):
    """An include recurs while still on the active expansion path."""

    kind = "include"


class IncludeNotFoundError(IncludeError):
    """An include reference the lookup cannot resolve."""

    def __init__(self, reference: str, reason: str = "not found"):
        super().__init__(f'Cannot resolve include "{reference}": {reason}')
        self.reference = reference


class DefinitionCycleError(CycleError):
    """A variable that references itself, directly or transitively."""

    kind = "variable definition"


class SequencerError(StrudelError):
    """Failure while composing a bar sequence."""


class PatternNotFoundError(SequencerError):
    """A referenced pattern is absent from every library."""

    def __init__(self, name: str, message: str | None = None):
        super().__init__(message or f"Pattern '{name}' not found")
        self.name = name


class EmptyVoicesError(SequencerError):
    """A referenced pattern declares zero voices."""

    def __init__(self, name: str, message: str | None = None):
        super().__init__(message or f"Pattern '{name}' declares no voices")
        self.name = name


class EmptySequenceError(SequencerError):
    """A sequence that references no bars at all."""
