"""
Compilation pipeline - renders resolved Documents as Strudel.

The pipeline:
    LilyPond text → Document (resolved, inspectable)
    → DocumentValidator (playback pitfalls)
    → StrudelGenerator → Strudel program text
"""

# Generator and validator depend only on the models
from chuk_mcp_strudel.compiler.strudel import (
    StrudelGenerator,
    format_event,
    format_modifier_value,
    format_slot,
    generate_strudel,
)
from chuk_mcp_strudel.compiler.validator import (
    DocumentValidator,
    ValidationIssue,
    ValidationResult,
    ValidationSeverity,
    validate_document,
)


def __getattr__(name: str):
    """Lazy imports for the pipeline, which pulls in the LilyPond front end."""
    if name in ("ConversionResult", "convert_file", "convert_lilypond"):
        from chuk_mcp_strudel.compiler.pipeline import (
            ConversionResult,
            convert_file,
            convert_lilypond,
        )

        return {
            "ConversionResult": ConversionResult,
            "convert_file": convert_file,
            "convert_lilypond": convert_lilypond,
        }[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    # Pipeline (lazy loaded)
    "ConversionResult",
    "convert_file",
    "convert_lilypond",
    # Generator
    "StrudelGenerator",
    "format_event",
    "format_modifier_value",
    "format_slot",
    "generate_strudel",
    # Validation
    "DocumentValidator",
    "ValidationIssue",
    "ValidationResult",
    "ValidationSeverity",
    "validate_document",
]
