"""
Conversion pipeline - LilyPond text to a Strudel program.

    raw text → includes resolved → tokens → Document → Strudel text

The Document is kept on the result so callers can inspect, validate
or golden-test the intermediate form alongside the program.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from chuk_mcp_strudel.compiler.strudel import StrudelGenerator
from chuk_mcp_strudel.compiler.validator import DocumentValidator, ValidationResult
from chuk_mcp_strudel.constants import DEFAULT_INSTRUMENT
from chuk_mcp_strudel.lilypond.includes import FileSystemIncludeSource, IncludeSource
from chuk_mcp_strudel.lilypond.parser import parse_document
from chuk_mcp_strudel.models.document import Document

logger = logging.getLogger(__name__)


@dataclass
class ConversionResult:
    """Result of converting one LilyPond document."""

    document: Document
    strudel: str
    validation: ValidationResult = field(default_factory=ValidationResult)

    @property
    def total_staves(self) -> int:
        return len(self.document.staves)

    @property
    def total_notes(self) -> int:
        return len(self.document.notes())

    @property
    def total_drum_hits(self) -> int:
        return len(self.document.drum_hits())

    def summary(self) -> dict[str, Any]:
        return {
            **self.document.summary(),
            "issues": [i.to_dict() for i in self.validation.issues],
        }


def convert_lilypond(
    source: str,
    includes: IncludeSource | None = None,
    identity: str | None = None,
    instrument: str = DEFAULT_INSTRUMENT,
) -> ConversionResult:
    """
    Convert LilyPond text to a Strudel program.

    Args:
        source: LilyPond text
        includes: Lookup for \\include references (None rejects includes)
        identity: Identity of the root text for include cycle detection
        instrument: Sound for pitched staves

    Returns:
        ConversionResult with the document, program and validation issues

    Raises:
        StrudelError: On any lexing, include, parse or tempo failure
    """
    document = parse_document(source, includes=includes, identity=identity)
    program = StrudelGenerator(instrument=instrument).generate(document)
    validation = DocumentValidator().validate(document)
    for issue in validation.warnings:
        logger.warning("%s", issue)
    return ConversionResult(document=document, strudel=program, validation=validation)


def convert_file(path: Path | str, instrument: str = DEFAULT_INSTRUMENT) -> ConversionResult:
    """
    Convert a .ly file, resolving includes relative to including files.

    Args:
        path: Path to the root LilyPond file
        instrument: Sound for pitched staves

    Returns:
        ConversionResult for the file
    """
    path = Path(path).resolve()
    logger.info("Converting %s", path)
    return convert_lilypond(
        path.read_text(encoding="utf-8"),
        includes=FileSystemIncludeSource(path.parent),
        identity=str(path),
        instrument=instrument,
    )
