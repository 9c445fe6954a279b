"""
Conversion tools - MCP tools for LilyPond to Strudel translation.

Tools for converting, describing and validating LilyPond scores.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from chuk_mcp_strudel.compiler import DocumentValidator, ValidationResult, convert_lilypond
from chuk_mcp_strudel.constants import DEFAULT_INSTRUMENT, SuccessMessages
from chuk_mcp_strudel.errors import StrudelError
from chuk_mcp_strudel.lilypond import FileSystemIncludeSource, parse_document

if TYPE_CHECKING:
    from chuk_mcp_server import ChukMCPServer

logger = logging.getLogger(__name__)


def register_conversion_tools(
    mcp: ChukMCPServer,
    scores_dir: Path | None = None,
    instrument: str = DEFAULT_INSTRUMENT,
) -> dict[str, Any]:
    """
    Register conversion tools with the MCP server.

    Args:
        mcp: The MCP server instance
        scores_dir: Default directory for resolving \\include references
        instrument: Default sound for pitched staves

    Returns:
        Dictionary of registered tool functions
    """
    tools: dict[str, Any] = {}
    default_instrument = instrument

    def include_source(include_dir: str | None) -> FileSystemIncludeSource | None:
        base = Path(include_dir) if include_dir else scores_dir
        return FileSystemIncludeSource(base) if base is not None else None

    @mcp.tool  # type: ignore[arg-type]
    async def strudel_convert_lilypond(
        source: str, include_dir: str | None = None, instrument: str | None = None
    ) -> str:
        """
        Convert LilyPond source to a Strudel program.

        Supports pitched staves, drum staves with several voices, chords,
        rests, variables, \\include and \\repeat (volta repeats are kept
        as Strudel !N repeats). A \\tempo mark is required.

        Args:
            source: LilyPond text
            include_dir: Directory for resolving \\include (defaults to the scores dir)
            instrument: Strudel sound for pitched staves (defaults to the server setting)

        Returns:
            JSON string with the Strudel program and validation issues

        Example:
            strudel_convert_lilypond(source="\\\\tempo 4 = 60 { c4 d4 e4 | }")
        """
        try:
            result = convert_lilypond(
                source,
                includes=include_source(include_dir),
                instrument=instrument or default_instrument,
            )

            return json.dumps(
                {
                    "status": "success",
                    "strudel": result.strudel,
                    "tempo": result.document.tempo.bpm,
                    "staves": result.total_staves,
                    "issues": [i.to_dict() for i in result.validation.issues],
                    "message": SuccessMessages.CONVERTED.format(
                        staves=result.total_staves,
                        notes=result.total_notes,
                        hits=result.total_drum_hits,
                    ),
                }
            )
        except Exception as e:
            logger.exception("Failed to convert LilyPond source")
            return json.dumps({"status": "error", "message": str(e)})

    tools["strudel_convert_lilypond"] = strudel_convert_lilypond

    @mcp.tool  # type: ignore[arg-type]
    async def strudel_describe_score(source: str, include_dir: str | None = None) -> str:
        """
        Describe the structure of a LilyPond score.

        Returns the resolved document: tempo, staves, voices, bars and
        events, plus a summary (note counts, drum counts, pitch range).

        Args:
            source: LilyPond text
            include_dir: Directory for resolving \\include

        Returns:
            JSON string with the document and its summary
        """
        try:
            document = parse_document(source, includes=include_source(include_dir))

            return json.dumps(
                {
                    "status": "success",
                    "summary": document.summary(),
                    "document": document.to_dict(),
                }
            )
        except Exception as e:
            logger.exception("Failed to describe score")
            return json.dumps({"status": "error", "message": str(e)})

    tools["strudel_describe_score"] = strudel_describe_score

    @mcp.tool  # type: ignore[arg-type]
    async def strudel_validate_score(source: str, include_dir: str | None = None) -> str:
        """
        Validate a LilyPond score for Strudel playback.

        Parse failures are reported as a single error issue; parsed scores
        are checked for repeat layouts, voice lengths and drum names.

        Args:
            source: LilyPond text
            include_dir: Directory for resolving \\include

        Returns:
            JSON string with is_valid and the list of issues
        """
        try:
            document = parse_document(source, includes=include_source(include_dir))
        except StrudelError as e:
            logger.info("Score does not parse: %s", e)
            failed = ValidationResult()
            failed.add_error(type(e).__name__, str(e))
            return json.dumps({"status": "success", **failed.to_dict()})

        try:
            validation = DocumentValidator().validate(document)
            return json.dumps({"status": "success", **validation.to_dict()})
        except Exception as e:
            logger.exception("Failed to validate score")
            return json.dumps({"status": "error", "message": str(e)})

    tools["strudel_validate_score"] = strudel_validate_score

    return tools
