"""
Pattern tools - MCP tools for pattern library discovery.

Patterns can be previewed as a one-bar Strudel program, rendered through
the same path as a full sequence.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from chuk_mcp_strudel.models import BarRef, BarSequence, SequenceEntry, Single
from chuk_mcp_strudel.patterns import PatternLibrary
from chuk_mcp_strudel.sequencer import SequenceComposer

if TYPE_CHECKING:
    from chuk_mcp_server import ChukMCPServer

logger = logging.getLogger(__name__)


def preview_sequence(name: str, tempo: int) -> BarSequence:
    """A sequence playing one bar of the named pattern."""
    return BarSequence(
        tempo=tempo,
        sequence=[SequenceEntry(item=Single(bar=BarRef(pattern_name=name)), description=name)],
    )


def register_pattern_tools(mcp: ChukMCPServer, library: PatternLibrary) -> dict[str, Any]:
    """
    Register pattern library tools with the MCP server.

    Args:
        mcp: The MCP server instance
        library: The pattern library

    Returns:
        Dictionary of registered tool functions
    """
    tools: dict[str, Any] = {}
    composer = SequenceComposer(library)

    @mcp.tool  # type: ignore[arg-type]
    async def strudel_list_patterns() -> str:
        """
        List available sequencer patterns.

        Returns every pattern across the library roots; when two roots
        define the same name, the earlier root wins.

        Returns:
            JSON string with list of pattern summaries
        """
        try:
            found = library.list_patterns()
            return json.dumps(
                {
                    "status": "success",
                    "patterns": [m.model_dump() for m in found],
                    "count": len(found),
                    "libraries": [str(p) for p in library.library_paths],
                }
            )
        except Exception as e:
            logger.exception("Failed to list patterns")
            return json.dumps({"status": "error", "message": str(e)})

    tools["strudel_list_patterns"] = strudel_list_patterns

    @mcp.tool  # type: ignore[arg-type]
    async def strudel_describe_pattern(name: str, tempo: int = 120) -> str:
        """
        Show a pattern's voices and a one-bar Strudel preview.

        Each voice is one bar of LilyPond drummode, e.g. "bd4 sn4 bd4 sn4".

        Args:
            name: Pattern name (file stem, e.g. 'rock-beat')
            tempo: Tempo for the preview program

        Returns:
            JSON string with the pattern's voices, file and preview

        Example:
            strudel_describe_pattern(name="rock-beat", tempo=96)
        """
        try:
            pattern = library.get_pattern(name)
            path = library.find_file(name)
            preview = composer.strudel(preview_sequence(name, tempo)) if pattern.voices else None

            return json.dumps(
                {
                    "status": "success",
                    "pattern": {
                        "name": pattern.name,
                        "description": pattern.description,
                        "voices": list(pattern.voices),
                        "voice_count": len(pattern.voices),
                        "path": str(path) if path is not None else None,
                    },
                    "strudel": preview,
                }
            )
        except Exception as e:
            logger.exception("Failed to describe pattern %s", name)
            return json.dumps({"status": "error", "message": str(e)})

    tools["strudel_describe_pattern"] = strudel_describe_pattern

    return tools
