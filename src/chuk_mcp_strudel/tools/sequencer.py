"""
Sequencer tools - MCP tools for composing bar sequences.

Tools for expanding sequences and rendering them as LilyPond and Strudel.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from chuk_mcp_strudel.constants import SuccessMessages
from chuk_mcp_strudel.patterns import PatternLibrary
from chuk_mcp_strudel.sequencer import SequenceComposer, expand_item, parse_sequence

if TYPE_CHECKING:
    from chuk_mcp_server import ChukMCPServer

logger = logging.getLogger(__name__)


def register_sequencer_tools(mcp: ChukMCPServer, library: PatternLibrary) -> dict[str, Any]:
    """
    Register sequencer tools with the MCP server.

    Args:
        mcp: The MCP server instance
        library: The pattern library sequences draw from

    Returns:
        Dictionary of registered tool functions
    """
    tools: dict[str, Any] = {}
    composer = SequenceComposer(library)

    @mcp.tool  # type: ignore[arg-type]
    async def strudel_compose_sequence(sequence_yaml: str) -> str:
        """
        Compose a bar sequence into LilyPond and Strudel.

        The sequence names library patterns per bar:

            tempo: 120
            sequence:
              - description: intro
                item: {RepeatBar: [2, {pattern_name: kick}]}
              - description: groove
                item: {RepeatGroup: [2, [{Single: groove}, {Single: fill}]]}

        Args:
            sequence_yaml: Sequence in YAML

        Returns:
            JSON string with the LilyPond source and the Strudel program
        """
        try:
            sequence = parse_sequence(sequence_yaml)
            result = composer.render(sequence)

            return json.dumps(
                {
                    "status": "success",
                    "lilypond": result.lilypond,
                    "strudel": result.strudel,
                    "total_bars": result.total_bars,
                    "message": SuccessMessages.COMPOSED.format(
                        bars=result.total_bars, patterns=len(sequence.pattern_names())
                    ),
                }
            )
        except Exception as e:
            logger.exception("Failed to compose sequence")
            return json.dumps({"status": "error", "message": str(e)})

    tools["strudel_compose_sequence"] = strudel_compose_sequence

    @mcp.tool  # type: ignore[arg-type]
    async def strudel_expand_sequence(sequence_yaml: str) -> str:
        """
        Show how a sequence expands into bar uses.

        Plain groups are flattened; repeated groups stay nested with their
        repeat count. No patterns are loaded.

        Args:
            sequence_yaml: Sequence in YAML

        Returns:
            JSON string with one expansion per sequence entry
        """
        try:
            sequence = parse_sequence(sequence_yaml)
            entries = [
                {"description": entry.description, **expand_item(entry.item).to_dict()}
                for entry in sequence.sequence
            ]

            return json.dumps(
                {
                    "status": "success",
                    "tempo": sequence.tempo,
                    "entries": entries,
                    "patterns": sequence.pattern_names(),
                    "total_bars": sum(e["played_bars"] for e in entries),
                }
            )
        except Exception as e:
            logger.exception("Failed to expand sequence")
            return json.dumps({"status": "error", "message": str(e)})

    tools["strudel_expand_sequence"] = strudel_expand_sequence

    return tools
