#!/usr/bin/env python3
"""
Async Strudel MCP Server using chuk-mcp-server

This server provides MCP tools for turning LilyPond scores into Strudel
live-coding programs, and for composing drum sequences from a library of
one-bar patterns.

The server provides tools for:
- Converting LilyPond source (with includes, variables and repeats) to Strudel
- Inspecting and validating parsed scores
- Listing and describing library patterns
- Composing bar sequences into LilyPond and Strudel
"""

import logging
import os
from pathlib import Path

from chuk_mcp_server import ChukMCPServer

from chuk_mcp_strudel.constants import DEFAULT_INSTRUMENT
from chuk_mcp_strudel.patterns import PatternLibrary
from chuk_mcp_strudel.tools import (
    register_conversion_tools,
    register_pattern_tools,
    register_sequencer_tools,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create the MCP server instance
mcp = ChukMCPServer("chuk-mcp-strudel")

# Paths - project libraries shadow the built-in one
BASE_PATH = Path.cwd()
SCORES_DIR = Path(os.environ.get("STRUDEL_SCORES_DIR") or BASE_PATH / "scores")
PROJECT_LIBRARY_PATHS = [
    Path(p)
    for p in (os.environ.get("STRUDEL_LIBRARY_PATH") or str(BASE_PATH / "library")).split(os.pathsep)
    if p
]
LIBRARY_PATH = Path(__file__).parent / "patterns" / "library"
INSTRUMENT = os.environ.get("STRUDEL_INSTRUMENT") or DEFAULT_INSTRUMENT

pattern_library = PatternLibrary([*PROJECT_LIBRARY_PATHS, LIBRARY_PATH])

# Register all tools
conversion_tools = register_conversion_tools(mcp, SCORES_DIR, INSTRUMENT)
pattern_tools = register_pattern_tools(mcp, pattern_library)
sequencer_tools = register_sequencer_tools(mcp, pattern_library)

# Export tool functions for direct access
strudel_convert_lilypond = conversion_tools["strudel_convert_lilypond"]
strudel_describe_score = conversion_tools["strudel_describe_score"]
strudel_validate_score = conversion_tools["strudel_validate_score"]

strudel_list_patterns = pattern_tools["strudel_list_patterns"]
strudel_describe_pattern = pattern_tools["strudel_describe_pattern"]

strudel_compose_sequence = sequencer_tools["strudel_compose_sequence"]
strudel_expand_sequence = sequencer_tools["strudel_expand_sequence"]

logger.info("CHUK Strudel MCP Server initialized")
logger.info(f"  Library paths: {', '.join(str(p) for p in pattern_library.library_paths)}")
logger.info(f"  Scores dir: {SCORES_DIR}")
logger.info(f"  Instrument: {INSTRUMENT}")
