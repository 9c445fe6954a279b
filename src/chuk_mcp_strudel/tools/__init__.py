"""
MCP tool implementations.

Tools are organized by domain:
- conversion - LilyPond to Strudel, score inspection and validation
- patterns - Pattern library discovery
- sequencer - Bar sequence expansion and composition
"""

from chuk_mcp_strudel.tools.conversion import register_conversion_tools
from chuk_mcp_strudel.tools.patterns import register_pattern_tools
from chuk_mcp_strudel.tools.sequencer import register_sequencer_tools

__all__ = [
    "register_conversion_tools",
    "register_pattern_tools",
    "register_sequencer_tools",
]
