"""
Pattern library - named one-bar fragments for the sequencer.

Patterns are plain YAML files, one per pattern, so a library is a
directory anyone can copy, own and edit.
"""

from chuk_mcp_strudel.patterns.library import PATTERN_SUFFIXES, PatternLibrary

__all__ = [
    "PATTERN_SUFFIXES",
    "PatternLibrary",
]
