"""
Bar sequencer - compositions from library patterns.

The pipeline:
    Sequence YAML → BarSequence (validated)
    → Expansion (bar uses, repeats kept as units)
    → LilyPond text → Document → Strudel program
"""

from chuk_mcp_strudel.sequencer.composer import CompositionResult, SequenceComposer
from chuk_mcp_strudel.sequencer.expander import BarUse, Expansion, expand_item
from chuk_mcp_strudel.sequencer.lilypond import lilypond_of_sequence, resolve_patterns
from chuk_mcp_strudel.sequencer.loader import load_sequence, parse_sequence

__all__ = [
    "BarUse",
    "CompositionResult",
    "Expansion",
    "SequenceComposer",
    "expand_item",
    "lilypond_of_sequence",
    "load_sequence",
    "parse_sequence",
    "resolve_patterns",
]
