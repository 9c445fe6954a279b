"""
Core music primitives.

- Accidental: LilyPond accidental suffixes (is, es)
- Pitch: letter + accidental + net octave shift, with MIDI number
- Duration: LilyPond denominator + dots, with Strudel weight
- remap_drum: LilyPond drum names to Strudel sample names
"""

from chuk_mcp_strudel.core.drums import is_known_drum, remap_drum
from chuk_mcp_strudel.core.pitch import Accidental, Pitch
from chuk_mcp_strudel.core.rhythm import Duration, format_weight

__all__ = [
    "Accidental",
    "Duration",
    "Pitch",
    "format_weight",
    "is_known_drum",
    "remap_drum",
]
