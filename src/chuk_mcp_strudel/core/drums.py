"""
Drum name mapping between LilyPond drummode and Strudel's drum bank.
"""

from __future__ import annotations

from chuk_mcp_strudel.constants import DRUM_REMAP, KNOWN_DRUM_NAMES


def remap_drum(name: str) -> str:
    """
    Map a LilyPond drum name to its Strudel sample name.

    Names without an entry pass through unchanged, so remapping an
    already-mapped name (sd, hh, oh...) is a no-op.
    """
    return DRUM_REMAP.get(name, name)


def is_known_drum(name: str) -> bool:
    """Whether the name belongs to the LilyPond drummode vocabulary."""
    return name in KNOWN_DRUM_NAMES
