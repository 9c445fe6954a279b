"""
Models for the translator.

This module provides:
- Document: the resolved score handed to the generator (dataclasses)
- Pattern: a reusable library fragment (pydantic)
- BarSequence: a composition of library patterns (pydantic)
"""

from chuk_mcp_strudel.models.document import (
    Bar,
    BarGroup,
    Chord,
    Document,
    DrumHit,
    DrumStaff,
    Event,
    Modifiers,
    MusicVariable,
    Note,
    PitchedStaff,
    Rest,
    Slot,
    Staff,
    Tempo,
    Voice,
    played_bars,
)
from chuk_mcp_strudel.models.pattern import Pattern, PatternMetadata
from chuk_mcp_strudel.models.sequence import (
    BarRef,
    BarSequence,
    Group,
    RepeatBar,
    RepeatGroup,
    SequenceEntry,
    SequenceItem,
    Single,
)

__all__ = [
    "Bar",
    "BarGroup",
    "BarRef",
    "BarSequence",
    "Chord",
    "Document",
    "DrumHit",
    "DrumStaff",
    "Event",
    "Group",
    "Modifiers",
    "MusicVariable",
    "Note",
    "Pattern",
    "PatternMetadata",
    "PitchedStaff",
    "RepeatBar",
    "RepeatGroup",
    "Rest",
    "SequenceEntry",
    "SequenceItem",
    "Single",
    "Slot",
    "Staff",
    "Tempo",
    "Voice",
    "played_bars",
]
