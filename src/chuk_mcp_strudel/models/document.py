"""
Document model - the resolved contract between parsing and generation.

A Document is what the parser (or the sequencer) hands to the generator:
- Resolved: no variable references, no unfolded repeats, no includes
- Immutable: every node is a frozen dataclass
- Inspectable: to_dict/summary for tools and golden tests

Staff content is a tagged union (PitchedStaff | DrumStaff), and bar
slots are a tagged union (Bar | BarGroup). Generation dispatches with
isinstance on the variant.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Union

from chuk_mcp_strudel.core.pitch import Pitch
from chuk_mcp_strudel.core.rhythm import Duration


@dataclass(frozen=True)
class Note:
    """A pitched note with its resolved duration."""

    pitch: Pitch
    duration: Duration

    @property
    def midi(self) -> int:
        return self.pitch.midi

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "note",
            "pitch": self.pitch.to_strudel(),
            "midi": self.midi,
            "duration": str(self.duration),
        }


@dataclass(frozen=True)
class Chord:
    """Simultaneous notes sharing one duration. Note order is source order."""

    pitches: tuple[Pitch, ...]
    duration: Duration

    def __post_init__(self) -> None:
        if not self.pitches:
            raise ValueError("Chord must contain at least one pitch")

    @property
    def notes(self) -> tuple[Note, ...]:
        return tuple(Note(p, self.duration) for p in self.pitches)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "chord",
            "pitches": [p.to_strudel() for p in self.pitches],
            "duration": str(self.duration),
        }


@dataclass(frozen=True)
class Rest:
    """Silence for one duration."""

    duration: Duration

    def to_dict(self) -> dict[str, Any]:
        return {"type": "rest", "duration": str(self.duration)}


@dataclass(frozen=True)
class DrumHit:
    """
    A drum hit by its LilyPond drummode name.

    Names are kept as written; the generator maps them to Strudel samples.
    """

    name: str
    duration: Duration

    def to_dict(self) -> dict[str, Any]:
        return {"type": "drum", "name": self.name, "duration": str(self.duration)}


Event = Union[Note, Chord, Rest, DrumHit]


@dataclass(frozen=True)
class Bar:
    """One measure: the events between two bar lines."""

    events: tuple[Event, ...]

    def __post_init__(self) -> None:
        if not self.events:
            raise ValueError("Bar must contain at least one event")

    def to_dict(self) -> dict[str, Any]:
        return {"events": [e.to_dict() for e in self.events]}


@dataclass(frozen=True)
class BarGroup:
    """
    Bars preserved under a volta repeat, played count times.

    A group holding a single bar renders as a repeated bar; several
    bars render as a repeated group.
    """

    slots: tuple[Slot, ...]
    count: int

    def __post_init__(self) -> None:
        if not self.slots:
            raise ValueError("Repeat group must contain at least one bar")
        if self.count < 1:
            raise ValueError(f"Repeat count must be >= 1, got {self.count}")

    @property
    def bars_per_pass(self) -> int:
        """Bars played by one pass through the group."""
        return sum(played_bars(s) for s in self.slots)

    def to_dict(self) -> dict[str, Any]:
        return {
            "repeat": self.count,
            "slots": [s.to_dict() for s in self.slots],
        }


Slot = Union[Bar, BarGroup]


def played_bars(slot: Slot) -> int:
    """Bars a slot occupies when played: 1 for a bar, passes x bars for a group."""
    if isinstance(slot, BarGroup):
        return slot.bars_per_pass * slot.count
    return 1


def iter_events(slots: tuple[Slot, ...]) -> Iterator[Event]:
    """Events of a slot sequence as written (repeat groups visited once)."""
    for slot in slots:
        if isinstance(slot, BarGroup):
            yield from iter_events(slot.slots)
        else:
            yield from slot.events


@dataclass(frozen=True)
class Modifiers:
    """
    Per-voice attributes set by directive comments.

    gain and pan are raw Strudel expressions (numbers or mini-notation).
    """

    punchcard: str | None = None
    gain: str | None = None
    pan: str | None = None

    def is_empty(self) -> bool:
        return self.punchcard is None and self.gain is None and self.pan is None

    def to_dict(self) -> dict[str, Any]:
        return {
            k: v
            for k, v in (("punchcard", self.punchcard), ("gain", self.gain), ("pan", self.pan))
            if v is not None
        }


@dataclass(frozen=True)
class Voice:
    """An ordered stream of bar slots with optional modifiers."""

    slots: tuple[Slot, ...]
    modifiers: Modifiers = field(default_factory=Modifiers)

    @property
    def played_bars(self) -> int:
        return sum(played_bars(s) for s in self.slots)

    def events(self) -> Iterator[Event]:
        return iter_events(self.slots)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "played_bars": self.played_bars,
            "slots": [s.to_dict() for s in self.slots],
        }
        if not self.modifiers.is_empty():
            d["modifiers"] = self.modifiers.to_dict()
        return d


@dataclass(frozen=True)
class PitchedStaff:
    """A staff with exactly one implicit voice of notes, chords and rests."""

    voice: Voice

    @property
    def voices(self) -> tuple[Voice, ...]:
        return (self.voice,)

    def to_dict(self) -> dict[str, Any]:
        return {"type": "pitched", "voices": [self.voice.to_dict()]}


@dataclass(frozen=True)
class DrumStaff:
    """A percussion staff of one or more simultaneous voices, order preserved."""

    voices: tuple[Voice, ...]

    def __post_init__(self) -> None:
        if not self.voices:
            raise ValueError("Drum staff must contain at least one voice")

    def to_dict(self) -> dict[str, Any]:
        return {"type": "drums", "voices": [v.to_dict() for v in self.voices]}


Staff = Union[PitchedStaff, DrumStaff]


@dataclass(frozen=True)
class Tempo:
    """Metronome mark: beat unit denominator and beats per minute."""

    beat_unit: int
    bpm: int

    def __post_init__(self) -> None:
        if self.bpm <= 0:
            raise ValueError(f"Tempo must be positive, got {self.bpm}")

    def to_dict(self) -> dict[str, Any]:
        return {"beat_unit": self.beat_unit, "bpm": self.bpm}


@dataclass(frozen=True)
class MusicVariable:
    """A named music definition after resolution, kept for inspection."""

    name: str
    drums: bool
    voices: tuple[Voice, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "drums": self.drums,
            "voices": [v.to_dict() for v in self.voices],
        }


@dataclass(frozen=True)
class Document:
    """
    A fully resolved score.

    variables is informational (what the score defined); it does not take
    part in equality, so a composed document compares equal to the parse
    of its own LilyPond rendering.
    """

    tempo: Tempo
    staves: tuple[Staff, ...]
    variables: dict[str, MusicVariable] = field(default_factory=dict, compare=False, hash=False)

    def notes(self) -> list[Note]:
        """All pitched notes in staff order, chords flattened."""
        result: list[Note] = []
        for staff in self.staves:
            if not isinstance(staff, PitchedStaff):
                continue
            for event in staff.voice.events():
                if isinstance(event, Note):
                    result.append(event)
                elif isinstance(event, Chord):
                    result.extend(event.notes)
        return result

    def drum_hits(self) -> list[DrumHit]:
        """All drum hits across drum staves and voices."""
        return [
            event
            for staff in self.staves
            if isinstance(staff, DrumStaff)
            for voice in staff.voices
            for event in voice.events()
            if isinstance(event, DrumHit)
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "tempo": self.tempo.to_dict(),
            "staves": [s.to_dict() for s in self.staves],
            "variables": sorted(self.variables),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def summary(self) -> dict[str, Any]:
        """Generate a summary for quick inspection."""
        notes = self.notes()
        hits = self.drum_hits()
        drum_counts: dict[str, int] = {}
        for hit in hits:
            drum_counts[hit.name] = drum_counts.get(hit.name, 0) + 1

        return {
            "tempo": self.tempo.bpm,
            "beat_unit": self.tempo.beat_unit,
            "staves": [
                {
                    "type": "pitched" if isinstance(s, PitchedStaff) else "drums",
                    "voices": len(s.voices),
                    "played_bars": [v.played_bars for v in s.voices],
                }
                for s in self.staves
            ],
            "variables": sorted(self.variables),
            "total_notes": len(notes),
            "total_drum_hits": len(hits),
            "drums": dict(sorted(drum_counts.items())),
            "pitch_range": (
                min(n.midi for n in notes) if notes else 0,
                max(n.midi for n in notes) if notes else 0,
            ),
        }
