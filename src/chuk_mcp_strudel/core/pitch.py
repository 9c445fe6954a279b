"""
Pitch primitives - Accidental and Pitch.

A Pitch is a LilyPond absolute pitch: letter, accidental and the net
octave shift of its ' and , marks relative to the reference octave.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from chuk_mcp_strudel.constants import LETTER_SEMITONES, REFERENCE_OCTAVE

_PITCH_RE = re.compile(r"^([a-g])(is|es)?([',]*)$")


class Accidental(str, Enum):
    """
    LilyPond (Dutch) accidental suffixes.

    Only single sharps and flats are supported.
    """

    NATURAL = ""
    SHARP = "is"
    FLAT = "es"

    @property
    def semitones(self) -> int:
        """Offset from the natural pitch."""
        return {"": 0, "is": 1, "es": -1}[self.value]

    @property
    def strudel(self) -> str:
        """Suffix used in Strudel note names."""
        return {"": "", "is": "#", "es": "b"}[self.value]


@dataclass(frozen=True)
class Pitch:
    """
    An absolute pitch.

    octave_shift is the net of all octave marks on one note token:
    each ' adds one octave, each , removes one.

    Immutable and hashable.
    """

    letter: str
    accidental: Accidental = Accidental.NATURAL
    octave_shift: int = 0

    def __post_init__(self) -> None:
        if self.letter not in LETTER_SEMITONES:
            raise ValueError(f"Unknown pitch letter: {self.letter!r}")

    @property
    def octave(self) -> int:
        """Resolved octave number (c with no marks is octave 4)."""
        return REFERENCE_OCTAVE + self.octave_shift

    @property
    def midi(self) -> int:
        """Semitone index with C4 = 60."""
        return LETTER_SEMITONES[self.letter] + self.accidental.semitones + (self.octave + 1) * 12

    def to_strudel(self) -> str:
        """Strudel note name, e.g. c#5."""
        return f"{self.letter}{self.accidental.strudel}{self.octave}"

    def to_lilypond(self) -> str:
        """LilyPond spelling, e.g. cis''."""
        marks = "'" * self.octave_shift if self.octave_shift > 0 else "," * -self.octave_shift
        return f"{self.letter}{self.accidental.value}{marks}"

    @staticmethod
    def count_octave_marks(marks: str) -> int:
        """Net octave shift of a run of ' and , marks."""
        return marks.count("'") - marks.count(",")

    @classmethod
    def parse(cls, text: str) -> Pitch:
        """Parse a pitch like 'c', "fis''" or 'bes,'."""
        match = _PITCH_RE.match(text.strip())
        if not match:
            raise ValueError(f"Invalid pitch: {text!r}")
        letter, accidental, marks = match.groups()
        return cls(letter, Accidental(accidental or ""), cls.count_octave_marks(marks))

    def __str__(self) -> str:
        return self.to_lilypond()
