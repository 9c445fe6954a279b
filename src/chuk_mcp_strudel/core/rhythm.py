"""
Rhythm primitives - Duration.

Durations are LilyPond denominators (1 = whole, 4 = quarter) with
optional augmentation dots. Beat values use Fraction for exactness.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from fractions import Fraction
from typing import ClassVar

from chuk_mcp_strudel.constants import DURATION_WEIGHTS

_DURATION_RE = re.compile(r"^(\d+)(\.*)$")


def format_weight(value: Fraction) -> str:
    """Compact decimal rendering of a beat weight (3, 1.5, 0.125)."""
    if value.denominator == 1:
        return str(value.numerator)
    return f"{float(value):g}"


@dataclass(frozen=True)
class Duration:
    """
    A note value expressed as a LilyPond denominator.

    beats is measured in quarter notes: a whole note is 4 beats.

    Immutable and hashable.
    """

    denominator: int
    dots: int = 0

    WHOLE: ClassVar[Duration]
    HALF: ClassVar[Duration]
    QUARTER: ClassVar[Duration]
    EIGHTH: ClassVar[Duration]
    SIXTEENTH: ClassVar[Duration]

    def __post_init__(self) -> None:
        d = self.denominator
        if d < 1 or d & (d - 1):
            raise ValueError(f"Duration denominator must be a power of two, got {d}")
        if self.dots < 0:
            raise ValueError(f"Dots must be non-negative, got {self.dots}")

    @property
    def beats(self) -> Fraction:
        """Length in quarter notes."""
        base = Fraction(4, self.denominator)
        return base * (2 - Fraction(1, 2**self.dots))

    @property
    def weight(self) -> str | None:
        """
        Strudel @weight suffix value, or None for a plain quarter note.

        Undotted values use the canonical table; anything else renders
        its beat length.
        """
        if not self.dots and self.denominator in DURATION_WEIGHTS:
            return DURATION_WEIGHTS[self.denominator]
        if self.beats == 1:
            return None
        return format_weight(self.beats)

    @classmethod
    def parse(cls, text: str) -> Duration:
        """Parse '4', '8.', '2..'."""
        match = _DURATION_RE.match(text.strip())
        if not match:
            raise ValueError(f"Invalid duration: {text!r}")
        return cls(int(match.group(1)), len(match.group(2)))

    def __str__(self) -> str:
        return f"{self.denominator}{'.' * self.dots}"


Duration.WHOLE = Duration(1)
Duration.HALF = Duration(2)
Duration.QUARTER = Duration(4)
Duration.EIGHTH = Duration(8)
Duration.SIXTEENTH = Duration(16)
