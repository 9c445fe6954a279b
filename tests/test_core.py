"""
Tests for core primitives.

Tests cover:
- Accidental and Pitch (pitch.py)
- Duration and format_weight (rhythm.py)
- remap_drum and is_known_drum (drums.py)
"""

from fractions import Fraction

import pytest

from chuk_mcp_strudel.constants import DRUM_REMAP
from chuk_mcp_strudel.core import (
    Accidental,
    Duration,
    Pitch,
    format_weight,
    is_known_drum,
    remap_drum,
)


class TestPitch:
    """Tests for Pitch."""

    def test_unmarked_pitch_is_reference_octave(self) -> None:
        """A bare letter resolves to octave 4."""
        assert Pitch("c").octave == 4
        assert Pitch("c").to_strudel() == "c4"

    def test_one_mark_is_octave_above_middle_c(self) -> None:
        """c' sounds an octave above middle C, not at it."""
        assert Pitch.parse("c'").to_strudel() == "c5"
        assert Pitch.parse("c'").midi == 72

    def test_octave_marks_are_net(self) -> None:
        """Each ' adds one octave and each , removes one."""
        up = Pitch.parse("c'''")
        mixed = Pitch.parse("c,'''")
        assert up.octave_shift == 3
        assert mixed.octave_shift == 2
        assert mixed.octave_shift - up.octave_shift == -1

    def test_accidentals(self) -> None:
        """is/es map to # and b."""
        assert Pitch.parse("cis''").to_strudel() == "c#6"
        assert Pitch.parse("bes,").to_strudel() == "bb3"
        assert Pitch.parse("fis").accidental == Accidental.SHARP

    def test_midi(self) -> None:
        """Middle C is 60; accidentals shift by one semitone."""
        assert Pitch("c").midi == 60
        assert Pitch("a").midi == 69
        assert Pitch("c", Accidental.SHARP).midi == 61
        assert Pitch("e", Accidental.FLAT, -1).midi == 51

    def test_lilypond_spelling(self) -> None:
        """Pitches print back in LilyPond notation."""
        assert Pitch.parse("fis''").to_lilypond() == "fis''"
        assert str(Pitch.parse("bes,")) == "bes,"

    def test_invalid_pitch(self) -> None:
        """Unknown letters and malformed text are rejected."""
        with pytest.raises(ValueError):
            Pitch("h")
        with pytest.raises(ValueError):
            Pitch.parse("c#")

    def test_immutable(self) -> None:
        """Pitches are frozen and hashable."""
        pitch = Pitch("d")
        with pytest.raises(AttributeError):
            pitch.letter = "e"  # type: ignore[misc]
        assert len({Pitch("d"), Pitch("d")}) == 1


class TestDuration:
    """Tests for Duration."""

    def test_beats(self) -> None:
        """Beats are measured in quarter notes."""
        assert Duration(1).beats == 4
        assert Duration(4).beats == 1
        assert Duration(8).beats == Fraction(1, 2)
        assert Duration(4, 1).beats == Fraction(3, 2)
        assert Duration(2, 2).beats == Fraction(7, 2)

    def test_canonical_weights(self) -> None:
        """Undotted durations use the weight table; a quarter has none."""
        assert Duration(1).weight == "4"
        assert Duration(2).weight == "2"
        assert Duration(4).weight is None
        assert Duration(8).weight == "0.5"
        assert Duration(16).weight == "0.25"

    def test_other_weights_use_beats(self) -> None:
        """Dotted and short values render their beat length."""
        assert Duration(4, 1).weight == "1.5"
        assert Duration(2, 1).weight == "3"
        assert Duration(32).weight == "0.125"
        assert Duration(8, 1).weight == "0.75"

    def test_parse(self) -> None:
        """Durations parse from LilyPond text."""
        assert Duration.parse("8.") == Duration(8, 1)
        assert Duration.parse("16") == Duration.SIXTEENTH
        assert str(Duration(2, 2)) == "2.."

    def test_invalid(self) -> None:
        """Non powers of two and bad text are rejected."""
        with pytest.raises(ValueError):
            Duration(3)
        with pytest.raises(ValueError):
            Duration.parse("four")

    def test_format_weight(self) -> None:
        assert format_weight(Fraction(3)) == "3"
        assert format_weight(Fraction(3, 2)) == "1.5"
        assert format_weight(Fraction(1, 8)) == "0.125"


class TestDrums:
    """Tests for drum name mapping."""

    def test_remap(self) -> None:
        """LilyPond names map to Strudel samples."""
        assert remap_drum("sn") == "sd"
        assert remap_drum("hho") == "oh"
        assert remap_drum("cymc") == "cr"
        assert remap_drum("bd") == "bd"

    def test_unknown_names_pass_through(self) -> None:
        assert remap_drum("cowbell") == "cowbell"

    @pytest.mark.parametrize("name", sorted(DRUM_REMAP))
    def test_remap_is_idempotent(self, name: str) -> None:
        """Remapping an already remapped name changes nothing."""
        once = remap_drum(name)
        assert remap_drum(once) == once

    def test_known_drum(self) -> None:
        assert is_known_drum("bd")
        assert is_known_drum("hhc")
        assert not is_known_drum("cowbell")
