"""
Tests for the LilyPond document parser.

Tests cover score structure, staves and voices, variables, repeats,
directives, tempo marks and the error taxonomy.
"""

import logging

import pytest

from chuk_mcp_strudel.core import Duration, Pitch
from chuk_mcp_strudel.errors import (
    DefinitionCycleError,
    LexError,
    MissingTempoError,
    ParseError,
    UndefinedVariableError,
)
from chuk_mcp_strudel.lilypond import MappingIncludeSource, parse_document
from chuk_mcp_strudel.models import (
    Bar,
    BarGroup,
    Chord,
    DrumHit,
    DrumStaff,
    Modifiers,
    Note,
    PitchedStaff,
    Rest,
    Tempo,
)

DRUM_SCORE = r"""
\version "2.24.4"

up = \drummode { hh8 hh hh hh hh hh hh hh | }
down = \drummode { bd4 sn4 bd4 sn4 | }

\score {
  <<
    \tempo 4 = 120
    \new DrumStaff <<
      \new DrumVoice { \voiceOne \up }
      \new DrumVoice { \voiceTwo \down }
    >>
  >>
  \layout { }
}
"""


def notes(*words: str, duration: int = 4) -> tuple[Note, ...]:
    return tuple(Note(Pitch.parse(w), Duration(duration)) for w in words)


class TestPitchedStaves:
    """Tests for pitched music."""

    def test_bare_music(self) -> None:
        document = parse_document("\\tempo 4 = 60\n{ c4 d4 e4 | }")
        assert document.tempo == Tempo(4, 60)
        assert document.staves == (PitchedStaff(voice=document.staves[0].voice),)
        assert document.staves[0].voice.slots == (Bar(notes("c", "d", "e")),)

    def test_bar_lines_split_bars(self) -> None:
        document = parse_document("\\tempo 4 = 60 { c4 d4 | e2 | f1 }")
        slots = document.staves[0].voice.slots
        assert len(slots) == 3
        assert slots[1] == Bar(notes("e", duration=2))
        assert slots[2] == Bar(notes("f", duration=1))

    def test_duration_carries_across_bars(self) -> None:
        document = parse_document("\\tempo 4 = 60 { c8 d e f | g a b c' | }")
        durations = [e.duration for e in document.staves[0].voice.events()]
        assert durations == [Duration(8)] * 8

    def test_duration_resets_per_body(self) -> None:
        """Each staff body starts from a quarter note."""
        source = "\\tempo 4 = 60 << \\new Staff { c2 } \\new Staff { d } >>"
        document = parse_document(source)
        assert document.staves[1].voice.slots == (Bar(notes("d")),)

    def test_chords(self) -> None:
        document = parse_document("\\tempo 4 = 60 { <c e g>2 <d f a> | }")
        events = list(document.staves[0].voice.events())
        assert events[0] == Chord((Pitch("c"), Pitch("e"), Pitch("g")), Duration(2))
        assert events[1] == Chord((Pitch("d"), Pitch("f"), Pitch("a")), Duration(2))

    def test_rests_expand(self) -> None:
        document = parse_document("\\tempo 4 = 60 { c4 r2 d4 | }")
        events = list(document.staves[0].voice.events())
        assert events[1:3] == [Rest(Duration(4)), Rest(Duration(4))]
        assert len(events) == 4

    def test_ties_and_articulations_are_ignored(self) -> None:
        document = parse_document("\\tempo 4 = 60 { c4~ c4-. d4-- e4 | }")
        assert len(list(document.staves[0].voice.events())) == 4

    def test_accents_are_ignored(self) -> None:
        document = parse_document("\\tempo 4 = 60 \\new DrumStaff \\drummode { sn4-> sn4 bd4-^ bd4^> | }")
        names = [hit.name for hit in document.staves[0].voices[0].events()]
        assert names == ["sn", "sn", "bd", "bd"]

    def test_score_with_staff_and_variable(self) -> None:
        source = r"""
        melody = { c'4 e'4 g'4 c''4 | d'2 d'2 | }
        \score {
          \new Staff { \tempo 4 = 90 \clef treble \time 4/4 \melody }
          \layout { }
        }
        """
        document = parse_document(source)
        assert document.tempo.bpm == 90
        voice = document.staves[0].voice
        assert voice.slots[0] == Bar(notes("c'", "e'", "g'", "c''"))
        assert voice.slots[1] == Bar(notes("d'", "d'", duration=2))
        assert list(document.variables) == ["melody"]
        assert document.variables["melody"].drums is False

    def test_two_voices_become_two_staves(self) -> None:
        document = parse_document("\\tempo 4 = 60 \\new Staff << { c4 } \\\\ { e4 } >>")
        assert len(document.staves) == 2
        assert all(isinstance(s, PitchedStaff) for s in document.staves)

    def test_staff_group(self) -> None:
        source = r"""
        \score {
          \new PianoStaff <<
            \new Staff { \tempo 4 = 72 c'4 }
            \new Staff { \clef bass c,4 }
          >>
        }
        """
        document = parse_document(source)
        assert [s.voice.slots[0].events[0].pitch.octave for s in document.staves] == [5, 3]

    def test_header_and_paper_are_skipped(self) -> None:
        source = r"""
        \header { title = "Test" composer = "Someone" }
        \paper { #(include-special-characters) indent = 0\mm }
        \tempo "Allegro" 4 = 132
        { c4 }
        """
        document = parse_document(source)
        assert document.tempo.bpm == 132
        assert len(document.staves) == 1


class TestDrumStaves:
    """Tests for drum music."""

    def test_two_voice_drum_staff(self) -> None:
        document = parse_document(DRUM_SCORE)
        assert len(document.staves) == 1
        staff = document.staves[0]
        assert isinstance(staff, DrumStaff)
        assert len(staff.voices) == 2
        assert staff.voices[0].slots == (Bar((DrumHit("hh", Duration(8)),) * 8),)
        assert staff.voices[1].slots == (
            Bar(
                (
                    DrumHit("bd", Duration(4)),
                    DrumHit("sn", Duration(4)),
                    DrumHit("bd", Duration(4)),
                    DrumHit("sn", Duration(4)),
                )
            ),
        )

    def test_drum_variables_are_recorded(self) -> None:
        document = parse_document(DRUM_SCORE)
        assert sorted(document.variables) == ["down", "up"]
        assert document.variables["up"].drums is True

    def test_single_drummode_voice(self) -> None:
        document = parse_document("\\tempo 4 = 100 \\new DrumStaff \\drummode { bd4 sn4 }")
        staff = document.staves[0]
        assert isinstance(staff, DrumStaff)
        assert len(staff.voices) == 1

    def test_staff_with_drum_variable_is_drums(self) -> None:
        source = "beat = \\drummode { bd4 sn4 }\n\\tempo 4 = 100\n\\new Staff { \\beat }"
        document = parse_document(source)
        assert isinstance(document.staves[0], DrumStaff)

    def test_directives_attach_to_voices(self) -> None:
        source = r"""
        \tempo 4 = 100
        \new DrumStaff <<
          % @strudel-of-lilypond@ red punchcard
          % @strudel-of-lilypond@ gain <0.5 1>
          \new DrumVoice { bd4 bd4 bd4 bd4 | }
          \new DrumVoice {
            % @strudel-of-lilypond@ pan 0.25
            % @strudel-of-lilypond@ comment hats
            hh4 hh4 hh4 hh4 |
          }
        >>
        """
        staff = parse_document(source).staves[0]
        assert staff.voices[0].modifiers == Modifiers(punchcard="red", gain="<0.5 1>")
        assert staff.voices[1].modifiers == Modifiers(pan="0.25")

    def test_first_directive_wins(self) -> None:
        source = r"""
        \tempo 4 = 100
        \new DrumStaff \drummode {
          % @strudel-of-lilypond@ gain 0.8
          % @strudel-of-lilypond@ gain 0.2
          bd4
        }
        """
        staff = parse_document(source).staves[0]
        assert staff.voices[0].modifiers.gain == "0.8"

    def test_unrecognised_directive_is_ignored(self) -> None:
        source = r"""
        \tempo 4 = 100
        \new DrumStaff \drummode {
          % @strudel-of-lilypond@ reverb lots
          bd4
        }
        """
        staff = parse_document(source).staves[0]
        assert staff.voices[0].modifiers.is_empty()

    def test_staff_level_directives_are_dropped(self, caplog: pytest.LogCaptureFixture) -> None:
        """Directives before << belong to no voice."""
        source = r"""
        \tempo 4 = 100
        \new DrumStaff {
          % @strudel-of-lilypond@ gain 0.5
          <<
            \new DrumVoice \drummode { hh4 hh4 hh4 hh4 | }
            \new DrumVoice \drummode { bd2 sn2 | }
          >>
        }
        """
        with caplog.at_level(logging.DEBUG, logger="chuk_mcp_strudel.lilypond.parser"):
            staff = parse_document(source).staves[0]
        assert len(staff.voices) == 2
        assert all(voice.modifiers.is_empty() for voice in staff.voices)
        assert "Ignoring staff-level directives" in caplog.text


class TestRepeats:
    """Tests for repeat policies."""

    def test_volta_repeat_is_preserved(self) -> None:
        document = parse_document("\\tempo 4 = 60 { \\repeat volta 2 { c4 d4 e4 f4 | } g1 | }")
        slots = document.staves[0].voice.slots
        assert slots[0] == BarGroup((Bar(notes("c", "d", "e", "f")),), 2)
        assert slots[1] == Bar(notes("g", duration=1))
        assert document.staves[0].voice.played_bars == 3

    def test_volta_group_of_bars(self) -> None:
        document = parse_document(
            "\\tempo 4 = 60 { \\repeat volta 3 { c4 c4 c4 c4 | d4 d4 d4 d4 | } }"
        )
        group = document.staves[0].voice.slots[0]
        assert isinstance(group, BarGroup)
        assert group.count == 3
        assert group.bars_per_pass == 2
        assert document.staves[0].voice.played_bars == 6

    def test_unfold_repeat_is_literal(self) -> None:
        document = parse_document("\\tempo 4 = 60 { \\repeat unfold 2 { c4 d4 e4 f4 } }")
        slots = document.staves[0].voice.slots
        assert slots == (Bar(notes("c", "d", "e", "f")),) * 2

    def test_percent_repeat_is_literal(self) -> None:
        document = parse_document("\\tempo 4 = 60 { \\repeat percent 3 { c1 } }")
        assert len(document.staves[0].voice.slots) == 3

    def test_inline_unfold_stays_in_bar(self) -> None:
        """A barless body started mid-bar is spliced into the open bar."""
        document = parse_document("\\tempo 4 = 60 { c4 \\repeat unfold 2 { d8 } e4 | f1 | }")
        slots = document.staves[0].voice.slots
        assert slots == (
            Bar((*notes("c"), *notes("d", "d", duration=8), *notes("e"))),
            Bar(notes("f", duration=1)),
        )

    def test_unfold_at_bar_start_writes_bars(self) -> None:
        document = parse_document("\\tempo 4 = 60 { \\repeat percent 2 { c2 d2 } | e1 | }")
        assert len(document.staves[0].voice.slots) == 3

    def test_repeat_flushes_open_bar(self) -> None:
        document = parse_document("\\tempo 4 = 60 { c4 \\repeat volta 2 { d4 } e4 }")
        slots = document.staves[0].voice.slots
        assert slots == (
            Bar(notes("c")),
            BarGroup((Bar(notes("d")),), 2),
            Bar(notes("e")),
        )

    def test_unknown_repeat_kind(self) -> None:
        with pytest.raises(ParseError):
            parse_document("\\tempo 4 = 60 { \\repeat tremolo 2 { c4 } }")

    def test_alternative_is_unsupported(self) -> None:
        source = "\\tempo 4 = 60 { \\repeat volta 2 { c4 } \\alternative { { d4 } { e4 } } }"
        with pytest.raises(ParseError, match="alternative"):
            parse_document(source)


class TestTempo:
    """Tests for tempo marks."""

    def test_tempo_from_variable(self) -> None:
        document = parse_document("bpm = 96\n\\tempo 4 = \\bpm\n{ c4 }")
        assert document.tempo == Tempo(4, 96)

    def test_tempo_range_keeps_lower_bound(self) -> None:
        document = parse_document("\\tempo 4 = 120-132 { c4 }")
        assert document.tempo.bpm == 120

    def test_first_tempo_wins(self) -> None:
        document = parse_document("{ \\tempo 4 = 80 c4 \\tempo 4 = 160 d4 }")
        assert document.tempo.bpm == 80

    def test_missing_tempo(self) -> None:
        with pytest.raises(MissingTempoError):
            parse_document("{ c4 d4 e4 | }")

    def test_undefined_tempo_variable(self) -> None:
        with pytest.raises(UndefinedVariableError):
            parse_document("\\tempo 4 = \\fast { c4 }")


class TestErrors:
    """Tests for parse failures."""

    def test_undefined_variable(self) -> None:
        with pytest.raises(UndefinedVariableError) as exc_info:
            parse_document("\\tempo 4 = 60 { c4 \\nothere }")
        assert exc_info.value.line == 1

    def test_definition_cycle(self) -> None:
        source = "a = { c4 \\b }\nb = { d4 \\a }\n\\tempo 4 = 60 { \\a }"
        with pytest.raises(DefinitionCycleError) as exc_info:
            parse_document(source)
        assert exc_info.value.path == ["a", "b", "a"]

    def test_self_reference_without_use(self) -> None:
        with pytest.raises(DefinitionCycleError):
            parse_document("loop = { c4 \\loop }\n\\tempo 4 = 60 { d4 }")

    def test_unknown_staff_type(self) -> None:
        with pytest.raises(ParseError, match="FooStaff"):
            parse_document("\\tempo 4 = 60 \\new FooStaff { c4 }")

    def test_relative_is_unsupported(self) -> None:
        with pytest.raises(ParseError, match="relative"):
            parse_document("\\tempo 4 = 60 \\relative c' { c4 d e }")

    def test_include_without_source(self) -> None:
        with pytest.raises(ParseError):
            parse_document('\\tempo 4 = 60 \\include "drums.ly"')

    def test_malformed_note(self) -> None:
        with pytest.raises(ParseError):
            parse_document("\\tempo 4 = 60 { c4 hh4 }")

    def test_unterminated_block(self) -> None:
        with pytest.raises(LexError):
            parse_document("\\tempo 4 = 60 { c4 d4")

    def test_no_music(self) -> None:
        with pytest.raises(ParseError):
            parse_document("\\tempo 4 = 60")


class TestIncludes:
    """Tests for parsing with includes."""

    def test_included_variables(self) -> None:
        includes = MappingIncludeSource({"beats.ly": "beat = \\drummode { bd4 sn4 bd4 sn4 }"})
        source = '\\include "beats.ly"\n\\tempo 4 = 110\n\\new DrumStaff { \\beat }'
        document = parse_document(source, includes=includes)
        assert isinstance(document.staves[0], DrumStaff)
        assert document.tempo.bpm == 110


class TestDeterminism:
    """Parsing is a pure function of the input."""

    def test_same_input_same_document(self) -> None:
        assert parse_document(DRUM_SCORE) == parse_document(DRUM_SCORE)

    def test_later_duration_does_not_change_earlier_notes(self) -> None:
        first = parse_document("\\tempo 4 = 60 { c8 d e f2 }")
        second = parse_document("\\tempo 4 = 60 { c8 d e f4 }")
        assert list(first.staves[0].voice.events())[:3] == list(
            second.staves[0].voice.events()
        )[:3]
