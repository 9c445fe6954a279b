"""
Tests for the bar sequencer.

Tests cover expansion, LilyPond rendering, composition through the
parser, Strudel output and sequence file loading.
"""

from pathlib import Path

import pytest

from chuk_mcp_strudel.core import Duration
from chuk_mcp_strudel.errors import (
    EmptySequenceError,
    EmptyVoicesError,
    PatternNotFoundError,
    SequencerError,
)
from chuk_mcp_strudel.lilypond import DocumentParser
from chuk_mcp_strudel.models import (
    Bar,
    BarGroup,
    BarRef,
    BarSequence,
    DrumHit,
    DrumStaff,
    Group,
    RepeatBar,
    RepeatGroup,
    Rest,
    SequenceEntry,
    Single,
)
from chuk_mcp_strudel.patterns import PatternLibrary
from chuk_mcp_strudel.sequencer import (
    BarUse,
    Expansion,
    SequenceComposer,
    expand_item,
    lilypond_of_sequence,
    load_sequence,
    parse_sequence,
)

Q = Duration(4)


def single(name: str) -> Single:
    return Single(bar=BarRef(pattern_name=name))


def repeat_bar(count: int, name: str) -> RepeatBar:
    return RepeatBar(count=count, bar=BarRef(pattern_name=name))


def sequence(*items, tempo: int = 120) -> BarSequence:
    entries = []
    for item in items:
        if isinstance(item, tuple):
            description, item = item
        else:
            description = ""
        entries.append(SequenceEntry(item=item, description=description))
    return BarSequence(tempo=tempo, sequence=entries)


KICK_SNARE = Bar(
    (DrumHit("bd", Q), DrumHit("sn", Q), DrumHit("bd", Q), DrumHit("sn", Q))
)
KICK_REST = Bar((DrumHit("bd", Q), Rest(Q), DrumHit("bd", Q), Rest(Q)))
HATS = Bar((DrumHit("hh", Duration(8)),) * 8)


class TestExpandItem:
    """Tests for flattening sequence items."""

    def test_single(self) -> None:
        assert expand_item(single("a")) == Expansion((BarUse("a", 1),))

    def test_repeat_bar(self) -> None:
        expansion = expand_item(repeat_bar(3, "a"))
        assert expansion == Expansion((BarUse("a", 3),))
        assert expansion.played_bars == 3

    def test_repeat_group(self) -> None:
        expansion = expand_item(RepeatGroup(count=2, items=[single("p1"), single("p2")]))
        assert expansion == Expansion((BarUse("p1"), BarUse("p2")), 2)
        assert expansion.played_bars == 4

    def test_group_dissolves_into_parent(self) -> None:
        item = Group(
            items=[
                single("a"),
                RepeatGroup(count=1, items=[single("b")]),
                Group(items=[]),
                RepeatGroup(count=2, items=[single("c")]),
            ]
        )
        assert expand_item(item) == Expansion(
            (BarUse("a"), BarUse("b"), Expansion((BarUse("c"),), 2))
        )

    def test_nested_played_bars(self) -> None:
        item = RepeatGroup(
            count=2, items=[repeat_bar(3, "a"), RepeatGroup(count=2, items=[single("b")])]
        )
        expansion = expand_item(item)
        assert expansion.played_bars == (3 + 2) * 2
        assert [u.pattern_name for u in expansion.pattern_uses()] == ["a", "b"]

    def test_to_dict(self) -> None:
        assert expand_item(repeat_bar(2, "a")).to_dict() == {
            "repeat": 1,
            "played_bars": 2,
            "bars": [{"pattern": "a", "count": 2}],
        }


class TestLilypondOfSequence:
    """Tests for rendering sequences as LilyPond."""

    def test_header_and_voices(self, library: PatternLibrary) -> None:
        text = lilypond_of_sequence(sequence(single("pattern1"), tempo=96), library)
        assert text.startswith('\\version "2.24.4"\n')
        assert "    \\tempo 4 = 96\n" in text
        assert "\\new DrumStaff {" in text
        assert "\\voiceOne" in text
        assert "\\voiceTwo" in text
        assert "\\voiceThree" not in text
        assert text.endswith("\\layout {}\n}\n")

    def test_bar_lines_and_repeats(self, library: PatternLibrary) -> None:
        text = lilypond_of_sequence(
            sequence(
                ("intro", single("pattern1")),
                ("groove", repeat_bar(3, "pattern2")),
                single("pattern1"),
            ),
            library,
        )
        indent = " " * 12
        expected_voice = "\n".join(
            [
                f"{indent}% @strudel-of-lilypond@ comment intro",
                f"{indent}bd4 sn4 bd4 sn4",
                f"{indent}|",
                f"{indent}% @strudel-of-lilypond@ comment groove",
                f"{indent}\\repeat volta 3 {{",
                f"{indent}  bd4 r4 bd4 r4",
                f"{indent}}}",
                f"{indent}bd4 sn4 bd4 sn4",
            ]
        )
        assert expected_voice in text

    def test_repeat_group_separates_bars(self, library: PatternLibrary) -> None:
        text = lilypond_of_sequence(
            sequence(RepeatGroup(count=2, items=[single("pattern1"), single("pattern2")])),
            library,
        )
        indent = " " * 12
        assert (
            f"{indent}\\repeat volta 2 {{\n"
            f"{indent}  bd4 sn4 bd4 sn4\n"
            f"{indent}  |\n"
            f"{indent}  bd4 r4 bd4 r4\n"
            f"{indent}}}"
        ) in text

    def test_narrow_patterns_are_padded(self, library: PatternLibrary) -> None:
        text = lilypond_of_sequence(sequence(single("pattern1"), single("solo")), library)
        assert f"{' ' * 12}r1" in text

    def test_missing_pattern(self, library: PatternLibrary) -> None:
        with pytest.raises(PatternNotFoundError):
            lilypond_of_sequence(sequence(single("nope")), library)

    def test_pattern_without_voices(self, library: PatternLibrary) -> None:
        with pytest.raises(EmptyVoicesError) as exc_info:
            lilypond_of_sequence(sequence(single("silent")), library)
        assert exc_info.value.name == "silent"

    def test_empty_sequence(self, library: PatternLibrary) -> None:
        with pytest.raises(EmptySequenceError):
            lilypond_of_sequence(sequence(), library)
        with pytest.raises(EmptySequenceError):
            lilypond_of_sequence(sequence(Group(items=[])), library)


class TestSequenceComposer:
    """Tests for composing documents and programs."""

    def test_compose_matches_parse_of_lilypond(self, library: PatternLibrary) -> None:
        seq = sequence(single("pattern1"), repeat_bar(2, "pattern2"))
        composer = SequenceComposer(library)
        document = composer.compose(seq)
        assert document == DocumentParser().parse(composer.lilypond(seq))

    def test_composed_document(self, library: PatternLibrary) -> None:
        seq = sequence(
            single("pattern1"),
            RepeatGroup(count=2, items=[single("pattern2"), single("pattern1")]),
            tempo=90,
        )
        document = SequenceComposer(library).compose(seq)
        assert document.tempo.bpm == 90
        assert len(document.staves) == 1
        staff = document.staves[0]
        assert isinstance(staff, DrumStaff)
        assert staff.voices[0].slots == (
            KICK_SNARE,
            BarGroup((KICK_REST, KICK_SNARE), 2),
        )
        assert staff.voices[1].slots == (HATS, BarGroup((HATS, HATS), 2))
        assert staff.voices[0].played_bars == 5

    def test_padding_rests(self, library: PatternLibrary) -> None:
        document = SequenceComposer(library).compose(
            sequence(single("solo"), single("pattern1"))
        )
        second = document.staves[0].voices[1]
        assert second.slots[0] == Bar((Rest(Q),) * 4)
        assert second.slots[1] == HATS

    def test_strudel(self, library: PatternLibrary) -> None:
        program = SequenceComposer(library).strudel(
            sequence(repeat_bar(3, "pattern1"), single("pattern2"))
        )
        assert program.startswith("const tempo = 120;\n\n$: stack(\n")
        assert "sound(`\n[[bd sd bd sd]]!3\n[bd ~ bd ~]`)" in program
        assert program.endswith("  .cpm(tempo/4/4)\n")

    def test_render(self, library: PatternLibrary) -> None:
        seq = sequence(single("pattern1"), RepeatGroup(count=3, items=[single("pattern2")]))
        result = SequenceComposer(library).render(seq)
        assert result.total_bars == 4
        assert result.document == DocumentParser().parse(result.lilypond)
        assert "[[bd ~ bd ~]]!3" in result.strudel

    def test_builtin_library(self) -> None:
        import chuk_mcp_strudel.patterns as patterns_package

        builtin = Path(patterns_package.__file__).parent / "library"
        seq = sequence(
            single("kick-only"),
            repeat_bar(3, "rock-beat"),
            single("snare-fill"),
        )
        result = SequenceComposer(PatternLibrary([builtin])).render(seq)
        assert result.total_bars == 5
        assert "sd@0.25" in result.strudel
        assert "cr@0.5" in result.strudel


SEQUENCE_YAML = """
tempo: 110
sequence:
  - description: intro
    item:
      Single: {pattern_name: pattern2}
  - description: groove
    item:
      RepeatBar: [3, {pattern_name: pattern1}]
  - description: turnaround
    item:
      RepeatGroup:
        - 2
        - - Single: {pattern_name: pattern1}
          - Group:
              - Single: pattern2
"""


class TestLoader:
    """Tests for sequence YAML."""

    def test_parse_sequence(self) -> None:
        seq = parse_sequence(SEQUENCE_YAML)
        assert seq.tempo == 110
        assert [e.description for e in seq.sequence] == ["intro", "groove", "turnaround"]
        assert seq.sequence[1].item == repeat_bar(3, "pattern1")
        turnaround = seq.sequence[2].item
        assert isinstance(turnaround, RepeatGroup)
        assert turnaround.count == 2
        assert isinstance(turnaround.items[1], Group)
        assert seq.pattern_names() == ["pattern2", "pattern1"]

    def test_round_trip_yaml_dict(self) -> None:
        seq = parse_sequence(SEQUENCE_YAML)
        assert BarSequence.from_yaml_dict(seq.to_yaml_dict()) == seq

    def test_load_sequence(self, temp_dir: Path, library: PatternLibrary) -> None:
        path = temp_dir / "song.yaml"
        path.write_text(SEQUENCE_YAML)
        result = SequenceComposer(library).render(load_sequence(path))
        assert result.total_bars == 1 + 3 + 4

    @pytest.mark.parametrize(
        "text",
        [
            "tempo: [unclosed",
            "- just a list",
            "sequence: []",
            "tempo: 0\nsequence: []",
            "tempo: 120\nsequence:\n  - item: {Bogus: x}",
            "tempo: 120\nsequence:\n  - item: {RepeatBar: [0, a]}",
            "tempo: 120\nsequence:\n  - item: {Single: {}}",
        ],
    )
    def test_invalid_sequences(self, text: str) -> None:
        with pytest.raises(SequencerError):
            parse_sequence(text)
