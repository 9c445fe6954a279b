"""
LilyPond rendering of bar sequences.

Each pattern voice becomes one DrumVoice of a single DrumStaff, labelled
\\voiceOne, \\voiceTwo, ... by position. Bars follow the sequence:

    Single          body, separated from a preceding single by |
    RepeatBar       \\repeat volta N { body }
    RepeatGroup     \\repeat volta N { bodies }

Each top-level entry's description is written as a comment directive
before its first bar, so it survives into the Strudel output's source.
"""

from __future__ import annotations

import logging

from chuk_mcp_strudel.constants import (
    DIRECTIVE_TAG,
    LILYPOND_VERSION,
    VOICE_LABELS,
    ErrorMessages,
)
from chuk_mcp_strudel.errors import EmptySequenceError, EmptyVoicesError
from chuk_mcp_strudel.models.pattern import Pattern
from chuk_mcp_strudel.models.sequence import BarSequence
from chuk_mcp_strudel.patterns.library import PatternLibrary
from chuk_mcp_strudel.sequencer.expander import BarUse, Expansion, expand_item

logger = logging.getLogger(__name__)

# Body for a voice the pattern does not define
PAD_REST = "r1"

BAR_INDENT = " " * 12
STEP = "  "

_PAPER = """\\paper {
  #(include-special-characters)
  indent = 0\\mm
  line-width = 180\\mm
  oddHeaderMarkup = ""
  evenHeaderMarkup = ""
  oddFooterMarkup = ""
  evenFooterMarkup = ""
  #(add-text-replacements!
    '(("100" . "hundred")
      ("dpi" . "dots per inch")))
}"""


def resolve_patterns(sequence: BarSequence, library: PatternLibrary) -> dict[str, Pattern]:
    """
    Load every pattern the sequence references.

    Raises:
        EmptySequenceError: If the sequence references no bars
        PatternNotFoundError: If a pattern is in no library root
        EmptyVoicesError: If a pattern declares no voices
    """
    names = sequence.pattern_names()
    if not names:
        raise EmptySequenceError(ErrorMessages.EMPTY_SEQUENCE)

    patterns: dict[str, Pattern] = {}
    for name in names:
        pattern = library.get_pattern(name)
        if not pattern.voices:
            raise EmptyVoicesError(name, ErrorMessages.EMPTY_VOICES.format(name=name))
        patterns[name] = pattern
    return patterns


class _VoiceWriter:
    """Writes one voice's lines across the whole sequence."""

    def __init__(self, voice_index: int, patterns: dict[str, Pattern]):
        self.voice_index = voice_index
        self.patterns = patterns
        self.lines: list[str] = []
        self.need_bar_line = False

    def body(self, pattern_name: str) -> str:
        return self.patterns[pattern_name].voice(self.voice_index) or PAD_REST

    def write(self, bars: tuple[BarUse | Expansion, ...], indent: str, comment: str | None) -> None:
        for position, bar in enumerate(bars):
            if self.need_bar_line:
                self.lines.append(f"{indent}|")
            if comment and position == 0:
                self.lines.append(f"{indent}% @{DIRECTIVE_TAG}@ comment {comment}")

            if isinstance(bar, BarUse) and bar.count == 1:
                self.lines.append(f"{indent}{self.body(bar.pattern_name)}")
                self.need_bar_line = True
                continue

            count = bar.count if isinstance(bar, BarUse) else bar.repeat
            self.lines.append(f"{indent}\\repeat volta {count} {{")
            if isinstance(bar, BarUse):
                self.lines.append(f"{indent}{STEP}{self.body(bar.pattern_name)}")
            else:
                self.need_bar_line = False
                self.write(bar.bars, indent + STEP, None)
            self.lines.append(f"{indent}}}")
            self.need_bar_line = False


def _voice_block(index: int, content: str) -> str:
    label = VOICE_LABELS[index] if index < len(VOICE_LABELS) else ""
    lines = ["        \\new DrumVoice {"]
    if label:
        lines.append(f"          {label}")
    lines.append(content)
    lines.append("        }")
    return "\n".join(lines)


def lilypond_of_sequence(sequence: BarSequence, library: PatternLibrary) -> str:
    """
    Render a sequence as a complete LilyPond file.

    The voice count is the widest referenced pattern; narrower patterns
    are padded with a whole rest in the voices they lack.

    Args:
        sequence: Tempo and described items
        library: Pattern lookup

    Returns:
        LilyPond source text
    """
    patterns = resolve_patterns(sequence, library)
    voice_count = max(len(p.voices) for p in patterns.values())
    for name, pattern in patterns.items():
        if len(pattern.voices) < voice_count:
            logger.warning(
                "Pattern '%s' has %d of %d voices; padding with rests",
                name,
                len(pattern.voices),
                voice_count,
            )

    entries = [(expand_item(e.item), e.description.strip()) for e in sequence.sequence]

    blocks: list[str] = []
    for index in range(voice_count):
        writer = _VoiceWriter(index, patterns)
        for expansion, description in entries:
            if not expansion.bars:
                continue
            if expansion.repeat == 1:
                writer.write(expansion.bars, BAR_INDENT, description)
            else:
                writer.write((expansion,), BAR_INDENT, description)
        blocks.append(_voice_block(index, "\n".join(writer.lines)))

    voices = "\n".join(blocks)
    return (
        f'\\version "{LILYPOND_VERSION}"\n'
        "\n"
        f"{_PAPER}\n"
        "\n"
        "\\score {\n"
        "  <<\n"
        f"    \\tempo 4 = {sequence.tempo}\n"
        "\n"
        "    \\new DrumStaff {\n"
        "      <<\n"
        f"{voices}\n"
        "      >>\n"
        "    }\n"
        "  >>\n"
        "\n"
        "  \\layout {}\n"
        "}\n"
    )
