"""
Sequence Composer - bar sequences to Documents and Strudel programs.

The composer goes through LilyPond: the sequence is rendered as a .ly
file and that text is parsed like any other score. The composed Document
is therefore exactly what a user re-reading the .ly file would get.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from chuk_mcp_strudel.compiler.strudel import StrudelGenerator
from chuk_mcp_strudel.constants import DEFAULT_INSTRUMENT
from chuk_mcp_strudel.lilypond.parser import DocumentParser
from chuk_mcp_strudel.models.document import Document
from chuk_mcp_strudel.models.sequence import BarSequence
from chuk_mcp_strudel.patterns.library import PatternLibrary
from chuk_mcp_strudel.sequencer.lilypond import lilypond_of_sequence

logger = logging.getLogger(__name__)


@dataclass
class CompositionResult:
    """All three renderings of one sequence."""

    lilypond: str
    document: Document
    strudel: str

    @property
    def total_bars(self) -> int:
        return max((v.played_bars for s in self.document.staves for v in s.voices), default=0)


class SequenceComposer:
    """
    Composes bar sequences from a pattern library.

    Usage:
        composer = SequenceComposer(PatternLibrary(["library"]))
        program = composer.strudel(sequence)
    """

    def __init__(self, library: PatternLibrary, instrument: str = DEFAULT_INSTRUMENT):
        self.library = library
        self.generator = StrudelGenerator(instrument=instrument)

    def lilypond(self, sequence: BarSequence) -> str:
        """Render the sequence as LilyPond source."""
        return lilypond_of_sequence(sequence, self.library)

    def compose(self, sequence: BarSequence) -> Document:
        """Compose the sequence into a Document."""
        return DocumentParser().parse(self.lilypond(sequence))

    def strudel(self, sequence: BarSequence) -> str:
        """Render the sequence as a Strudel program."""
        return self.generator.generate(self.compose(sequence))

    def render(self, sequence: BarSequence) -> CompositionResult:
        """
        Render every form at once, parsing the LilyPond text only once.

        Raises:
            SequencerError: On missing or voiceless patterns, or an empty sequence
        """
        source = self.lilypond(sequence)
        document = DocumentParser().parse(source)
        result = CompositionResult(
            lilypond=source, document=document, strudel=self.generator.generate(document)
        )
        logger.info(
            "Composed %d bars from %d patterns",
            result.total_bars,
            len(sequence.pattern_names()),
        )
        return result
