"""
Note/event resolution.

Turns note words (c'4, bes,8., r2, hh16) and chord contents into typed
events. The current default duration is threaded explicitly: every call
takes the default in effect and returns the default for what follows,
so a body can be resolved without parser-wide state.
"""

from __future__ import annotations

import re

from chuk_mcp_strudel.constants import DEFAULT_DENOMINATOR
from chuk_mcp_strudel.core.pitch import Accidental, Pitch
from chuk_mcp_strudel.core.rhythm import Duration
from chuk_mcp_strudel.errors import ParseError
from chuk_mcp_strudel.models.document import Chord, DrumHit, Event, Note, Rest

_NOTE_RE = re.compile(r"^([a-g])(is|es)?([',]*)(\d+)?(\.*)$")
_REST_RE = re.compile(r"^([rsR])(\d+)?(\.*)$")
_DRUM_RE = re.compile(r"^([A-Za-z]+)(\d+)?(\.*)$")

# Undotted rests longer than a quarter split into this many quarter rests
_REST_SPLITS = {1: 4, 2: 2}

INITIAL_DURATION = Duration(DEFAULT_DENOMINATOR)


def _duration(
    digits: str | None, dots: str, default: Duration, line: int | None, column: int | None
) -> Duration:
    """Explicit duration if written, else the carried-over default."""
    try:
        if digits is None:
            return Duration(default.denominator, len(dots)) if dots else default
        return Duration(int(digits), len(dots))
    except ValueError as e:
        raise ParseError(str(e), line, column) from e


def rest_events(duration: Duration) -> list[Event]:
    """
    Events for one rest.

    Undotted whole and half rests become four and two quarter rests;
    every other rest stays a single event.
    """
    splits = _REST_SPLITS.get(duration.denominator) if not duration.dots else None
    if splits:
        return [Rest(Duration.QUARTER) for _ in range(splits)]
    return [Rest(duration)]


class EventResolver:
    """Resolves words in pitched or drum mode."""

    def __init__(self, drums: bool = False):
        self.drums = drums

    def resolve(
        self,
        word: str,
        default: Duration,
        line: int | None = None,
        column: int | None = None,
    ) -> tuple[list[Event], Duration]:
        """
        Resolve one note, rest or drum word.

        Returns:
            (events, next_default)

        Raises:
            ParseError: If the word is not a note (pitched mode) or not a
                drum word (drum mode)
        """
        rest = _REST_RE.match(word)
        if rest:
            duration = _duration(rest.group(2), rest.group(3), default, line, column)
            return rest_events(duration), duration

        if self.drums:
            match = _DRUM_RE.match(word)
            if not match:
                raise ParseError(f"Malformed drum word: {word}", line, column)
            duration = _duration(match.group(2), match.group(3), default, line, column)
            return [DrumHit(match.group(1), duration)], duration

        pitch, duration = self.parse_note(word, default, line, column)
        return [Note(pitch, duration)], duration

    def resolve_chord(
        self,
        words: list[str],
        duration_text: str | None,
        default: Duration,
        line: int | None = None,
        column: int | None = None,
    ) -> tuple[list[Event], Duration]:
        """
        Resolve the contents of < ... > followed by an optional duration.

        Notes inside the brackets take the duration written after '>'.

        Returns:
            (events, next_default)
        """
        if not words:
            raise ParseError("Empty chord", line, column)
        if self.drums:
            raise ParseError("Chords are not supported in drum mode", line, column)

        if duration_text is not None:
            try:
                duration = Duration.parse(duration_text)
            except ValueError as e:
                raise ParseError(str(e), line, column) from e
        else:
            duration = default

        pitches = [self.parse_note(w, default, line, column)[0] for w in words]
        return [Chord(tuple(pitches), duration)], duration

    def parse_note(
        self,
        word: str,
        default: Duration,
        line: int | None = None,
        column: int | None = None,
    ) -> tuple[Pitch, Duration]:
        """Split a note word into its pitch and (possibly inherited) duration."""
        match = _NOTE_RE.match(word)
        if not match:
            raise ParseError(f"Malformed note: {word}", line, column)
        letter, accidental, marks, digits, dots = match.groups()
        pitch = Pitch(letter, Accidental(accidental or ""), Pitch.count_octave_marks(marks))
        duration = _duration(digits, dots, default, line, column)
        return pitch, duration
