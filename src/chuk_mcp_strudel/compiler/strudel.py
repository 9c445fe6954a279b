"""
Strudel generator - renders a resolved Document as a Strudel program.

Output shape:

    const tempo = 120;

    $: note(`
    [c4 e4 g4]
    [[c4 d4]]!2`)
      .s("piano")
      .cpm(tempo/4/3)

One `$:` statement per staff. Pitched staves become note(...) with an
instrument, drum staves become sound(...) (or stack(...) of sounds for
several voices). Every statement ends with a cpm trailer so one cycle
spans the whole voice.

The generator is pure: the same Document always yields the same text.
"""

from __future__ import annotations

import logging
import re

from chuk_mcp_strudel.constants import DEFAULT_INSTRUMENT
from chuk_mcp_strudel.core.drums import remap_drum
from chuk_mcp_strudel.models.document import (
    Bar,
    BarGroup,
    Chord,
    Document,
    DrumHit,
    DrumStaff,
    Event,
    Modifiers,
    Note,
    PitchedStaff,
    Rest,
    Slot,
    Staff,
    Voice,
    played_bars,
)

logger = logging.getLogger(__name__)

INDENT = "  "

# Values containing mini-notation syntax must be passed as strings
_MINI_NOTATION_RE = re.compile(r"[<\[~]")


def format_modifier_value(value: str) -> str:
    """
    Render a gain/pan value as a Strudel argument.

    Numbers and JS expressions pass through; mini-notation such as
    <0.5 1> or a space separated sequence is quoted.
    """
    value = value.strip()
    if value[:1] in "\"'`" and value[-1:] == value[:1] and len(value) > 1:
        return value
    if _MINI_NOTATION_RE.search(value) or (" " in value and "(" not in value):
        return f'"{value}"'
    return value


def format_event(event: Event) -> str:
    """One event in mini-notation, with its @weight when not a quarter."""
    if isinstance(event, Note):
        text = event.pitch.to_strudel()
    elif isinstance(event, Chord):
        text = "[" + ",".join(p.to_strudel() for p in event.pitches) + "]"
    elif isinstance(event, Rest):
        text = "~"
    elif isinstance(event, DrumHit):
        text = remap_drum(event.name)
    else:
        raise TypeError(f"Unknown event type: {type(event).__name__}")

    weight = event.duration.weight
    return f"{text}@{weight}" if weight is not None else text


def _bar_body(bar: Bar) -> str:
    return " ".join(format_event(e) for e in bar.events)


def format_slot(slot: Slot) -> str:
    """
    Render one bar slot.

    - bar:            [e1 e2]
    - repeated bar:   [[e1 e2]]!N
    - repeated group: [[[e1 e2] [e3 e4]]]!N@K  (K = bars played)
    """
    if isinstance(slot, Bar):
        return f"[{_bar_body(slot)}]"

    if len(slot.slots) == 1 and isinstance(slot.slots[0], Bar):
        return f"[[{_bar_body(slot.slots[0])}]]!{slot.count}"

    inner = " ".join(format_slot(s) for s in slot.slots)
    return f"[[{inner}]]!{slot.count}@{played_bars(slot)}"


def format_modifiers(modifiers: Modifiers, indent: str = INDENT) -> str:
    """Chained modifier calls, each on its own line."""
    calls: list[str] = []
    if modifiers.gain is not None:
        calls.append(f".gain({format_modifier_value(modifiers.gain)})")
    if modifiers.pan is not None:
        calls.append(f".pan({format_modifier_value(modifiers.pan)})")
    if modifiers.punchcard is not None:
        calls.append(f'.color("{modifiers.punchcard}")')
        calls.append("._punchcard()")
    return "".join(f"\n{indent}{call}" for call in calls)


def _cpm(nbars: int) -> str:
    return f"\n{INDENT}.cpm(tempo/4/{nbars})"


class StrudelGenerator:
    """
    Renders Documents as Strudel programs.

    Usage:
        generator = StrudelGenerator(instrument="piano")
        program = generator.generate(document)
    """

    def __init__(self, instrument: str = DEFAULT_INSTRUMENT):
        self.instrument = instrument

    def generate(self, document: Document) -> str:
        """
        Render a full program.

        Args:
            document: Resolved score

        Returns:
            Strudel program text ending with a newline
        """
        statements = [f"$: {self.generate_staff(staff)}" for staff in document.staves]
        logger.debug(
            "Generated %d statements at tempo %d", len(statements), document.tempo.bpm
        )
        return f"const tempo = {document.tempo.bpm};\n\n" + "\n\n".join(statements) + "\n"

    def generate_staff(self, staff: Staff) -> str:
        """Render one staff as a pattern expression (without the $: label)."""
        if isinstance(staff, PitchedStaff):
            return self._pitched(staff.voice)
        if isinstance(staff, DrumStaff):
            return self._drums(staff)
        raise TypeError(f"Unknown staff type: {type(staff).__name__}")

    @staticmethod
    def voice_body(voice: Voice) -> str:
        """Slots of a voice, one per line."""
        return "\n".join(format_slot(s) for s in voice.slots)

    def _pitched(self, voice: Voice) -> str:
        return (
            f"note(`\n{self.voice_body(voice)}`)"
            f"{format_modifiers(voice.modifiers)}"
            f'\n{INDENT}.s("{self.instrument}")'
            f"{_cpm(voice.played_bars)}"
        )

    def _sound(self, voice: Voice) -> str:
        return f"sound(`\n{self.voice_body(voice)}`){format_modifiers(voice.modifiers)}"

    def _drums(self, staff: DrumStaff) -> str:
        nbars = max(v.played_bars for v in staff.voices)
        if len(staff.voices) == 1:
            return self._sound(staff.voices[0]) + _cpm(nbars)

        sounds = f",\n{INDENT}".join(self._sound(v) for v in staff.voices)
        return f"stack(\n{INDENT}{sounds},\n){_cpm(nbars)}"


def generate_strudel(document: Document, instrument: str = DEFAULT_INSTRUMENT) -> str:
    """
    Convenience function to render a Document.

    Args:
        document: Resolved score
        instrument: Sound for pitched staves

    Returns:
        Strudel program text
    """
    return StrudelGenerator(instrument=instrument).generate(document)
