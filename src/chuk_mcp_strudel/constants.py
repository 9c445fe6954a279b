"""
Constants and lookup tables for the LilyPond to Strudel translator.

No magic strings - tables shared by the parser, generator and sequencer live here.
"""

from enum import Enum

# Tag marking tool directives inside LilyPond comments: % @strudel-of-lilypond@ ...
DIRECTIVE_TAG = "strudel-of-lilypond"

# Octave an unmarked pitch letter resolves to (c -> c4)
REFERENCE_OCTAVE = 4

# Default Strudel instrument for pitched staves
DEFAULT_INSTRUMENT = "piano"

# Duration assumed before the first explicit duration of a body
DEFAULT_DENOMINATOR = 4

# LilyPond version written by the sequencer
LILYPOND_VERSION = "2.24.4"

# Voice labels for sequencer drum voices, by position
VOICE_LABELS: list[str] = ["\\voiceOne", "\\voiceTwo", "\\voiceThree", "\\voiceFour"]


class StaffType(str, Enum):
    """Context names accepted after \\new."""

    STAFF = "Staff"
    TAB_STAFF = "TabStaff"
    DRUM_STAFF = "DrumStaff"
    DRUM_VOICE = "DrumVoice"
    VOICE = "Voice"


class RepeatKind(str, Enum):
    """Repeat keywords and the policy they select."""

    UNFOLD = "unfold"  # literal bars at parse time
    PERCENT = "percent"  # literal bars at parse time
    VOLTA = "volta"  # preserved, rendered as !N

    @property
    def preserved(self) -> bool:
        return self is RepeatKind.VOLTA


# LilyPond drum names that differ in Strudel's default drum bank
DRUM_REMAP: dict[str, str] = {
    "sn": "sd",  # snare
    "ss": "rim",  # side stick
    "hhc": "hh",  # closed hi-hat
    "hho": "oh",  # open hi-hat
    "cymc": "cr",  # crash
    "cymr": "rd",  # ride
    "tomh": "ht",  # high tom
    "tomm": "mt",  # mid tom
    "toml": "lt",  # low tom
}

# LilyPond drummode vocabulary; anything else still passes through verbatim
KNOWN_DRUM_NAMES: frozenset[str] = frozenset(
    {
        "bd", "sn", "hh", "hhc", "hho", "hhp", "cymc", "cymr", "cymca", "cymcb",
        "tom", "tomh", "tomm", "toml", "tomfl", "tomfh", "cb", "cl", "cp", "cr",
        "gui", "hc", "lc", "mc", "rc", "ride", "rb", "ss", "tamb", "tri", "whl",
        "whs", "pedalhihat", "hihat", "openhat", "closehat", "sd", "oh", "rd",
        "ht", "mt", "lt", "rim",
    }
)  # fmt: skip

# Canonical Strudel weights for undotted durations (quarter note = no suffix)
DURATION_WEIGHTS: dict[int, str | None] = {
    1: "4",
    2: "2",
    4: None,
    8: "0.5",
    16: "0.25",
}

# Semitone of each natural pitch letter above C
LETTER_SEMITONES: dict[str, int] = {
    "c": 0,
    "d": 2,
    "e": 4,
    "f": 5,
    "g": 7,
    "a": 9,
    "b": 11,
}

# Commands consuming a fixed number of following tokens that carry no music
ARGUMENT_COMMANDS: dict[str, int] = {
    "clef": 1,
    "time": 1,
    "key": 2,
    "bar": 1,
    "partial": 1,
    "language": 1,
    "version": 1,
    "set": 3,
    "transposition": 1,
    "override": 3,
    "revert": 1,
    "unset": 1,
    "mark": 1,
    "omit": 1,
    "hide": 1,
    "accidentalStyle": 1,
}

# Commands introducing a braced block (or single argument) that is skipped entirely
SKIPPED_BLOCKS: frozenset[str] = frozenset({"paper", "header", "layout", "midi", "with", "markup"})

# Layout and expression commands without arguments; no effect on the music
IGNORED_COMMANDS: frozenset[str] = frozenset(
    {
        "voiceOne", "voiceTwo", "voiceThree", "voiceFour", "oneVoice",
        "stemUp", "stemDown", "stemNeutral", "break", "pageBreak", "noBreak",
        "once", "default", "numericTimeSignature", "defaultTimeSignature",
        "autoBeamOn", "autoBeamOff", "textLengthOn", "textLengthOff",
        "fermata", "accent", "staccato", "marcato", "tenuto", "arpeggio",
        "laissezVibrer", "p", "pp", "ppp", "mp", "mf", "f", "ff", "fff",
        "sf", "sfz", "fp", "cresc", "decresc", "dim",
    }
)  # fmt: skip

# Notation the translator does not model
UNSUPPORTED_COMMANDS: frozenset[str] = frozenset(
    {
        "relative", "fixed", "alternative", "tuplet", "times", "grace",
        "acciaccatura", "appoggiatura", "chordmode", "transpose",
        "lyricmode", "addlyrics", "figuremode",
    }
)  # fmt: skip

# Containers whose simultaneous body holds several staves
STAFF_GROUP_TYPES: frozenset[str] = frozenset({"StaffGroup", "PianoStaff", "GrandStaff", "ChoirStaff"})


class ErrorMessages:
    """Standardized error messages."""

    MISSING_TEMPO = (
        "Missing tempo: LilyPond input must include a \\tempo directive (e.g., \\tempo 4 = 120)"
    )
    UNDEFINED_VARIABLE = "Undefined variable or command: \\{name}"
    UNKNOWN_STAFF_TYPE = "Unknown staff type: {name}"
    UNKNOWN_REPEAT = "Unknown repeat kind: {kind}"
    PATTERN_NOT_FOUND = "Pattern '{name}' not found in libraries: {libraries}"
    EMPTY_VOICES = "Pattern '{name}' declares no voices"
    EMPTY_SEQUENCE = "Sequence contains no bars"
    NO_STAVES = "Document contains no music"
    UNSUPPORTED = "Unsupported construct: \\{name}"
    UNRESOLVED_INCLUDE = "Unresolved \\include \"{reference}\": no include source given"
    UNEXPECTED_TOKEN = "Unexpected {token}"
    UNEXPECTED_END = "Unexpected end of input"


class SuccessMessages:
    """Standardized success messages."""

    CONVERTED = "Converted {staves} staves ({notes} notes, {hits} drum hits)."
    COMPOSED = "Composed {bars} bars from {patterns} patterns."
