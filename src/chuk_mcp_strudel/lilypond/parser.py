"""
LilyPond document parser.

Recursive descent over the token stream, one method per construct:
variable definitions, \\drummode blocks, \\score blocks, << >>
simultaneous blocks, \\new staff and voice declarations, \\repeat,
\\tempo and bare top-level music.

Variables are kept as raw token slices and parsed in place wherever
they are referenced, so substitution behaves textually. A stack of the
names currently being resolved catches self-referencing definitions.

Repeat policy is chosen by keyword: unfold and percent repeats become
literal bars, volta repeats are kept as BarGroup slots.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from chuk_mcp_strudel.constants import (
    ARGUMENT_COMMANDS,
    IGNORED_COMMANDS,
    SKIPPED_BLOCKS,
    STAFF_GROUP_TYPES,
    UNSUPPORTED_COMMANDS,
    ErrorMessages,
    RepeatKind,
    StaffType,
)
from chuk_mcp_strudel.core.rhythm import Duration
from chuk_mcp_strudel.errors import (
    DefinitionCycleError,
    MissingTempoError,
    ParseError,
    UndefinedVariableError,
)
from chuk_mcp_strudel.lilypond.directives import ModifierBuilder
from chuk_mcp_strudel.lilypond.events import INITIAL_DURATION, EventResolver
from chuk_mcp_strudel.lilypond.includes import IncludeSource, resolve_includes
from chuk_mcp_strudel.lilypond.lexer import Token, TokenKind, tokenize
from chuk_mcp_strudel.models.document import (
    Bar,
    BarGroup,
    Document,
    DrumStaff,
    Event,
    MusicVariable,
    PitchedStaff,
    Slot,
    Staff,
    Tempo,
    Voice,
)

logger = logging.getLogger(__name__)

_CLOSERS = {
    TokenKind.LBRACE: TokenKind.RBRACE,
    TokenKind.SIM_OPEN: TokenKind.SIM_CLOSE,
    TokenKind.CHORD_OPEN: TokenKind.CHORD_CLOSE,
}


@dataclass(frozen=True)
class Definition:
    """A top-level name = value assignment, kept as its token slice."""

    name: str
    tokens: tuple[Token, ...]

    @property
    def is_music(self) -> bool:
        first = self.tokens[0]
        return first.kind in (TokenKind.LBRACE, TokenKind.SIM_OPEN) or (
            first.kind == TokenKind.COMMAND and first.value in ("drummode", "new", "repeat")
        )

    @property
    def scalar(self) -> str | None:
        first = self.tokens[0]
        return first.value if first.kind == TokenKind.NUMBER else None


class _Cursor:
    """Position in one token list (the document or a variable's slice)."""

    def __init__(self, tokens: list[Token] | tuple[Token, ...]):
        self.tokens = tokens
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    def peek(self, offset: int = 0) -> Token | None:
        index = self.pos + offset
        return self.tokens[index] if index < len(self.tokens) else None

    def next(self) -> Token:
        token = self.peek()
        if token is None:
            raise self.error(ErrorMessages.UNEXPECTED_END)
        self.pos += 1
        return token

    def expect(self, kind: TokenKind) -> Token:
        token = self.next()
        if token.kind != kind:
            raise ParseError(
                f"Expected {kind.value}, found {token.kind.value} {token.value!r}",
                token.line,
                token.column,
            )
        return token

    def accept(self, kind: TokenKind, value: str | None = None) -> Token | None:
        token = self.peek()
        if token is not None and token.kind == kind and (value is None or token.value == value):
            self.pos += 1
            return token
        return None

    def error(self, message: str) -> ParseError:
        token = self.peek() or (self.tokens[-1] if self.tokens else None)
        if token is None:
            return ParseError(message)
        return ParseError(message, token.line, token.column)

    def extent(self) -> int:
        """Index just past the music expression starting at the cursor."""
        return expression_end(self.tokens, self.pos)


def matching_close(tokens: list[Token] | tuple[Token, ...], index: int) -> int:
    """Index of the closer matching the opener at index."""
    opener = tokens[index]
    closer = _CLOSERS[opener.kind]
    depth = 0
    for i in range(index, len(tokens)):
        if tokens[i].kind == opener.kind:
            depth += 1
        elif tokens[i].kind == closer:
            depth -= 1
            if depth == 0:
                return i
    raise ParseError(f"Unterminated '{opener.value}'", opener.line, opener.column)


def expression_end(tokens: list[Token] | tuple[Token, ...], index: int) -> int:
    """Index just past the single music expression beginning at index."""
    token = tokens[index]
    if token.kind in _CLOSERS:
        return matching_close(tokens, index) + 1
    if token.kind == TokenKind.COMMAND:
        if token.value == "drummode" and index + 1 < len(tokens):
            return expression_end(tokens, index + 1)
        if token.value == "repeat" and index + 3 < len(tokens):
            return expression_end(tokens, index + 3)
        if token.value == "new":
            i = index + 2
            if i < len(tokens) and tokens[i].kind == TokenKind.EQUALS:
                i += 2
            if i < len(tokens) and tokens[i].kind == TokenKind.COMMAND and tokens[i].value == "with":
                i = expression_end(tokens, i + 1)
            if i < len(tokens):
                return expression_end(tokens, i)
    return index + 1


@dataclass
class _VoiceBuilder:
    """Collects bars for one voice while its body is parsed."""

    modifiers: ModifierBuilder = field(default_factory=ModifierBuilder)
    staff_level: bool = False
    slots: list[Slot] = field(default_factory=list)
    current: list[Event] = field(default_factory=list)
    voices: list[Voice] | None = None

    def add(self, events: list[Event]) -> None:
        self.current.extend(events)

    def bar_line(self) -> None:
        """Close the current bar; an empty bar is never emitted."""
        if self.current:
            self.slots.append(Bar(tuple(self.current)))
            self.current = []

    def child(self) -> _VoiceBuilder:
        """Builder for a repeat body; directives still reach this voice."""
        return _VoiceBuilder(modifiers=self.modifiers)

    def is_empty(self) -> bool:
        return not self.slots and not self.current

    def build(self) -> Voice | None:
        self.bar_line()
        if not self.slots:
            return None
        return Voice(tuple(self.slots), self.modifiers.build())


class _ParseRun:
    """State for parsing one document. Not shared between documents."""

    def __init__(self, tokens: list[Token]):
        self.tokens = tokens
        self.definitions: dict[str, Definition] = {}
        self.scalars: dict[str, str] = {}
        self.resolving: list[str] = []
        self.variables: dict[str, MusicVariable] = {}
        self.resolvers = {False: EventResolver(drums=False), True: EventResolver(drums=True)}

    # ------------------------------------------------------------------
    # Pre-pass: definitions and tempo
    # ------------------------------------------------------------------

    def collect_definitions(self) -> None:
        """Record top-level assignments; a redefinition overwrites."""
        tokens = self.tokens
        i = 0
        while i < len(tokens):
            token = tokens[i]
            if (
                token.kind == TokenKind.WORD
                and i + 2 < len(tokens)
                and tokens[i + 1].kind == TokenKind.EQUALS
            ):
                end = expression_end(tokens, i + 2)
                self.definitions[token.value] = Definition(token.value, tuple(tokens[i + 2 : end]))
                i = end
            elif token.kind in (TokenKind.LBRACE, TokenKind.SIM_OPEN):
                i = matching_close(tokens, i) + 1
            else:
                i += 1

        for name, definition in self.definitions.items():
            if definition.scalar is not None:
                self.scalars[name] = definition.scalar
        # Scalars assigned inside blocks are still usable for \tempo
        for i in range(len(tokens) - 2):
            if (
                tokens[i].kind == TokenKind.WORD
                and tokens[i + 1].kind == TokenKind.EQUALS
                and tokens[i + 2].kind == TokenKind.NUMBER
            ):
                self.scalars.setdefault(tokens[i].value, tokens[i + 2].value)

    def check_cycles(self) -> None:
        """
        Reject self-referencing music definitions, used or not.

        Raises:
            DefinitionCycleError: With the reference path, e.g. a -> b -> a
        """
        done: set[str] = set()

        def visit(name: str, path: list[str]) -> None:
            if name in path:
                raise DefinitionCycleError([*path[path.index(name) :], name])
            if name in done:
                return
            definition = self.definitions[name]
            for token in definition.tokens:
                if token.kind == TokenKind.COMMAND and token.value in self.definitions:
                    if self.definitions[token.value].is_music:
                        visit(token.value, [*path, name])
            done.add(name)

        for name in sorted(self.definitions):
            if self.definitions[name].is_music:
                visit(name, [])

    def find_tempo(self) -> Tempo | None:
        """The first metronome mark in document order."""
        for i, token in enumerate(self.tokens):
            if token.kind == TokenKind.COMMAND and token.value == "tempo":
                tempo, _ = self.read_tempo(self.tokens, i + 1)
                if tempo is not None:
                    return tempo
        return None

    def read_tempo(
        self, tokens: list[Token] | tuple[Token, ...], index: int
    ) -> tuple[Tempo | None, int]:
        """
        Read the arguments of \\tempo starting at index.

        Accepts an optional text ("Allegro" or \\markup {...}) followed by
        an optional metronome mark unit = bpm, where bpm is a number or a
        scalar variable.

        Returns:
            (tempo or None for a text-only mark, index past the arguments)
        """
        i = index
        if i < len(tokens) and tokens[i].kind == TokenKind.STRING:
            i += 1
        elif i < len(tokens) and tokens[i].kind == TokenKind.COMMAND and tokens[i].value == "markup":
            i = expression_end(tokens, i + 1)

        if not (
            i + 2 < len(tokens)
            and tokens[i].kind == TokenKind.NUMBER
            and tokens[i + 1].kind == TokenKind.EQUALS
        ):
            return None, i

        unit_token, bpm_token = tokens[i], tokens[i + 2]
        i += 3
        if bpm_token.kind == TokenKind.NUMBER:
            bpm_text = bpm_token.value
        elif bpm_token.kind == TokenKind.COMMAND:
            if bpm_token.value not in self.scalars:
                raise UndefinedVariableError(
                    ErrorMessages.UNDEFINED_VARIABLE.format(name=bpm_token.value),
                    bpm_token.line,
                    bpm_token.column,
                )
            bpm_text = self.scalars[bpm_token.value]
        else:
            raise ParseError(
                f"Invalid tempo value {bpm_token.value!r}", bpm_token.line, bpm_token.column
            )

        # Metronome ranges (4 = 120-132) keep their lower bound
        if (
            i + 1 < len(tokens)
            and tokens[i].kind == TokenKind.SYMBOL
            and tokens[i].value == "-"
            and tokens[i + 1].kind == TokenKind.NUMBER
        ):
            i += 2

        try:
            unit = int(unit_token.value.split(".")[0])
            tempo = Tempo(unit, int(float(bpm_text)))
        except ValueError as e:
            raise ParseError(f"Invalid tempo: {e}", unit_token.line, unit_token.column) from e
        return tempo, i

    # ------------------------------------------------------------------
    # Top level and score structure
    # ------------------------------------------------------------------

    def parse_top_level(self) -> list[Staff]:
        cur = _Cursor(self.tokens)
        staves: list[Staff] = []
        while not cur.at_end():
            token = cur.peek()
            assert token is not None
            if token.kind == TokenKind.WORD and (nxt := cur.peek(1)) and nxt.kind == TokenKind.EQUALS:
                cur.pos = expression_end(cur.tokens, cur.pos + 2)
                continue
            if token.kind == TokenKind.COMMAND and token.value == "score":
                cur.next()
                staves.extend(self.parse_score(cur))
                continue
            staves.extend(self.parse_score_item(cur))
        return staves

    def parse_score(self, cur: _Cursor) -> list[Staff]:
        """\\score { music \\layout {} ... }"""
        cur.expect(TokenKind.LBRACE)
        staves: list[Staff] = []
        while not cur.accept(TokenKind.RBRACE):
            if cur.at_end():
                raise cur.error(ErrorMessages.UNEXPECTED_END)
            staves.extend(self.parse_score_item(cur))
        return staves

    def parse_score_item(self, cur: _Cursor) -> list[Staff]:
        """One element of a score or simultaneous block, yielding staves."""
        token = cur.peek()
        assert token is not None

        if token.kind == TokenKind.SIM_OPEN:
            return self.parse_score_sim(cur)
        if token.kind == TokenKind.LBRACE:
            return self.parse_staves_from_music(cur)
        if token.kind in (TokenKind.DIRECTIVE, TokenKind.SCHEME):
            cur.next()
            logger.debug("Ignoring %s outside any voice", token)
            return []
        if token.kind == TokenKind.SYMBOL and token.value == "\\\\":
            cur.next()
            return []
        if token.kind == TokenKind.COMMAND:
            if token.value == "new":
                return self.parse_new_context(cur)
            if token.value in ("drummode", "repeat"):
                return self.parse_staves_from_music(cur)
            if self.skip_command(cur):
                return []
            definition = self.definitions.get(token.value)
            if definition is not None and definition.is_music:
                if self.holds_staves(definition.tokens):
                    cur.next()
                    return self.parse_staff_variable(definition)
                return self.parse_staves_from_music(cur)
            raise self.unknown_command(token)
        raise ParseError(
            ErrorMessages.UNEXPECTED_TOKEN.format(token=f"{token.kind.value} {token.value!r}"),
            token.line,
            token.column,
        )

    def parse_score_sim(self, cur: _Cursor) -> list[Staff]:
        """<< staff staff ... >> where each element is a staff."""
        cur.expect(TokenKind.SIM_OPEN)
        staves: list[Staff] = []
        while not cur.accept(TokenKind.SIM_CLOSE):
            if cur.at_end():
                raise cur.error(ErrorMessages.UNEXPECTED_END)
            staves.extend(self.parse_score_item(cur))
        return staves

    def parse_new_context(self, cur: _Cursor) -> list[Staff]:
        """\\new Type [= "id"] [\\with {...}] music"""
        cur.expect(TokenKind.COMMAND)
        type_token = cur.expect(TokenKind.WORD)
        self.skip_context_options(cur)
        name = type_token.value

        if name in STAFF_GROUP_TYPES:
            if (body := cur.peek()) is not None and body.kind == TokenKind.SIM_OPEN:
                return self.parse_score_sim(cur)
            return self.parse_staves_from_music(cur)

        try:
            staff_type = StaffType(name)
        except ValueError:
            raise ParseError(
                ErrorMessages.UNKNOWN_STAFF_TYPE.format(name=name),
                type_token.line,
                type_token.column,
            ) from None

        if staff_type in (StaffType.DRUM_STAFF, StaffType.DRUM_VOICE):
            return self.parse_staves_from_music(cur, drums=True)
        return self.parse_staves_from_music(cur)

    def skip_context_options(self, cur: _Cursor) -> None:
        if cur.accept(TokenKind.EQUALS):
            cur.expect(TokenKind.STRING)
        if cur.accept(TokenKind.COMMAND, "with"):
            cur.pos = cur.extent()

    def parse_staves_from_music(self, cur: _Cursor, drums: bool = False) -> list[Staff]:
        """
        Staves from one music expression.

        A drum body gives one drum staff of all its voices; a pitched
        body gives one pitched staff per voice. A \\new Staff body is in
        drum mode when it uses \\drummode or a drum variable.
        """
        start = cur.pos
        end = cur.extent()
        if not drums:
            drums = self.infers_drums(cur.tokens[start:end], set())
        voices = self.parse_staff_voices(cur, drums)
        if not voices:
            logger.debug("Dropping empty staff at token %s", cur.tokens[start])
            return []
        if drums:
            return [DrumStaff(tuple(voices))]
        return [PitchedStaff(v) for v in voices]

    def holds_staves(self, tokens: tuple[Token, ...]) -> bool:
        """Whether a definition declares staves rather than voice music."""
        for i, token in enumerate(tokens[:-1]):
            if token.kind == TokenKind.COMMAND and token.value == "new":
                context = tokens[i + 1].value
                if context in STAFF_GROUP_TYPES or context in (
                    StaffType.STAFF.value,
                    StaffType.TAB_STAFF.value,
                    StaffType.DRUM_STAFF.value,
                ):
                    return True
        return False

    def parse_staff_variable(self, definition: Definition) -> list[Staff]:
        """Staves declared inside a variable, e.g. drums = \\new DrumStaff {...}"""
        self.resolving.append(definition.name)
        try:
            cur = _Cursor(definition.tokens)
            staves: list[Staff] = []
            while not cur.at_end():
                staves.extend(self.parse_score_item(cur))
            return staves
        finally:
            self.resolving.pop()

    def infers_drums(self, tokens: list[Token] | tuple[Token, ...], visited: set[str]) -> bool:
        for token in tokens:
            if token.kind != TokenKind.COMMAND:
                continue
            if token.value == "drummode":
                return True
            definition = self.definitions.get(token.value)
            if definition is None or not definition.is_music or token.value in visited:
                continue
            visited.add(token.value)
            if self.infers_drums(definition.tokens, visited):
                return True
        return False

    # ------------------------------------------------------------------
    # Staves and voices
    # ------------------------------------------------------------------

    def parse_staff_voices(self, cur: _Cursor, drums: bool) -> list[Voice]:
        """
        Voices of a staff body.

        << v1 v2 >> (optionally wrapped in braces) holds one voice per
        element; anything else is a single voice.
        """
        token = cur.peek()
        if token is None:
            raise cur.error(ErrorMessages.UNEXPECTED_END)
        if token.kind == TokenKind.SIM_OPEN:
            return self.parse_voice_sim(cur, drums)

        builder = _VoiceBuilder(staff_level=True)
        self.parse_music(cur, builder, drums, INITIAL_DURATION)
        if builder.voices is not None:
            if not builder.is_empty():
                raise ParseError(
                    "Music outside the simultaneous voices of a staff", token.line, token.column
                )
            if not builder.modifiers.build().is_empty():
                logger.debug("Ignoring staff-level directives before the voices at %s", token)
            return builder.voices
        voice = builder.build()
        return [voice] if voice is not None else []

    def parse_voice_sim(self, cur: _Cursor, drums: bool) -> list[Voice]:
        """<< \\new DrumVoice {...} \\new DrumVoice {...} >>"""
        cur.expect(TokenKind.SIM_OPEN)
        voices: list[Voice] = []
        pending: list[str] = []
        while not cur.accept(TokenKind.SIM_CLOSE):
            token = cur.peek()
            if token is None:
                raise cur.error(ErrorMessages.UNEXPECTED_END)

            if token.kind == TokenKind.DIRECTIVE:
                # Applies to the voice that follows
                pending.append(cur.next().value)
                continue
            if token.kind == TokenKind.SCHEME or (
                token.kind == TokenKind.SYMBOL and token.value == "\\\\"
            ):
                cur.next()
                continue
            if token.kind == TokenKind.COMMAND and token.value == "new":
                cur.next()
                type_token = cur.expect(TokenKind.WORD)
                if type_token.value not in (StaffType.DRUM_VOICE.value, StaffType.VOICE.value):
                    raise ParseError(
                        ErrorMessages.UNKNOWN_STAFF_TYPE.format(name=type_token.value),
                        type_token.line,
                        type_token.column,
                    )
                self.skip_context_options(cur)
            elif token.kind == TokenKind.COMMAND and self.skip_command(cur):
                continue

            builder = _VoiceBuilder()
            for payload in pending:
                builder.modifiers.apply(payload)
            pending = []
            self.parse_music(cur, builder, drums, INITIAL_DURATION)
            voice = builder.build()
            if voice is not None:
                voices.append(voice)
            else:
                logger.debug("Dropping empty voice in staff at %s", token)
        return voices

    # ------------------------------------------------------------------
    # Music bodies
    # ------------------------------------------------------------------

    def parse_music(
        self, cur: _Cursor, builder: _VoiceBuilder, drums: bool, default: Duration
    ) -> Duration:
        """
        Parse one music expression into builder.

        Returns:
            The default duration in effect after the expression
        """
        token = cur.peek()
        if token is None:
            raise cur.error(ErrorMessages.UNEXPECTED_END)

        if token.kind == TokenKind.LBRACE:
            cur.next()
            while not cur.accept(TokenKind.RBRACE):
                if cur.at_end():
                    raise ParseError("Unterminated '{'", token.line, token.column)
                default = self.parse_item(cur, builder, drums, default)
            return default

        return self.parse_item(cur, builder, drums, default)

    def parse_item(
        self, cur: _Cursor, builder: _VoiceBuilder, drums: bool, default: Duration
    ) -> Duration:
        """Parse one element of a music body."""
        token = cur.next()
        kind = token.kind

        if kind == TokenKind.WORD:
            events, default = self.resolvers[drums].resolve(
                token.value, default, token.line, token.column
            )
            builder.add(events)
            return default

        if kind == TokenKind.CHORD_OPEN:
            return self.parse_chord(cur, token, builder, drums, default)

        if kind == TokenKind.BAR:
            builder.bar_line()
            return default

        if kind == TokenKind.LBRACE:
            cur.pos -= 1
            return self.parse_music(cur, builder, drums, default)

        if kind == TokenKind.DIRECTIVE:
            builder.modifiers.apply(token.value)
            return default

        if kind == TokenKind.SIM_OPEN:
            if builder.staff_level and builder.is_empty() and builder.voices is None:
                cur.pos -= 1
                builder.voices = self.parse_voice_sim(cur, drums)
                return default
            raise ParseError(
                "Simultaneous music is only supported at staff level", token.line, token.column
            )

        if kind in (TokenKind.TIE, TokenKind.SCHEME, TokenKind.SYMBOL, TokenKind.STRING):
            # Ties, articulations and markup text carry no timing
            return default

        if kind == TokenKind.COMMAND:
            return self.parse_command(cur, token, builder, drums, default)

        raise ParseError(
            ErrorMessages.UNEXPECTED_TOKEN.format(token=f"{kind.value} {token.value!r}"),
            token.line,
            token.column,
        )

    def parse_chord(
        self,
        cur: _Cursor,
        opener: Token,
        builder: _VoiceBuilder,
        drums: bool,
        default: Duration,
    ) -> Duration:
        """< c e g >d: the notes share the duration written after '>'."""
        words: list[str] = []
        while True:
            token = cur.peek()
            if token is None:
                raise ParseError("Unterminated '<'", opener.line, opener.column)
            cur.next()
            if token.kind == TokenKind.CHORD_CLOSE:
                closer = token
                break
            if token.kind == TokenKind.WORD:
                words.append(token.value)

        duration_text = None
        after = cur.peek()
        if (
            after is not None
            and after.kind == TokenKind.NUMBER
            and after.offset == closer.offset + 1
        ):
            duration_text = cur.next().value

        events, default = self.resolvers[drums].resolve_chord(
            words, duration_text, default, opener.line, opener.column
        )
        builder.add(events)
        return default

    def parse_command(
        self,
        cur: _Cursor,
        token: Token,
        builder: _VoiceBuilder,
        drums: bool,
        default: Duration,
    ) -> Duration:
        name = token.value

        if name == "repeat":
            return self.parse_repeat(cur, token, builder, drums, default)

        if name == "drummode":
            return self.parse_music(cur, builder, True, default)

        if name == "new":
            type_token = cur.expect(TokenKind.WORD)
            if type_token.value not in (StaffType.VOICE.value, StaffType.DRUM_VOICE.value):
                raise ParseError(
                    f"\\new {type_token.value} is not allowed inside a voice",
                    type_token.line,
                    type_token.column,
                )
            self.skip_context_options(cur)
            return self.parse_music(cur, builder, drums, default)

        cur.pos -= 1
        if self.skip_command(cur):
            return default
        cur.pos += 1

        definition = self.definitions.get(name)
        if definition is not None and definition.is_music:
            return self.substitute(definition, builder, drums, default)
        raise self.unknown_command(token)

    def parse_repeat(
        self,
        cur: _Cursor,
        token: Token,
        builder: _VoiceBuilder,
        drums: bool,
        default: Duration,
    ) -> Duration:
        """\\repeat kind count music"""
        kind_token = cur.expect(TokenKind.WORD)
        try:
            kind = RepeatKind(kind_token.value)
        except ValueError:
            raise ParseError(
                ErrorMessages.UNKNOWN_REPEAT.format(kind=kind_token.value),
                kind_token.line,
                kind_token.column,
            ) from None

        count_token = cur.expect(TokenKind.NUMBER)
        if not count_token.value.isdigit() or int(count_token.value) < 1:
            raise ParseError(
                f"Invalid repeat count {count_token.value!r}", count_token.line, count_token.column
            )
        count = int(count_token.value)

        body = builder.child()
        default = self.parse_music(cur, body, drums, default)

        following = cur.peek()
        if following is not None and following.kind == TokenKind.COMMAND and following.value == "alternative":
            raise ParseError(
                ErrorMessages.UNSUPPORTED.format(name="alternative"),
                following.line,
                following.column,
            )

        if not kind.preserved and builder.current and body.current and not body.slots:
            # Started mid-bar with no bar line of its own: stays in the open bar
            builder.add(body.current * count)
            return default

        builder.bar_line()
        body.bar_line()
        if not body.slots:
            logger.debug("Empty repeat body at %s", token)
        elif kind.preserved:
            builder.slots.append(BarGroup(tuple(body.slots), count))
        else:
            builder.slots.extend(body.slots * count)
        return default

    def substitute(
        self, definition: Definition, builder: _VoiceBuilder, drums: bool, default: Duration
    ) -> Duration:
        """Parse a variable's tokens in place of its reference."""
        if definition.name in self.resolving:
            raise DefinitionCycleError([*self.resolving, definition.name])
        self.record_variable(definition, drums)
        self.resolving.append(definition.name)
        try:
            return self.parse_music(_Cursor(definition.tokens), builder, drums, default)
        finally:
            self.resolving.pop()

    # ------------------------------------------------------------------
    # Commands without music
    # ------------------------------------------------------------------

    def skip_command(self, cur: _Cursor) -> bool:
        """
        Consume a command that carries no music, with its arguments.

        Returns:
            False (and consumes nothing) if the command is not skippable
        """
        token = cur.peek()
        if token is None or token.kind != TokenKind.COMMAND:
            return False
        name = token.value

        if name == "include":
            argument = cur.peek(1)
            reference = argument.value if argument is not None and argument.kind == TokenKind.STRING else ""
            raise ParseError(
                ErrorMessages.UNRESOLVED_INCLUDE.format(reference=reference),
                token.line,
                token.column,
            )
        if name in UNSUPPORTED_COMMANDS:
            raise ParseError(ErrorMessages.UNSUPPORTED.format(name=name), token.line, token.column)

        if name == "tempo":
            _, cur.pos = self.read_tempo(cur.tokens, cur.pos + 1)
        elif name in SKIPPED_BLOCKS:
            cur.pos += 1
            if not cur.at_end():
                cur.pos = cur.extent()
        elif name in ARGUMENT_COMMANDS:
            cur.pos = min(cur.pos + 1 + ARGUMENT_COMMANDS[name], len(cur.tokens))
        elif name in IGNORED_COMMANDS:
            cur.pos += 1
        else:
            return False

        logger.debug("Skipped \\%s at %d:%d", name, token.line, token.column)
        return True

    def unknown_command(self, token: Token) -> ParseError:
        if token.value in self.definitions:
            return ParseError(
                f"Variable \\{token.value} does not hold music", token.line, token.column
            )
        return UndefinedVariableError(
            ErrorMessages.UNDEFINED_VARIABLE.format(name=token.value), token.line, token.column
        )

    # ------------------------------------------------------------------
    # Variables for inspection
    # ------------------------------------------------------------------

    def record_variable(self, definition: Definition, drums: bool) -> None:
        """
        Keep a variable's music, parsed on its own, for inspection.

        Recorded on first use, in the mode of the context using it.
        """
        name = definition.name
        if name in self.variables or name in self.resolving:
            return
        builder = _VoiceBuilder(staff_level=True)
        self.resolving.append(name)
        try:
            self.parse_music(_Cursor(definition.tokens), builder, drums, INITIAL_DURATION)
        finally:
            self.resolving.pop()
        if builder.voices is not None:
            voices = tuple(builder.voices)
        else:
            voice = builder.build()
            voices = (voice,) if voice is not None else ()
        self.variables[name] = MusicVariable(name, drums, voices)


class DocumentParser:
    """
    Parses LilyPond text into a Document.

    Stateless between calls; each parse builds its own run state.
    """

    def parse(self, text: str) -> Document:
        """
        Parse text whose includes are already resolved.

        Raises:
            LexError: On unterminated brackets, strings or comments
            ParseError: On malformed or unsupported structure
            DefinitionCycleError: On self-referencing variables
            MissingTempoError: If no \\tempo mark is present
        """
        run = _ParseRun(list(tokenize(text)))
        run.collect_definitions()
        run.check_cycles()
        tempo = run.find_tempo()
        staves = run.parse_top_level()
        variables = dict(sorted(run.variables.items()))

        if tempo is None:
            raise MissingTempoError(ErrorMessages.MISSING_TEMPO)
        if not staves:
            raise ParseError(ErrorMessages.NO_STAVES)

        logger.debug(
            "Parsed %d staves, %d variables, tempo %d", len(staves), len(variables), tempo.bpm
        )
        return Document(tempo=tempo, staves=tuple(staves), variables=variables)


def parse_document(
    text: str, includes: IncludeSource | None = None, identity: str | None = None
) -> Document:
    """
    Convenience function: resolve includes (when a source is given) and parse.

    Args:
        text: LilyPond source
        includes: Lookup for \\include references
        identity: Identity of the root text for include cycle detection

    Returns:
        The resolved Document
    """
    if includes is not None:
        text = resolve_includes(text, includes, identity)
    return DocumentParser().parse(text)
