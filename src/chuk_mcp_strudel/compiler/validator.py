"""
Document Validator - flags scores that convert but may not play as intended.

Validates:
- The document holds at least one staff
- Staves do not mix repeated and plain top-level bars
- Drum voices on one staff have the same played length
- Drum names belong to the LilyPond drummode vocabulary
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from chuk_mcp_strudel.core.drums import is_known_drum
from chuk_mcp_strudel.models.document import (
    BarGroup,
    Document,
    DrumHit,
    DrumStaff,
    Staff,
    Voice,
)


class ValidationSeverity(str, Enum):
    """How much an issue affects playback."""

    ERROR = "error"  # nothing to play
    WARNING = "warning"  # plays, but timing may differ from the score
    INFO = "info"


@dataclass(frozen=True)
class ValidationIssue:
    """One finding, located by staff and voice where it applies."""

    severity: ValidationSeverity
    code: str
    message: str
    location: str | None = None

    def __str__(self) -> str:
        where = f" at {self.location}" if self.location else ""
        return f"[{self.severity.value.upper()}] {self.code}: {self.message}{where}"

    def to_dict(self) -> dict[str, str | None]:
        return {
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "location": self.location,
        }


@dataclass
class ValidationResult:
    """Issues found in one document, in the order they were found."""

    issues: list[ValidationIssue] = field(default_factory=list)

    def add(
        self,
        severity: ValidationSeverity,
        code: str,
        message: str,
        location: str | None = None,
    ) -> None:
        self.issues.append(ValidationIssue(severity, code, message, location))

    def add_error(self, code: str, message: str, location: str | None = None) -> None:
        self.add(ValidationSeverity.ERROR, code, message, location)

    def add_warning(self, code: str, message: str, location: str | None = None) -> None:
        self.add(ValidationSeverity.WARNING, code, message, location)

    def add_info(self, code: str, message: str, location: str | None = None) -> None:
        self.add(ValidationSeverity.INFO, code, message, location)

    def extend(self, other: ValidationResult) -> None:
        """Append another result's issues after this one's."""
        self.issues.extend(other.issues)

    def with_severity(self, severity: ValidationSeverity) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == severity]

    @property
    def errors(self) -> list[ValidationIssue]:
        return self.with_severity(ValidationSeverity.ERROR)

    @property
    def warnings(self) -> list[ValidationIssue]:
        return self.with_severity(ValidationSeverity.WARNING)

    @property
    def is_valid(self) -> bool:
        """Warnings and info never make a document invalid; errors do."""
        return not self.errors

    def codes(self) -> list[str]:
        return [i.code for i in self.issues]

    def to_dict(self) -> dict[str, Any]:
        return {"is_valid": self.is_valid, "issues": [i.to_dict() for i in self.issues]}

    def __bool__(self) -> bool:
        return self.is_valid

    def __str__(self) -> str:
        if not self.issues:
            return "Validation passed: no issues found"
        return "\n".join(map(str, self.issues))


class DocumentValidator:
    """Checks a parsed Document for playback pitfalls."""

    def validate(self, document: Document) -> ValidationResult:
        """
        Validate a document.

        Args:
            document: The document to validate

        Returns:
            ValidationResult with any issues found
        """
        result = ValidationResult()

        if not document.staves:
            result.add_error("EMPTY_DOCUMENT", "Document has no staves", "score")
            return result

        for number, staff in enumerate(document.staves, start=1):
            result.extend(self.validate_staff(staff, number))
        return result

    def validate_staff(self, staff: Staff, number: int = 1) -> ValidationResult:
        """Issues for one staff, located as 'staff <number>'."""
        result = ValidationResult()
        location = f"staff {number}"
        self._validate_repeats(staff.voices, location, result)
        if isinstance(staff, DrumStaff):
            self._validate_drum_voices(staff, location, result)
        return result

    def _validate_repeats(
        self, voices: tuple[Voice, ...], location: str, result: ValidationResult
    ) -> None:
        """A voice mixing repeat groups with plain bars gets its cycle from played bars."""
        for number, voice in enumerate(voices, start=1):
            repeated = sum(1 for s in voice.slots if isinstance(s, BarGroup))
            if repeated and repeated < len(voice.slots):
                result.add_warning(
                    "MIXED_REPEAT_SLOTS",
                    f"Voice mixes {repeated} repeated and {len(voice.slots) - repeated} plain "
                    f"bars; cycle length counts {voice.played_bars} played bars",
                    f"{location}, voice {number}",
                )

    def _validate_drum_voices(
        self, staff: DrumStaff, location: str, result: ValidationResult
    ) -> None:
        lengths = [v.played_bars for v in staff.voices]
        if len(set(lengths)) > 1:
            result.add_warning(
                "VOICE_LENGTH_MISMATCH",
                f"Drum voices play {lengths} bars; shorter voices are stretched",
                location,
            )

        unknown = sorted(
            {
                e.name
                for v in staff.voices
                for e in v.events()
                if isinstance(e, DrumHit) and not is_known_drum(e.name)
            }
        )
        for name in unknown:
            result.add_info("UNKNOWN_DRUM", f"'{name}' is passed through unchanged", location)


def validate_document(document: Document) -> ValidationResult:
    """Convenience function to validate a document."""
    return DocumentValidator().validate(document)

