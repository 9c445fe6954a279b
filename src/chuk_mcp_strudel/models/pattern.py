"""
Pattern model - reusable multi-voice bar fragments.

A pattern is one bar of music per voice, written as LilyPond drummode
bodies. Patterns live in library directories as <name>.yml files:

    description: kick and snare
    voices:
      - bd4 sn4 bd4 sn4
      - hh8 hh8 hh8 hh8 hh8 hh8 hh8 hh8
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, Field, field_validator

# A drummode word: name, optional duration digits and dots
_DRUM_WORD_RE = re.compile(r"^([A-Za-z]+)\d*\.*$")
_REST_NAMES = frozenset({"r", "s", "R"})


class Pattern(BaseModel):
    """A named library fragment: a description and one body per voice."""

    name: str = Field("", description="Pattern name (file stem when loaded)")
    description: str = Field("", description="Human-readable description")
    voices: list[str] = Field(default_factory=list, description="LilyPond body per voice")

    model_config = {"frozen": True}

    @field_validator("voices")
    @classmethod
    def strip_voices(cls, v: list[str]) -> list[str]:
        """Voice bodies are stored without surrounding whitespace."""
        return [voice.strip() for voice in v]

    def voice(self, index: int) -> str | None:
        """Body of the voice at index, or None when the pattern has fewer voices."""
        return self.voices[index] if index < len(self.voices) else None

    def drum_names(self) -> list[str]:
        """Distinct drum names across all voices, sorted; rests excluded."""
        names = set()
        for body in self.voices:
            for word in body.split():
                match = _DRUM_WORD_RE.match(word)
                if match and match.group(1) not in _REST_NAMES:
                    names.add(match.group(1))
        return sorted(names)

    def to_yaml_dict(self) -> dict[str, Any]:
        return {"description": self.description, "voices": list(self.voices)}

    @classmethod
    def from_yaml_dict(cls, data: dict[str, Any], name: str = "") -> Pattern:
        """Create a Pattern from a YAML-parsed dict."""
        return cls(
            name=name,
            description=data.get("description", "") or "",
            voices=[str(v) for v in data.get("voices") or []],
        )


class PatternMetadata(BaseModel):
    """
    Lightweight pattern metadata for listing/discovery.
    """

    name: str = Field(..., description="Pattern name")
    description: str = Field("", description="Human-readable description")
    voice_count: int = Field(0, description="Number of voices")
    drums: list[str] = Field(default_factory=list, description="Drum names the voices use")
    path: str | None = Field(None, description="Path to pattern file")

    @classmethod
    def from_pattern(cls, pattern: Pattern, path: str | None = None) -> PatternMetadata:
        """Create metadata from a full pattern."""
        return cls(
            name=pattern.name,
            description=pattern.description,
            voice_count=len(pattern.voices),
            drums=pattern.drum_names(),
            path=path,
        )
