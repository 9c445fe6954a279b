"""
Pattern Library - discovers and loads sequencer patterns.

A library is an ordered list of directories. A pattern named p is the
first p.yml (then p.yaml) found walking the directories in order, so
earlier roots shadow later ones.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from chuk_mcp_strudel.constants import ErrorMessages
from chuk_mcp_strudel.errors import PatternNotFoundError, SequencerError
from chuk_mcp_strudel.models.pattern import Pattern, PatternMetadata

logger = logging.getLogger(__name__)

PATTERN_SUFFIXES = (".yml", ".yaml")


class PatternLibrary:
    """
    Looks patterns up by name across several library roots.

    Loaded patterns are cached; registered patterns take precedence
    over files.
    """

    def __init__(self, library_paths: list[Path] | list[str] | None = None):
        """
        Initialize the library.

        Args:
            library_paths: Directories searched in order
        """
        self.library_paths = [Path(p) for p in library_paths or []]
        self._cache: dict[str, Pattern] = {}
        self._registered: set[str] = set()

    def find_file(self, name: str) -> Path | None:
        """Path of the file defining a pattern, or None."""
        for root in self.library_paths:
            for suffix in PATTERN_SUFFIXES:
                candidate = root / f"{name}{suffix}"
                if candidate.is_file():
                    return candidate
        return None

    def get_pattern(self, name: str) -> Pattern:
        """
        Get a pattern by name.

        Args:
            name: Pattern name (file stem)

        Returns:
            The loaded Pattern

        Raises:
            PatternNotFoundError: If no library root defines the pattern
            SequencerError: If the pattern file cannot be read or validated
        """
        if name in self._cache:
            return self._cache[name]

        path = self.find_file(name)
        if path is None:
            raise PatternNotFoundError(
                name,
                ErrorMessages.PATTERN_NOT_FOUND.format(
                    name=name,
                    libraries=", ".join(str(p) for p in self.library_paths) or "(none)",
                ),
            )

        pattern = self._load_pattern_file(path, name)
        self._cache[name] = pattern
        return pattern

    def has_pattern(self, name: str) -> bool:
        return name in self._cache or self.find_file(name) is not None

    def register_pattern(self, pattern: Pattern, name: str | None = None) -> str:
        """
        Register a pattern programmatically.

        Useful for testing or dynamic pattern creation.

        Args:
            pattern: Pattern to register
            name: Optional name (defaults to pattern.name)

        Returns:
            The pattern name
        """
        name = name or pattern.name
        if not name:
            raise ValueError("Registered patterns need a name")
        if pattern.name != name:
            pattern = pattern.model_copy(update={"name": name})
        self._cache[name] = pattern
        self._registered.add(name)
        return name

    def list_patterns(self) -> list[PatternMetadata]:
        """
        List available patterns, first definition of each name winning.

        Files that cannot be parsed are skipped with a warning.
        """
        found: dict[str, PatternMetadata] = {
            name: PatternMetadata.from_pattern(self._cache[name]) for name in self._registered
        }
        for root in self.library_paths:
            if not root.is_dir():
                continue
            for suffix in PATTERN_SUFFIXES:
                for path in sorted(root.glob(f"*{suffix}")):
                    if path.stem in found:
                        continue
                    try:
                        pattern = self._load_pattern_file(path, path.stem)
                    except SequencerError as e:
                        logger.warning("Skipping pattern file %s: %s", path, e)
                        continue
                    found[path.stem] = PatternMetadata.from_pattern(pattern, str(path))

        return sorted(found.values(), key=lambda m: m.name)

    def _load_pattern_file(self, path: Path, name: str) -> Pattern:
        """Load a pattern from a YAML file."""
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise SequencerError(f"Cannot read pattern '{name}' from {path}: {e}") from e

        if not isinstance(data, dict):
            raise SequencerError(f"Pattern file {path} must contain a mapping")
        try:
            return Pattern.from_yaml_dict(data, name=name)
        except ValidationError as e:
            raise SequencerError(f"Invalid pattern '{name}' in {path}: {e}") from e
