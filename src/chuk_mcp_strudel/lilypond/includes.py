"""
Include resolution.

Expands \\include "file" directives into the referenced text before
tokenization. Lookup goes through an IncludeSource, so the resolver
works the same over a directory tree or an in-memory mapping.

Cycle detection follows the active expansion path only: a file may be
included many times (diamond inclusion), but never from inside itself.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

from chuk_mcp_strudel.errors import IncludeCycleError, IncludeNotFoundError

logger = logging.getLogger(__name__)

INCLUDE_RE = re.compile(r'\\include\s+"([^"]+)"')


class IncludeSource(Protocol):
    """Lookup capability: reference -> (identity, text)."""

    def load(self, reference: str, parent: str | None) -> tuple[str, str]:
        """
        Load an included text.

        Args:
            reference: The string inside \\include "..."
            parent: Identity of the including text, None for the root

        Returns:
            (identity, text) where identity is stable across references
            that name the same content

        Raises:
            IncludeNotFoundError: If the reference cannot be resolved
        """
        ...


class FileSystemIncludeSource:
    """
    Resolve includes against the filesystem.

    Relative references resolve against the including file's directory,
    or base_dir for the root text. Identities are canonical paths.
    """

    def __init__(self, base_dir: Path | str):
        self.base_dir = Path(base_dir)

    def load(self, reference: str, parent: str | None) -> tuple[str, str]:
        base = Path(parent).parent if parent else self.base_dir
        path = (base / reference).resolve()
        if not path.is_file():
            raise IncludeNotFoundError(reference, f"no file at {path}")
        try:
            return str(path), path.read_text(encoding="utf-8")
        except OSError as e:
            raise IncludeNotFoundError(reference, str(e)) from e


class MappingIncludeSource:
    """Resolve includes from an in-memory name -> text mapping."""

    def __init__(self, files: Mapping[str, str]):
        self.files = dict(files)

    def load(self, reference: str, parent: str | None) -> tuple[str, str]:
        if reference not in self.files:
            raise IncludeNotFoundError(reference)
        return reference, self.files[reference]


def resolve_includes(text: str, source: IncludeSource, identity: str | None = None) -> str:
    """
    Recursively replace every \\include directive with its content.

    Args:
        text: Root text
        source: Lookup used for every reference
        identity: Identity of the root text, if it has one

    Returns:
        Text with no remaining \\include directives

    Raises:
        IncludeCycleError: If a reference recurs on the active path
        IncludeNotFoundError: If the source cannot resolve a reference
    """
    active = [identity] if identity is not None else []
    return _expand(text, source, identity, active)


def _expand(text: str, source: IncludeSource, identity: str | None, active: list[str]) -> str:
    parts: list[str] = []
    last = 0
    for match in INCLUDE_RE.finditer(text):
        parts.append(text[last : match.start()])
        reference = match.group(1)
        child_identity, child_text = source.load(reference, identity)
        if child_identity in active:
            raise IncludeCycleError([*active, child_identity])
        logger.debug("Including %s", child_identity)
        parts.append(_expand(child_text, source, child_identity, [*active, child_identity]))
        last = match.end()
    parts.append(text[last:])
    return "".join(parts)
