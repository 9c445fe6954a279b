"""
Sequence file loading.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from chuk_mcp_strudel.errors import SequencerError
from chuk_mcp_strudel.models.sequence import BarSequence


def parse_sequence(text: str) -> BarSequence:
    """
    Parse sequence YAML text.

    Raises:
        SequencerError: If the YAML is malformed or does not describe a sequence
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise SequencerError(f"Invalid sequence YAML: {e}") from e

    if not isinstance(data, dict) or "tempo" not in data:
        raise SequencerError("Sequence YAML must be a mapping with 'tempo' and 'sequence'")
    try:
        return BarSequence.from_yaml_dict(data)
    except (ValidationError, ValueError, KeyError, TypeError) as e:
        raise SequencerError(f"Invalid sequence: {e}") from e


def load_sequence(path: Path | str) -> BarSequence:
    """Load a sequence from a YAML file."""
    with open(path, encoding="utf-8") as f:
        return parse_sequence(f.read())
