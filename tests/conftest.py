"""
Pytest configuration and shared fixtures.
"""

import tempfile
from pathlib import Path

import pytest

from chuk_mcp_strudel.patterns import PatternLibrary

PATTERNS = {
    "pattern1": "description: kick and snare\nvoices:\n  - bd4 sn4 bd4 sn4\n  - hh8 hh8 hh8 hh8 hh8 hh8 hh8 hh8\n",
    "pattern2": "description: kick only\nvoices:\n  - bd4 r4 bd4 r4\n  - hh8 hh8 hh8 hh8 hh8 hh8 hh8 hh8\n",
    "solo": "description: one voice\nvoices:\n  - cp4 cp4 cp4 cp4\n",
    "silent": "description: nothing\nvoices: []\n",
}


@pytest.fixture
def temp_dir() -> Path:
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def library_dir(temp_dir: Path) -> Path:
    """A pattern library directory with a few two-voice drum patterns."""
    lib = temp_dir / "library"
    lib.mkdir()
    for name, text in PATTERNS.items():
        (lib / f"{name}.yml").write_text(text)
    return lib


@pytest.fixture
def library(library_dir: Path) -> PatternLibrary:
    return PatternLibrary([library_dir])
