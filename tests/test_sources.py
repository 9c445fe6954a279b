"""
Tests for the package sources themselves.
"""

import warnings
from pathlib import Path

import pytest

import chuk_mcp_strudel.server as server_module

PACKAGE_DIR = Path(server_module.__file__).parent
SOURCES = sorted(PACKAGE_DIR.rglob("*.py"))


class TestSources:
    """Tests that every module compiles cleanly."""

    def test_sources_found(self):
        names = {path.relative_to(PACKAGE_DIR).as_posix() for path in SOURCES}
        assert "lilypond/__init__.py" in names
        assert "server.py" in names

    @pytest.mark.parametrize("path", SOURCES, ids=lambda p: p.relative_to(PACKAGE_DIR).as_posix())
    def test_compiles_without_warnings(self, path: Path):
        """No invalid escape sequences in strings or docstrings."""
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            compile(path.read_text(encoding="utf-8"), str(path), "exec")
