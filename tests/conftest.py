"""
Shared pytest fixtures.
"""
from __future__ import annotations

from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture
def repo_root() -> Path:
    return REPO_ROOT


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """A directory with two plain templates and no catalog."""
    d = tmp_path / "prompts"
    d.mkdir()
    (d / "greet.md").write_text("Hello [name], welcome to [place].\n", encoding="utf-8")
    (d / "static.md").write_text("No placeholders here.\n", encoding="utf-8")
    (d / "notes.txt").write_text("not a template [x]\n", encoding="utf-8")
    return d
