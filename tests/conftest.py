"""Shared test fixtures for the ligi test suite.

Design:
- global_root: every test gets its own global index via LIGI_GLOBAL_ROOT
- repo: a repository with an empty art/ directory
- runner: CliRunner for invoking the click app
"""

import os
from pathlib import Path

import pytest
from click.testing import CliRunner


# ─────────────────────────────────────────────────────────────────────────────
# Core Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def runner() -> CliRunner:
    """CLI runner with isolated environment."""
    return CliRunner()


@pytest.fixture(autouse=True)
def global_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolated global document root.

    Autouse so that no test can touch ~/.ligi.
    """
    root = tmp_path / "global" / "art"
    monkeypatch.setenv("LIGI_GLOBAL_ROOT", str(root))
    monkeypatch.delenv("LIGI_HOME", raising=False)
    return root


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """Repository root with an empty art/ directory.

    Usage:
        def test_something(repo):
            write_doc(repo / "art", "a.md", "# A\\n[[t/x]]\\n")
    """
    root = (tmp_path / "repo").resolve()
    (root / "art").mkdir(parents=True)
    return root


@pytest.fixture
def art(repo: Path) -> Path:
    return repo / "art"


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────


def write_doc(root: Path, rel_path: str, content: str) -> Path:
    """Create a document under ``root``, making parent directories."""
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def make_repo(base: Path, name: str) -> Path:
    """Create another repository with an art/ directory under ``base``."""
    root = (base / name).resolve()
    (root / "art").mkdir(parents=True)
    return root


def set_mtime(path: Path, mtime: float) -> None:
    os.utime(path, (mtime, mtime))
