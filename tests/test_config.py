"""Tests for configuration discovery and index settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from ligi.config import (
    ConfigurationError,
    get_art_path,
    get_global_root,
    load_index_settings,
)


class TestGlobalRoot:
    def test_env_override(self, global_root: Path):
        assert get_global_root() == global_root

    def test_default_under_home(self, monkeypatch, tmp_path: Path):
        monkeypatch.delenv("LIGI_GLOBAL_ROOT", raising=False)
        monkeypatch.setenv("LIGI_HOME", str(tmp_path / "home"))
        assert get_global_root() == tmp_path / "home" / "art"

    def test_art_path(self, tmp_path: Path):
        assert get_art_path(tmp_path) == tmp_path / "art"


class TestLoadIndexSettings:
    def test_defaults_without_file(self, art: Path):
        settings = load_index_settings(art)
        assert settings.ignore_patterns == ["*.tmp", "*.bak"]
        assert settings.follow_symlinks is False

    def test_reads_yaml(self, art: Path):
        (art / "config").mkdir()
        (art / "config" / "ligi.yaml").write_text(
            "index:\n  ignore_patterns: ['drafts/*']\n  follow_symlinks: true\n"
        )
        settings = load_index_settings(art)
        assert settings.ignore_patterns == ["drafts/*"]
        assert settings.follow_symlinks is True

    def test_missing_index_section_gives_defaults(self, art: Path):
        (art / "config").mkdir()
        (art / "config" / "ligi.yaml").write_text("other: 1\n")
        assert load_index_settings(art).ignore_patterns == ["*.tmp", "*.bak"]

    def test_invalid_value(self, art: Path):
        (art / "config").mkdir()
        (art / "config" / "ligi.yaml").write_text("index:\n  follow_symlinks: [1, 2]\n")
        with pytest.raises(ConfigurationError, match="index.follow_symlinks"):
            load_index_settings(art)

    def test_malformed_yaml(self, art: Path):
        (art / "config").mkdir()
        (art / "config" / "ligi.yaml").write_text("index: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_index_settings(art)

    def test_top_level_not_mapping(self, art: Path):
        (art / "config").mkdir()
        (art / "config" / "ligi.yaml").write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_index_settings(art)
