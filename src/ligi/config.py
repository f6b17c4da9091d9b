"""Configuration management for ligi.

This module contains the on-disk layout constants and settings discovery.
Layout names here are part of the index file contract; other tools rely on them.
"""

import os
from pathlib import Path
from typing import TYPE_CHECKING

import yaml
from pydantic import ValidationError

if TYPE_CHECKING:
    from .models import IndexSettings


class ConfigurationError(Exception):
    """Raised when configuration is missing or malformed."""

    pass


# =============================================================================
# On-disk Layout
# =============================================================================

# Document root inside a repository
ART_DIR = "art"

# Index directory under a document root (local or global)
INDEX_DIR = "index"

# Per-tag files live under <root>/index/tags/
TAGS_DIR = "tags"

# Master tag list
TAG_INDEX_FILENAME = "ligi_tags.md"

# Repository registry, stored in the global index directory
GLOBAL_INDEX_FILENAME = "ligi_global_index.md"

# Settings file, relative to the document root
SETTINGS_RELPATH = Path("config") / "ligi.yaml"

# Global home directory name under $HOME
GLOBAL_HOME_DIRNAME = ".ligi"


# =============================================================================
# Tag Names
# =============================================================================

# Tag names become path segments; 255 is the common filename limit.
MAX_TAG_NAME_LEN = 255

# Prefix inside [[...]] that marks a tag
TAG_PREFIX = "t/"


# =============================================================================
# Indexing
# =============================================================================

MARKDOWN_EXTENSIONS = (".md", ".markdown")

DEFAULT_IGNORE_PATTERNS = ("*.tmp", "*.bak")


def get_global_home() -> Path:
    """Get the global ligi home directory (~/.ligi).

    LIGI_HOME overrides the location.
    """
    home = os.environ.get("LIGI_HOME")
    if home:
        return Path(home)
    return Path.home() / GLOBAL_HOME_DIRNAME


def get_global_root() -> Path:
    """Get the global document root that holds the global index.

    Discovery order:
    1. LIGI_GLOBAL_ROOT environment variable (explicit override, used in tests)
    2. <global home>/art
    """
    root = os.environ.get("LIGI_GLOBAL_ROOT")
    if root:
        return Path(root)
    return get_global_home() / ART_DIR


def get_art_path(repo_root: Path | str) -> Path:
    """Get the document root for a repository."""
    return Path(repo_root) / ART_DIR


def get_index_dir(root: Path) -> Path:
    """Get the index directory under a document root."""
    return root / INDEX_DIR


def load_index_settings(art_path: Path) -> "IndexSettings":
    """Load indexing settings for a document root.

    Reads ``<art>/config/ligi.yaml``. A missing file yields defaults.

    Example file:
        index:
          ignore_patterns: ["*.tmp", "*.bak", "drafts/*"]
          follow_symlinks: false

    Raises:
        ConfigurationError: If the file exists but cannot be parsed.
    """
    from .models import IndexSettings

    settings_file = art_path / SETTINGS_RELPATH
    if not settings_file.exists():
        return IndexSettings()

    try:
        data = yaml.safe_load(settings_file.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"{settings_file}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"{settings_file}: expected a mapping at top level")

    try:
        return IndexSettings.model_validate(data.get("index") or {})
    except ValidationError as e:
        errors = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append(f"  - index.{loc}: {error['msg']}")
        raise ConfigurationError(
            f"{settings_file}: invalid settings:\n" + "\n".join(errors)
        ) from e
