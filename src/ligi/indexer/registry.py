"""Registry of repositories that contribute to the global index.

Stored as ``<global_root>/index/ligi_global_index.md``::

    # Ligi Global Index

    This file is auto-maintained by ligi. It tracks all repositories initialized with ligi.

    ## Repositories

    - /home/me/notes

    ## Notes

    (Freeform, not parsed by ligi)

Only ``- `` items under ``## Repositories`` are parsed. Everything under
``## Notes`` is kept as written.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..config import GLOBAL_INDEX_FILENAME, get_art_path, get_global_root, get_index_dir
from ..models import DEFAULT_REGISTRY_NOTES, RepoCheck, RepoRegistry
from .files import read_text, write_text_atomic

log = logging.getLogger(__name__)

REGISTRY_HEADER = (
    "# Ligi Global Index\n"
    "\n"
    "This file is auto-maintained by ligi. It tracks all repositories initialized with ligi.\n"
    "\n"
)
REPOSITORIES_SECTION = "## Repositories"
NOTES_SECTION = "## Notes"


def registry_path(global_root: Path | None = None) -> Path:
    root = global_root or get_global_root()
    return get_index_dir(root) / GLOBAL_INDEX_FILENAME


def canonicalize(repo_root: Path | str) -> str:
    """Absolute, symlink-resolved form used as the registry key."""
    return Path(repo_root).expanduser().resolve().as_posix()


def parse_registry(content: str) -> RepoRegistry:
    repos: list[str] = []
    section: str | None = None
    notes_lines: list[str] | None = None

    for raw in content.splitlines():
        if section == NOTES_SECTION:
            notes_lines.append(raw)
            continue
        line = raw.strip()
        if line.startswith("#"):
            section = line
            if section == NOTES_SECTION:
                notes_lines = []
            continue
        if section == REPOSITORIES_SECTION and line.startswith("- "):
            repo = line[2:].strip()
            if repo and repo not in repos:
                repos.append(repo)

    notes = "\n".join(notes_lines).strip() if notes_lines is not None else ""
    return RepoRegistry(repos=repos, notes=notes or DEFAULT_REGISTRY_NOTES)


def render_registry(registry: RepoRegistry) -> str:
    lines = [REGISTRY_HEADER, f"{REPOSITORIES_SECTION}\n", "\n"]
    lines.extend(f"- {repo}\n" for repo in sorted(registry.repos))
    lines.append(f"\n{NOTES_SECTION}\n\n")
    lines.append(registry.notes.rstrip("\n") + "\n")
    return "".join(lines)


def load_registry(global_root: Path | None = None) -> RepoRegistry:
    """Load the registry. A missing file is an empty registry.

    Raises:
        FilesystemError: If the file exists but cannot be read.
    """
    try:
        return parse_registry(read_text(registry_path(global_root)))
    except FileNotFoundError:
        return RepoRegistry()


def save_registry(registry: RepoRegistry, global_root: Path | None = None) -> Path:
    path = registry_path(global_root)
    write_text_atomic(path, render_registry(registry))
    return path


def register_repo(repo_root: Path | str, global_root: Path | None = None) -> bool:
    """Add ``repo_root`` to the registry.

    Returns:
        True if the repo was newly registered, False if already present.
    """
    repo = canonicalize(repo_root)
    registry = load_registry(global_root)
    if not registry.add_repo(repo):
        return False
    save_registry(registry, global_root)
    log.info("Registered %s in the global index", repo)
    return True


def check_repo(repo: str) -> RepoCheck:
    """Classify one registered repository.

    ``BROKEN`` when the directory is gone, ``MISSING_ART`` when it has no
    document root, ``OK`` otherwise.
    """
    path = Path(repo)
    if not path.is_dir():
        return RepoCheck(path=repo, status="BROKEN")
    if not get_art_path(path).is_dir():
        return RepoCheck(path=repo, status="MISSING_ART")
    return RepoCheck(path=repo, status="OK")


def is_live(repo: str) -> bool:
    return check_repo(repo).status == "OK"


def live_repos(registry: RepoRegistry) -> list[str]:
    return [repo for repo in registry.repos if is_live(repo)]
