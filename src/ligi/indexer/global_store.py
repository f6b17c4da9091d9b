"""Global tag index shared by every registered repository.

Entries are absolute document paths (``<repo_root>/art/<relative_path>``), so
each line belongs to exactly one repository: the one whose root is a prefix
of it. Writing the entries of one repository never touches lines owned by
another.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..config import get_art_path
from ..errors import TagNotFoundError
from ..models import WriteResult
from .files import (
    conflicting_tags,
    render_per_tag_index,
    render_tag_index,
    write_text_atomic,
)
from .local_store import BaseIndexStore
from ..parser.tags import validate_tag_name
from .tag_map import TagMap

log = logging.getLogger(__name__)


def owner_prefix(repo_root: Path | str) -> str:
    """Line prefix owned by ``repo_root``: its document root plus ``/``.

    Using the document root rather than the repo root keeps a repository
    nested inside another from being mistaken for part of it.
    """
    return get_art_path(repo_root).as_posix().rstrip("/") + "/"


class GlobalIndexStore(BaseIndexStore):
    """Reads and writes ``<global_root>/index/``."""

    def __init__(self, global_root: Path):
        super().__init__(global_root)

    def read_tag_or_empty(self, tag: str) -> list[str]:
        try:
            return self.read_tag(tag)
        except TagNotFoundError:
            return []

    def write(self, tag_map: TagMap, repo_root: Path) -> WriteResult:
        """Replace ``repo_root``'s entries with those in ``tag_map``.

        Every tag in ``tag_map`` or in the current master list is revisited:
        lines owned by ``repo_root`` are dropped, its fresh entries added, and
        the result written back sorted. Tags left with no entries lose their
        per-tag file and drop out of the master list, as do tags whose file
        would need another tag's per-tag file as a directory.

        Raises:
            FilesystemError: If an index file cannot be written.
        """
        result = WriteResult()
        prefix = owner_prefix(repo_root)

        merged: dict[str, list[str]] = {}
        existing: dict[str, list[str]] = {}
        for tag in sorted(set(self.list_tags()) | set(tag_map.tags())):
            if not validate_tag_name(tag).valid:
                log.warning("Ignoring invalid tag %r in %s", tag, self.master_path)
                continue
            path = self.tag_path(tag)
            # A directory here belongs to nested tags, not to this one
            existing[tag] = [] if path.is_dir() else self.read_tag_or_empty(tag)
            lines = {line for line in existing[tag] if not line.startswith(prefix)}
            lines.update(f"{prefix}{rel_path}" for rel_path in tag_map.files(tag))
            merged[tag] = sorted(lines)

        skipped = conflicting_tags(tag for tag, lines in merged.items() if lines)
        for tag in sorted(skipped):
            log.warning("Skipping tag %r: its index file path collides with another tag", tag)

        kept_tags: list[str] = []
        for tag, lines in merged.items():
            if lines and tag not in skipped:
                kept_tags.append(tag)
            elif self.remove_tag(tag):
                result.removed += 1

        for tag in kept_tags:
            path = self.tag_path(tag)
            existed = path.is_file()
            if existed and merged[tag] == existing[tag]:
                continue
            write_text_atomic(path, render_per_tag_index(tag, merged[tag]))
            if existed:
                result.updated += 1
            else:
                result.created += 1

        write_text_atomic(self.master_path, render_tag_index(kept_tags))
        log.debug(
            "Updated global index %s for %s: %d created, %d updated, %d removed",
            self.index_dir,
            repo_root,
            result.created,
            result.updated,
            result.removed,
        )
        return result
