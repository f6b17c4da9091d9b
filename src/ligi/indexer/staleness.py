"""Detect when a local index is older than its documents."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from ..config import get_index_dir
from .files import tag_index_path
from .tag_map import iter_documents

log = logging.getLogger(__name__)


def _mtime(path: Path) -> float | None:
    try:
        return path.stat().st_mtime
    except OSError:
        return None


def is_stale(
    root: Path,
    follow_symlinks: bool = False,
    ignore_patterns: Iterable[str] = (),
) -> bool:
    """Return True if ``root`` needs reindexing.

    The index is stale when the master list is missing or any markdown
    document under ``root`` was modified after it. Documents that cannot be
    stat'ed are ignored.
    """
    index_mtime = _mtime(tag_index_path(get_index_dir(root)))
    if index_mtime is None:
        log.debug("No tag index under %s", root)
        return True

    for path, rel_path in iter_documents(root, follow_symlinks, ignore_patterns):
        doc_mtime = _mtime(path)
        if doc_mtime is not None and doc_mtime > index_mtime:
            log.debug("%s is newer than the tag index", rel_path)
            return True
    return False
