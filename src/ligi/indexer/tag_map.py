"""In-memory tag map and document discovery.

A TagMap is the transient bridge between scanning documents and writing the
index: tag name -> ordered list of document paths relative to the document
root. A (tag, path) pair is stored at most once.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator
from fnmatch import fnmatch
from pathlib import Path

from ..config import INDEX_DIR, MARKDOWN_EXTENSIONS
from ..errors import FilesystemError
from ..parser.tags import extract_tags

log = logging.getLogger(__name__)


class TagMap:
    """Mapping of tag name to the documents that carry it."""

    def __init__(self, entries: dict[str, Iterable[str]] | None = None) -> None:
        self._entries: dict[str, list[str]] = {}
        for tag, paths in (entries or {}).items():
            for path in paths:
                self.add(tag, path)

    def add(self, tag: str, path: str) -> bool:
        """Record that ``path`` carries ``tag``. Returns False if already known."""
        paths = self._entries.setdefault(tag, [])
        if path in paths:
            return False
        paths.append(path)
        return True

    def add_file(self, path: str, tags: Iterable[str]) -> None:
        for tag in tags:
            self.add(tag, path)

    def remove_file(self, path: str) -> list[str]:
        """Drop every entry for ``path``.

        Returns:
            Tags that became empty and were removed from the map.
        """
        emptied: list[str] = []
        for tag in list(self._entries):
            paths = self._entries[tag]
            if path in paths:
                paths.remove(path)
                if not paths:
                    del self._entries[tag]
                    emptied.append(tag)
        return emptied

    def tags(self) -> list[str]:
        """Tags in insertion order."""
        return list(self._entries)

    def files(self, tag: str) -> list[str]:
        """Documents for ``tag`` in insertion order (empty if unknown)."""
        return list(self._entries.get(tag, []))

    def sorted_tags(self) -> list[str]:
        return sorted(self._entries)

    def sorted_files(self, tag: str) -> list[str]:
        return sorted(self._entries.get(tag, []))

    def file_count(self) -> int:
        """Total number of (tag, path) pairs."""
        return sum(len(paths) for paths in self._entries.values())

    def to_dict(self) -> dict[str, list[str]]:
        """Sorted plain-dict view, handy for comparisons and JSON."""
        return {tag: self.sorted_files(tag) for tag in self.sorted_tags()}

    def __contains__(self, tag: object) -> bool:
        return tag in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __repr__(self) -> str:
        return f"TagMap({self.to_dict()!r})"


# ─────────────────────────────────────────────────────────────────────────────
# Document discovery
# ─────────────────────────────────────────────────────────────────────────────


def is_markdown(name: str) -> bool:
    return name.lower().endswith(MARKDOWN_EXTENSIONS)


def is_ignored(rel_path: str, patterns: Iterable[str]) -> bool:
    """Check ``rel_path`` against glob patterns.

    A pattern matches either the basename or the whole root-relative path,
    so ``*.bak`` and ``drafts/*`` both work.
    """
    name = rel_path.rsplit("/", 1)[-1]
    return any(fnmatch(name, pattern) or fnmatch(rel_path, pattern) for pattern in patterns)


def iter_documents(
    root: Path,
    follow_symlinks: bool = False,
    ignore_patterns: Iterable[str] = (),
) -> Iterator[tuple[Path, str]]:
    """Yield ``(absolute_path, relative_path)`` for every markdown document.

    The ``index/`` directory directly under ``root`` is never descended into.
    Relative paths use forward slashes. Traversal order is sorted so that
    repeated runs produce the same TagMap.
    """
    patterns = tuple(ignore_patterns)
    seen_dirs: set[str] = set()

    for dirpath, dirnames, filenames in os.walk(root, followlinks=follow_symlinks):
        current = Path(dirpath)
        if follow_symlinks:
            real = os.path.realpath(dirpath)
            if real in seen_dirs:
                # Symlink cycle
                dirnames[:] = []
                continue
            seen_dirs.add(real)

        if current == root:
            dirnames[:] = [d for d in dirnames if d != INDEX_DIR]
        if not follow_symlinks:
            dirnames[:] = [d for d in dirnames if not (current / d).is_symlink()]
        dirnames.sort()

        for filename in sorted(filenames):
            if not is_markdown(filename):
                continue
            path = current / filename
            if not follow_symlinks and path.is_symlink():
                continue
            rel_path = path.relative_to(root).as_posix()
            if is_ignored(rel_path, patterns):
                continue
            yield path, rel_path


def _read_document(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        log.warning("Skipping unreadable document %s: %s", path, e)
        return None


def relative_document_path(root: Path, file: Path | str) -> str:
    """Normalize ``file`` to a forward-slash path relative to ``root``.

    Relative inputs are taken as already relative to ``root``.
    """
    path = Path(file)
    if path.is_absolute():
        path = path.relative_to(root)
    return path.as_posix()


def collect_tags(
    root: Path,
    single_file: Path | str | None = None,
    follow_symlinks: bool = False,
    ignore_patterns: Iterable[str] = (),
) -> TagMap:
    """Build a TagMap for ``root``, or for exactly one document in it.

    Unreadable documents found by the walk are logged and skipped. An
    explicit ``single_file`` that cannot be read is an error.

    Raises:
        FilesystemError: If ``single_file`` cannot be read.
    """
    tag_map = TagMap()

    if single_file is not None:
        rel_path = relative_document_path(root, single_file)
        path = root / rel_path
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise FilesystemError(path, e) from e
        tag_map.add_file(rel_path, extract_tags(text))
        return tag_map

    for path, rel_path in iter_documents(root, follow_symlinks, ignore_patterns):
        text = _read_document(path)
        if text is None:
            continue
        tag_map.add_file(rel_path, extract_tags(text))

    log.debug("Collected %d tags from %s", len(tag_map), root)
    return tag_map


def update_for_file(tag_map: TagMap, root: Path, file: Path | str) -> TagMap:
    """Replace the entries for one document with a fresh scan of it.

    A document that no longer exists simply loses its entries.
    """
    rel_path = relative_document_path(root, file)
    tag_map.remove_file(rel_path)

    path = root / rel_path
    if path.is_file():
        text = _read_document(path)
        if text is not None:
            tag_map.add_file(rel_path, extract_tags(text))
    return tag_map
