"""Local tag index for one document root."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from ..config import INDEX_DIR, TAGS_DIR, get_index_dir
from ..errors import InvalidTagNameError, TagNotFoundError
from ..models import WriteResult
from ..parser.links import fill_tag_links as fill_links_in_text
from .files import (
    conflicting_tags,
    parse_file_list,
    parse_tag_list_file,
    read_text,
    remove_empty_dirs,
    render_per_tag_index,
    render_tag_index,
    tag_file_path,
    tag_index_path,
    tags_dir,
    write_text_atomic,
)
from .tag_map import TagMap, iter_documents, relative_document_path

log = logging.getLogger(__name__)


class BaseIndexStore:
    """Index files under ``<root>/index/``: master list plus per-tag files."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self.index_dir = get_index_dir(self.root)

    @property
    def master_path(self) -> Path:
        return tag_index_path(self.index_dir)

    def tag_path(self, tag: str) -> Path:
        return tag_file_path(self.index_dir, tag)

    # ─────────────────────────────────────────────────────────────────────────
    # Reading
    # ─────────────────────────────────────────────────────────────────────────

    def list_tags(self) -> list[str]:
        """Tags named in the master list. Empty when there is no index yet."""
        try:
            return parse_tag_list_file(read_text(self.master_path))
        except FileNotFoundError:
            return []

    def read_tag(self, tag: str) -> list[str]:
        """Document paths for ``tag``, in file order.

        Raises:
            InvalidTagNameError: If ``tag`` is not a valid name.
            TagNotFoundError: If there is no per-tag file.
        """
        path = self.tag_path(tag)
        try:
            return parse_file_list(read_text(path))
        except FileNotFoundError:
            raise TagNotFoundError(tag, path) from None

    def load_full_map(self) -> TagMap:
        """Rebuild a TagMap from the master list and per-tag files."""
        tag_map = TagMap()
        for tag in self.list_tags():
            try:
                paths = self.read_tag(tag)
            except TagNotFoundError:
                log.warning("Tag %r is listed in %s but has no index file", tag, self.master_path)
                continue
            except InvalidTagNameError as e:
                log.warning("Ignoring %s in %s", e, self.master_path)
                continue
            for path in paths:
                tag_map.add(tag, path)
        return tag_map

    def remove_tag(self, tag: str) -> bool:
        """Delete the per-tag file for ``tag``. Returns True if a file was removed."""
        try:
            path = self.tag_path(tag)
        except InvalidTagNameError as e:
            log.warning("Ignoring %s in %s", e, self.master_path)
            return False
        return remove_tag_file(self.index_dir, path)


class IndexStore(BaseIndexStore):
    """Reads and writes the local index of one document root.

    Paths stored in the local index are relative to ``root``.
    """

    # ─────────────────────────────────────────────────────────────────────────
    # Writing
    # ─────────────────────────────────────────────────────────────────────────

    def write(self, tag_map: TagMap) -> WriteResult:
        """Write every per-tag file, then the master list.

        Per-tag files for tags that were in the previous master list but are
        not written now are deleted first. A tag whose file would need
        another tag's per-tag file as a directory is skipped with a warning.

        Raises:
            FilesystemError: If any index file cannot be written.
        """
        result = WriteResult()
        skipped = conflicting_tags(tag_map.tags())
        for tag in sorted(skipped):
            log.warning("Skipping tag %r: its index file path collides with another tag", tag)
        kept = [tag for tag in tag_map.sorted_tags() if tag not in skipped]

        for tag in self.list_tags():
            if tag in tag_map and tag not in skipped:
                continue
            if self.remove_tag(tag):
                result.removed += 1

        for tag in kept:
            path = self.tag_path(tag)
            existed = path.exists()
            write_text_atomic(path, render_per_tag_index(tag, tag_map.sorted_files(tag)))
            if existed:
                result.updated += 1
            else:
                result.created += 1

        write_text_atomic(self.master_path, render_tag_index(kept))
        log.debug(
            "Wrote local index %s: %d created, %d updated, %d removed",
            self.index_dir,
            result.created,
            result.updated,
            result.removed,
        )
        return result

    # ─────────────────────────────────────────────────────────────────────────
    # Tag links
    # ─────────────────────────────────────────────────────────────────────────

    def fill_tag_links(
        self,
        file: Path | str | None = None,
        follow_symlinks: bool = False,
        ignore_patterns: Iterable[str] = (),
    ) -> int:
        """Turn bare ``[[t/name]]`` markers into links to their per-tag files.

        Processes one document when ``file`` is given, otherwise every
        document under the root. Only documents that change are rewritten.

        Returns:
            Number of links filled.
        """
        if file is not None:
            rel_path = relative_document_path(self.root, file)
            targets = [(self.root / rel_path, rel_path)]
        else:
            targets = list(iter_documents(self.root, follow_symlinks, ignore_patterns))

        filled = 0
        for path, rel_path in targets:
            try:
                with open(path, encoding="utf-8", newline="") as f:
                    text = f.read()
            except (OSError, UnicodeDecodeError) as e:
                log.warning("Skipping tag links for %s: %s", path, e)
                continue

            new_text, count = fill_links_in_text(text, link_prefix_for(rel_path))
            if count:
                write_text_atomic(path, new_text)
                filled += count
        return filled


def link_prefix_for(rel_path: str) -> str:
    """Prefix from a document to the tags directory.

    ``a.md`` -> ``index/tags/``; ``notes/a.md`` -> ``../index/tags/``.
    """
    depth = rel_path.count("/")
    return "../" * depth + f"{INDEX_DIR}/{TAGS_DIR}/"


def remove_tag_file(index_dir: Path, path: Path) -> bool:
    """Delete a per-tag file and any tag directories it leaves empty.

    Failures are logged, not raised.
    """
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        log.warning("Could not remove %s: %s", path, e)
        return False
    remove_empty_dirs(path.parent, tags_dir(index_dir))
    return True
