"""Index file formats and atomic writes.

Both the local and the global index use the same two markdown shapes:

* the master list ``index/ligi_tags.md``, one ``- [tag](tags/tag.md)`` item
  per tag under ``## Tags``;
* one ``index/tags/<tag>.md`` per tag, one ``- path`` item per document under
  ``## Files``.

Parsers only read list items inside the expected section, so hand edits to
the prose around them are harmless.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from collections.abc import Iterable
from pathlib import Path

from ..config import TAG_INDEX_FILENAME, TAGS_DIR
from ..errors import FilesystemError
from ..parser.tags import require_valid_tag

TAG_INDEX_HEADER = (
    "# Ligi Tag Index\n"
    "\n"
    "This file is auto-maintained by ligi. Each tag links to its index file.\n"
    "\n"
    "## Tags\n"
    "\n"
)

TAGS_SECTION = "## Tags"
FILES_SECTION = "## Files"


def tag_index_path(index_dir: Path) -> Path:
    return index_dir / TAG_INDEX_FILENAME


def tags_dir(index_dir: Path) -> Path:
    return index_dir / TAGS_DIR


def tag_file_path(index_dir: Path, tag: str) -> Path:
    """Path of the per-tag file for ``tag``.

    Raises:
        InvalidTagNameError: If ``tag`` is not a valid tag name.
    """
    require_valid_tag(tag)
    return tags_dir(index_dir).joinpath(*f"{tag}.md".split("/"))


def conflicting_tags(tags: Iterable[str]) -> set[str]:
    """Tags that need a directory where another tag's per-tag file lives.

    ``foo`` is stored at ``tags/foo.md``, so ``foo.md/bar`` (which needs
    ``tags/foo.md/`` as a directory) cannot be stored alongside it.
    """
    names = set(tags)
    conflicts: set[str] = set()
    for tag in names:
        parts = tag.split("/")
        for depth in range(1, len(parts)):
            parent = "/".join(parts[:depth])
            if parent.endswith(".md") and parent[: -len(".md")] in names:
                conflicts.add(tag)
                break
    return conflicts


# ─────────────────────────────────────────────────────────────────────────────
# Rendering
# ─────────────────────────────────────────────────────────────────────────────


def render_tag_index(tags: Iterable[str]) -> str:
    """Render the master tag list. ``tags`` should already be sorted."""
    lines = [f"- [{tag}]({TAGS_DIR}/{tag}.md)\n" for tag in tags]
    return TAG_INDEX_HEADER + "".join(lines)


def render_per_tag_index(tag: str, files: Iterable[str]) -> str:
    """Render one per-tag file. ``files`` should already be sorted."""
    header = (
        f"# Tag: {tag}\n"
        "\n"
        "This file is auto-maintained by ligi.\n"
        "\n"
        f"{FILES_SECTION}\n"
        "\n"
    )
    return header + "".join(f"- {path}\n" for path in files)


# ─────────────────────────────────────────────────────────────────────────────
# Parsing
# ─────────────────────────────────────────────────────────────────────────────


def _section_items(content: str, section: str) -> list[str]:
    """Return the ``- item`` bodies inside ``section``.

    The section ends at the next ``#`` or ``##`` heading.
    """
    items: list[str] = []
    in_section = False
    for raw in content.splitlines():
        line = raw.strip()
        if line.startswith("#"):
            in_section = line == section
            continue
        if in_section and line.startswith("- "):
            item = line[2:].strip()
            if item:
                items.append(item)
    return items


def parse_tag_list_file(content: str) -> list[str]:
    """Parse tag names from master list content, in file order."""
    tags: list[str] = []
    for item in _section_items(content, TAGS_SECTION):
        if item.startswith("["):
            end = item.find("]")
            if end == -1:
                continue
            item = item[1:end]
        if item and item not in tags:
            tags.append(item)
    return tags


def parse_file_list(content: str) -> list[str]:
    """Parse document paths from per-tag file content, in file order."""
    return _section_items(content, FILES_SECTION)


# ─────────────────────────────────────────────────────────────────────────────
# I/O
# ─────────────────────────────────────────────────────────────────────────────


def read_text(path: Path) -> str:
    """Read an index file.

    Raises:
        FileNotFoundError: If the file does not exist.
        FilesystemError: For any other read failure.
    """
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except (OSError, UnicodeDecodeError) as e:
        raise FilesystemError(path, e) from e


def write_text_atomic(path: Path, content: str) -> None:
    """Write ``content`` to ``path`` through a temp file and a rename.

    Readers see either the old or the new file, never a partial write. An
    existing file keeps its permission bits.

    Raises:
        FilesystemError: If the directory cannot be created or the write fails.
    """
    temp_path: Path | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            newline="",
            dir=path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            temp_path = Path(f.name)
            f.write(content)
        if path.exists():
            shutil.copymode(path, temp_path)
        os.replace(temp_path, path)
    except OSError as e:
        if temp_path is not None and temp_path.exists():
            temp_path.unlink(missing_ok=True)
        raise FilesystemError(path, e) from e


def remove_empty_dirs(start: Path, stop: Path) -> None:
    """Remove ``start`` and its empty parents, stopping at ``stop``."""
    current = start
    while current != stop and stop in current.parents:
        try:
            current.rmdir()
        except OSError:
            return
        current = current.parent
