"""Tag name validation and extraction from markdown.

Tags use wiki-style syntax: ``[[t/tag_name]]``. The stored tag name is the
part after ``t/``. Tags inside fenced code blocks, inline code spans and HTML
comments are ignored.

Tag names are later joined under an index directory, so validation here is
the only thing standing between document text and the filesystem.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from typing import NamedTuple

from ..config import MAX_TAG_NAME_LEN, TAG_PREFIX
from ..errors import InvalidTagNameError
from ..models import InvalidReason, TagValidation

TAG_OPEN = "[[" + TAG_PREFIX
TAG_CLOSE = "]]"
FENCE = "```"
COMMENT_OPEN = "<!--"
COMMENT_CLOSE = "-->"
UTF8_BOM = "\ufeff"

_ALLOWED_CHAR = re.compile(r"[A-Za-z0-9_./-]")
_HEADING_LINE = re.compile(r"^[ \t]*#.*$", re.MULTILINE)


class TagSpan(NamedTuple):
    """A tag occurrence: ``text[start:end]`` is the full ``[[t/name]]`` marker."""

    name: str
    start: int
    end: int


def validate_tag_name(candidate: str) -> TagValidation:
    """Validate a candidate tag name.

    Checks run in order: empty, too long, path traversal, then the first
    character outside ``[A-Za-z0-9_./-]``. Path traversal covers ``..``
    anywhere and any empty or ``.`` segment between slashes.

    Args:
        candidate: Tag name without the ``t/`` prefix.

    Returns:
        TagValidation whose ``reason`` is None when the name is valid.
    """
    if not candidate:
        return TagValidation(reason=InvalidReason.EMPTY)
    if len(candidate) > MAX_TAG_NAME_LEN:
        return TagValidation(reason=InvalidReason.TOO_LONG)
    if ".." in candidate or any(seg in ("", ".") for seg in candidate.split("/")):
        return TagValidation(reason=InvalidReason.PATH_TRAVERSAL)
    for char in candidate:
        if not _ALLOWED_CHAR.fullmatch(char):
            return TagValidation(reason=InvalidReason.INVALID_CHAR, char=char)
    return TagValidation()


def require_valid_tag(candidate: str) -> str:
    """Return ``candidate`` unchanged if valid.

    Raises:
        InvalidTagNameError: With the reason and offending character.
    """
    result = validate_tag_name(candidate)
    if result.reason is not None:
        raise InvalidTagNameError(candidate, result.reason.value, result.char)
    return candidate


def iter_tag_spans(text: str) -> Iterator[TagSpan]:
    """Yield every valid tag marker outside code and comments, in order.

    Fenced blocks open and close on lines whose left-trimmed content starts
    with three backticks. Inline code spans end at the line end if unclosed.
    HTML comments may span lines.
    """
    offset = 1 if text.startswith(UTF8_BOM) else 0
    in_fence = False
    in_comment = False

    for raw_line in text[offset:].splitlines(keepends=True):
        line = raw_line.rstrip("\r\n")
        line_start = offset
        offset += len(raw_line)

        if not in_comment and line.lstrip(" \t").startswith(FENCE):
            in_fence = not in_fence
            continue
        if in_fence:
            continue

        in_inline = False
        pos = 0
        while pos < len(line):
            if in_comment:
                end = line.find(COMMENT_CLOSE, pos)
                if end == -1:
                    break
                in_comment = False
                pos = end + len(COMMENT_CLOSE)
                continue
            if in_inline:
                end = line.find("`", pos)
                if end == -1:
                    break
                in_inline = False
                pos = end + 1
                continue
            if line.startswith(COMMENT_OPEN, pos):
                in_comment = True
                pos += len(COMMENT_OPEN)
                continue
            if line[pos] == "`":
                in_inline = True
                pos += 1
                continue
            if line.startswith(TAG_OPEN, pos):
                body_start = pos + len(TAG_OPEN)
                body_end = line.find(TAG_CLOSE, body_start)
                if body_end == -1:
                    # Unclosed marker; keep scanning after the opener
                    pos = body_start
                    continue
                name = line[body_start:body_end]
                end = body_end + len(TAG_CLOSE)
                if validate_tag_name(name).valid:
                    yield TagSpan(name, line_start + pos, line_start + end)
                pos = end
                continue
            pos += 1


def scan_tags(text: str) -> Iterator[str]:
    """Yield tag names from markdown text in first-occurrence order.

    Duplicates are yielded again; TagMap collapses them.
    """
    for span in iter_tag_spans(text):
        yield span.name


def extract_tags(text: str) -> list[str]:
    """Return the unique tag names in ``text``, first occurrence first."""
    seen: set[str] = set()
    tags: list[str] = []
    for name in scan_tags(text):
        if name not in seen:
            seen.add(name)
            tags.append(name)
    return tags


def parse_tag_list(raw: str) -> list[str]:
    """Parse a comma-separated tag argument, validating every entry.

    Raises:
        InvalidTagNameError: On the first invalid tag.
    """
    tags: list[str] = []
    for item in raw.split(","):
        tag = item.strip(" \t")
        if not tag:
            continue
        require_valid_tag(tag)
        if tag not in tags:
            tags.append(tag)
    return tags


def insert_tags(content: str, tags: Iterable[str]) -> tuple[str, int]:
    """Insert ``[[t/tag]]`` markers for tags not already present.

    The markers go on a single line after the first markdown heading, or at
    the top of the document when there is no heading.

    Returns:
        Tuple of (new_content, number_of_tags_added).
    """
    new_tags = [tag for tag in tags if f"{TAG_OPEN}{tag}{TAG_CLOSE}" not in content]
    if not new_tags:
        return content, 0

    tags_line = " ".join(f"{TAG_OPEN}{tag}{TAG_CLOSE}" for tag in new_tags) + "\n"

    insert_pos = 0
    heading = _HEADING_LINE.search(content)
    found_heading = heading is not None
    if heading is not None:
        insert_pos = heading.end()
        if insert_pos < len(content) and content[insert_pos] == "\n":
            insert_pos += 1

    parts = [content[:insert_pos]]
    if found_heading and not content[:insert_pos].endswith("\n"):
        parts.append("\n")
    parts.append(tags_line)
    if insert_pos < len(content) and content[insert_pos] != "\n":
        parts.append("\n")
    parts.append(content[insert_pos:])

    return "".join(parts), len(new_tags)
