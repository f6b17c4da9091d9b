"""Markdown tag parsing and tag-link rewriting."""

from .links import fill_tag_links
from .tags import (
    TagSpan,
    extract_tags,
    insert_tags,
    iter_tag_spans,
    parse_tag_list,
    require_valid_tag,
    scan_tags,
    validate_tag_name,
)

__all__ = [
    "validate_tag_name",
    "require_valid_tag",
    "scan_tags",
    "extract_tags",
    "iter_tag_spans",
    "TagSpan",
    "parse_tag_list",
    "insert_tags",
    "fill_tag_links",
]
