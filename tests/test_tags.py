"""Tests for tag name validation, tag scanning and tag insertion."""

from __future__ import annotations

import pytest

from ligi.errors import ErrorCode, InvalidTagNameError
from ligi.models import InvalidReason
from ligi.parser import (
    extract_tags,
    insert_tags,
    iter_tag_spans,
    parse_tag_list,
    require_valid_tag,
    scan_tags,
    validate_tag_name,
)


# =============================================================================
# Validation
# =============================================================================


class TestValidateTagName:
    """Tag names must be safe path fragments."""

    @pytest.mark.parametrize("name", ["proj", "a-b_c.d", "area/sub", "X9", "a" * 255])
    def test_valid_names(self, name):
        assert validate_tag_name(name).valid

    def test_empty(self):
        assert validate_tag_name("").reason is InvalidReason.EMPTY

    def test_too_long(self):
        assert validate_tag_name("a" * 256).reason is InvalidReason.TOO_LONG

    def test_path_traversal(self):
        assert validate_tag_name("a/../b").reason is InvalidReason.PATH_TRAVERSAL

    @pytest.mark.parametrize("name", ["/abs", "x/", "a//b", "./x", "a/./b", ".", "a/."])
    def test_empty_or_dot_segment_is_traversal(self, name):
        """Two spellings of one tag must never share a per-tag file."""
        assert validate_tag_name(name).reason is InvalidReason.PATH_TRAVERSAL

    def test_dot_inside_segment_is_valid(self):
        assert validate_tag_name(".hidden/v1.0").valid

    def test_invalid_char_reports_first_offender(self):
        result = validate_tag_name("bad tag!")
        assert result.reason is InvalidReason.INVALID_CHAR
        assert result.char == " "

    def test_check_order_length_before_traversal(self):
        """An overlong name with '..' is reported as too long."""
        assert validate_tag_name(".." + "a" * 300).reason is InvalidReason.TOO_LONG

    def test_check_order_traversal_before_char(self):
        assert validate_tag_name("a b/..").reason is InvalidReason.PATH_TRAVERSAL

    def test_require_valid_tag_raises(self):
        with pytest.raises(InvalidTagNameError) as exc_info:
            require_valid_tag("bad tag")
        err = exc_info.value
        assert err.code is ErrorCode.INVALID_TAG_NAME
        assert err.reason == "invalid_char"
        assert err.char == " "
        assert "bad tag" in err.message
        assert "invalid character" in err.message

    def test_require_valid_tag_returns_name(self):
        assert require_valid_tag("ok") == "ok"


# =============================================================================
# Scanning
# =============================================================================


class TestScanTags:
    """Tag extraction from markdown text."""

    def test_basic(self):
        assert list(scan_tags("# T\n[[t/alpha]] and [[t/beta]]\n")) == ["alpha", "beta"]

    def test_duplicates_emitted_again(self):
        assert list(scan_tags("[[t/a]] [[t/a]]")) == ["a", "a"]
        assert extract_tags("[[t/a]] [[t/b]] [[t/a]]") == ["a", "b"]

    def test_fenced_code_ignored(self):
        text = "[[t/before]]\n```\n[[t/inside]]\n```\n[[t/after]]\n"
        assert list(scan_tags(text)) == ["before", "after"]

    def test_indented_fence_ignored(self):
        text = "  ```python\n[[t/inside]]\n  ```\n[[t/after]]\n"
        assert list(scan_tags(text)) == ["after"]

    def test_inline_code_ignored(self):
        assert list(scan_tags("`[[t/code]]` [[t/real]]")) == ["real"]

    def test_unclosed_inline_code_ends_at_line(self):
        assert list(scan_tags("`open [[t/hidden]]\n[[t/seen]]\n")) == ["seen"]

    def test_html_comment_ignored(self):
        assert list(scan_tags("<!-- [[t/hidden]] --> [[t/seen]]")) == ["seen"]

    def test_multiline_comment(self):
        text = "<!--\n[[t/hidden]]\n```\n-->\n[[t/seen]]\n"
        assert list(scan_tags(text)) == ["seen"]

    def test_invalid_body_skipped(self):
        assert list(scan_tags("[[t/bad tag]] [[t/../x]] [[t/]] [[t/ok]]")) == ["ok"]

    def test_empty_or_dot_segment_body_skipped(self):
        assert list(scan_tags("[[t/./x]] [[t/a//b]] [[t/x/]] [[t/x]]")) == ["x"]

    def test_unclosed_marker_yields_nothing(self):
        assert list(scan_tags("[[t/never closed")) == []

    def test_unclosed_marker_does_not_hide_later_tags_on_next_line(self):
        assert list(scan_tags("[[t/open\n[[t/next]]")) == ["next"]

    def test_bom_ignored(self):
        text = "\ufeff[[t/first]]"
        assert list(scan_tags(text)) == ["first"]
        span = next(iter_tag_spans(text))
        assert text[span.start : span.end] == "[[t/first]]"

    def test_other_wiki_links_ignored(self):
        assert list(scan_tags("[[page]] [[t/tag]]")) == ["tag"]

    def test_linked_marker_still_a_tag(self):
        assert list(scan_tags("[[t/x]](index/tags/x.md)")) == ["x"]

    def test_span_offsets_across_crlf_lines(self):
        text = "line\r\n[[t/a]]\r\n"
        span = next(iter_tag_spans(text))
        assert text[span.start : span.end] == "[[t/a]]"


# =============================================================================
# Tag lists and insertion
# =============================================================================


class TestParseTagList:
    def test_splits_and_trims(self):
        assert parse_tag_list("a, b ,c") == ["a", "b", "c"]

    def test_dedupes_and_skips_empty(self):
        assert parse_tag_list("a,,a, ") == ["a"]

    def test_invalid_raises(self):
        with pytest.raises(InvalidTagNameError):
            parse_tag_list("ok,bad tag")


class TestInsertTags:
    """Markers go on one line after the first heading."""

    def test_after_heading(self):
        content, added = insert_tags("# Title\nBody\n", ["a", "b"])
        assert added == 2
        assert content == "# Title\n[[t/a]] [[t/b]]\n\nBody\n"

    def test_no_heading_goes_to_top(self):
        content, added = insert_tags("Body\n", ["a"])
        assert added == 1
        assert content == "[[t/a]]\n\nBody\n"

    def test_existing_tags_skipped(self):
        content, added = insert_tags("# T\n[[t/a]]\n", ["a"])
        assert added == 0
        assert content == "# T\n[[t/a]]\n"

    def test_heading_without_trailing_newline(self):
        content, added = insert_tags("# T", ["a"])
        assert added == 1
        assert content == "# T\n[[t/a]]\n"

    def test_empty_document(self):
        content, added = insert_tags("", ["a"])
        assert (content, added) == ("[[t/a]]\n", 1)
