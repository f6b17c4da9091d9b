"""Tests for TagMap and document discovery."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from conftest import write_doc
from ligi.errors import FilesystemError
from ligi.indexer import TagMap, collect_tags, update_for_file
from ligi.indexer.tag_map import is_ignored, iter_documents


class TestTagMap:
    """TagMap never stores a (tag, path) pair twice."""

    def test_add_dedupes(self):
        tag_map = TagMap()
        assert tag_map.add("a", "x.md")
        assert not tag_map.add("a", "x.md")
        assert tag_map.files("a") == ["x.md"]
        assert tag_map.file_count() == 1

    def test_insertion_order_and_sorted_views(self):
        tag_map = TagMap({"b": ["z.md", "a.md"], "a": ["m.md"]})
        assert tag_map.tags() == ["b", "a"]
        assert tag_map.sorted_tags() == ["a", "b"]
        assert tag_map.files("b") == ["z.md", "a.md"]
        assert tag_map.sorted_files("b") == ["a.md", "z.md"]

    def test_remove_file_drops_empty_tags(self):
        tag_map = TagMap({"a": ["x.md"], "b": ["x.md", "y.md"]})
        emptied = tag_map.remove_file("x.md")
        assert emptied == ["a"]
        assert "a" not in tag_map
        assert tag_map.files("b") == ["y.md"]

    def test_unknown_tag_is_empty(self):
        assert TagMap().files("missing") == []


class TestCollectTags:
    """Walking a document root."""

    def test_two_documents(self, art: Path):
        write_doc(art, "a.md", "# A\n[[t/proj]] [[t/x]]\n")
        write_doc(art, "b.md", "# B\n[[t/proj]]\n")

        tag_map = collect_tags(art)

        assert tag_map.to_dict() == {"proj": ["a.md", "b.md"], "x": ["a.md"]}

    def test_nested_paths_use_forward_slashes(self, art: Path):
        write_doc(art, "notes/deep/n.md", "[[t/t]]")
        assert collect_tags(art).files("t") == ["notes/deep/n.md"]

    def test_index_dir_skipped(self, art: Path):
        write_doc(art, "index/tags/x.md", "[[t/should_not_count]]")
        write_doc(art, "a.md", "[[t/x]]")
        assert collect_tags(art).sorted_tags() == ["x"]

    def test_non_markdown_skipped(self, art: Path):
        write_doc(art, "a.txt", "[[t/x]]")
        write_doc(art, "b.markdown", "[[t/y]]")
        assert collect_tags(art).sorted_tags() == ["y"]

    def test_default_style_ignore_patterns(self, art: Path):
        write_doc(art, "drafts/a.md", "[[t/draft]]")
        write_doc(art, "b.md", "[[t/keep]]")
        tag_map = collect_tags(art, ignore_patterns=["drafts/*"])
        assert tag_map.sorted_tags() == ["keep"]

    def test_single_file(self, art: Path):
        write_doc(art, "a.md", "[[t/a]]")
        write_doc(art, "b.md", "[[t/b]]")
        assert collect_tags(art, single_file="b.md").to_dict() == {"b": ["b.md"]}

    def test_single_file_missing_raises(self, art: Path):
        with pytest.raises(FilesystemError):
            collect_tags(art, single_file="nope.md")

    def test_unreadable_document_skipped(self, art: Path):
        (art / "bad.md").write_bytes(b"\xff\xfe[[t/x]]")
        write_doc(art, "good.md", "[[t/y]]")
        assert collect_tags(art).sorted_tags() == ["y"]

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlinks_skipped_unless_followed(self, art: Path, tmp_path: Path):
        outside = tmp_path / "outside"
        write_doc(outside, "linked.md", "[[t/linked]]")
        (art / "link").symlink_to(outside, target_is_directory=True)
        write_doc(art, "a.md", "[[t/a]]")

        assert collect_tags(art).sorted_tags() == ["a"]
        assert collect_tags(art, follow_symlinks=True).sorted_tags() == ["a", "linked"]


class TestUpdateForFile:
    def test_replaces_entries_for_one_file(self, art: Path):
        write_doc(art, "a.md", "[[t/old]] [[t/shared]]")
        write_doc(art, "b.md", "[[t/shared]]")
        tag_map = collect_tags(art)

        write_doc(art, "a.md", "[[t/new]]")
        update_for_file(tag_map, art, "a.md")

        assert tag_map.to_dict() == {"new": ["a.md"], "shared": ["b.md"]}

    def test_deleted_file_loses_entries(self, art: Path):
        path = write_doc(art, "a.md", "[[t/x]]")
        tag_map = collect_tags(art)
        path.unlink()

        update_for_file(tag_map, art, path)

        assert len(tag_map) == 0


class TestIgnorePatterns:
    @pytest.mark.parametrize(
        "rel_path, patterns, expected",
        [
            ("a.tmp", ["*.tmp"], True),
            ("sub/a.bak", ["*.bak"], True),
            ("drafts/x.md", ["drafts/*"], True),
            ("notes/x.md", ["drafts/*"], False),
            ("x.md", [], False),
        ],
    )
    def test_matching(self, rel_path, patterns, expected):
        assert is_ignored(rel_path, patterns) is expected

    def test_iter_documents_sorted(self, art: Path):
        for name in ["c.md", "a.md", "b/z.md"]:
            write_doc(art, name, "")
        assert [rel for _, rel in iter_documents(art)] == ["a.md", "c.md", "b/z.md"]
