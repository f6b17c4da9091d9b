"""Tests for index staleness detection."""

from __future__ import annotations

import time
from pathlib import Path

from conftest import set_mtime, write_doc
from ligi.indexer import IndexStore, collect_tags, is_stale


def _build(art: Path) -> Path:
    IndexStore(art).write(collect_tags(art))
    return art / "index" / "ligi_tags.md"


class TestIsStale:
    def test_missing_index_is_stale(self, art: Path):
        write_doc(art, "a.md", "[[t/x]]")
        assert is_stale(art)

    def test_fresh_after_write(self, art: Path):
        doc = write_doc(art, "a.md", "[[t/x]]")
        master = _build(art)
        now = time.time()
        set_mtime(doc, now - 100)
        set_mtime(master, now)

        assert not is_stale(art)

    def test_newer_document_is_stale(self, art: Path):
        doc = write_doc(art, "a.md", "[[t/x]]")
        master = _build(art)
        now = time.time()
        set_mtime(master, now - 100)
        set_mtime(doc, now)

        assert is_stale(art)

    def test_index_files_do_not_count(self, art: Path):
        write_doc(art, "a.md", "[[t/x]]")
        master = _build(art)
        now = time.time()
        set_mtime(master, now - 100)
        set_mtime(art / "a.md", now - 200)
        set_mtime(art / "index" / "tags" / "x.md", now)

        assert not is_stale(art)

    def test_ignored_documents_do_not_count(self, art: Path):
        write_doc(art, "a.md", "[[t/x]]")
        master = _build(art)
        draft = write_doc(art, "drafts/d.md", "draft")
        now = time.time()
        set_mtime(art / "a.md", now - 200)
        set_mtime(master, now - 100)
        set_mtime(draft, now)

        assert is_stale(art)
        assert not is_stale(art, ignore_patterns=["drafts/*"])
