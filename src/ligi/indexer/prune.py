"""Consistency repair for the local and global indexes.

Pruning removes entries for documents that no longer exist, tags left with
no documents, and master list entries whose per-tag file is missing. Every
pass is idempotent: running it twice changes nothing the second time.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from pathlib import Path

from ..errors import FilesystemError, InvalidTagNameError, TagNotFoundError
from ..models import PruneResult, RepoRegistry
from .files import render_per_tag_index, render_tag_index, write_text_atomic
from .global_store import GlobalIndexStore, owner_prefix
from .local_store import BaseIndexStore, IndexStore
from .registry import is_live

log = logging.getLogger(__name__)


def prune_repo_registry(registry: RepoRegistry) -> int:
    """Drop repos whose directory or ``art/`` is gone, in place.

    Returns:
        Number of repos removed.
    """
    survivors = [repo for repo in registry.repos if is_live(repo)]
    removed = len(registry.repos) - len(survivors)
    for repo in registry.repos:
        if repo not in survivors:
            log.info("Pruning unavailable repository %s", repo)
    registry.repos = survivors
    return removed


def _prune_store(store: BaseIndexStore, keep: Callable[[str], bool]) -> PruneResult:
    """Shared pass: filter every per-tag file through ``keep``."""
    result = PruneResult()
    kept_tags: list[str] = []

    listed = store.list_tags()
    for tag in listed:
        try:
            entries = store.read_tag(tag)
        except TagNotFoundError:
            log.info("Dropping tag %r: no index file", tag)
            result.pruned_tags += 1
            continue
        except InvalidTagNameError as e:
            log.warning("Dropping %s from %s", e, store.master_path)
            result.pruned_tags += 1
            continue
        except FilesystemError as e:
            log.warning("Could not read tag %r: %s", tag, e)
            kept_tags.append(tag)
            continue

        survivors = [entry for entry in entries if keep(entry)]
        dropped = len(entries) - len(survivors)
        result.pruned_entries += dropped

        if not survivors:
            store.remove_tag(tag)
            result.pruned_tags += 1
            continue

        kept_tags.append(tag)
        if dropped:
            try:
                write_text_atomic(store.tag_path(tag), render_per_tag_index(tag, sorted(set(survivors))))
            except FilesystemError as e:
                log.warning("Could not rewrite tag %r: %s", tag, e)

    if kept_tags != listed:
        try:
            write_text_atomic(store.master_path, render_tag_index(sorted(kept_tags)))
        except FilesystemError as e:
            log.warning("Could not rewrite %s: %s", store.master_path, e)

    return result


def prune_local(root: Path) -> PruneResult:
    """Remove local entries whose document no longer exists under ``root``."""
    store = IndexStore(root)
    result = _prune_store(store, lambda entry: (store.root / entry).is_file())
    log.debug(
        "Pruned %d entries and %d tags from %s",
        result.pruned_entries,
        result.pruned_tags,
        store.index_dir,
    )
    return result


def prune_global(global_root: Path, live_repo_roots: Iterable[str]) -> PruneResult:
    """Remove global entries for missing documents or unregistered repos.

    A line survives only if it is owned by one of ``live_repo_roots`` and
    the absolute document path still exists.
    """
    store = GlobalIndexStore(global_root)
    prefixes = tuple(owner_prefix(repo) for repo in live_repo_roots)

    def keep(entry: str) -> bool:
        return entry.startswith(prefixes) and Path(entry).is_file()

    result = _prune_store(store, keep)
    log.debug(
        "Pruned %d entries and %d tags from %s",
        result.pruned_entries,
        result.pruned_tags,
        store.index_dir,
    )
    return result
