"""Core operations for ligi.

This module holds the logic behind each CLI command. Functions take explicit
paths and return pydantic reports; the CLI only parses arguments and renders
results.

Failure policy:
- Unreadable documents during a walk are logged and skipped
- Failing to write the local index is fatal
- Failing to update the global index is logged as a warning
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from .config import ConfigurationError, get_art_path, get_global_root, load_index_settings
from .errors import (
    FilesystemError,
    GlobalIndexUnavailableError,
    LigiError,
    NoTagSpecifiedError,
    TagNotFoundError,
)
from .indexer.files import write_text_atomic
from .indexer.global_store import GlobalIndexStore, owner_prefix
from .indexer.local_store import IndexStore
from .indexer.prune import prune_global, prune_local, prune_repo_registry
from .indexer.registry import (
    canonicalize,
    check_repo,
    live_repos,
    load_registry,
    save_registry,
)
from .indexer.registry import register_repo as _register_repo
from .indexer.staleness import is_stale
from .indexer.tag_map import TagMap, collect_tags, update_for_file
from .models import (
    GlobalRebuildStats,
    IndexReport,
    IndexSettings,
    PruneReport,
    QueryResult,
    RepoCheck,
)
from .parser.tags import insert_tags, require_valid_tag
from .query import evaluate, tag_tokens, tokenize

log = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Path helpers
# ─────────────────────────────────────────────────────────────────────────────


def resolve_repo_root(repo_root: Path | str | None = None) -> Path:
    """Absolute repository root, defaulting to the current directory."""
    return Path(canonicalize(repo_root if repo_root is not None else Path.cwd()))


def require_art_dir(repo_root: Path) -> Path:
    """Return ``<repo_root>/art``.

    Raises:
        FilesystemError: If the directory does not exist.
    """
    art = get_art_path(repo_root)
    if not art.is_dir():
        raise FilesystemError(art, "art directory not found")
    return art


def resolve_document(repo_root: Path, art: Path, file: Path | str) -> Path:
    """Locate ``file`` and check that it is a document under ``art``.

    Relative paths are tried against the repo root first, then the current
    directory.

    Raises:
        FilesystemError: If the file is missing or outside ``art``.
    """
    candidate = Path(file).expanduser()
    if not candidate.is_absolute():
        from_repo = repo_root / candidate
        from_cwd = Path.cwd() / candidate
        candidate = from_cwd if not from_repo.exists() and from_cwd.exists() else from_repo

    path = candidate.resolve()
    art_resolved = art.resolve()
    if art_resolved != path and art_resolved not in path.parents:
        raise FilesystemError(path, f"file must be inside {art_resolved}")
    if not path.is_file():
        raise FilesystemError(path, "file not found")
    return path


# ─────────────────────────────────────────────────────────────────────────────
# Indexing
# ─────────────────────────────────────────────────────────────────────────────


def insert_tags_into_file(path: Path, tags: Iterable[str]) -> int:
    """Add ``[[t/tag]]`` markers for tags the document does not carry yet.

    All tags are validated before the file is touched.

    Returns:
        Number of tags added.

    Raises:
        InvalidTagNameError: If any tag is invalid.
        FilesystemError: If the file cannot be read or written.
    """
    tags = [require_valid_tag(tag) for tag in tags]
    try:
        with open(path, encoding="utf-8", newline="") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise FilesystemError(path, e) from e

    new_content, added = insert_tags(content, tags)
    if added:
        write_text_atomic(path, new_content)
        log.debug("Added %d tag(s) to %s", added, path)
    return added


def write_global_index(
    tag_map: TagMap,
    repo_root: Path,
    global_root: Path | None = None,
) -> str | None:
    """Merge ``repo_root``'s entries into the global index and register it.

    Never raises; a failure is logged and returned as a warning message.

    Returns:
        None on success, else the warning text.
    """
    root = global_root or get_global_root()
    try:
        GlobalIndexStore(root).write(tag_map, repo_root)
        _register_repo(repo_root, root)
    except (LigiError, OSError) as e:
        warning = GlobalIndexUnavailableError(e).message
        log.warning("%s", warning)
        return warning
    return None


def _scan_repo(art: Path, settings: IndexSettings) -> TagMap:
    return collect_tags(
        art,
        follow_symlinks=settings.follow_symlinks,
        ignore_patterns=settings.ignore_patterns,
    )


def index_repo(
    repo_root: Path | str | None = None,
    file: Path | str | None = None,
    tags: Sequence[str] | None = None,
    update_global: bool = True,
    global_root: Path | None = None,
) -> IndexReport:
    """Index one repository's documents.

    With ``file``, only that document is rescanned and merged into the
    existing local index; ``tags`` are first inserted into it. Without it,
    or when there is no local index yet, the whole document root is
    rescanned.

    Tag links are filled before the index is written so that the index is
    never older than the documents it describes.

    Raises:
        LigiError: ``tags`` without ``file``.
        FilesystemError: Missing art directory or file, or local write failure.
        InvalidTagNameError: If any of ``tags`` is invalid.
        ConfigurationError: If ``art/config/ligi.yaml`` is malformed.
    """
    if tags and file is None:
        raise LigiError.usage("index: --tags requires --file")

    repo = resolve_repo_root(repo_root)
    art = require_art_dir(repo)
    settings = load_index_settings(art)
    store = IndexStore(art)

    tags_added = 0
    rel_path: str | None = None
    if file is not None:
        doc = resolve_document(repo, art, file)
        rel_path = doc.relative_to(art.resolve()).as_posix()
        if tags:
            tags_added = insert_tags_into_file(doc, tags)

    links_filled = store.fill_tag_links(
        file=rel_path,
        follow_symlinks=settings.follow_symlinks,
        ignore_patterns=settings.ignore_patterns,
    )

    if rel_path is not None and store.master_path.exists():
        tag_map = update_for_file(store.load_full_map(), art, rel_path)
    else:
        tag_map = _scan_repo(art, settings)

    local = store.write(tag_map)

    warnings: list[str] = []
    global_updated = False
    if update_global:
        warning = write_global_index(tag_map, repo, global_root)
        if warning:
            warnings.append(warning)
        else:
            global_updated = True

    log.debug("Indexed %d tags in %s", len(tag_map), art)
    return IndexReport(
        art_path=str(art),
        files_indexed=tag_map.file_count(),
        tags_found=len(tag_map),
        tags_added=tags_added,
        links_filled=links_filled,
        local=local,
        global_updated=global_updated,
        warnings=warnings,
    )


def rebuild_global_index(
    global_root: Path | None = None,
    fill_local: bool = True,
) -> GlobalRebuildStats:
    """Rescan every live registered repository into the global index.

    When ``fill_local`` is set, each repository's local index is rewritten
    too. Entries from repositories that are no longer live are pruned.
    """
    root = global_root or get_global_root()
    registry = load_registry(root)
    stats = GlobalRebuildStats()
    store = GlobalIndexStore(root)

    repos = live_repos(registry)
    for repo in repos:
        art = get_art_path(repo)
        try:
            settings = load_index_settings(art)
        except ConfigurationError as e:
            log.warning("Skipping %s: %s", repo, e)
            continue

        tag_map = _scan_repo(art, settings)
        if fill_local:
            IndexStore(art).write(tag_map)
        store.write(tag_map, Path(repo))

        stats.repos_processed += 1
        stats.files_indexed += tag_map.file_count()

    prune_global(root, repos)
    stats.tags_written = len(store.list_tags())
    log.debug(
        "Rebuilt global index from %d repositories (%d tags)",
        stats.repos_processed,
        stats.tags_written,
    )
    return stats


# ─────────────────────────────────────────────────────────────────────────────
# Querying
# ─────────────────────────────────────────────────────────────────────────────


def query_tags(
    tokens: Sequence[str],
    repo_root: Path | str | None = None,
    search_global: bool = False,
    auto_index: bool = True,
    absolute: bool = False,
    global_root: Path | None = None,
) -> QueryResult:
    """Evaluate a tag expression.

    Single-repo queries read the repository's local index, reindexing it
    first when stale and ``auto_index`` is set. Global queries read every
    live registered repository's local index and return absolute paths.

    Raises:
        NoTagSpecifiedError: If there is no tag among ``tokens``.
        InvalidTagNameError: If a tag token is invalid.
        FilesystemError: If the repository has no art directory.
        GlobalIndexUnavailableError: Global query with no usable repository.
    """
    tokens = tokenize(tokens)
    tags = tag_tokens(tokens)
    if not tags:
        raise NoTagSpecifiedError()

    if search_global:
        root = global_root or get_global_root()
        repos = live_repos(load_registry(root))
        if not repos:
            raise GlobalIndexUnavailableError("no repositories registered")
        stores = [(IndexStore(get_art_path(repo)), owner_prefix(repo)) for repo in repos]

        def lookup(tag: str) -> list[str]:
            found: list[str] = []
            for store, prefix in stores:
                try:
                    paths = store.read_tag(tag)
                except TagNotFoundError:
                    continue
                found.extend(prefix + path for path in paths)
            return found

        results = evaluate(tokens, lookup)
        return QueryResult(tag=tags[0], tokens=tokens, results=results)

    repo = resolve_repo_root(repo_root)
    art = require_art_dir(repo)
    store = IndexStore(art)

    reindexed = False
    if auto_index:
        settings = load_index_settings(art)
        if is_stale(art, settings.follow_symlinks, settings.ignore_patterns):
            log.info("Index for %s is stale; reindexing", art)
            tag_map = _scan_repo(art, settings)
            store.write(tag_map)
            write_global_index(tag_map, repo, global_root)
            reindexed = True

    results = evaluate(tokens, store.read_tag)
    if absolute:
        prefix = art.as_posix().rstrip("/") + "/"
        results = [prefix + path for path in results]
    return QueryResult(tag=tags[0], tokens=tokens, results=results, reindexed=reindexed)


# ─────────────────────────────────────────────────────────────────────────────
# Maintenance
# ─────────────────────────────────────────────────────────────────────────────


def prune(
    repo_root: Path | str | None = None,
    include_global: bool = False,
    global_root: Path | None = None,
) -> PruneReport:
    """Repair the local index and, optionally, the registry and global index.

    With ``include_global`` a missing local art directory is skipped rather
    than treated as an error.

    Raises:
        FilesystemError: No art directory and ``include_global`` not set.
    """
    report = PruneReport()

    repo = resolve_repo_root(repo_root)
    art = get_art_path(repo)
    if art.is_dir():
        report.local = prune_local(art)
    elif not include_global:
        raise FilesystemError(art, "art directory not found")

    if include_global:
        root = global_root or get_global_root()
        registry = load_registry(root)
        report.repos_pruned = prune_repo_registry(registry)
        if report.repos_pruned:
            save_registry(registry, root)
        report.global_index = prune_global(root, registry.repos)

    return report


def check_repos(global_root: Path | None = None) -> list[RepoCheck]:
    """Report the status of every registered repository, in registry order."""
    registry = load_registry(global_root or get_global_root())
    return [check_repo(repo) for repo in registry.repos]


def register_repo(repo_root: Path | str, global_root: Path | None = None) -> bool:
    """Register ``repo_root`` in the global registry. True if newly added."""
    return _register_repo(repo_root, global_root or get_global_root())
