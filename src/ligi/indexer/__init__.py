"""On-disk tag indexes: local per-repo index, global index and repo registry."""

from .global_store import GlobalIndexStore
from .local_store import IndexStore
from .prune import prune_global, prune_local, prune_repo_registry
from .registry import load_registry, register_repo, save_registry
from .staleness import is_stale
from .tag_map import TagMap, collect_tags, update_for_file

__all__ = [
    "TagMap",
    "collect_tags",
    "update_for_file",
    "IndexStore",
    "GlobalIndexStore",
    "is_stale",
    "prune_local",
    "prune_global",
    "prune_repo_registry",
    "load_registry",
    "save_registry",
    "register_repo",
]
