"""Pydantic models for the tag index engine."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from .config import DEFAULT_IGNORE_PATTERNS


class IndexSettings(BaseModel):
    """The ``index:`` section of ``art/config/ligi.yaml``."""

    ignore_patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS))
    follow_symlinks: bool = False


class InvalidReason(str, Enum):
    """Why a candidate tag name was rejected."""

    EMPTY = "empty"
    TOO_LONG = "too_long"
    PATH_TRAVERSAL = "path_traversal"
    INVALID_CHAR = "invalid_char"


class TagValidation(BaseModel):
    """Outcome of validating a tag name. ``reason`` is None when valid."""

    reason: InvalidReason | None = None
    char: str | None = None  # First offending character for INVALID_CHAR

    @property
    def valid(self) -> bool:
        return self.reason is None


class WriteResult(BaseModel):
    """Counts of index files touched by a store write."""

    created: int = 0
    updated: int = 0
    removed: int = 0  # Per-tag files deleted because no document carries the tag


class PruneResult(BaseModel):
    """Counts of entries removed by a prune pass."""

    pruned_entries: int = 0
    pruned_tags: int = 0


class PruneReport(BaseModel):
    """Aggregate result of ``ligi prune``."""

    local: PruneResult | None = None
    global_index: PruneResult | None = None
    repos_pruned: int = 0


class IndexReport(BaseModel):
    """Result of indexing one repository."""

    art_path: str
    files_indexed: int  # Sum of (tag, file) pairs
    tags_found: int
    tags_added: int = 0  # Tags inserted into --file via --tags
    links_filled: int = 0
    local: WriteResult
    global_updated: bool = False
    warnings: list[str] = Field(default_factory=list)


class GlobalRebuildStats(BaseModel):
    """Result of rebuilding the global index from every registered repo."""

    repos_processed: int = 0
    tags_written: int = 0
    files_indexed: int = 0


class QueryResult(BaseModel):
    """Result of a tag query."""

    tag: str  # First tag of the expression
    tokens: list[str]
    results: list[str] = Field(default_factory=list)
    reindexed: bool = False


class RepoCheck(BaseModel):
    """Status of one registered repository."""

    path: str
    status: Literal["OK", "BROKEN", "MISSING_ART"]


DEFAULT_REGISTRY_NOTES = "(Freeform, not parsed by ligi)"


class RepoRegistry(BaseModel):
    """Repositories known to the global index, in registration order."""

    repos: list[str] = Field(default_factory=list)
    notes: str = DEFAULT_REGISTRY_NOTES  # Preserved verbatim across rewrites

    def add_repo(self, repo: str) -> bool:
        """Append ``repo`` unless already present. Returns True if added."""
        if repo in self.repos:
            return False
        self.repos.append(repo)
        return True
