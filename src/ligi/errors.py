"""Typed errors for the ligi index engine.

Every error carries a machine-readable code plus a human message of the form
``<context>: <cause>``. The CLI renders these as ``error: <message>`` (or as
JSON with --json-errors) and exits with status 1.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any


class ErrorCode(str, Enum):
    """Stable error codes for programmatic consumers."""

    INVALID_TAG_NAME = "INVALID_TAG_NAME"
    TAG_NOT_FOUND = "TAG_NOT_FOUND"
    FILESYSTEM_ERROR = "FILESYSTEM_ERROR"
    GLOBAL_INDEX_UNAVAILABLE = "GLOBAL_INDEX_UNAVAILABLE"
    NO_TAG_SPECIFIED = "NO_TAG_SPECIFIED"
    CONFIG_ERROR = "CONFIG_ERROR"
    USAGE_ERROR = "USAGE_ERROR"


class LigiError(Exception):
    """Base class for errors surfaced to ligi callers."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.details:
            error["details"] = self.details
        return {"error": error}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    @classmethod
    def usage(cls, message: str) -> "LigiError":
        """Bad combination of arguments from the caller."""
        return cls(ErrorCode.USAGE_ERROR, message)


class InvalidTagNameError(LigiError):
    """A candidate tag failed validation."""

    def __init__(self, tag: str, reason: str, char: str | None = None) -> None:
        self.tag = tag
        self.reason = reason
        self.char = char
        if reason == "invalid_char":
            cause = f"invalid character {char!r} (allowed: A-Za-z0-9_-./)"
        elif reason == "too_long":
            cause = "tag name too long"
        elif reason == "path_traversal":
            cause = "path traversal in tag name"
        else:
            cause = "empty tag name"
        details: dict[str, Any] = {"tag": tag, "reason": reason}
        if char is not None:
            details["char"] = char
        super().__init__(ErrorCode.INVALID_TAG_NAME, f"tag {tag!r}: {cause}", details)


class TagNotFoundError(LigiError):
    """No per-tag index file exists. Queries treat this as an empty set."""

    def __init__(self, tag: str, path: Path | None = None) -> None:
        self.tag = tag
        self.path = path
        details: dict[str, Any] = {"tag": tag}
        if path is not None:
            details["path"] = str(path)
        super().__init__(ErrorCode.TAG_NOT_FOUND, f"tag {tag!r}: no index file", details)


class FilesystemError(LigiError):
    """An I/O operation on an index or source file failed."""

    def __init__(self, path: Path | str, cause: BaseException | str) -> None:
        self.path = Path(path)
        self.cause = cause
        reason = cause.strerror if isinstance(cause, OSError) and cause.strerror else str(cause)
        super().__init__(
            ErrorCode.FILESYSTEM_ERROR,
            f"{path}: {reason}",
            {"path": str(path)},
        )


class GlobalIndexUnavailableError(LigiError):
    """The global store could not be updated. Callers log this as a warning."""

    def __init__(self, cause: BaseException | str) -> None:
        self.cause = cause
        super().__init__(
            ErrorCode.GLOBAL_INDEX_UNAVAILABLE,
            f"global index unavailable: {cause}",
        )


class NoTagSpecifiedError(LigiError):
    """A query was issued without any tag token."""

    def __init__(self) -> None:
        super().__init__(ErrorCode.NO_TAG_SPECIFIED, "query: no tag specified")
