"""Error types and the "too large" classifier for tree-upload failures.

The tree uploader does not expose a typed size error. It signals an
oversized tree either with ``code == "TOO_LARGE"`` or with one of a few
message phrases, so classification is by substring. Those phrases are
undocumented and may change; they are configurable through
``UploadConfig.too_large_patterns``. Everything downstream of
``as_too_large`` matches on ``TooLargeError`` only.
"""
from pathlib import Path
from typing import Iterable, Optional

from .models import DEFAULT_TOO_LARGE_PATTERNS

TOO_LARGE_CODE = "TOO_LARGE"


class TooLargeError(Exception):
    """A directory exceeds the tree uploader's walk/enqueue limits."""

    code = TOO_LARGE_CODE

    def __init__(self, message: str, path: Optional[Path] = None, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.path = path
        self.cause = cause


class AuthenticationError(RuntimeError):
    """The platform rejected the credentials (HTTP 401/403)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class FolderCreationError(RuntimeError):
    """A destination folder could not be created."""


def is_too_large(error: Optional[BaseException], patterns: Iterable[str] = DEFAULT_TOO_LARGE_PATTERNS) -> bool:
    """Return True if ``error`` is a tree-uploader size failure."""
    if error is None:
        return False
    if isinstance(error, TooLargeError):
        return True
    if getattr(error, "code", None) == TOO_LARGE_CODE:
        return True
    message = str(getattr(error, "message", None) or error)
    return any(pattern in message for pattern in patterns)


def as_too_large(
    error: Optional[BaseException],
    patterns: Iterable[str] = DEFAULT_TOO_LARGE_PATTERNS,
    path: Optional[Path] = None,
) -> Optional[TooLargeError]:
    """Translate a collaborator error into a TooLargeError, or None."""
    if not is_too_large(error, patterns):
        return None
    if isinstance(error, TooLargeError):
        return error
    return TooLargeError(str(error) or "Exceeded tree upload limits", path=path, cause=error)
