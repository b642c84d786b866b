"""
Models for dam_uploader.

Result records flow upward from the upload collaborators and are merged
by the orchestrator into a single UploadOutcome.
"""
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple


DEFAULT_TOO_LARGE_PATTERNS: Tuple[str, ...] = (
    "exceeded maximum",
    "Walked directory exceeded",
)
DEFAULT_MAX_UPLOAD_FILES = 1000


class ErrorKind(Enum):
    """Where in the orchestration a failure was recorded."""
    LIST_SUBDIRS = "list-subdirs"
    FALLBACK_PARENT_FILES = "fallback-parent-files"
    FALLBACK_FLATDIR = "fallback-flatdir"
    FILESYSTEM_UPLOAD = "filesystem-upload"


@dataclass(frozen=True)
class ErrorRecord:
    """One isolated per-directory failure. Collected, never raised."""
    kind: ErrorKind
    path: Path
    message: str

    @property
    def type(self) -> str:
        return self.kind.value

    @classmethod
    def from_exception(cls, kind: ErrorKind, path: Path, error: BaseException) -> "ErrorRecord":
        message = str(error) or type(error).__name__
        return cls(kind=kind, path=Path(path), message=message)


class UploadStatus(Enum):
    """Per-file upload status."""
    SUCCESS = "success"
    REPLACED = "replaced"  # existed and was overwritten
    SKIPPED = "skipped"    # existed and replace was off
    FAILED = "failed"


@dataclass(frozen=True)
class FileUploadResult:
    """Immutable result of a single file upload."""
    file_path: Path
    dest_url: str
    status: UploadStatus = UploadStatus.SUCCESS
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status in (UploadStatus.SUCCESS, UploadStatus.REPLACED)

    @classmethod
    def ok(cls, file_path: Path, dest_url: str, status_code: Optional[int] = None):
        return cls(file_path=file_path, dest_url=dest_url, status=UploadStatus.SUCCESS, status_code=status_code)

    @classmethod
    def replaced(cls, file_path: Path, dest_url: str, status_code: Optional[int] = None):
        return cls(file_path=file_path, dest_url=dest_url, status=UploadStatus.REPLACED, status_code=status_code)

    @classmethod
    def skipped(cls, file_path: Path, dest_url: str, status_code: Optional[int] = None):
        return cls(
            file_path=file_path,
            dest_url=dest_url,
            status=UploadStatus.SKIPPED,
            status_code=status_code,
            error="Asset already exists",
        )

    @classmethod
    def fail(cls, file_path: Path, dest_url: str, error: str, status_code: Optional[int] = None):
        return cls(
            file_path=file_path,
            dest_url=dest_url,
            status=UploadStatus.FAILED,
            status_code=status_code,
            error=error,
        )


def _count(results: List[FileUploadResult], *statuses: UploadStatus) -> int:
    return sum(1 for r in results if r.status in statuses)


@dataclass
class BatchResult:
    """Result of one fixed-size batch of the flat fallback."""
    batch_number: int
    files: List[Path]
    results: List[FileUploadResult] = field(default_factory=list)

    @property
    def files_in_batch(self) -> int:
        return len(self.files)

    @property
    def uploaded(self) -> int:
        return _count(self.results, UploadStatus.SUCCESS, UploadStatus.REPLACED)

    @property
    def failed(self) -> int:
        return _count(self.results, UploadStatus.FAILED)

    @property
    def skipped(self) -> int:
        return _count(self.results, UploadStatus.SKIPPED)


@dataclass
class TreeUploadResult:
    """Result of a whole-tree upload of one directory."""
    directory: Path
    results: List[FileUploadResult] = field(default_factory=list)

    @property
    def uploaded(self) -> int:
        return _count(self.results, UploadStatus.SUCCESS, UploadStatus.REPLACED)

    @property
    def failed(self) -> int:
        return _count(self.results, UploadStatus.FAILED)


@dataclass
class FallbackRun:
    """Batches produced by the flat fallback for one directory.

    ``leaf`` is True for a flat oversized directory (whole content), False
    for a split directory whose own files were uploaded before its children.
    """
    directory: Path
    batches: List[BatchResult] = field(default_factory=list)
    leaf: bool = False


@dataclass
class UploadOutcome:
    """Consolidated result of a split-and-fallback directory upload."""
    tree_upload_results: List[object] = field(default_factory=list)
    fallback_runs: List[FallbackRun] = field(default_factory=list)
    errors: List[ErrorRecord] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return len(self.errors) == 0

    @property
    def batch_upload_results(self) -> List[BatchResult]:
        return [batch for run in self.fallback_runs for batch in run.batches]

    @property
    def files_uploaded(self) -> int:
        return self._sum("uploaded")

    @property
    def files_failed(self) -> int:
        return self._sum("failed")

    def _sum(self, attr: str) -> int:
        # tree results are opaque; count only what exposes the counter
        total = 0
        for item in [*self.tree_upload_results, *self.batch_upload_results]:
            value = getattr(item, attr, None)
            if isinstance(value, int):
                total += value
        return total


@dataclass(frozen=True)
class UploadConfig:
    """Immutable configuration for the split-and-fallback orchestrator."""
    default_max_concurrent: int = 5
    max_files_per_batch: int = 200
    replace: bool = True
    too_large_patterns: Tuple[str, ...] = DEFAULT_TOO_LARGE_PATTERNS


def _default_max_upload_files() -> int:
    value = os.getenv("MAX_UPLOAD_FILES")
    if value:
        try:
            return int(value)
        except ValueError:
            pass
    return DEFAULT_MAX_UPLOAD_FILES


@dataclass(frozen=True)
class UploadOptions:
    """Options handed to the tree uploader for every directory attempt."""
    url: str
    root_dir: Path
    headers: Dict[str, str] = field(default_factory=dict)
    max_concurrent: int = 10
    replace: bool = True
    max_upload_files: int = field(default_factory=_default_max_upload_files)
    max_upload_bytes: Optional[int] = None

    def get_max_concurrent(self) -> int:
        return self.max_concurrent
