"""
Protocols (Interfaces) for the upload collaborators.

The orchestrator only depends on these shapes, so the bulk tree uploader
and the per-file HTTP primitive can be swapped or faked.
"""
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

from .models import BatchResult, FileUploadResult


@runtime_checkable
class ITreeUploader(Protocol):
    """Uploads whole directory trees; fails with a "too large" signal past its limits."""

    async def upload(self, options: Any, paths: Sequence[Path]) -> Any:
        """Upload the given directories (and descendants)."""
        ...


@runtime_checkable
class IAssetClient(Protocol):
    """Single-file HTTP upload primitive."""

    async def ensure_folder(
        self,
        url_prefix: str,
        relative_folder: str,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Create a destination folder and its parents."""
        ...

    async def upload_file(
        self,
        file_path: Path,
        folder_url: str,
        headers: Optional[Mapping[str, str]] = None,
        replace: bool = True,
    ) -> FileUploadResult:
        """Upload one file into a destination folder."""
        ...


@runtime_checkable
class IFlatUploader(Protocol):
    """Uploads the direct files of one directory in bounded batches."""

    async def upload_flat_dir_in_batches(
        self,
        local_dir: Path,
        root_dir: Path,
        url_prefix: str,
        headers: Optional[Dict[str, str]] = None,
        replace: bool = True,
        max_concurrent: int = 5,
        max_files_per_batch: int = 200,
    ) -> Optional[List[BatchResult]]:
        ...
