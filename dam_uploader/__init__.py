"""
dam_uploader - publish local asset folders into a DAM through its Assets HTTP API.

A bulk tree upload is tried first. Directories the tree uploader refuses
as too large are split breadth-first, and their files fall back to
concurrency-bounded per-file batches.

Usage:
    from dam_uploader import (
        AssetsAPIClient, DirectoryUploadOrchestrator, FileSystemTreeUploader,
        FlatBatchUploader, UploadOptions,
    )

    async with AssetsAPIClient(headers) as client:
        orchestrator = DirectoryUploadOrchestrator(
            FileSystemTreeUploader(client),
            FlatBatchUploader(client),
        )
        options = UploadOptions(url=url_prefix, root_dir=asset_dir, headers=headers)
        outcome = await orchestrator.upload(options, url_prefix, headers, asset_dir, asset_dir)

    if not outcome.ok:
        for error in outcome.errors:
            print(error.type, error.path, error.message)
"""
__version__ = "0.1.0"

from .errors import AuthenticationError, FolderCreationError, TooLargeError, as_too_large, is_too_large
from .models import (
    BatchResult,
    ErrorKind,
    ErrorRecord,
    FallbackRun,
    FileUploadResult,
    TreeUploadResult,
    UploadConfig,
    UploadOptions,
    UploadOutcome,
    UploadStatus,
)
from .orchestrator import (
    DirectoryUploadOrchestrator,
    FlatBatchUploader,
    upload_dir_with_split_and_fallback,
    upload_flat_dir_in_batches,
)
from .services import AssetsAPIClient, FileSystemTreeUploader

__all__ = [
    # Main
    "DirectoryUploadOrchestrator",
    "upload_dir_with_split_and_fallback",
    "FlatBatchUploader",
    "upload_flat_dir_in_batches",
    # Errors
    "TooLargeError",
    "AuthenticationError",
    "FolderCreationError",
    "is_too_large",
    "as_too_large",
    # Models
    "BatchResult",
    "ErrorKind",
    "ErrorRecord",
    "FallbackRun",
    "FileUploadResult",
    "TreeUploadResult",
    "UploadConfig",
    "UploadOptions",
    "UploadOutcome",
    "UploadStatus",
    # Services
    "AssetsAPIClient",
    "FileSystemTreeUploader",
]
