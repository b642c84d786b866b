"""Orchestrator package - coordinates directory upload workflows."""
from .core import DirectoryUploadOrchestrator, OutcomeBuilder, upload_dir_with_split_and_fallback
from .fallback import FlatBatchUploader, upload_flat_dir_in_batches

__all__ = [
    "DirectoryUploadOrchestrator",
    "OutcomeBuilder",
    "upload_dir_with_split_and_fallback",
    "FlatBatchUploader",
    "upload_flat_dir_in_batches",
]
