"""Services for dam_uploader."""
from .api_client import AssetsAPIClient
from .tree_upload import FileSystemTreeUploader

__all__ = [
    "AssetsAPIClient",
    "FileSystemTreeUploader",
]
