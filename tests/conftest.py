"""Shared fakes for dam_uploader tests."""
from pathlib import Path

import pytest

from dam_uploader.models import FileUploadResult


class RecordingAssetClient:
    """In-memory IAssetClient that records folders and uploads."""

    def __init__(self):
        self.folders = []
        self.uploaded = []

    async def ensure_folder(self, url_prefix, relative_folder, headers=None):
        self.folders.append((url_prefix, relative_folder))

    async def upload_file(self, file_path, folder_url, headers=None, replace=True):
        file_path = Path(file_path)
        self.uploaded.append((file_path, folder_url))
        return FileUploadResult.ok(file_path, f"{folder_url}/{file_path.name}", 201)


@pytest.fixture
def asset_client():
    return RecordingAssetClient()


def make_tree(root: Path, layout: dict) -> None:
    """Create files and folders from a nested dict: {"dir": {...}, "file.txt": "content"}."""
    root.mkdir(parents=True, exist_ok=True)
    for name, value in layout.items():
        path = root / name
        if isinstance(value, dict):
            make_tree(path, value)
        else:
            path.write_text(value)


@pytest.fixture
def tree():
    return make_tree
