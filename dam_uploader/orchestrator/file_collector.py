"""File collection utilities for directory uploads.

Symlinks are never followed; a link back to an ancestor is not a subdirectory.
"""
from pathlib import Path
from typing import List


def _is_real_dir(entry: Path) -> bool:
    return entry.is_dir() and not entry.is_symlink()


def _is_real_file(entry: Path) -> bool:
    return entry.is_file() and not entry.is_symlink()


def list_immediate_subdirs(directory: Path) -> List[Path]:
    """
    List direct subdirectories of a directory, skipping symlinks.

    Raises:
        OSError: if the directory cannot be read
    """
    return sorted(entry for entry in Path(directory).iterdir() if _is_real_dir(entry))


def list_immediate_files(directory: Path) -> List[Path]:
    """List regular files directly inside a directory (non-recursive, no symlinks)."""
    return sorted(entry for entry in Path(directory).iterdir() if _is_real_file(entry))


class FileCollector:
    """Collects asset files from folders."""

    @staticmethod
    def collect_files(folder: Path) -> List[Path]:
        """
        Collect all regular files recursively.

        Args:
            folder: Root folder to scan

        Returns:
            Sorted list of file paths
        """
        files = list_immediate_files(folder)
        for subdir in list_immediate_subdirs(folder):
            files.extend(FileCollector.collect_files(subdir))
        return sorted(files)
