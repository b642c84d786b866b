"""
Tree upload service - uploads a whole directory tree in one call.

Walks the tree first and refuses it with a TooLargeError when it exceeds
the configured file-count or byte ceiling, before anything is sent.
"""
import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from ..errors import TooLargeError
from ..models import FileUploadResult, TreeUploadResult, UploadOptions
from ..orchestrator.file_collector import FileCollector
from ..orchestrator.parallel import gather_bounded
from ..protocols import IAssetClient
from ..utils.urls import join_url, relative_posix

logger = logging.getLogger(__name__)


def _total_size(files: List[Path]) -> int:
    return sum(f.stat().st_size for f in files)


class FileSystemTreeUploader:
    """
    Uploads directories with all descendants, preserving structure
    relative to ``options.root_dir``.

    Implements ITreeUploader protocol.
    """

    def __init__(self, client: IAssetClient):
        self._client = client

    async def upload(self, options: UploadOptions, paths: Sequence[Path]) -> TreeUploadResult:
        if len(paths) != 1:
            raise ValueError("FileSystemTreeUploader uploads exactly one directory per call")
        directory = Path(paths[0])
        if not directory.is_dir():
            raise NotADirectoryError(f"Not a directory: {directory}")

        # walking and stat-ing a large tree blocks; keep it off the event loop
        files = await asyncio.to_thread(FileCollector.collect_files, directory)
        total_bytes = None
        if options.max_upload_bytes is not None:
            total_bytes = await asyncio.to_thread(_total_size, files)
        self._check_limits(directory, files, total_bytes, options)

        folders = sorted({relative_posix(f.parent, options.root_dir) for f in files} - {""})
        for folder in folders:
            await self._client.ensure_folder(options.url, folder, options.headers)

        logger.info(f"Uploading {len(files)} file(s) from {directory}")
        results: List[FileUploadResult] = await gather_bounded(
            [self._upload_factory(f, options) for f in files],
            options.get_max_concurrent(),
        )

        result = TreeUploadResult(directory=directory, results=results)
        logger.info(f"Tree upload complete for {directory}: {result.uploaded} uploaded, {result.failed} failed")
        return result

    @staticmethod
    def _check_limits(directory: Path, files: List[Path], total_bytes: Optional[int], options: UploadOptions) -> None:
        if len(files) > options.max_upload_files:
            raise TooLargeError(
                f"Walked directory exceeded the maximum number of files allowed "
                f"({options.max_upload_files}). Found {len(files)} files.",
                path=directory,
            )
        if total_bytes is not None and options.max_upload_bytes is not None:
            if total_bytes > options.max_upload_bytes:
                raise TooLargeError(
                    f"Total size of walked directory ({total_bytes} bytes) exceeded maximum "
                    f"allowed ({options.max_upload_bytes} bytes).",
                    path=directory,
                )

    def _upload_factory(self, file_path: Path, options: UploadOptions):
        folder_url = join_url(options.url, relative_posix(file_path.parent, options.root_dir))

        async def run() -> FileUploadResult:
            result = await self._client.upload_file(file_path, folder_url, options.headers, options.replace)
            if not result.success:
                logger.error(f"Failed to upload asset: {file_path.name}. {result.error or result.status.value}")
            else:
                logger.debug(f"Uploaded asset: {file_path.name}")
            return result
        return run
