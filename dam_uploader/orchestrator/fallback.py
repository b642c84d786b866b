"""Flat-batch fallback: uploads one directory's own files in bounded batches."""
import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional

from ..errors import AuthenticationError
from ..models import BatchResult, FileUploadResult
from ..protocols import IAssetClient
from ..utils.urls import join_url, relative_posix
from .file_collector import list_immediate_files
from .parallel import gather_bounded

logger = logging.getLogger(__name__)


def plan_batches(files: List[Path], max_files_per_batch: int) -> List[List[Path]]:
    """Partition files into ordered chunks of at most ``max_files_per_batch``."""
    size = max(max_files_per_batch, 1)
    return [files[i:i + size] for i in range(0, len(files), size)]


class FlatBatchUploader:
    """
    Uploads every regular file directly inside a directory (non-recursive).

    Used when the tree uploader refuses a directory as too large. Files keep
    their position relative to the asset root in the destination.
    """

    def __init__(self, client: IAssetClient):
        self._client = client

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
        """
        Upload ``local_dir``'s files in batches.

        Returns:
            One BatchResult per batch, or None when there are no files.

        Raises:
            OSError: if ``local_dir`` cannot be listed
            AuthenticationError: if the platform rejects the credentials
            FolderCreationError: if the destination folder cannot be created
        """
        local_dir = Path(local_dir)
        files = await asyncio.to_thread(list_immediate_files, local_dir)
        if not files:
            return None

        rel_dir = relative_posix(local_dir, root_dir)
        if rel_dir:
            logger.info(f"Ensuring folder exists: {rel_dir}")
            await self._client.ensure_folder(url_prefix, rel_dir, headers)
        folder_url = join_url(url_prefix, rel_dir)

        batches = plan_batches(files, max_files_per_batch)
        logger.info(
            f"Uploading {len(files)} file(s) from {rel_dir or '/'} in {len(batches)} batch(es), "
            f"{max_concurrent} concurrent"
        )

        results: List[BatchResult] = []
        for batch_number, batch in enumerate(batches, 1):
            logger.info(f"Batch {batch_number}/{len(batches)}: uploading {len(batch)} file(s)")
            file_results = await gather_bounded(
                [self._upload_factory(file_path, folder_url, headers, replace) for file_path in batch],
                max_concurrent,
            )
            batch_result = BatchResult(batch_number=batch_number, files=list(batch), results=file_results)

            if batch_result.failed:
                logger.warning(
                    f"Batch {batch_number}/{len(batches)} complete: "
                    f"{batch_result.uploaded} successful, {batch_result.failed} failed"
                )
            else:
                logger.info(f"Batch {batch_number}/{len(batches)} complete: {batch_result.uploaded} successful")
            results.append(batch_result)

        return results

    def _upload_factory(self, file_path: Path, folder_url: str, headers, replace: bool):
        async def run() -> FileUploadResult:
            return await self._upload_one(file_path, folder_url, headers, replace)
        return run

    async def _upload_one(self, file_path: Path, folder_url: str, headers, replace: bool) -> FileUploadResult:
        try:
            result = await self._client.upload_file(file_path, folder_url, headers, replace)
        except AuthenticationError:
            raise
        except Exception as e:
            error_msg = str(e) or type(e).__name__
            logger.error(f"Error uploading {file_path.name}: {error_msg}")
            return FileUploadResult.fail(file_path, folder_url, error_msg)

        if not result.success:
            logger.error(f"Failed: {file_path.name} - {result.error or result.status.value}")
        else:
            logger.debug(f"Uploaded: {file_path.name}")
        return result


async def upload_flat_dir_in_batches(
    local_dir: Path,
    root_dir: Path,
    url_prefix: str,
    headers: Optional[Dict[str, str]] = None,
    replace: bool = True,
    max_concurrent: int = 5,
    max_files_per_batch: int = 200,
    client: Optional[IAssetClient] = None,
) -> Optional[List[BatchResult]]:
    """Convenience wrapper; opens its own AssetsAPIClient when none is given."""
    if client is not None:
        return await FlatBatchUploader(client).upload_flat_dir_in_batches(
            local_dir, root_dir, url_prefix, headers, replace, max_concurrent, max_files_per_batch
        )

    from ..services.api_client import AssetsAPIClient

    async with AssetsAPIClient(headers) as api_client:
        return await FlatBatchUploader(api_client).upload_flat_dir_in_batches(
            local_dir, root_dir, url_prefix, headers, replace, max_concurrent, max_files_per_batch
        )
