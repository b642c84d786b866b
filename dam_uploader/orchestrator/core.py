"""Core orchestrator - adaptive split-and-fallback directory upload."""
import logging
import sys
from collections import deque
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Deque, Dict, List, Optional

from ..errors import as_too_large
from ..models import ErrorKind, ErrorRecord, FallbackRun, UploadConfig, UploadOutcome
from ..protocols import IFlatUploader, ITreeUploader
from ..utils.urls import relative_posix
from .file_collector import list_immediate_subdirs
from .parallel import get_max_concurrent

logger = logging.getLogger(__name__)

OnError = Callable[[BaseException, ErrorRecord], None]


class WorkState(Enum):
    """Terminal state of a dequeued directory."""
    DONE = "done"
    SPLITTING = "splitting"
    FLAT_FALLBACK = "flat-fallback"
    FAILED = "failed"


def default_on_error(error: BaseException, record: ErrorRecord) -> None:
    print(f"Upload error ({record.type}) for {record.path}: {record.message}", file=sys.stderr)


class OutcomeBuilder:
    """Append-only accumulator owned by the orchestrator loop."""

    def __init__(self, on_error: OnError):
        self._on_error = on_error
        self._tree_results: List[Any] = []
        self._fallback_runs: List[FallbackRun] = []
        self._errors: List[ErrorRecord] = []

    def add_tree_result(self, result: Any) -> None:
        self._tree_results.append(result)

    def add_fallback_run(self, run: FallbackRun) -> None:
        self._fallback_runs.append(run)

    def record_error(self, kind: ErrorKind, path: Path, error: BaseException) -> ErrorRecord:
        record = ErrorRecord.from_exception(kind, path, error)
        self._errors.append(record)
        self._on_error(error, record)
        return record

    def build(self) -> UploadOutcome:
        return UploadOutcome(
            tree_upload_results=list(self._tree_results),
            fallback_runs=list(self._fallback_runs),
            errors=list(self._errors),
        )


class DirectoryUploadOrchestrator:
    """
    Uploads a directory tree through a tree uploader with an unknown size
    ceiling, degrading to per-file batches where the ceiling is hit.

    Directories are processed one at a time in FIFO order. A directory the
    tree uploader refuses as too large is split: its own files go through
    the flat-batch uploader and its subdirectories are queued to retry the
    tree uploader. A flat oversized directory is uploaded entirely in
    batches. No per-directory failure aborts the run.

    Usage:
        orchestrator = DirectoryUploadOrchestrator(tree_uploader, flat_uploader)
        outcome = await orchestrator.upload(options, url_prefix, headers, root, root)
        if not outcome.ok:
            for error in outcome.errors:
                ...
    """

    def __init__(
        self,
        tree_uploader: ITreeUploader,
        flat_uploader: IFlatUploader,
        config: Optional[UploadConfig] = None,
    ):
        self._tree_uploader = tree_uploader
        self._flat_uploader = flat_uploader
        self._config = config or UploadConfig()

    async def upload(
        self,
        options: Any,
        url_prefix: str,
        headers: Optional[Dict[str, str]],
        asset_root_dir: Path,
        dir: Path,
        on_error: Optional[OnError] = None,
    ) -> UploadOutcome:
        if dir is None or str(dir) == "":
            raise ValueError("dir is required")
        asset_root_dir = Path(asset_root_dir)
        queue: Deque[Path] = deque([Path(dir)])
        outcome = OutcomeBuilder(on_error or default_on_error)
        max_concurrent = get_max_concurrent(options, self._config.default_max_concurrent)

        logger.info(f"Starting asset upload from: {asset_root_dir}")
        logger.info(f"Target: {url_prefix}")

        while queue:
            current = queue.popleft()
            state = await self._process(
                current, options, url_prefix, headers, asset_root_dir, max_concurrent, queue, outcome
            )
            logger.debug(f"{current}: {state.value}")

        result = outcome.build()
        logger.info(
            f"Upload finished: {len(result.tree_upload_results)} tree upload(s), "
            f"{len(result.batch_upload_results)} fallback batch(es), {len(result.errors)} error(s)"
        )
        return result

    async def _process(
        self,
        current: Path,
        options: Any,
        url_prefix: str,
        headers: Optional[Dict[str, str]],
        asset_root_dir: Path,
        max_concurrent: int,
        queue: Deque[Path],
        outcome: OutcomeBuilder,
    ) -> WorkState:
        display_path = relative_posix(current, asset_root_dir) or "/"

        try:
            result = await self._tree_uploader.upload(options, [current])
        except Exception as e:
            too_large = as_too_large(e, self._config.too_large_patterns, current)
            if too_large is None:
                logger.error(f"Failed to upload directory: {display_path} - {e}")
                outcome.record_error(ErrorKind.FILESYSTEM_UPLOAD, current, e)
                return WorkState.FAILED
            logger.warning(f"Directory too large, switching to fallback mode: {display_path}")
            logger.info(f"Reason: {too_large}")
        else:
            outcome.add_tree_result(result)
            return WorkState.DONE

        try:
            children = list_immediate_subdirs(current)
        except Exception as e:
            logger.error(f"Failed to list subdirectories: {display_path} - {e}")
            outcome.record_error(ErrorKind.LIST_SUBDIRS, current, e)
            return WorkState.FAILED

        if children:
            # the size failure may come only from descendants; capture this level first
            logger.info(f"Found {len(children)} subdirectory(ies), processing parent files first...")
            try:
                batches = await self._flat_upload(
                    current, url_prefix, headers, asset_root_dir, max_concurrent
                )
                if batches:
                    outcome.add_fallback_run(FallbackRun(current, list(batches), leaf=False))
            except Exception as e:
                logger.error(f"Fallback upload of parent files failed: {display_path} - {e}")
                outcome.record_error(ErrorKind.FALLBACK_PARENT_FILES, current, e)

            logger.info(f"Queuing {len(children)} subdirectory(ies) for processing...")
            queue.extend(children)
            return WorkState.SPLITTING

        logger.info(f"Flat directory, using batch upload: {display_path}")
        try:
            batches = await self._flat_upload(
                current, url_prefix, headers, asset_root_dir, max_concurrent
            )
        except Exception as e:
            logger.error(f"Fallback upload failed: {display_path} - {e}")
            outcome.record_error(ErrorKind.FALLBACK_FLATDIR, current, e)
            return WorkState.FAILED

        # recorded even when empty: the run marks the whole directory as handled
        outcome.add_fallback_run(FallbackRun(current, list(batches or []), leaf=True))
        return WorkState.FLAT_FALLBACK

    async def _flat_upload(self, current, url_prefix, headers, asset_root_dir, max_concurrent):
        return await self._flat_uploader.upload_flat_dir_in_batches(
            local_dir=current,
            root_dir=asset_root_dir,
            url_prefix=url_prefix,
            headers=headers,
            replace=self._config.replace,
            max_concurrent=max_concurrent,
            max_files_per_batch=self._config.max_files_per_batch,
        )


async def upload_dir_with_split_and_fallback(
    file_upload: ITreeUploader,
    options: Any,
    url_prefix: str,
    headers: Optional[Dict[str, str]],
    asset_root_dir: Path,
    dir: Path,
    on_error: Optional[OnError] = None,
    *,
    flat_uploader: Optional[IFlatUploader] = None,
    config: Optional[UploadConfig] = None,
) -> UploadOutcome:
    """
    Upload ``dir`` with the tree uploader, splitting and falling back to
    flat batches where it reports "too large".

    Never raises for per-directory failures; check ``outcome.ok`` and
    ``outcome.errors``. Raises ValueError when ``dir`` is missing.
    """
    if flat_uploader is not None:
        orchestrator = DirectoryUploadOrchestrator(file_upload, flat_uploader, config)
        return await orchestrator.upload(options, url_prefix, headers, asset_root_dir, dir, on_error)

    from ..services.api_client import AssetsAPIClient
    from .fallback import FlatBatchUploader

    async with AssetsAPIClient(headers) as client:
        orchestrator = DirectoryUploadOrchestrator(file_upload, FlatBatchUploader(client), config)
        return await orchestrator.upload(options, url_prefix, headers, asset_root_dir, dir, on_error)
