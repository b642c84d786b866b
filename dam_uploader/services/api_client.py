"""HTTP adapter for the Assets API."""
from __future__ import annotations

import asyncio
import logging
import mimetypes
from pathlib import Path
from typing import Dict, Mapping, Optional

import httpx

from ..errors import AuthenticationError, FolderCreationError
from ..models import FileUploadResult
from ..utils.urls import encode_path_segments, join_url

logger = logging.getLogger(__name__)

AUTH_STATUSES = (401, 403)
CONFLICT = 409


class AssetsAPIClient:
    """
    HTTP client adapter for asset and folder operations.

    Implements IAssetClient protocol.
    """

    def __init__(
        self,
        headers: Optional[Mapping[str, str]] = None,
        timeout: int = 60,
        max_retries: int = 3,
        retry_delay: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._headers: Dict[str, str] = dict(headers or {})
        self._timeout = timeout
        self._max_retries = max(max_retries, 1)
        self._retry_delay = retry_delay
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            headers=self._headers,
            timeout=self._timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        if not self._client:
            raise RuntimeError("AssetsAPIClient not initialized. Use 'async with' context.")

        for attempt in range(self._max_retries):
            try:
                response = await self._client.request(method, url, **kwargs)
            except httpx.RequestError:
                if attempt < self._max_retries - 1:
                    await asyncio.sleep(self._retry_delay * (attempt + 1))
                    continue
                raise

            if response.status_code >= 500 and attempt < self._max_retries - 1:
                logger.debug(f"{method} {url} returned {response.status_code}, retrying")
                await asyncio.sleep(self._retry_delay * (attempt + 1))
                continue
            return response

        raise RuntimeError(f"Failed to {method} {url} after {self._max_retries} attempts")

    @staticmethod
    def _raise_for_auth(response: httpx.Response, action: str) -> None:
        if response.status_code in AUTH_STATUSES:
            raise AuthenticationError(
                f"Unauthorized ({response.status_code}) while trying to {action}",
                status_code=response.status_code,
            )

    async def ensure_folder(
        self,
        url_prefix: str,
        relative_folder: str,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Create a folder and all its parents under ``url_prefix``.

        HTTP 409 is treated as "already exists".
        """
        parts = [part for part in relative_folder.split("/") if part]
        current = ""
        for part in parts:
            current = f"{current}/{part}" if current else part
            url = join_url(url_prefix, current)
            response = await self._request(
                "POST",
                url,
                headers=dict(headers or {}),
                json={"class": "assetFolder", "properties": {"jcr:title": part}},
            )
            if response.is_success or response.status_code == CONFLICT:
                continue
            self._raise_for_auth(response, f"create folder {current}")
            raise FolderCreationError(
                f'Failed to create folder "{current}" ({response.status_code}): {response.text}'
            )

    async def upload_file(
        self,
        file_path: Path,
        folder_url: str,
        headers: Optional[Mapping[str, str]] = None,
        replace: bool = True,
    ) -> FileUploadResult:
        """
        Upload one file into ``folder_url``.

        An existing asset (409) is overwritten when ``replace`` is set and
        reported as skipped otherwise. Rejections become failed results;
        only auth and transport errors raise.
        """
        file_path = Path(file_path)
        dest_url = f"{folder_url.rstrip('/')}/{encode_path_segments(file_path.name)}"
        content_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
        request_headers = {**dict(headers or {}), "Content-Type": content_type}
        content = await asyncio.to_thread(file_path.read_bytes)

        response = await self._request("POST", dest_url, headers=request_headers, content=content)
        self._raise_for_auth(response, f"upload {file_path.name}")

        if response.is_success:
            return FileUploadResult.ok(file_path, dest_url, response.status_code)

        if response.status_code == CONFLICT:
            if not replace:
                return FileUploadResult.skipped(file_path, dest_url, response.status_code)
            response = await self._request("PUT", dest_url, headers=request_headers, content=content)
            self._raise_for_auth(response, f"replace {file_path.name}")
            if response.is_success:
                return FileUploadResult.replaced(file_path, dest_url, response.status_code)

        return FileUploadResult.fail(
            file_path,
            dest_url,
            f"HTTP {response.status_code}: {response.text[:200]}",
            response.status_code,
        )

    async def validate_login(self, url: str, headers: Optional[Mapping[str, str]] = None) -> bool:
        """Check the credentials with a HEAD request against the target."""
        try:
            response = await self._request("HEAD", url, headers=dict(headers or {}))
        except httpx.HTTPError as exc:
            logger.error(f"Network error: {exc}")
            return False

        if not response.is_success:
            logger.error(f"Login failed with status: {response.status_code}")
            return False

        body = response.text
        if "Invalid token" in body or "Unauthorized" in body:
            logger.error("Invalid token detected in response body")
            return False
        return True
