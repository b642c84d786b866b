"""URL and path helpers for the Assets HTTP API."""
import os
import re
from pathlib import Path
from typing import Optional, Union
from urllib.parse import quote

ASSETS_API_PATH = "/api/assets"


def to_posix(path: Union[str, Path]) -> str:
    return str(path).replace("\\", "/")


def encode_path_segments(posix_path: str) -> str:
    """URL-encode each segment, dropping empty ones."""
    return "/".join(quote(part, safe="") for part in posix_path.split("/") if part)


def relative_posix(path: Union[str, Path], root: Union[str, Path]) -> str:
    """Posix path of ``path`` relative to ``root``; "" when they are equal."""
    rel = to_posix(os.path.relpath(Path(path), Path(root)))
    return "" if rel == "." else rel


def join_url(base: str, relative_posix_path: str) -> str:
    encoded = encode_path_segments(relative_posix_path)
    base = base.rstrip("/")
    return f"{base}/{encoded}" if encoded else base


def build_target_url(target: str) -> str:
    """Normalize a platform host: ensure a scheme, strip trailing slashes."""
    url = target.strip()
    if not re.match(r"^https?://", url, re.IGNORECASE):
        url = f"https://{url}"
    return url.rstrip("/")


def build_assets_url(target: str, folder: Optional[str] = None) -> str:
    """Assets API URL for ``folder`` (a posix path under the DAM root)."""
    base = f"{build_target_url(target)}{ASSETS_API_PATH}"
    return join_url(base, folder or "")
