"""Command line interface for dam_uploader."""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence

from rich.logging import RichHandler

from . import __version__
from .cli_progress import print_error, render_configuration_summary, render_upload_summary
from .models import UploadConfig, UploadOptions, UploadOutcome
from .utils.urls import build_assets_url, build_target_url

DEFAULT_ENV_FILE = ".env"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class CLIError(RuntimeError):
    """Raised when CLI validation/execution fails."""


def _setup_logging(debug: bool, silent: bool, log_level: Optional[str]) -> str:
    """
    Configure logging.

    Default behavior is silent unless --debug, --log-level or LOG_LEVEL is provided.
    Returns a string describing effective mode.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    logging.disable(logging.NOTSET)

    env_level = os.getenv("LOG_LEVEL")
    if silent or (not debug and not log_level and not env_level):
        logging.disable(logging.CRITICAL)
        root_logger.setLevel(logging.CRITICAL + 1)
        return "silent"

    if debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, (log_level or env_level or "INFO").upper(), logging.INFO)

    handler = RichHandler(
        rich_tracebacks=True,
        markup=False,
        show_time=False,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
    return logging.getLevelName(level)


def _normalize_dest(dest: Optional[str]) -> Optional[str]:
    if dest is None:
        return None
    value = dest.strip()
    if value in {"", "/"}:
        return None
    return value.replace("\\", "/").strip("/")


def _check_target(value: str) -> Optional[str]:
    if not value or any(ch.isspace() for ch in value):
        return "must be a host or URL without spaces"
    return None


def _check_token(value: str) -> Optional[str]:
    return None if value else "must not be empty"


def _check_positive_int(value: str) -> Optional[str]:
    if not value.isdigit() or int(value) < 1:
        return "must be a positive integer"
    return None


def _check_log_level(value: str) -> Optional[str]:
    if value.upper() not in LOG_LEVELS:
        return f"must be one of {', '.join(LOG_LEVELS)}"
    return None


# keys the upload reads; any other key is exported unchecked
ENV_CHECKS: Dict[str, Callable[[str], Optional[str]]] = {
    "DAM_TARGET_URL": _check_target,
    "DAM_TOKEN": _check_token,
    "MAX_UPLOAD_FILES": _check_positive_int,
    "LOG_LEVEL": _check_log_level,
}


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] in {"'", '"'} and value[-1] == value[0]:
        return value[1:-1]
    return value.split(" #", 1)[0].rstrip()


def _read_env_file(path: Path) -> Dict[str, str]:
    """
    Parse ``KEY=VALUE`` lines from a dotenv file.

    Known upload settings are validated; problems are reported as
    ``file:line`` so a broken .env fails before any request is sent.
    """
    if not path.is_file():
        raise CLIError(f"env file not found: {path}")
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise CLIError(f"could not read env file {path}: {exc}") from exc

    values: Dict[str, str] = {}
    for lineno, raw_line in enumerate(lines, 1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()

        key, sep, raw_value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            raise CLIError(f"{path}:{lineno}: expected KEY=VALUE")

        value = _unquote(raw_value)
        check = ENV_CHECKS.get(key)
        problem = check(value) if check else None
        if problem:
            raise CLIError(f"{path}:{lineno}: {key} {problem}")
        values[key] = value
    return values


def _load_env_file(path: Path, override: bool = False) -> Dict[str, str]:
    """Export values from ``path``; variables already set win unless ``override``."""
    applied: Dict[str, str] = {}
    for key, value in _read_env_file(path).items():
        if override or key not in os.environ:
            os.environ[key] = value
            applied[key] = value
    return applied


def _resolve_token(value: Optional[str]) -> str:
    """Accept a token literal or a path to a file holding it."""
    if not value:
        raise CLIError("no token given (use --token or DAM_TOKEN)")
    candidate = Path(value).expanduser()
    try:
        if candidate.is_file():
            token = candidate.read_text(encoding="utf-8").strip()
            if not token:
                raise CLIError(f"token file is empty: {candidate}")
            return token
    except OSError as exc:
        raise CLIError(f"could not read token file {candidate}: {exc}") from exc
    return value.strip()


def _auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def _run_upload(
    source: Path,
    target: str,
    token: str,
    dest: str,
    options_kwargs: Dict,
    config: UploadConfig,
    check_login: bool,
) -> UploadOutcome:
    from .orchestrator import DirectoryUploadOrchestrator, FlatBatchUploader
    from .services import AssetsAPIClient, FileSystemTreeUploader

    headers = _auth_headers(token)
    url_prefix = build_assets_url(target, dest)

    async with AssetsAPIClient(headers) as client:
        if check_login and not await client.validate_login(build_target_url(target), headers):
            raise CLIError("login validation failed, check --target and --token")

        await client.ensure_folder(build_assets_url(target), dest, headers)

        options = UploadOptions(url=url_prefix, root_dir=source, headers=headers, **options_kwargs)
        orchestrator = DirectoryUploadOrchestrator(
            FileSystemTreeUploader(client),
            FlatBatchUploader(client),
            config,
        )
        return await orchestrator.upload(options, url_prefix, headers, source, source)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dam-upload",
        description="Upload a local asset folder to a DAM through its Assets HTTP API.",
    )
    parser.add_argument("source", nargs="?", type=Path, help="Local asset folder to upload")
    parser.add_argument(
        "-t",
        "--target",
        default=None,
        help="Target environment URL (default from DAM_TARGET_URL)",
    )
    parser.add_argument(
        "--token",
        default=None,
        help="Bearer token, or path to a file containing it (default from DAM_TOKEN)",
    )
    parser.add_argument(
        "-g",
        "--dest",
        default=None,
        help="Destination folder under the DAM root (default: source folder name)",
    )
    parser.add_argument(
        "--max-concurrent",
        type=int,
        default=10,
        help="Simultaneous file uploads (default: 10)",
    )
    parser.add_argument(
        "--max-upload-files",
        type=int,
        default=None,
        help="Files per tree upload before splitting (default from MAX_UPLOAD_FILES or 1000)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=200,
        help="Files per fallback batch (default: 200)",
    )
    parser.add_argument(
        "--no-replace",
        action="store_true",
        help="Skip assets that already exist instead of replacing them",
    )
    parser.add_argument(
        "--skip-login-check",
        action="store_true",
        help="Do not validate the token before uploading",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load environment variables from this .env file",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logs")
    parser.add_argument("--silent", action="store_true", help="Only print errors")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Explicit log level (DEBUG/INFO/WARNING/ERROR)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"dam-upload {__version__}",
    )
    return parser


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    default_env = Path(DEFAULT_ENV_FILE)
    used_env_file = args.env_file or (default_env if default_env.is_file() else None)
    if used_env_file is not None:
        try:
            _load_env_file(Path(used_env_file))
        except CLIError as exc:
            print_error(str(exc))
            return 1

    effective_log_mode = _setup_logging(
        debug=args.debug,
        silent=args.silent,
        log_level=args.log_level,
    )

    if args.source is None:
        parser.print_help()
        return 0

    source = Path(args.source).expanduser().resolve()
    if not source.is_dir():
        print_error(f"source is not a directory: {source}")
        return 1

    target = args.target or os.getenv("DAM_TARGET_URL")
    if not target:
        print_error("no target given (use --target or DAM_TARGET_URL)")
        return 1

    try:
        token = _resolve_token(args.token or os.getenv("DAM_TOKEN"))
    except CLIError as exc:
        print_error(str(exc))
        return 1

    dest = _normalize_dest(args.dest) or source.name
    options_kwargs = {
        "max_concurrent": args.max_concurrent,
        "replace": not args.no_replace,
    }
    if args.max_upload_files is not None:
        options_kwargs["max_upload_files"] = args.max_upload_files
    config = UploadConfig(
        max_files_per_batch=args.batch_size,
        replace=not args.no_replace,
    )

    render_configuration_summary(
        {
            "Source": str(source),
            "Target": build_target_url(target),
            "Dest": build_assets_url(target, dest),
            "Max Concurrent": args.max_concurrent,
            "Batch Size": args.batch_size,
            "Replace": "no" if args.no_replace else "yes",
            "Env File": str(used_env_file) if used_env_file else "-",
            "Logging": effective_log_mode,
        }
    )

    try:
        outcome = asyncio.run(
            _run_upload(
                source=source,
                target=target,
                token=token,
                dest=dest,
                options_kwargs=options_kwargs,
                config=config,
                check_login=not args.skip_login_check,
            )
        )
    except CLIError as exc:
        print_error(str(exc))
        return 1
    except KeyboardInterrupt:
        print_error("Cancelled.")
        return 130
    except Exception as exc:
        print_error(f"upload failed: {exc}")
        return 1

    render_upload_summary(outcome)
    return 0 if outcome.ok else 1


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
