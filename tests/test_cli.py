"""Tests for dam-upload CLI helpers."""
import logging
import os

import pytest

import dam_uploader.cli as cli
from dam_uploader.cli import (
    CLIError,
    _load_env_file,
    _normalize_dest,
    _resolve_token,
    _setup_logging,
    run_cli,
)
from dam_uploader.models import ErrorKind, ErrorRecord, UploadOutcome


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("DAM_TARGET_URL", "DAM_TOKEN", "LOG_LEVEL", "MAX_UPLOAD_FILES"):
        # setenv first so teardown also removes values loaded from .env files
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    yield
    logging.disable(logging.NOTSET)


def test_normalize_dest():
    assert _normalize_dest(None) is None
    assert _normalize_dest("") is None
    assert _normalize_dest(" / ") is None
    assert _normalize_dest("/site/") == "site"
    assert _normalize_dest("site\\images") == "site/images"


def test_load_env_file(tmp_path):
    env_path = tmp_path / "custom.env"
    env_path.write_text(
        "\n".join(
            [
                "# comment",
                "DAM_TARGET_URL=https://author.example.com",
                "DAM_TOKEN='abc123'",
                "export MAX_UPLOAD_FILES=50",
            ]
        ),
        encoding="utf-8",
    )

    _load_env_file(env_path)

    assert os.environ["DAM_TARGET_URL"] == "https://author.example.com"
    assert os.environ["DAM_TOKEN"] == "abc123"
    assert os.environ["MAX_UPLOAD_FILES"] == "50"


def test_load_env_file_does_not_override(tmp_path, monkeypatch):
    env_path = tmp_path / "custom.env"
    env_path.write_text("DAM_TOKEN=from-file\n", encoding="utf-8")
    monkeypatch.setenv("DAM_TOKEN", "from-shell")

    _load_env_file(env_path)

    assert os.environ["DAM_TOKEN"] == "from-shell"


def test_load_env_file_missing(tmp_path):
    with pytest.raises(CLIError, match="not found"):
        _load_env_file(tmp_path / "nope.env")


def test_resolve_token(tmp_path):
    token_file = tmp_path / "token.txt"
    token_file.write_text("  file-token\n", encoding="utf-8")

    assert _resolve_token(str(token_file)) == "file-token"
    assert _resolve_token("literal-token") == "literal-token"
    with pytest.raises(CLIError):
        _resolve_token(None)

    empty = tmp_path / "empty.txt"
    empty.write_text("\n", encoding="utf-8")
    with pytest.raises(CLIError, match="empty"):
        _resolve_token(str(empty))


def test_setup_logging_defaults_to_silent():
    mode = _setup_logging(debug=False, silent=False, log_level=None)
    assert mode == "silent"
    assert logging.getLogger().level > logging.CRITICAL


def test_setup_logging_debug_mode():
    mode = _setup_logging(debug=True, silent=False, log_level=None)
    assert mode == "DEBUG"
    assert logging.getLogger().isEnabledFor(logging.DEBUG) is True


def test_setup_logging_env_level(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "warning")
    mode = _setup_logging(debug=False, silent=False, log_level=None)
    assert mode == "WARNING"


def test_run_cli_without_source_prints_help(capsys):
    assert run_cli([]) == 0
    assert "dam-upload" in capsys.readouterr().out


def test_run_cli_rejects_missing_source(tmp_path):
    assert run_cli([str(tmp_path / "missing"), "--target", "h", "--token", "t"]) == 1


def test_run_cli_requires_target(tmp_path):
    assert run_cli([str(tmp_path), "--token", "t"]) == 1


def test_run_cli_requires_token(tmp_path):
    assert run_cli([str(tmp_path), "--target", "author.example.com"]) == 1


def _patch_run(monkeypatch, outcome, seen):
    async def fake_run_upload(**kwargs):
        seen.update(kwargs)
        return outcome

    monkeypatch.setattr(cli, "_run_upload", fake_run_upload)


def test_run_cli_success(tmp_path, monkeypatch):
    assets = tmp_path / "site"
    assets.mkdir()
    seen = {}
    _patch_run(monkeypatch, UploadOutcome(), seen)

    code = run_cli(
        [str(assets), "--target", "author.example.com", "--token", "abc", "--batch-size", "50", "--no-replace"]
    )

    assert code == 0
    assert seen["source"] == assets.resolve()
    assert seen["target"] == "author.example.com"
    assert seen["token"] == "abc"
    assert seen["dest"] == "site"
    assert seen["config"].max_files_per_batch == 50
    assert seen["config"].replace is False
    assert seen["options_kwargs"]["replace"] is False
    assert seen["check_login"] is True


def test_run_cli_reads_env_defaults(tmp_path, monkeypatch):
    assets = tmp_path / "site"
    assets.mkdir()
    (tmp_path / ".env").write_text("DAM_TARGET_URL=env.example.com\nDAM_TOKEN=env-token\n", encoding="utf-8")
    seen = {}
    _patch_run(monkeypatch, UploadOutcome(), seen)

    assert run_cli([str(assets), "--dest", "/brand/", "--skip-login-check", "--max-upload-files", "20"]) == 0
    assert seen["target"] == "env.example.com"
    assert seen["token"] == "env-token"
    assert seen["dest"] == "brand"
    assert seen["check_login"] is False
    assert seen["options_kwargs"]["max_upload_files"] == 20


def test_run_cli_failed_outcome(tmp_path, monkeypatch):
    outcome = UploadOutcome(errors=[ErrorRecord(ErrorKind.FALLBACK_FLATDIR, tmp_path, "boom")])
    _patch_run(monkeypatch, outcome, {})

    assert run_cli([str(tmp_path), "--target", "h", "--token", "t"]) == 1


def test_run_cli_cli_error(tmp_path, monkeypatch):
    async def failing_run_upload(**kwargs):
        raise CLIError("login validation failed")

    monkeypatch.setattr(cli, "_run_upload", failing_run_upload)

    assert run_cli([str(tmp_path), "--target", "h", "--token", "t"]) == 1


def test_render_upload_summary_caps_errors(tmp_path):
    from rich.console import Console

    from dam_uploader.cli_progress import render_upload_summary

    out = Console(record=True, width=200)
    errors = [ErrorRecord(ErrorKind.FALLBACK_FLATDIR, tmp_path / f"d{i}", f"boom {i}") for i in range(23)]

    render_upload_summary(UploadOutcome(errors=errors), max_errors=20, out=out)

    text = out.export_text()
    assert "Failed" in text
    assert "[fallback-flatdir]" in text
    assert "boom 19" in text
    assert "boom 20" not in text
    assert "...and 3 more error(s)" in text


def test_load_env_file_strips_comments_and_reports_applied(tmp_path, monkeypatch):
    env_path = tmp_path / "custom.env"
    env_path.write_text("DAM_TARGET_URL=author.example.com # stage\nLOG_LEVEL=info\n", encoding="utf-8")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    applied = _load_env_file(env_path)

    assert applied == {"DAM_TARGET_URL": "author.example.com"}
    assert os.environ["LOG_LEVEL"] == "debug"


@pytest.mark.parametrize(
    "content, message",
    [
        ("MAX_UPLOAD_FILES=lots\n", ":1: MAX_UPLOAD_FILES must be a positive integer"),
        ("DAM_TOKEN=abc\nnot a setting\n", ":2: expected KEY=VALUE"),
        ("# empty token\nDAM_TOKEN=''\n", ":2: DAM_TOKEN must not be empty"),
        ("LOG_LEVEL=loud\n", ":1: LOG_LEVEL must be one of"),
        ("DAM_TARGET_URL=author example\n", ":1: DAM_TARGET_URL must be a host"),
    ],
)
def test_load_env_file_rejects_invalid_settings(tmp_path, content, message):
    env_path = tmp_path / "custom.env"
    env_path.write_text(content, encoding="utf-8")

    with pytest.raises(CLIError) as exc_info:
        _load_env_file(env_path)

    assert message in str(exc_info.value)
    assert "DAM_TOKEN" not in os.environ


def test_run_cli_stops_on_invalid_env_file(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("MAX_UPLOAD_FILES=0\n", encoding="utf-8")
    seen = {}
    _patch_run(monkeypatch, UploadOutcome(), seen)

    assert run_cli([str(tmp_path), "--target", "h", "--token", "t"]) == 1
    assert seen == {}
