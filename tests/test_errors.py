"""Tests for the too-large classifier."""
from pathlib import Path

from dam_uploader.errors import TooLargeError, as_too_large, is_too_large


class CodedError(Exception):
    code = "TOO_LARGE"


class OtherCodedError(Exception):
    code = "EACCES"


class TestIsTooLarge:
    def test_none_is_not_too_large(self):
        assert is_too_large(None) is False

    def test_typed_error(self):
        assert is_too_large(TooLargeError("nope")) is True

    def test_code_marker(self):
        assert is_too_large(CodedError("anything")) is True
        assert is_too_large(OtherCodedError("anything")) is False

    def test_known_messages(self):
        assert is_too_large(RuntimeError("Walked directory exceeded the maximum number of files allowed (20)"))
        assert is_too_large(RuntimeError("Total size exceeded maximum allowed"))

    def test_unrelated_errors(self):
        assert is_too_large(RuntimeError("401 Unauthorized")) is False
        assert is_too_large(OSError("No such file or directory")) is False
        assert is_too_large(RuntimeError("")) is False

    def test_custom_patterns(self):
        error = RuntimeError("quota reached for tree")
        assert is_too_large(error) is False
        assert is_too_large(error, patterns=("quota reached",)) is True
        assert is_too_large(RuntimeError("exceeded maximum"), patterns=("quota reached",)) is False

    def test_same_answer_every_time(self):
        error = RuntimeError("Walked directory exceeded")
        assert [is_too_large(error) for _ in range(3)] == [True, True, True]


class TestAsTooLarge:
    def test_returns_none_for_other_errors(self):
        assert as_too_large(RuntimeError("boom")) is None
        assert as_too_large(None) is None

    def test_keeps_typed_error(self):
        error = TooLargeError("big")
        assert as_too_large(error) is error

    def test_wraps_message_signal(self):
        cause = RuntimeError("Walked directory exceeded the maximum number of files allowed (5)")
        translated = as_too_large(cause, path=Path("/tmp/a"))
        assert isinstance(translated, TooLargeError)
        assert translated.cause is cause
        assert translated.path == Path("/tmp/a")
        assert translated.code == "TOO_LARGE"
        assert "Walked directory exceeded" in str(translated)
