"""
Unit tests for core/live/transcriber.py
"""
import stat
import sys
from pathlib import Path

import pytest

from core.live.transcriber import Transcriber

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="needs /bin/sh")


def _yap(tmp_path: Path, body: str) -> str:
    path = tmp_path / "yap"
    path.write_text("#!/bin/sh\n" + body + "\n", encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return str(path)


class TestTranscriber:
    """Test the yap wrapper."""

    def test_command(self, tmp_path):
        """Segment path and locale are passed through."""
        transcriber = Transcriber("ja-JP")
        assert transcriber.build_command(tmp_path / "00001.wav") == [
            "yap", "transcribe", str(tmp_path / "00001.wav"), "--locale", "ja-JP"
        ]

    def test_output_is_cleaned(self, tmp_path):
        """Multi-line output becomes one clean line."""
        yap = _yap(tmp_path, "printf ' good\\r\\n   morning \\n'")
        assert Transcriber("en-US", yap_bin=yap).transcribe(tmp_path / "a.wav") == "good morning"

    def test_locale_reaches_yap(self, tmp_path):
        """The locale argument is what yap sees."""
        yap = _yap(tmp_path, 'echo "$4"')
        assert Transcriber("fr-FR", yap_bin=yap).transcribe(tmp_path / "a.wav") == "fr-FR"

    def test_failure_returns_empty(self, tmp_path):
        """A failing transcription skips the segment."""
        yap = _yap(tmp_path, "echo partial; echo 'no speech' >&2; exit 2")
        assert Transcriber("en-US", yap_bin=yap).transcribe(tmp_path / "a.wav") == ""

    def test_missing_binary_returns_empty(self, tmp_path):
        """An unrunnable yap is not fatal for one segment."""
        transcriber = Transcriber("en-US", yap_bin=str(tmp_path / "missing-yap"))
        assert transcriber.transcribe(tmp_path / "a.wav") == ""

    def test_timeout_returns_empty(self, tmp_path):
        """A hung transcription is abandoned."""
        yap = _yap(tmp_path, "exec sleep 5")
        assert Transcriber("en-US", yap_bin=yap, timeout=0.2).transcribe(tmp_path / "a.wav") == ""
