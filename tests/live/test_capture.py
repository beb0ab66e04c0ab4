"""
Unit tests for core/live/capture.py - SegmentRecorder and SegmentWatcher
"""
import stat
import sys
import threading
import time
from pathlib import Path

import pytest

from core.live.capture import SegmentRecorder, SegmentWatcher
from core.live.errors import CaptureError

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="needs /bin/sh")


def _touch(directory: Path, *names: str):
    directory.mkdir(parents=True, exist_ok=True)
    for name in names:
        (directory / name).write_bytes(b"RIFF")


class TestSegmentRecorder:
    """Test the ffmpeg wrapper."""

    def test_command(self, tmp_path):
        """Mono 16 kHz segment capture into numbered files."""
        recorder = SegmentRecorder(tmp_path, device=":1", seg_seconds=3)
        cmd = recorder.build_command()

        assert cmd[0] == "ffmpeg"
        assert cmd[cmd.index("-i") + 1] == ":1"
        assert cmd[cmd.index("-f") + 1] == "avfoundation"
        assert cmd[cmd.index("-ar") + 1] == "16000"
        assert cmd[cmd.index("-ac") + 1] == "1"
        assert cmd[cmd.index("-segment_time") + 1] == "3"
        assert cmd[-1] == str(tmp_path / "%05d.wav")

    def test_missing_binary(self, tmp_path):
        """An unstartable program raises CaptureError."""
        recorder = SegmentRecorder(tmp_path, ffmpeg_bin=str(tmp_path / "no-ffmpeg"), startup_delay=0)
        with pytest.raises(CaptureError):
            recorder.start()

    @posix_only
    def test_immediate_exit_reports_stderr(self, tmp_path):
        """ffmpeg dying at startup surfaces its error text."""
        script = tmp_path / "ffmpeg"
        script.write_text('#!/bin/sh\necho "Input/output error" >&2\nexit 1\n', encoding="utf-8")
        script.chmod(script.stat().st_mode | stat.S_IXUSR)

        recorder = SegmentRecorder(tmp_path / "chunks", ffmpeg_bin=str(script), startup_delay=0.3)
        with pytest.raises(CaptureError, match="Input/output error"):
            recorder.start()
        assert not recorder.is_recording

    @posix_only
    def test_start_and_stop(self, tmp_path):
        """A running capture stops on request."""
        script = tmp_path / "ffmpeg"
        script.write_text("#!/bin/sh\nexec sleep 30\n", encoding="utf-8")
        script.chmod(script.stat().st_mode | stat.S_IXUSR)

        recorder = SegmentRecorder(tmp_path / "chunks", ffmpeg_bin=str(script), startup_delay=0.05)
        recorder.start()
        assert recorder.is_recording

        started = time.monotonic()
        recorder.stop()
        assert time.monotonic() - started < 3.5
        assert not recorder.is_recording
        recorder.stop()  # second stop is a no-op


class TestSegmentWatcher:
    """Test finished-segment detection."""

    def test_newest_segment_is_withheld(self, tmp_path):
        """The file still being written is not yielded while capture runs."""
        _touch(tmp_path, "00000.wav", "00001.wav", "00002.wav")
        watcher = SegmentWatcher(tmp_path)
        assert [p.name for p in watcher.poll()] == ["00000.wav", "00001.wav"]
        assert watcher.poll() == []

    def test_ignores_other_files(self, tmp_path):
        """Only .wav segments count."""
        _touch(tmp_path, "00000.wav", "notes.txt", "00001.wav")
        assert [p.name for p in SegmentWatcher(tmp_path).poll()] == ["00000.wav"]

    def test_missing_directory(self, tmp_path):
        """No directory yet, no segments."""
        assert SegmentWatcher(tmp_path / "later").poll() == []

    def test_stop_releases_last_segment(self, tmp_path):
        """After stop the newest segment is finished too."""
        _touch(tmp_path, "00000.wav", "00001.wav")
        watcher = SegmentWatcher(tmp_path)
        watcher.poll()
        watcher.stop()
        assert [p.name for p in watcher.poll()] == ["00001.wav"]

    def test_iteration_yields_none_when_idle(self, tmp_path):
        """Idle ticks give control back as None."""
        _touch(tmp_path, "00000.wav", "00001.wav")
        watcher = SegmentWatcher(tmp_path, poll_interval=0.01)
        it = iter(watcher)
        assert next(it).name == "00000.wav"
        assert next(it) is None

    def test_iteration_ends_after_stop(self, tmp_path):
        """A stopped watcher yields what is left, then finishes."""
        _touch(tmp_path, "00000.wav")
        watcher = SegmentWatcher(tmp_path, poll_interval=0.01)

        threading.Timer(0.1, lambda: (_touch(tmp_path, "00001.wav"), watcher.stop())).start()
        names = [p.name for p in watcher if p is not None]

        assert names == ["00000.wav", "00001.wav"]
