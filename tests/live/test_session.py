"""
Integration tests for core/live/session.py - LiveSession with stand-in
capture and transcription
"""
import io
from datetime import datetime
from pathlib import Path
from typing import Dict, List

import pytest
from rich.console import Console

from core.live.session import LiveSession


class FakeRecorder:
    def __init__(self):
        self.started = False
        self.stopped = False

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True


class ScriptedWatcher:
    """Yields `during` while capturing, then simulates Ctrl+C; yields `after` once stopped"""

    def __init__(self, during: List[Path], after: List[Path] = ()):
        self.during = list(during)
        self.after = list(after)
        self.stopped = False

    def stop(self):
        self.stopped = True

    def __iter__(self):
        if not self.stopped:
            yield from self.during
            yield None
            raise KeyboardInterrupt
        yield from self.after


class FakeTranscriber:
    def __init__(self, texts: Dict[str, str]):
        self.texts = texts
        self.seen: List[str] = []

    def transcribe(self, path: Path) -> str:
        self.seen.append(path.name)
        return self.texts.get(path.name, "")


STARTED_AT = datetime(2025, 1, 2, 3, 4, 5)


def _session(settings, texts, during, after=(), engine=None):
    out = io.StringIO()
    session = LiveSession(
        settings,
        engine=engine,
        recorder=FakeRecorder(),
        watcher=ScriptedWatcher([Path(n) for n in during], [Path(n) for n in after]),
        transcriber=FakeTranscriber(texts),
        console=Console(file=out, width=400, color_system=None),
        started_at=STARTED_AT,
    )
    return session, out


class TestTranslatingSession:
    """Test a full session with translation."""

    def test_lines_and_files(self, test_settings, fake_engine_factory):
        """Sources show at submit time, translations follow in order, empty error log is removed."""
        engine = fake_engine_factory(delays={"一": 0.2})
        session, out = _session(
            test_settings,
            {"00000.wav": "一", "00001.wav": "...", "00002.wav": "二", "00003.wav": "三"},
            during=["00000.wav", "00001.wav", "00002.wav"],
            after=["00003.wav"],
            engine=engine,
        )

        assert session.run() == 0

        log_file = test_settings.logs_dir / "yap_live_20250102_030405.log"
        assert session.log_file == log_file
        lines = log_file.read_text(encoding="utf-8").splitlines()

        sources = [l for l in lines if l.startswith("[ja-JP]")]
        targets = [l for l in lines if l.startswith("[en]")]
        assert sources == [
            "[ja-JP] 一 (→ en pending)",
            "[ja-JP] 二 (→ en pending)",
            "[ja-JP] 三 (→ en pending)",
        ]
        assert targets == ["[en] T(一)", "[en] T(二)", "[en] T(三)"]
        for n, word in enumerate(["一", "二", "三"]):
            assert lines.index(sources[n]) < lines.index(f"[en] T({word})")

        assert session.recorder.stopped
        assert session.transcriber.seen == ["00000.wav", "00001.wav", "00002.wav", "00003.wav"]
        assert session.pipeline.stats.rejected == 0
        assert session.pipeline.stats.delivered == 3
        assert not session.error_log.exists()
        assert f"Saved full output to: {log_file}" in out.getvalue()
        assert "Translation error details" not in out.getvalue()

    def test_failures_keep_error_log(self, test_settings, fake_engine_factory):
        """A failed translation shows the source text and leaves the error log behind."""
        engine = fake_engine_factory(failing={"bad"})
        session, out = _session(
            test_settings,
            {"00000.wav": "bad", "00001.wav": "good"},
            during=["00000.wav", "00001.wav"],
            engine=engine,
        )
        session.run()

        lines = session.log_file.read_text(encoding="utf-8").splitlines()
        assert [l for l in lines if l.startswith("[en]")] == ["[en] bad", "[en] T(good)"]
        assert session.error_log.exists()
        assert "translate [ids 1]: fake exited with code 1: boom" in session.error_log.read_text(encoding="utf-8")
        assert f"Translation error details: {session.error_log}" in out.getvalue()

    def test_second_interrupt_during_drain_keeps_every_chunk(self, test_settings, fake_engine_factory):
        """Ctrl+C while waiting on translations still writes every chunk to the log."""
        engine = fake_engine_factory(delays={"一": 30.0, "二": 30.0})
        session, out = _session(
            test_settings,
            {"00000.wav": "一", "00001.wav": "二"},
            during=["00000.wav", "00001.wav"],
            engine=engine,
        )

        def interrupted(timeout=None):
            raise KeyboardInterrupt

        session.pipeline.channel.get = interrupted

        assert session.run() == 0

        lines = session.log_file.read_text(encoding="utf-8").splitlines()
        assert [l for l in lines if l.startswith("[en]")] == ["[en] 一", "[en] 二"]
        assert session.pipeline.stats.abandoned == 2
        assert "drain [ids 1,2]: interrupted while draining" in session.error_log.read_text(encoding="utf-8")
        assert f"Saved full output to: {session.log_file}" in out.getvalue()

    def test_engine_from_settings(self, test_settings):
        """Without an injected engine the configured one is used (echo)."""
        session, _ = _session(test_settings, {"00000.wav": "bonjour"}, during=["00000.wav"])
        session.run()
        lines = session.log_file.read_text(encoding="utf-8").splitlines()
        assert lines[-1] == "[en] bonjour"


class TestTranscriptionOnlySession:
    """Test a session without a target language."""

    def test_plain_lines(self, test_settings):
        """Transcripts are logged as is; no pipeline, no error log."""
        settings = test_settings.model_copy(update={"target_lang": ""})
        session, out = _session(
            settings,
            {"00000.wav": "hello", "00001.wav": " ", "00002.wav": "world"},
            during=["00000.wav", "00001.wav", "00002.wav"],
        )
        session.run()

        assert session.pipeline is None
        assert session.error_log is None
        assert session.log_file.read_text(encoding="utf-8").splitlines() == ["hello", "world"]
        assert "Saved full output to:" in out.getvalue()


class TestChunkDirectory:
    """Test temporary segment storage."""

    def test_temporary_chunk_dir_removed(self, test_settings):
        """A session-created chunk dir is removed on close."""
        settings = test_settings.model_copy(update={"chunk_dir": None})
        session, _ = _session(settings, {}, during=[])
        chunk_dir = session.chunk_dir
        assert chunk_dir.is_dir()

        session.run()

        assert not chunk_dir.exists()

    def test_configured_chunk_dir_kept(self, test_settings):
        """A user-provided chunk dir is left alone."""
        test_settings.chunk_dir.mkdir(parents=True, exist_ok=True)
        session, _ = _session(test_settings, {}, during=[])
        session.run()
        assert test_settings.chunk_dir.is_dir()
