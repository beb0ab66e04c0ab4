#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
LiveSession - capture, transcribe, translate, display

One control thread runs the whole loop:

    segment -> transcript -> submit -> [workers translate] -> poll -> display

Translation never blocks the loop; translated lines appear as soon as they
and everything before them are ready. On exit (Ctrl+C or end of capture)
the session stops capture, transcribes what is left, drains outstanding
translations and tidies up its files.
"""

import shutil
import tempfile
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console

from config.constants import SEGMENT_SETTLE_SECONDS
from config.logging_config import get_logger
from core.pipeline import DiagnosticsLog, PipelineController, build_pipeline
from engines.base import BaseEngine
from engines.manager import create_engine

from .capture import SegmentRecorder, SegmentWatcher
from .display import TranscriptDisplay
from .text_filters import has_meaningful_text
from .transcriber import Transcriber

logger = get_logger(__name__)


class LiveSession:
    """
    Args:
        settings: config.settings.Settings
        engine: Translation engine (built from settings when omitted)
        recorder, watcher, transcriber, display: Injected collaborators,
            built from settings when omitted
        console: rich Console for display and exit messages
    """

    def __init__(
        self,
        settings,
        engine: Optional[BaseEngine] = None,
        recorder: Optional[SegmentRecorder] = None,
        watcher: Optional[SegmentWatcher] = None,
        transcriber: Optional[Transcriber] = None,
        display: Optional[TranscriptDisplay] = None,
        console: Optional[Console] = None,
        started_at: Optional[datetime] = None,
    ):
        self.settings = settings
        self.console = console or Console()
        self.started_at = started_at or datetime.now()
        self.translating = settings.is_translating()

        # Files
        self.log_file = settings.log_file_for(self.started_at)
        self.error_log = settings.error_log_for(self.log_file) if self.translating else None
        self._owns_chunk_dir = settings.chunk_dir is None
        self.chunk_dir = Path(settings.chunk_dir) if settings.chunk_dir else Path(tempfile.mkdtemp(prefix="yapchunks-"))

        # Capture / transcription
        self.recorder = recorder or SegmentRecorder(
            self.chunk_dir,
            device=settings.device,
            seg_seconds=settings.seg_seconds,
            capture_format=settings.capture_format,
            ffmpeg_bin=settings.ffmpeg_bin,
        )
        self.watcher = watcher or SegmentWatcher(self.chunk_dir, poll_interval=settings.poll_interval)
        self.transcriber = transcriber or Transcriber(settings.source_locale, yap_bin=settings.yap_bin)

        # Translation
        self.diagnostics: Optional[DiagnosticsLog] = None
        self.pipeline: Optional[PipelineController] = None
        self.display = display or TranscriptDisplay(
            settings.source_locale,
            settings.target_lang if self.translating else "",
            window=settings.window,
            log_file=self.log_file,
            console=self.console,
        )
        if self.translating:
            self.diagnostics = DiagnosticsLog(self.error_log)
            self.pipeline = build_pipeline(
                engine or create_engine(settings),
                settings.source_locale,
                settings.target_lang,
                sink=self.display.deliver,
                diagnostics=self.diagnostics,
                policy=settings.dispatch_policy,
                model=settings.translation_model,
                timeout=settings.engine_timeout,
                batch_size=settings.batch_size,
                flush_interval=settings.flush_interval,
                is_meaningful=has_meaningful_text,
                abandon_timeout=settings.abandon_timeout,
                show_progress=settings.show_progress,
            )
            self.display.pending_count = lambda: self.pipeline.pending_count

        self.segments_processed = 0
        self._closed = False

    # =========================================
    # Per-segment work
    # =========================================

    def process_segment(self, path: Path):
        """Transcribe one finished segment and hand the text on"""
        time.sleep(SEGMENT_SETTLE_SECONDS)
        self.segments_processed += 1
        text = self.transcriber.transcribe(path)
        if not text or not has_meaningful_text(text):
            logger.debug(f"Segment {path.name}: nothing meaningful")
            return

        if self.pipeline is None:
            self.display.add_transcript(text)
            return

        chunk_id = self.pipeline.submit(text)
        if chunk_id is not None:
            self.display.add_source(text)
            self.pipeline.poll()

    def tick(self):
        """Idle work between segments"""
        if self.pipeline is not None:
            self.pipeline.poll()
        self.display.refresh()

    # =========================================
    # Run
    # =========================================

    def run(self) -> int:
        """Run until interrupted; returns the process exit code"""
        self.console.print(
            f"▶ Starting mic capture from {self.settings.device} at {self.settings.seg_seconds}s segments…"
        )
        try:
            if self.pipeline is not None:
                self.pipeline.start()
            self.recorder.start()
            self.display.start()
            for segment in self.watcher:
                if segment is not None:
                    self.process_segment(segment)
                self.tick()
        except KeyboardInterrupt:
            logger.info("Interrupted, finishing up")
        finally:
            self.close()
        return 0

    def finish_capture(self):
        """Stop ffmpeg and transcribe the segments it left behind"""
        self.recorder.stop()
        self.watcher.stop()
        for segment in self.watcher:
            if segment is not None:
                self.process_segment(segment)

    def close(self):
        """Drain translations, report the output files, remove temporary chunks"""
        if self._closed:
            return
        self._closed = True
        try:
            try:
                self.finish_capture()
            except KeyboardInterrupt:
                logger.warning("Interrupted again, skipping remaining segments")
            if self.pipeline is not None:
                try:
                    self.pipeline.close()
                except KeyboardInterrupt:
                    logger.warning("Interrupted again, remaining translations fall back to source text")
        finally:
            self.display.stop()
            self._report()
            if self._owns_chunk_dir:
                shutil.rmtree(self.chunk_dir, ignore_errors=True)

    def _report(self):
        self.console.print()
        self.console.print(f"Saved full output to: {self.log_file}", soft_wrap=True, highlight=False)
        if self.diagnostics is not None:
            if self.diagnostics.has_entries():
                self.console.print(f"Translation error details: {self.error_log}", soft_wrap=True, highlight=False)
            else:
                self.diagnostics.discard_if_empty()
        if self.pipeline is not None:
            logger.info(f"Session stats: {self.pipeline.stats.to_dict()}")
