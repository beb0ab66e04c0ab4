"""
Microphone capture into fixed-length WAV segments.

ffmpeg records the input device and cuts the stream into numbered segment
files (00000.wav, 00001.wav, ...). A segment is complete once ffmpeg has
moved on to the next one; the newest file is still being written until
capture stops.
"""

import signal
import subprocess
import threading
import time
from pathlib import Path
from typing import Iterator, List, Optional, Set

from config.constants import CAPTURE_SAMPLE_RATE, CAPTURE_STARTUP_DELAY, POLL_INTERVAL_SECONDS, SEGMENT_PATTERN
from config.logging_config import get_logger

from .errors import CaptureError

logger = get_logger(__name__)


class SegmentRecorder:
    """Runs ffmpeg segment capture as a child process"""

    def __init__(
        self,
        out_dir: Path,
        device: str = ":0",
        seg_seconds: int = 2,
        capture_format: str = "avfoundation",
        ffmpeg_bin: str = "ffmpeg",
        startup_delay: float = CAPTURE_STARTUP_DELAY,
    ):
        self.out_dir = Path(out_dir)
        self.device = device
        self.seg_seconds = seg_seconds
        self.capture_format = capture_format
        self.ffmpeg_bin = ffmpeg_bin
        self.startup_delay = startup_delay

        self._proc: Optional[subprocess.Popen] = None

    @property
    def is_recording(self) -> bool:
        return self._proc is not None and self._proc.poll() is None

    def build_command(self) -> List[str]:
        return [
            self.ffmpeg_bin,
            "-hide_banner", "-loglevel", "error",
            "-f", self.capture_format,
            "-i", self.device,
            "-ac", "1",
            "-ar", str(CAPTURE_SAMPLE_RATE),
            "-f", "segment",
            "-segment_time", str(self.seg_seconds),
            "-reset_timestamps", "1",
            str(self.out_dir / SEGMENT_PATTERN),
        ]

    def start(self):
        """
        Start capture and give ffmpeg a moment to open the device.

        Raises:
            CaptureError: ffmpeg could not be started or exited right away
        """
        if self._proc is not None:
            return

        self.out_dir.mkdir(parents=True, exist_ok=True)
        cmd = self.build_command()
        logger.info(f"Starting capture: {' '.join(cmd)}")
        try:
            self._proc = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise CaptureError(f"could not start {self.ffmpeg_bin}: {e}")

        time.sleep(self.startup_delay)
        if self._proc.poll() is not None:
            stderr = self._proc.stderr.read().decode("utf-8", errors="replace").strip() if self._proc.stderr else ""
            code = self._proc.returncode
            self._proc = None
            raise CaptureError(f"{self.ffmpeg_bin} exited with code {code}: {stderr or 'no stderr'}")

    def stop(self, timeout_s: float = 3.0):
        """Stop ffmpeg; SIGINT first so the last segment is finalized"""
        if self._proc is None:
            return

        if self._proc.poll() is None:
            self._proc.send_signal(signal.SIGINT)
            try:
                self._proc.wait(timeout=timeout_s)
            except subprocess.TimeoutExpired:
                logger.warning(f"{self.ffmpeg_bin} did not stop in {timeout_s}s, killing it")
                self._proc.kill()
                self._proc.wait()

        if self._proc.stderr:
            self._proc.stderr.close()
        logger.info(f"Capture stopped (exit code {self._proc.returncode})")
        self._proc = None


class SegmentWatcher:
    """
    Yields each finished segment file exactly once, in capture order.

    Iterating yields a Path for every finished segment and None on idle
    ticks (after waiting poll_interval), so the caller gets control back
    regularly. After stop() the newest segment counts as finished too, and
    iteration ends once everything was yielded.
    """

    def __init__(self, directory: Path, poll_interval: float = POLL_INTERVAL_SECONDS, suffix: str = ".wav"):
        self.directory = Path(directory)
        self.poll_interval = poll_interval
        self.suffix = suffix

        self._seen: Set[Path] = set()
        self._stopped = threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def stop(self):
        self._stopped.set()

    def _segments(self) -> List[Path]:
        if not self.directory.is_dir():
            return []
        return sorted(p for p in self.directory.iterdir() if p.suffix == self.suffix)

    def poll(self) -> List[Path]:
        """Finished segments not yielded before"""
        segments = self._segments()
        if not self.stopped:
            # newest file is still being written
            segments = segments[:-1]
        fresh = [p for p in segments if p not in self._seen]
        self._seen.update(fresh)
        return fresh

    def __iter__(self) -> Iterator[Optional[Path]]:
        while True:
            stopped = self.stopped
            fresh = self.poll()
            if fresh:
                yield from fresh
                continue
            if stopped:
                return
            self._stopped.wait(self.poll_interval)
            yield None
