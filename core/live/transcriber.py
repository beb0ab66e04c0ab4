"""
Speech-to-text for one audio segment via the `yap` command line tool.
"""

import subprocess
from pathlib import Path

from config.constants import TRANSCRIBE_TIMEOUT_SECONDS
from config.logging_config import get_logger

from .text_filters import clean_transcript

logger = get_logger(__name__)


class Transcriber:
    """Runs `yap transcribe PATH --locale LOCALE`"""

    def __init__(self, locale: str, yap_bin: str = "yap", timeout: float = TRANSCRIBE_TIMEOUT_SECONDS):
        self.locale = locale
        self.yap_bin = yap_bin
        self.timeout = timeout

    def build_command(self, path: Path):
        return [self.yap_bin, "transcribe", str(path), "--locale", self.locale]

    def transcribe(self, path: Path) -> str:
        """Cleaned transcript, or '' when yap fails; a bad segment is skipped, never fatal"""
        try:
            result = subprocess.run(
                self.build_command(path),
                capture_output=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"Transcription of {path.name} timed out after {self.timeout}s")
            return ""
        except OSError as e:
            logger.warning(f"Could not run {self.yap_bin}: {e}")
            return ""

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            logger.debug(f"{self.yap_bin} exited with code {result.returncode} for {path.name}: {stderr}")
            return ""

        return clean_transcript(result.stdout.decode("utf-8", errors="replace"))
