"""
Rolling caption window and session transcript log.

Lines are only ever appended: a source line shows up when the chunk is
submitted, its translation is appended later in submission order. The
terminal shows the last `window` lines under a header; the log file gets
every line.
"""

from pathlib import Path
from typing import Callable, List, Optional

from rich.console import Console, Group
from rich.live import Live
from rich.text import Text

from config.constants import DISPLAY_REFRESH_PER_SECOND, DISPLAY_WINDOW
from config.logging_config import get_logger
from core.pipeline.models import Completion

logger = get_logger(__name__)


class TranscriptDisplay:
    """
    Args:
        source_locale: Label for source lines
        target_lang: Label for translated lines ('' in transcription-only mode)
        window: Number of lines shown
        log_file: Session transcript log (every line is appended)
        pending_count: Returns the number of translations in flight
        console: rich Console to render on
        live: Render with rich Live; False keeps everything in memory
    """

    def __init__(
        self,
        source_locale: str,
        target_lang: str = "",
        window: int = DISPLAY_WINDOW,
        log_file: Optional[Path] = None,
        pending_count: Optional[Callable[[], int]] = None,
        console: Optional[Console] = None,
        live: bool = True,
    ):
        self.source_locale = source_locale
        self.target_lang = target_lang
        self.window = max(1, window)
        self.log_file = Path(log_file) if log_file is not None else None
        self.pending_count = pending_count or (lambda: 0)
        self.console = console or Console()

        self.lines: List[str] = []
        self._use_live = live
        self._live: Optional[Live] = None

        if self.log_file is not None:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            self.log_file.touch()

    @property
    def translating(self) -> bool:
        return bool(self.target_lang)

    # =========================================
    # Lines
    # =========================================

    def append(self, line: str):
        self.lines.append(line)
        if self.log_file is not None:
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        self.refresh()

    def add_transcript(self, text: str):
        """Transcription-only mode: the text itself"""
        self.append(text)

    def add_source(self, text: str):
        self.append(f"[{self.source_locale}] {text} (→ {self.target_lang} pending)")

    def deliver(self, completion: Completion):
        """Delivery sink for the pipeline controller"""
        self.append(f"[{self.target_lang}] {completion.text}")

    # =========================================
    # Rendering
    # =========================================

    def header(self) -> str:
        if self.translating:
            return (
                f"—— Live Translation ({self.source_locale} → {self.target_lang} "
                f"| pending: {self.pending_count()}) ——"
            )
        return f"—— Live Transcription ({self.source_locale}) ——"

    def visible_lines(self) -> List[str]:
        return self.lines[-self.window:]

    def render(self) -> Group:
        # Text() so transcripts containing [brackets] are not read as markup
        parts = [Text(self.header(), style="bold"), Text(f"(showing last {self.window})", style="dim")]
        parts.extend(Text(line) for line in self.visible_lines())
        return Group(*parts)

    def render_text(self) -> str:
        return "\n".join([self.header(), f"(showing last {self.window})"] + self.visible_lines())

    def refresh(self):
        if self._live is not None:
            self._live.update(self.render(), refresh=True)

    # =========================================
    # Lifecycle
    # =========================================

    def start(self) -> 'TranscriptDisplay':
        if self._use_live and self._live is None:
            self._live = Live(
                self.render(),
                console=self.console,
                refresh_per_second=DISPLAY_REFRESH_PER_SECOND,
                transient=False,
            )
            self._live.start()
        return self

    def stop(self):
        if self._live is not None:
            self._live.update(self.render(), refresh=True)
            self._live.stop()
            self._live = None

    def __enter__(self) -> 'TranscriptDisplay':
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.stop()
