"""
Diagnostics sink for translation fallbacks and pipeline errors.

Each event becomes one `[YYYY-mm-dd HH:MM:SS] message` line in the session
error log (when a path is given) and a warning in the application log.
"""

import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from config.constants import DIAGNOSTICS_TIME_FORMAT, ERROR_TEXT_MAX_CHARS
from config.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DiagnosticEvent:
    timestamp: datetime
    message: str

    def format(self) -> str:
        return f"[{self.timestamp.strftime(DIAGNOSTICS_TIME_FORMAT)}] {self.message}"


def truncate(text: str, limit: int = ERROR_TEXT_MAX_CHARS) -> str:
    """Single-line, length-capped version of an error text"""
    flat = " ".join(text.replace("\0", " ").split())
    if len(flat) <= limit:
        return flat
    return flat[:limit - 3] + "..."


class DiagnosticsLog:
    """Append-only, thread-safe event log"""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else None
        self._lock = threading.Lock()
        self._events: List[DiagnosticEvent] = []

        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text("", encoding="utf-8")

    @property
    def events(self) -> List[DiagnosticEvent]:
        with self._lock:
            return list(self._events)

    def record(self, message: str) -> DiagnosticEvent:
        event = DiagnosticEvent(timestamp=datetime.now(), message=message)
        with self._lock:
            self._events.append(event)
            if self.path is not None:
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(event.format() + "\n")
        logger.warning(message)
        return event

    def record_fallback(self, stage: str, ids: Sequence[int], reason: str) -> DiagnosticEvent:
        id_list = ",".join(str(i) for i in ids)
        return self.record(f"{stage} [ids {id_list}]: {truncate(reason)}")

    def has_entries(self) -> bool:
        with self._lock:
            return bool(self._events)

    def discard_if_empty(self) -> bool:
        """Remove the error log file when nothing was recorded"""
        if self.path is None or self.has_entries():
            return False
        self.path.unlink(missing_ok=True)
        return True
