"""
Completion channel: many worker writers, one controller reader.
"""

import queue
import threading
from typing import List, Optional

from .errors import ChannelClosedError
from .models import Completion


class CompletionChannel:
    """
    Unbounded thread-safe conduit for Completions.

    Workers call put() from the dispatcher's loop thread; only the
    controller thread reads. After close() writers get ChannelClosedError,
    anything already queued can still be read.
    """

    def __init__(self):
        self._queue: "queue.SimpleQueue[Completion]" = queue.SimpleQueue()
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def put(self, completion: Completion):
        if self._closed.is_set():
            raise ChannelClosedError(f"channel closed, dropped completion {completion.id}")
        self._queue.put(completion)

    def get(self, timeout: Optional[float] = None) -> Optional[Completion]:
        """Block up to timeout seconds for one completion; None if none came"""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def get_nowait_all(self) -> List[Completion]:
        """Everything currently queued, without blocking"""
        items = []
        while True:
            try:
                items.append(self._queue.get_nowait())
            except queue.Empty:
                return items

    def close(self):
        self._closed.set()

    def __len__(self) -> int:
        return self._queue.qsize()
