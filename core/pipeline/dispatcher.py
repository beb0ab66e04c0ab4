#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Dispatchers - hand chunks to translation workers

Workers are asyncio tasks on a private event loop that runs in a daemon
thread. They never touch controller state: their only output path is the
CompletionChannel. Two policies:

- PerChunkDispatcher: one task per chunk, unbounded parallelism
- BatchedDispatcher: one long-lived task that coalesces chunks and flushes
  on a size threshold or a time threshold, whichever comes first
"""

import asyncio
import threading
from abc import ABC, abstractmethod
from typing import List, Optional, Set

from config.constants import BATCH_FLUSH_INTERVAL, BATCH_SIZE, LOOP_SHUTDOWN_TIMEOUT
from config.logging_config import get_logger

from .adapter import TranslationAdapter
from .channel import CompletionChannel
from .errors import ChannelClosedError, DispatcherUnavailableError
from .models import Chunk, Completion, DispatchPolicy

logger = get_logger(__name__)


class BaseDispatcher(ABC):
    """
    Owns the worker event loop and the hand-off to the channel.

    Usage:
        dispatcher = PerChunkDispatcher(adapter, channel)
        dispatcher.start()
        dispatcher.dispatch(Chunk(id=1, text="hello"))
        ...
        dispatcher.shutdown()
    """

    policy: DispatchPolicy

    def __init__(self, adapter: TranslationAdapter, channel: CompletionChannel):
        self.adapter = adapter
        self.channel = channel

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._started = threading.Event()
        self._is_running = False

        # Channel write failures
        self._degraded = False
        self._undelivered: List[Completion] = []
        self._lock = threading.Lock()

    # =========================================
    # Loop lifecycle
    # =========================================

    def start(self):
        """Start the worker loop in a background thread"""
        if self._is_running:
            return

        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_loop,
            name=f"{self.policy.value}-dispatcher",
            daemon=True
        )
        self._thread.start()
        self._started.wait()
        self._is_running = True
        self._call_in_loop(self._on_loop_started)
        logger.debug(f"{type(self).__name__} started")

    def _run_loop(self):
        asyncio.set_event_loop(self._loop)
        self._loop.call_soon(self._started.set)
        try:
            self._loop.run_forever()
        finally:
            self._loop.run_until_complete(self._loop.shutdown_asyncgens())
            self._loop.close()

    def _call_in_loop(self, callback, *args):
        self._loop.call_soon_threadsafe(callback, *args)

    @property
    def is_running(self) -> bool:
        return self._is_running and self._thread is not None and self._thread.is_alive()

    def _on_loop_started(self):
        """Hook run on the loop thread once it is up"""
        pass

    # =========================================
    # Hand-off
    # =========================================

    @property
    def degraded(self) -> bool:
        return self._degraded

    def _emit(self, completions: List[Completion]):
        """Put completions on the channel; keep them aside if it refuses"""
        for completion in completions:
            try:
                self.channel.put(completion)
            except ChannelClosedError as e:
                with self._lock:
                    if not self._degraded:
                        logger.error(f"Completion hand-off failed ({e}); translation disabled for this session")
                    self._degraded = True
                    self._undelivered.append(completion)

    def take_undelivered(self) -> List[Completion]:
        """Completions whose channel write failed, for the controller to fold in"""
        with self._lock:
            items, self._undelivered = self._undelivered, []
        return items

    async def _work(self, chunks: List[Chunk]):
        """One worker run; always emits exactly one completion per chunk"""
        try:
            if len(chunks) == 1 and self.policy == DispatchPolicy.PER_CHUNK:
                completions = [await self.adapter.translate_one(chunks[0])]
            else:
                completions = await self.adapter.translate_batch(chunks)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Worker crashed for ids {[c.id for c in chunks]}")
            reason = f"worker error: {type(e).__name__}: {e}"
            self.adapter.diagnostics.record_fallback("worker", [c.id for c in chunks], reason)
            completions = [Completion.fallback(c, reason) for c in chunks]
        self._emit(completions)

    # =========================================
    # Policy interface
    # =========================================

    def dispatch(self, chunk: Chunk):
        """
        Hand a chunk to a worker without waiting for it.

        Raises:
            DispatcherUnavailableError: worker loop is not running
        """
        if not self.is_running:
            raise DispatcherUnavailableError("translation worker loop is not running")
        try:
            self._schedule(chunk)
        except RuntimeError as e:
            # loop closed under us
            raise DispatcherUnavailableError(str(e))

    @abstractmethod
    def _schedule(self, chunk: Chunk):
        """Called on the controller thread; must not block"""
        pass

    def flush(self):
        """Start work on anything buffered right away (no-op unless batching)"""
        pass

    # =========================================
    # Shutdown
    # =========================================

    async def _cancel_outstanding(self):
        current = asyncio.current_task()
        tasks = [t for t in asyncio.all_tasks() if t is not current]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        await self.adapter.aclose()

    def shutdown(self, timeout: float = LOOP_SHUTDOWN_TIMEOUT):
        """Hard-stop: cancel every worker (killing engine processes) and stop the loop"""
        if not self._is_running:
            return
        self._is_running = False

        if self._thread is not None and self._thread.is_alive():
            future = asyncio.run_coroutine_threadsafe(self._cancel_outstanding(), self._loop)
            try:
                future.result(timeout=timeout)
            except Exception as e:
                logger.warning(f"Worker cancellation did not finish cleanly: {e}")
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("Dispatcher loop thread still alive after shutdown timeout")

        logger.debug(f"{type(self).__name__} stopped")


class PerChunkDispatcher(BaseDispatcher):
    """One worker task per chunk; chunk N+1 never waits on chunk N"""

    policy = DispatchPolicy.PER_CHUNK

    def __init__(self, adapter: TranslationAdapter, channel: CompletionChannel):
        super().__init__(adapter, channel)
        self._futures: Set = set()

    def _schedule(self, chunk: Chunk):
        future = asyncio.run_coroutine_threadsafe(self._work([chunk]), self._loop)
        with self._lock:
            self._futures.add(future)
        future.add_done_callback(self._forget)

    def _forget(self, future):
        with self._lock:
            self._futures.discard(future)

    @property
    def active_workers(self) -> int:
        with self._lock:
            return len(self._futures)


_FLUSH = object()


class BatchedDispatcher(BaseDispatcher):
    """
    Single long-lived worker that coalesces chunks.

    A batch is flushed with one adapter call when it reaches batch_size
    chunks, or flush_interval seconds after its first chunk arrived,
    whichever comes first. The inbox wait times out at the flush deadline,
    so an idle buffer still gets flushed.
    """

    policy = DispatchPolicy.BATCHED

    def __init__(
        self,
        adapter: TranslationAdapter,
        channel: CompletionChannel,
        batch_size: int = BATCH_SIZE,
        flush_interval: float = BATCH_FLUSH_INTERVAL,
    ):
        super().__init__(adapter, channel)
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if flush_interval <= 0:
            raise ValueError("flush_interval must be positive")
        self.batch_size = batch_size
        self.flush_interval = flush_interval
        self.flush_count = 0

        self._inbox: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None

    def _on_loop_started(self):
        self._inbox = asyncio.Queue()
        self._worker = self._loop.create_task(self._batch_loop())

    def _schedule(self, chunk: Chunk):
        self._call_in_loop(self._enqueue, chunk)

    def _enqueue(self, item):
        # arrival time on the loop clock, so a slow flush doesn't push deadlines back
        self._inbox.put_nowait((item, self._loop.time()))

    def flush(self):
        if self.is_running:
            self._call_in_loop(self._enqueue, _FLUSH)

    async def _flush(self, buffer: List[Chunk], trigger: str):
        self.flush_count += 1
        logger.debug(f"Flushing batch of {len(buffer)} ({trigger}): ids {[c.id for c in buffer]}")
        await self._work(buffer)

    async def _batch_loop(self):
        loop = asyncio.get_running_loop()
        buffer: List[Chunk] = []
        deadline: Optional[float] = None

        while True:
            timeout = None if not buffer else max(0.0, deadline - loop.time())
            try:
                item, arrived_at = await asyncio.wait_for(self._inbox.get(), timeout=timeout)
            except asyncio.TimeoutError:
                await self._flush(buffer, "interval")
                buffer, deadline = [], None
                continue

            if item is _FLUSH:
                if buffer:
                    await self._flush(buffer, "forced")
                    buffer, deadline = [], None
                continue

            if not buffer:
                deadline = arrived_at + self.flush_interval
            buffer.append(item)

            if len(buffer) >= self.batch_size:
                await self._flush(buffer, "size")
                buffer, deadline = [], None


def create_dispatcher(
    policy,
    adapter: TranslationAdapter,
    channel: CompletionChannel,
    batch_size: int = BATCH_SIZE,
    flush_interval: float = BATCH_FLUSH_INTERVAL,
) -> BaseDispatcher:
    """Build the dispatcher for a policy name or DispatchPolicy"""
    policy = DispatchPolicy(policy)
    if policy == DispatchPolicy.BATCHED:
        return BatchedDispatcher(adapter, channel, batch_size=batch_size, flush_interval=flush_interval)
    return PerChunkDispatcher(adapter, channel)
