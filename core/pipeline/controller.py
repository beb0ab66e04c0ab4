#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PipelineController - ordered asynchronous translation

Owns the sequence counter, the pending set and the reorder buffer. Runs
entirely on the caller's thread: submit() and poll() never block, drain()
blocks until every outstanding id is resolved (or forced to a fallback once
the abandonment timeout expires).

Usage:
    channel = CompletionChannel()
    dispatcher = PerChunkDispatcher(adapter, channel)
    with PipelineController(dispatcher, channel, sink=display.deliver) as pipeline:
        for text in transcripts:
            pipeline.submit(text)
            pipeline.poll()
    # leaving the block drains, stops workers and closes the channel
"""

import time
from typing import Callable, Dict, List, Optional

from tqdm import tqdm

from config.constants import ABANDON_TIMEOUT_SECONDS, DRAIN_WAIT_SLICE
from config.logging_config import get_logger

from .channel import CompletionChannel
from .diagnostics import DiagnosticsLog
from .dispatcher import BaseDispatcher
from .errors import DispatcherUnavailableError
from .models import Chunk, Completion, PipelineStats
from .reorder import ReorderBuffer

logger = get_logger(__name__)

DeliverySink = Callable[[Completion], None]


def _always_meaningful(text: str) -> bool:
    return True


class PipelineController:
    """
    Single-consumer front end of the pipeline.

    Args:
        dispatcher: Worker policy (per-chunk or batched)
        channel: Channel the dispatcher's workers write to
        sink: Called once per delivered completion, in strict id order
        diagnostics: Sink for degraded-mode and abandonment events
        is_meaningful: Filter deciding which texts get an id
        abandon_timeout: How long drain() waits for stragglers (seconds)
        show_progress: Show a progress bar while draining
    """

    def __init__(
        self,
        dispatcher: BaseDispatcher,
        channel: CompletionChannel,
        sink: Optional[DeliverySink] = None,
        diagnostics: Optional[DiagnosticsLog] = None,
        is_meaningful: Callable[[str], bool] = _always_meaningful,
        abandon_timeout: float = ABANDON_TIMEOUT_SECONDS,
        show_progress: bool = False,
    ):
        self.dispatcher = dispatcher
        self.channel = channel
        self.sink = sink
        self.diagnostics = diagnostics or dispatcher.adapter.diagnostics
        self.is_meaningful = is_meaningful
        self.abandon_timeout = abandon_timeout
        self.show_progress = show_progress

        self._next_id = 1
        self._pending: Dict[int, Chunk] = {}
        self._reorder = ReorderBuffer(first_id=1)
        self._local: List[Completion] = []  # resolved without a worker
        self._warned_degraded = False
        self._closed = False

        self.stats = PipelineStats()

    # =========================================
    # Lifecycle
    # =========================================

    def start(self) -> 'PipelineController':
        self.dispatcher.start()
        return self

    def __enter__(self) -> 'PipelineController':
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # =========================================
    # State
    # =========================================

    @property
    def next_id(self) -> int:
        """Id the next accepted chunk will get"""
        return self._next_id

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def pending_ids(self) -> List[int]:
        return sorted(self._pending)

    @property
    def degraded(self) -> bool:
        return self.dispatcher.degraded

    @property
    def settled(self) -> bool:
        """Nothing pending, nothing held, no gaps"""
        return not self._pending and self._reorder.is_settled(self._next_id)

    # =========================================
    # Submit / poll
    # =========================================

    def submit(self, text: str) -> Optional[int]:
        """
        Accept one piece of source text.

        Returns:
            The chunk id, or None when the text is empty or not meaningful
            (rejected text consumes no id).
        """
        text = (text or "").strip()
        if not text or not self.is_meaningful(text):
            self.stats.rejected += 1
            logger.debug(f"Rejected chunk text: {text!r}")
            return None

        chunk = Chunk(id=self._next_id, text=text)
        self._next_id += 1
        self._pending[chunk.id] = chunk
        self.stats.submitted += 1

        if self.dispatcher.degraded:
            self._resolve_locally(chunk, "translation disabled mid-run; emitting raw transcription")
            return chunk.id

        try:
            self.dispatcher.dispatch(chunk)
        except DispatcherUnavailableError as e:
            logger.error(f"Dispatch of chunk {chunk.id} failed: {e}")
            self._resolve_locally(chunk, "translation pipeline unavailable, falling back to raw transcript")
        return chunk.id

    def _resolve_locally(self, chunk: Chunk, reason: str):
        if not self._warned_degraded:
            self.diagnostics.record(reason)
            self._warned_degraded = True
        self._local.append(Completion.fallback(chunk, reason))

    def poll(self) -> List[Completion]:
        """Fold in everything that has arrived; return what became deliverable"""
        arrived = self._local + self.dispatcher.take_undelivered() + self.channel.get_nowait_all()
        self._local = []
        return self._fold(arrived)

    def _fold(self, completions: List[Completion]) -> List[Completion]:
        delivered: List[Completion] = []
        for completion in completions:
            if completion.id not in self._pending:
                self.stats.ignored += 1
                logger.error(
                    f"Sequence invariant violated: completion for unknown or delivered id "
                    f"{completion.id}; ignoring"
                )
                continue
            releasable = self._reorder.offer(completion)
            if releasable is None:
                # duplicate of a held completion
                self.stats.ignored += 1
                continue
            for released in releasable:
                self._deliver(released)
                delivered.append(released)
        return delivered

    def _deliver(self, completion: Completion):
        self._pending.pop(completion.id, None)
        self.stats.record_delivery(completion)
        if self.sink is not None:
            self.sink(completion)

    # =========================================
    # Drain / close
    # =========================================

    def drain(self) -> List[Completion]:
        """
        Block until every submitted id is delivered.

        Ids still outstanding after abandon_timeout are resolved to their
        source text so shutdown always terminates.
        """
        delivered = self.poll()
        if not self._pending:
            return delivered

        self.dispatcher.flush()
        deadline = time.monotonic() + self.abandon_timeout

        with tqdm(
            total=len(self._pending),
            desc="Finishing translations",
            unit="chunk",
            disable=not self.show_progress,
            leave=False,
        ) as progress_bar:
            while self._pending:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                first = self.channel.get(timeout=min(remaining, DRAIN_WAIT_SLICE))
                arrived = [first] if first is not None else []
                arrived += self._local + self.dispatcher.take_undelivered() + self.channel.get_nowait_all()
                self._local = []
                if not arrived and not self.dispatcher.is_running:
                    # workers are gone, nothing more will arrive
                    break
                released = self._fold(arrived)
                progress_bar.update(len(released))
                delivered.extend(released)

        if self._pending:
            delivered.extend(self._abandon_outstanding(
                f"no translation within {self.abandon_timeout}s; using source text"
            ))
        return delivered

    def abandon(self) -> List[Completion]:
        """Deliver what has arrived, then resolve every other pending id to its source text"""
        delivered = self.poll()
        if self._pending:
            delivered.extend(self._abandon_outstanding("interrupted while draining; using source text"))
        return delivered

    def _abandon_outstanding(self, reason: str) -> List[Completion]:
        # held ids already have their completion, they only wait on a gap
        held = set(self._reorder.held_ids)
        ids = [i for i in self.pending_ids if i not in held]
        self.stats.abandoned += len(ids)
        self.diagnostics.record_fallback("drain", ids, reason)
        forced = [Completion.fallback(self._pending[i], "abandoned") for i in ids]
        return self._fold(forced)

    def close(self):
        """Drain, stop every worker, release the channel"""
        if self._closed:
            return
        self._closed = True
        try:
            self.drain()
        except KeyboardInterrupt:
            logger.warning("Interrupted while draining; remaining chunks keep their source text")
            self.abandon()
            raise
        finally:
            self.dispatcher.shutdown()
            self.channel.close()
        logger.info(f"Pipeline closed: {self.stats.to_dict()}")
