"""
Ordered Translation Pipeline
Live Yap - Asynchronous caption translation

Chunks are submitted in order, translated concurrently by workers on a
background event loop, and delivered back strictly in submission order.
Every submitted chunk is delivered exactly once: as its translation, or as
its own source text when translation fails.

Usage:
    from core.pipeline import build_pipeline
    from engines import EchoEngine

    pipeline = build_pipeline(EchoEngine(), "en-US", "French", sink=print)
    with pipeline:
        pipeline.submit("hello")
"""

from typing import Callable, Optional

from .adapter import (
    TranslationAdapter,
    clean_line,
    parse_batch_output,
    parse_single_output,
)
from .channel import CompletionChannel
from .controller import PipelineController
from .diagnostics import DiagnosticEvent, DiagnosticsLog, truncate
from .dispatcher import (
    BaseDispatcher,
    BatchedDispatcher,
    PerChunkDispatcher,
    create_dispatcher,
)
from .errors import (
    ChannelClosedError,
    DispatcherUnavailableError,
    PipelineError,
    TransientEngineFailure,
)
from .models import Chunk, Completion, DispatchPolicy, PipelineStats, TranslationRequest
from .reorder import ReorderBuffer


def build_pipeline(
    engine,
    source_locale: str,
    target_lang: str,
    sink: Optional[Callable[[Completion], None]] = None,
    diagnostics: Optional[DiagnosticsLog] = None,
    policy=DispatchPolicy.PER_CHUNK,
    **options,
) -> PipelineController:
    """
    Wire adapter, channel, dispatcher and controller around one engine.

    Options: model, timeout, batch_size, flush_interval, is_meaningful,
    abandon_timeout, show_progress.
    """
    diagnostics = diagnostics or DiagnosticsLog()
    adapter_kwargs = {k: options.pop(k) for k in ("model", "timeout") if k in options}
    adapter = TranslationAdapter(
        engine, source_locale, target_lang, diagnostics=diagnostics, **adapter_kwargs
    )
    channel = CompletionChannel()
    dispatch_kwargs = {k: options.pop(k) for k in ("batch_size", "flush_interval") if k in options}
    dispatcher = create_dispatcher(policy, adapter, channel, **dispatch_kwargs)
    return PipelineController(dispatcher, channel, sink=sink, diagnostics=diagnostics, **options)


__all__ = [
    # Models
    "Chunk",
    "Completion",
    "DispatchPolicy",
    "PipelineStats",
    "TranslationRequest",

    # Components
    "BaseDispatcher",
    "BatchedDispatcher",
    "CompletionChannel",
    "DiagnosticEvent",
    "DiagnosticsLog",
    "PerChunkDispatcher",
    "PipelineController",
    "ReorderBuffer",
    "TranslationAdapter",

    # Helpers
    "build_pipeline",
    "clean_line",
    "create_dispatcher",
    "parse_batch_output",
    "parse_single_output",
    "truncate",

    # Errors
    "ChannelClosedError",
    "DispatcherUnavailableError",
    "PipelineError",
    "TransientEngineFailure",
]
