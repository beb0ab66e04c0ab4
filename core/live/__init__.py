"""
Live capture session: microphone segments -> transcript -> captions.
"""

from .capture import SegmentRecorder, SegmentWatcher
from .dependencies import need, need_all, session_requirements
from .display import TranscriptDisplay
from .errors import CaptureError, LiveSessionError, MissingDependencyError
from .session import LiveSession
from .text_filters import clean_transcript, has_meaningful_text
from .transcriber import Transcriber

__all__ = [
    "CaptureError",
    "LiveSession",
    "LiveSessionError",
    "MissingDependencyError",
    "SegmentRecorder",
    "SegmentWatcher",
    "TranscriptDisplay",
    "Transcriber",
    "clean_transcript",
    "has_meaningful_text",
    "need",
    "need_all",
    "session_requirements",
]
