#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Data model for the ordered translation pipeline.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class DispatchPolicy(str, Enum):
    """How chunks are handed to translation workers"""
    PER_CHUNK = "per-chunk"    # one worker per chunk
    BATCHED = "batched"        # one long-lived worker coalescing chunks


@dataclass(frozen=True)
class Chunk:
    """One unit of source text with its position in the stream"""
    id: int
    text: str


@dataclass(frozen=True)
class TranslationRequest:
    """A chunk plus everything the engine needs to translate it"""
    chunk: Chunk
    source_locale: str
    target_lang: str
    model: str


@dataclass(frozen=True)
class Completion:
    """Resolved translation for one chunk id (possibly the source text)"""
    id: int
    text: str
    succeeded: bool = True
    reason: Optional[str] = None

    @classmethod
    def fallback(cls, chunk: Chunk, reason: str) -> 'Completion':
        """Source text stands in for a translation that didn't happen"""
        return cls(id=chunk.id, text=chunk.text, succeeded=False, reason=reason)


@dataclass
class PipelineStats:
    """Counters for one session"""
    submitted: int = 0
    rejected: int = 0
    delivered: int = 0
    translated: int = 0
    fallbacks: int = 0
    abandoned: int = 0
    ignored: int = 0  # duplicate / unknown completions

    def record_delivery(self, completion: Completion):
        self.delivered += 1
        if completion.succeeded:
            self.translated += 1
        else:
            self.fallbacks += 1

    def to_dict(self) -> dict:
        return {
            "submitted": self.submitted,
            "rejected": self.rejected,
            "delivered": self.delivered,
            "translated": self.translated,
            "fallbacks": self.fallbacks,
            "abandoned": self.abandoned,
            "ignored": self.ignored,
        }
