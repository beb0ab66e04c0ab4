#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Translation service adapter.

Builds prompts, invokes an engine once per request, and turns whatever the
engine returns into exactly one Completion per chunk id. Nothing raised by
the engine escapes: every failure becomes a fallback Completion carrying the
source text, and is reported to diagnostics.

Wire contract with the engine output:
- single mode: the first non-empty line, control characters removed and
  internal whitespace collapsed
- batch mode: a JSON array of {"id": <int>, "text": <str>} objects (or an
  object with a "translations" array); when the model wraps it in prose the
  first embedded [...] value that decodes to such a list is used. Invalid
  items are skipped so only their ids fall back
"""

import asyncio
import json
import re
import unicodedata
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, ValidationError

from config.constants import ENGINE_TIMEOUT_SECONDS, STDOUT_TRACE_CHARS
from config.logging_config import get_logger
from engines.base import BaseEngine

from .diagnostics import DiagnosticsLog, truncate
from .errors import TransientEngineFailure
from .models import Chunk, Completion, TranslationRequest

logger = get_logger(__name__)

SINGLE_PROMPT = (
    "### System Instruction\n"
    "You are a careful translator. Translate the user text from {source} to {target}. "
    "Reply with the translation only.\n\n"
    "### User Text\n"
    "{text}"
)

BATCH_PROMPT = (
    "### System Instruction\n"
    "You are a careful translator. Translate every item below from {source} to {target}. "
    "Reply with a JSON array only, one object per item in the form "
    "{{\"id\": <id>, \"text\": \"<translation>\"}}. Keep every id exactly as given.\n\n"
    "### Items\n"
    "{items}"
)

_WHITESPACE_RUN = re.compile(r"\s+")


class BatchItem(BaseModel):
    """One tagged result in a batch response"""
    id: int
    text: str


def clean_line(text: str) -> str:
    """Drop NUL and control characters, collapse whitespace, trim"""
    kept = []
    for ch in text:
        if ch.isspace():
            kept.append(" ")
        elif unicodedata.category(ch) == "Cc":
            continue
        else:
            kept.append(ch)
    return _WHITESPACE_RUN.sub(" ", "".join(kept)).strip()


def parse_single_output(raw: str) -> str:
    """First non-empty line of engine output, cleaned; '' if there is none"""
    for line in raw.replace("\r", "\n").split("\n"):
        cleaned = clean_line(line)
        if cleaned:
            return cleaned
    return ""


def _load_items(candidate) -> Optional[List[BatchItem]]:
    """Valid items of a decoded response; None if it is not a tagged list"""
    data = candidate
    if isinstance(data, dict):
        data = data.get("translations")
    if not isinstance(data, list):
        return None

    items = []
    for element in data:
        try:
            items.append(BatchItem.model_validate(element))
        except ValidationError:
            # the id falls through to "missing from batch response"
            logger.warning(f"Skipping invalid batch item: {truncate(repr(element))}")
    if data and not items:
        return None
    return items


def _decode_embedded(text: str) -> Optional[List[BatchItem]]:
    """First [...] value inside prose that decodes to a tagged list"""
    decoder = json.JSONDecoder()
    start = text.find("[")
    while start != -1:
        try:
            data, _ = decoder.raw_decode(text, start)
        except ValueError:
            data = None
        if data is not None:
            items = _load_items(data)
            if items is not None:
                return items
        start = text.find("[", start + 1)
    return None


def parse_batch_output(raw: str) -> Dict[int, str]:
    """
    Map id -> translation from a batch response.

    Invalid items are skipped, so their ids count as missing.

    Raises:
        ValueError: output holds no parseable tagged list
    """
    text = raw.strip()
    items = None
    if text:
        try:
            items = _load_items(json.loads(text))
        except ValueError:
            items = None
    if items is None:
        items = _decode_embedded(text)
    if items is None:
        raise ValueError("response is not a JSON list of {id, text} items")

    translations: Dict[int, str] = {}
    for item in items:
        cleaned = clean_line(item.text)
        if cleaned and item.id not in translations:
            translations[item.id] = cleaned
    return translations


class TranslationAdapter:
    """
    Stateless wrapper around one engine for one language pair.

    Args:
        engine: Engine that runs prompts
        source_locale: Source language/locale label used in prompts
        target_lang: Target language label used in prompts
        model: Model identifier (informational, engines carry their own)
        diagnostics: Sink for fallback events
        timeout: Upper bound for one engine invocation (seconds)
    """

    def __init__(
        self,
        engine: BaseEngine,
        source_locale: str,
        target_lang: str,
        model: str = "",
        diagnostics: Optional[DiagnosticsLog] = None,
        timeout: float = ENGINE_TIMEOUT_SECONDS,
    ):
        self.engine = engine
        self.source_locale = source_locale
        self.target_lang = target_lang
        self.model = model or engine.config.model
        self.diagnostics = diagnostics or DiagnosticsLog()
        self.timeout = timeout

    def request_for(self, chunk: Chunk) -> TranslationRequest:
        return TranslationRequest(
            chunk=chunk,
            source_locale=self.source_locale,
            target_lang=self.target_lang,
            model=self.model,
        )

    def build_single_prompt(self, request: TranslationRequest) -> str:
        return SINGLE_PROMPT.format(
            source=request.source_locale,
            target=request.target_lang,
            text=request.chunk.text,
        )

    def build_batch_prompt(self, requests: Sequence[TranslationRequest]) -> str:
        items = [{"id": r.chunk.id, "text": r.chunk.text} for r in requests]
        return BATCH_PROMPT.format(
            source=self.source_locale,
            target=self.target_lang,
            items=json.dumps(items, ensure_ascii=False),
        )

    async def _invoke(self, stage: str, ids: Sequence[int], prompt: str) -> str:
        """One engine call; raw output on success, TransientEngineFailure otherwise"""
        try:
            result = await asyncio.wait_for(self.engine.run(prompt), timeout=self.timeout)
        except asyncio.TimeoutError:
            raise TransientEngineFailure(stage, ids, f"{self.engine.name} timed out after {self.timeout}s")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise TransientEngineFailure(stage, ids, f"{self.engine.name} failed: {type(e).__name__}: {e}")

        logger.debug(f"{stage} ids={list(ids)} stdout: {result.raw_output[:STDOUT_TRACE_CHARS]!r}")

        if not result.ok:
            err = truncate(result.stderr) or "no stderr"
            raise TransientEngineFailure(
                stage, ids, f"{self.engine.name} exited with code {result.exit_status}: {err}"
            )
        if not result.raw_output.strip():
            raise TransientEngineFailure(
                stage, ids, f"{self.engine.name} returned empty translation; falling back to source text"
            )
        return result.raw_output

    def _fallback(self, stage: str, chunks: Sequence[Chunk], reason: str) -> List[Completion]:
        self.diagnostics.record_fallback(stage, [c.id for c in chunks], reason)
        return [Completion.fallback(c, reason) for c in chunks]

    async def translate_one(self, chunk: Chunk) -> Completion:
        """Translate a single chunk; never raises except on cancellation"""
        prompt = self.build_single_prompt(self.request_for(chunk))
        try:
            raw = await self._invoke("translate", [chunk.id], prompt)
        except TransientEngineFailure as e:
            return self._fallback("translate", [chunk], e.detail)[0]

        translation = parse_single_output(raw)
        if not translation:
            return self._fallback(
                "translate", [chunk],
                f"{self.engine.name} returned empty translation; falling back to source text",
            )[0]
        return Completion(id=chunk.id, text=translation)

    async def translate_batch(self, chunks: Sequence[Chunk]) -> List[Completion]:
        """
        Translate several chunks with one engine call.

        Ids the response leaves out fall back individually; an unusable
        response falls back for the whole batch.
        """
        if not chunks:
            return []

        ids = [c.id for c in chunks]
        prompt = self.build_batch_prompt([self.request_for(c) for c in chunks])
        try:
            raw = await self._invoke("translate-batch", ids, prompt)
            translations = parse_batch_output(raw)
        except TransientEngineFailure as e:
            return self._fallback("translate-batch", chunks, e.detail)
        except ValueError as e:
            return self._fallback("translate-batch", chunks, f"malformed response: {e}")

        completions = []
        missing = []
        for chunk in chunks:
            text = translations.get(chunk.id)
            if text:
                completions.append(Completion(id=chunk.id, text=text))
            else:
                missing.append(chunk)
                completions.append(Completion.fallback(chunk, "missing from batch response"))

        if missing:
            self.diagnostics.record_fallback(
                "translate-batch", [c.id for c in missing], "missing from batch response"
            )
        return completions

    async def aclose(self):
        await self.engine.aclose()
