"""
Ollama HTTP Engine
Live Yap - Multi-Engine Support

Talks to a running ollama server through POST /api/generate instead of
spawning a CLI process per request.
"""

from typing import Optional

import httpx

from config.logging_config import get_logger

from .base import BaseEngine, EngineResult, EngineType

logger = get_logger(__name__)


class OllamaHTTPEngine(BaseEngine):
    """
    Ollama REST API engine.

    HTTP error statuses are reported as the exit status of the call so the
    adapter treats them exactly like a failed CLI run. Transport errors
    (connection refused, read timeout) become exit status 1.
    """

    BASE_URL = "http://localhost:11434"

    def __init__(self, config, client: Optional[httpx.AsyncClient] = None):
        super().__init__(config)
        self._client = client
        self._owns_client = client is None

    @property
    def engine_type(self) -> EngineType:
        return EngineType.OLLAMA_HTTP

    def _get_client(self) -> httpx.AsyncClient:
        # Created lazily so it binds to the worker loop, not the caller's
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url or self.BASE_URL,
                timeout=httpx.Timeout(None),
            )
        return self._client

    async def run(self, prompt: str) -> EngineResult:
        client = self._get_client()
        payload = {"model": self.config.model, "prompt": prompt, "stream": False}

        try:
            response = await client.post("/api/generate", json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            return EngineResult(
                raw_output="",
                exit_status=e.response.status_code,
                stderr=e.response.text,
            )
        except httpx.HTTPError as e:
            return EngineResult(raw_output="", exit_status=1, stderr=f"HTTP error: {e}")

        try:
            data = response.json()
        except ValueError:
            return EngineResult(raw_output="", exit_status=1, stderr="response was not JSON")

        if data.get("error"):
            return EngineResult(raw_output="", exit_status=1, stderr=str(data["error"]))
        return EngineResult(raw_output=data.get("response") or "")

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
