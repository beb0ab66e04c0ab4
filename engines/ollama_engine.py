"""
Ollama CLI Engine
Live Yap - Multi-Engine Support

Pipes the prompt into `ollama run MODEL`, the default engine.
"""

from typing import List

from .base import EngineType, SubprocessEngine


class OllamaEngine(SubprocessEngine):
    """Local model served by the ollama command-line client"""

    DEFAULT_BINARY = "ollama"

    @property
    def engine_type(self) -> EngineType:
        return EngineType.OLLAMA

    def build_command(self, prompt: str) -> List[str]:
        binary = self.config.binary or self.DEFAULT_BINARY
        return [binary, "run", self.config.model, *self.config.extra_args]

    def stdin_payload(self, prompt: str) -> str:
        return prompt
