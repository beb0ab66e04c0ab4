"""
llama.cpp Engine
Live Yap - Multi-Engine Support

Runs `llama-cli -m MODEL [extra args] -p PROMPT` once per request.
"""

from typing import List

from .base import EngineType, SubprocessEngine


class LlamaCppEngine(SubprocessEngine):
    """GGUF model run through the llama.cpp CLI"""

    DEFAULT_BINARY = "llama-cli"

    @property
    def engine_type(self) -> EngineType:
        return EngineType.LLAMA_CPP

    def build_command(self, prompt: str) -> List[str]:
        if not self.config.model:
            raise ValueError("llama.cpp engine needs a model path (LLAMA_CPP_MODEL)")
        binary = self.config.binary or self.DEFAULT_BINARY
        return [binary, "-m", self.config.model, *self.config.extra_args, "-p", prompt]
