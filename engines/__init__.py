"""
Translation Engines Package
Live Yap - Multi-Engine Support

Supports:
- Ollama CLI (`ollama run MODEL`, default)
- Ollama HTTP API (/api/generate)
- llama.cpp CLI (`llama-cli -m MODEL -p PROMPT`)
- Echo (no model, returns the source text)

Usage:
    from engines import create_engine
    from config.settings import Settings

    engine = create_engine(Settings(engine="ollama", translation_model="llama3.1:8b"))
    result = await engine.run(prompt)
    if result.ok:
        print(result.raw_output)
"""

from .base import (
    BaseEngine,
    EngineConfig,
    EngineResult,
    EngineType,
    SubprocessEngine,
    run_process,
)

from .echo_engine import EchoEngine
from .llama_cpp_engine import LlamaCppEngine
from .ollama_engine import OllamaEngine
from .ollama_http_engine import OllamaHTTPEngine

from .manager import (
    ENGINE_INFO,
    ENGINE_REGISTRY,
    EngineInfo,
    create_engine,
    list_engines,
    required_binary,
)

__all__ = [
    # Base classes
    "BaseEngine",
    "SubprocessEngine",
    "EngineConfig",
    "EngineResult",
    "EngineType",
    "run_process",

    # Engines
    "EchoEngine",
    "LlamaCppEngine",
    "OllamaEngine",
    "OllamaHTTPEngine",

    # Manager
    "ENGINE_INFO",
    "ENGINE_REGISTRY",
    "EngineInfo",
    "create_engine",
    "list_engines",
    "required_binary",
]
