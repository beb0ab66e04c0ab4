"""
Engine Manager
Live Yap - Multi-Engine Support

Maps engine names from settings to engine classes.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Type

from .base import BaseEngine, EngineConfig, EngineType
from .echo_engine import EchoEngine
from .llama_cpp_engine import LlamaCppEngine
from .ollama_engine import OllamaEngine
from .ollama_http_engine import OllamaHTTPEngine


@dataclass
class EngineInfo:
    """Engine information"""
    type: EngineType
    name: str
    description: str
    binary: Optional[str] = None  # program that must be on PATH


ENGINE_REGISTRY: Dict[EngineType, Type[BaseEngine]] = {
    EngineType.OLLAMA: OllamaEngine,
    EngineType.OLLAMA_HTTP: OllamaHTTPEngine,
    EngineType.LLAMA_CPP: LlamaCppEngine,
    EngineType.ECHO: EchoEngine,
}

ENGINE_INFO: Dict[EngineType, EngineInfo] = {
    EngineType.OLLAMA: EngineInfo(
        type=EngineType.OLLAMA,
        name="Ollama (CLI)",
        description="One `ollama run` process per request",
        binary="ollama",
    ),
    EngineType.OLLAMA_HTTP: EngineInfo(
        type=EngineType.OLLAMA_HTTP,
        name="Ollama (HTTP)",
        description="Requests against a running ollama server",
    ),
    EngineType.LLAMA_CPP: EngineInfo(
        type=EngineType.LLAMA_CPP,
        name="llama.cpp",
        description="One `llama-cli` process per request",
        binary="llama-cli",
    ),
    EngineType.ECHO: EngineInfo(
        type=EngineType.ECHO,
        name="Echo",
        description="Returns the source text, no model needed",
    ),
}


def list_engines() -> List[EngineInfo]:
    """List all available engines"""
    return list(ENGINE_INFO.values())


def required_binary(settings) -> Optional[str]:
    """Program the configured engine needs on PATH, if any"""
    engine_type = EngineType(settings.engine)
    if engine_type == EngineType.OLLAMA:
        return settings.ollama_bin
    if engine_type == EngineType.LLAMA_CPP:
        return settings.llama_cpp_bin
    return None


def create_engine(settings) -> BaseEngine:
    """
    Factory function to build the engine named in settings.

    Args:
        settings: config.settings.Settings (or anything with the same fields)

    Returns:
        Configured engine instance
    """
    try:
        engine_type = EngineType(settings.engine)
    except ValueError:
        known = ", ".join(t.value for t in EngineType)
        raise ValueError(f"Unknown engine: {settings.engine} (expected one of {known})")

    if engine_type == EngineType.OLLAMA:
        config = EngineConfig(model=settings.translation_model, binary=settings.ollama_bin)
    elif engine_type == EngineType.OLLAMA_HTTP:
        config = EngineConfig(model=settings.translation_model, base_url=settings.ollama_host)
    elif engine_type == EngineType.LLAMA_CPP:
        if not settings.llama_cpp_model:
            raise ValueError("llama.cpp engine needs a model path (LLAMA_CPP_MODEL or --model)")
        config = EngineConfig(
            model=settings.llama_cpp_model,
            binary=settings.llama_cpp_bin,
            extra_args=settings.llama_cpp_args.split(),
        )
    else:
        config = EngineConfig(model=settings.translation_model)

    return ENGINE_REGISTRY[engine_type](config)
