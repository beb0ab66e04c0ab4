"""
Base Translation Engine - Abstract Interface
Live Yap - Multi-Engine Support

An engine is the opaque inference process behind translation: it takes a
fully built prompt and returns whatever the model printed, plus the exit
status and stderr of the invocation.
"""

import asyncio
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from config.logging_config import get_logger

logger = get_logger(__name__)


class EngineType(Enum):
    """Supported translation engines"""
    OLLAMA = "ollama"
    OLLAMA_HTTP = "ollama-http"
    LLAMA_CPP = "llama-cpp"
    ECHO = "echo"


@dataclass
class EngineResult:
    """Raw outcome of one engine invocation"""
    raw_output: str
    exit_status: int = 0
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_status == 0


@dataclass
class EngineConfig:
    """Engine configuration"""
    model: str
    binary: Optional[str] = None
    base_url: Optional[str] = None  # For HTTP engines
    extra_args: List[str] = field(default_factory=list)


class BaseEngine(ABC):
    """
    Abstract base class for translation engines.
    All engines must implement run().
    """

    def __init__(self, config: EngineConfig):
        self.config = config

    @property
    @abstractmethod
    def engine_type(self) -> EngineType:
        """Return the engine type"""
        pass

    @property
    def name(self) -> str:
        return self.engine_type.value

    @abstractmethod
    async def run(self, prompt: str) -> EngineResult:
        """
        Invoke the engine once.

        Args:
            prompt: Complete prompt text

        Returns:
            EngineResult with stdout, exit status and stderr
        """
        pass

    async def aclose(self) -> None:
        """Release engine resources (HTTP clients etc.)"""
        return None


class SubprocessEngine(BaseEngine):
    """Engine backed by a command-line program."""

    @abstractmethod
    def build_command(self, prompt: str) -> Sequence[str]:
        """argv for one invocation"""
        pass

    def stdin_payload(self, prompt: str) -> Optional[str]:
        """Text written to the child's stdin, None for no stdin"""
        return None

    async def run(self, prompt: str) -> EngineResult:
        argv = list(self.build_command(prompt))
        payload = self.stdin_payload(prompt)
        return await run_process(argv, payload)


async def run_process(argv: Sequence[str], stdin_text: Optional[str] = None) -> EngineResult:
    """
    Run a child process to completion.

    The child is killed if the awaiting task is cancelled (shutdown or
    timeout), so no engine process outlives its worker.
    """
    proc = await asyncio.create_subprocess_exec(
        *argv,
        stdin=asyncio.subprocess.PIPE if stdin_text is not None else asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env=os.environ.copy(),
    )
    try:
        stdout, stderr = await proc.communicate(
            stdin_text.encode("utf-8") if stdin_text is not None else None
        )
    except asyncio.CancelledError:
        if proc.returncode is None:
            logger.debug(f"Killing {argv[0]} (pid {proc.pid}) after cancellation")
            proc.kill()
            await proc.wait()
        raise

    return EngineResult(
        raw_output=stdout.decode("utf-8", errors="replace"),
        exit_status=proc.returncode if proc.returncode is not None else -1,
        stderr=stderr.decode("utf-8", errors="replace"),
    )
