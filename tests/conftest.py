"""
Pytest configuration and shared fixtures for Live Yap tests.
"""
import asyncio
import json
import re
import sys
import time
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.settings import Settings
from core.pipeline.diagnostics import DiagnosticsLog
from engines.base import BaseEngine, EngineConfig, EngineResult, EngineType


_USER_TEXT = re.compile(r"### User Text\n(.*)\Z", re.DOTALL)
_ITEMS = re.compile(r"### Items\n(.*)\Z", re.DOTALL)


class FakeEngine(BaseEngine):
    """
    Scripted engine keyed by source text.

    Translation of "x" is "T(x)" unless overridden. Per-text delays make
    completions arrive out of order; failing texts exit with status 1.
    """

    def __init__(
        self,
        delays: Optional[Dict[str, float]] = None,
        outputs: Optional[Dict[str, str]] = None,
        failing: Iterable[str] = (),
        raising: Iterable[str] = (),
        default_delay: float = 0.0,
        batch_output: Optional[str] = None,
    ):
        super().__init__(EngineConfig(model="fake-model"))
        self.delays = delays or {}
        self.outputs = outputs or {}
        self.failing = set(failing)
        self.raising = set(raising)
        self.default_delay = default_delay
        self.batch_output = batch_output
        self.prompts: List[str] = []
        self.batches: List[List[int]] = []
        self.closed = False

    @property
    def engine_type(self) -> EngineType:
        return EngineType.ECHO

    @property
    def name(self) -> str:
        return "fake"

    def translate(self, text: str) -> str:
        return self.outputs.get(text, f"T({text})")

    async def run(self, prompt: str) -> EngineResult:
        self.prompts.append(prompt)

        items = _ITEMS.search(prompt)
        if items:
            entries = json.loads(items.group(1))
            self.batches.append([e["id"] for e in entries])
            await asyncio.sleep(max([self.delays.get(e["text"], self.default_delay) for e in entries] or [0]))
            if self.batch_output is not None:
                return EngineResult(raw_output=self.batch_output)
            answer = [{"id": e["id"], "text": self.translate(e["text"])} for e in entries]
            return EngineResult(raw_output=json.dumps(answer, ensure_ascii=False))

        text = _USER_TEXT.search(prompt).group(1)
        await asyncio.sleep(self.delays.get(text, self.default_delay))
        if text in self.raising:
            raise RuntimeError(f"engine blew up on {text}")
        if text in self.failing:
            return EngineResult(raw_output="", exit_status=1, stderr="boom")
        return EngineResult(raw_output=self.translate(text) + "\n")

    async def aclose(self):
        self.closed = True


def wait_until(predicate, timeout: float = 5.0, interval: float = 0.01) -> bool:
    """Poll predicate until it holds or timeout expires"""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def fake_engine_factory():
    """Build FakeEngine instances with per-test scripts."""
    return FakeEngine


@pytest.fixture
def fake_engine():
    """FakeEngine with no delays and no failures."""
    return FakeEngine()


@pytest.fixture
def diagnostics(tmp_path: Path) -> DiagnosticsLog:
    """Diagnostics log writing into a temp dir."""
    return DiagnosticsLog(tmp_path / "session_errors.log")


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings isolated from the developer's .env and logs dir."""
    return Settings(
        _env_file=None,
        logs_dir=tmp_path / "logs",
        chunk_dir=tmp_path / "chunks",
        source_locale="ja-JP",
        target_lang="en",
        engine="echo",
        abandon_timeout=2.0,
        poll_interval=0.01,
        show_progress=False,
    )


@pytest.fixture
def poll_until():
    """Expose wait_until to tests."""
    return wait_until
