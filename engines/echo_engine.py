"""
Echo Engine
Live Yap - Multi-Engine Support

Returns the user text unchanged after an optional delay. Used for dry runs
(`--engine echo`) and to exercise the pipeline without a model.
"""

import asyncio
import json
import re
from typing import Optional

from .base import BaseEngine, EngineConfig, EngineResult, EngineType

_USER_TEXT = re.compile(r"### User Text\n(.*)\Z", re.DOTALL)
_ITEMS = re.compile(r"### Items\n(.*)\Z", re.DOTALL)


class EchoEngine(BaseEngine):
    """Identity 'translation'"""

    def __init__(self, config: Optional[EngineConfig] = None, delay: float = 0.0):
        super().__init__(config or EngineConfig(model="echo"))
        self.delay = delay
        self.calls = 0

    @property
    def engine_type(self) -> EngineType:
        return EngineType.ECHO

    async def run(self, prompt: str) -> EngineResult:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)

        items = _ITEMS.search(prompt)
        if items:
            # Batch prompt: answer in the same JSON shape that was asked for
            return EngineResult(raw_output=json.dumps(json.loads(items.group(1)), ensure_ascii=False))

        user_text = _USER_TEXT.search(prompt)
        return EngineResult(raw_output=user_text.group(1) if user_text else prompt)
