"""
Pipeline exceptions.
"""

from typing import Sequence


class PipelineError(Exception):
    """Base exception for the translation pipeline"""
    pass


class TransientEngineFailure(PipelineError):
    """Engine call failed or produced nothing usable; recovered by fallback"""

    def __init__(self, stage: str, ids: Sequence[int], detail: str):
        self.stage = stage
        self.ids = list(ids)
        self.detail = detail
        super().__init__(f"{stage} failed for ids {self.ids}: {detail}")


class ChannelClosedError(PipelineError):
    """Completion could not be handed off; the channel is closed"""
    pass


class DispatcherUnavailableError(PipelineError):
    """Worker loop is not running, chunk was not dispatched"""
    pass
