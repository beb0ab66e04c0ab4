"""
Live session exceptions.
"""


class LiveSessionError(Exception):
    """Base exception for live capture sessions"""
    pass


class MissingDependencyError(LiveSessionError):
    """A required program is not on PATH"""

    def __init__(self, binary: str):
        self.binary = binary
        super().__init__(f"Missing dependency: {binary}")


class CaptureError(LiveSessionError):
    """Audio capture could not be started or died"""
    pass
