"""
Dependency checks for external programs.
"""

import shutil
from typing import Iterable, List, Optional

from engines.manager import required_binary

from .errors import MissingDependencyError


def need(binary: str) -> str:
    """
    Resolve a program on PATH.

    Raises:
        MissingDependencyError: program not found
    """
    path = shutil.which(binary)
    if path is None:
        raise MissingDependencyError(binary)
    return path


def need_all(binaries: Iterable[str]):
    for binary in binaries:
        need(binary)


def session_requirements(settings) -> List[str]:
    """Programs a session with these settings will run"""
    binaries = [settings.ffmpeg_bin, settings.yap_bin]
    if settings.is_translating():
        engine_binary: Optional[str] = required_binary(settings)
        if engine_binary:
            binaries.append(engine_binary)
    return binaries
