"""
Descriptor generation detection for a library directory.
"""
from __future__ import annotations

from enum import IntEnum
from pathlib import Path

from aiofiles import os as aios

LIBRARY_PROPERTIES = "library.properties"
SPARK_JSON = "spark.json"


class LibraryLayout(IntEnum):
    INVALID = 0
    LEGACY = 1
    CURRENT = 2


async def detect_layout(directory: Path) -> LibraryLayout:
    """Return the descriptor generation present in ``directory``.

    The current marker wins over the legacy one. A marker that exists but is
    not a regular file is ignored.
    """
    if not await aios.path.isdir(directory):
        return LibraryLayout.INVALID
    if await aios.path.isfile(directory / LIBRARY_PROPERTIES):
        return LibraryLayout.CURRENT
    if await aios.path.isfile(directory / SPARK_JSON):
        return LibraryLayout.LEGACY
    return LibraryLayout.INVALID
