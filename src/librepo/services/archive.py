"""
Packaging of a library directory into a gzip-compressed tar stream.
"""
from __future__ import annotations

import asyncio
import io
import os
import tarfile
from fnmatch import fnmatch
from pathlib import Path
from typing import BinaryIO, Sequence, Union

from ..logger import get_logger

log = get_logger(__name__)

DEFAULT_ARCHIVE_IGNORE: Sequence[str] = (".*",)


def _should_ignore(name: str, patterns: Sequence[str]) -> bool:
    return any(fnmatch(name, pattern) for pattern in patterns)


def _build_targz(directory: Path, ignore: Sequence[str]) -> io.BytesIO:
    if not directory.is_dir():
        raise FileNotFoundError(f"Library directory not found: {directory}")
    buffer = io.BytesIO()
    count = 0
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for root, dirs, filenames in os.walk(directory):
            dirs[:] = sorted(d for d in dirs if not _should_ignore(d, ignore))
            root_path = Path(root)
            for filename in sorted(filenames):
                if _should_ignore(filename, ignore):
                    continue
                path = root_path / filename
                tar.add(path, arcname=path.relative_to(directory).as_posix())
                count += 1
    buffer.seek(0)
    log.info("library_packaged", directory=str(directory), files=count, size=buffer.getbuffer().nbytes)
    return buffer


async def targz_directory(
    directory: Union[str, Path],
    ignore: Sequence[str] = DEFAULT_ARCHIVE_IGNORE,
) -> BinaryIO:
    """Return a readable ``.tar.gz`` stream of ``directory``, paths relative to it."""
    return await asyncio.to_thread(_build_targz, Path(directory), tuple(ignore))
