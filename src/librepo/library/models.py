"""
Library and library file value types.

A ``Library`` is assembled fresh on every fetch. Its files carry no bytes;
each call to :meth:`LibraryFile.open` returns a new stream over the backing
content, so two readers of the same file never interfere.
"""
from __future__ import annotations

import io
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import AsyncIterator, BinaryIO, List, Optional, Tuple, Union

import aiofiles

from .descriptor import Descriptor


class FileKind(str, Enum):
    SOURCE = "source"
    EXAMPLE = "example"
    OTHER = "other"


def split_extension(filename: str) -> Tuple[str, str]:
    """Split ``filename`` at the last dot into ``(base, extension)``."""
    base, dot, ext = filename.rpartition(".")
    if not dot:
        return filename, ""
    return base, ext


class LibraryFile(ABC):
    """A content-bearing file of a library.

    The coroutine readers default to the synchronous :meth:`open` stream;
    disk-backed files override them to read through aiofiles.
    """

    def __init__(self, name: str, kind: Union[FileKind, str], extension: str) -> None:
        self.name = name
        self.kind = FileKind(kind)
        self.extension = extension

    @property
    def filename(self) -> str:
        return f"{self.name}.{self.extension}" if self.extension else self.name

    @abstractmethod
    def open(self) -> BinaryIO:
        """Return a new binary stream positioned at the start of the content."""

    async def read(self) -> bytes:
        with self.open() as stream:
            return stream.read()

    async def iter_chunks(self, size: int = 64 * 1024) -> AsyncIterator[bytes]:
        """Yield the content in blocks of at most ``size`` bytes."""
        with self.open() as stream:
            while True:
                chunk = stream.read(size)
                if not chunk:
                    return
                yield chunk

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, kind={self.kind.value!r}, extension={self.extension!r})"


class MemoryLibraryFile(LibraryFile):
    """Library file whose content is held by the caller."""

    def __init__(
        self,
        name: str,
        kind: Union[FileKind, str],
        extension: str,
        content: Union[bytes, str],
        id: Optional[int] = None,
    ) -> None:
        super().__init__(name, kind, extension)
        self._content = content
        self.id = id

    def open(self) -> BinaryIO:
        content = self._content
        if isinstance(content, str):
            content = content.encode("utf-8")
        return io.BytesIO(content)


class FileSystemLibraryFile(LibraryFile):
    """Library file backed by a path; the file is re-read on every access."""

    def __init__(self, name: str, kind: Union[FileKind, str], extension: str, path: Path) -> None:
        super().__init__(name, kind, extension)
        self.path = path

    def open(self) -> BinaryIO:
        return self.path.open("rb")

    async def read(self) -> bytes:
        async with aiofiles.open(self.path, "rb") as handle:
            return await handle.read()

    async def iter_chunks(self, size: int = 64 * 1024) -> AsyncIterator[bytes]:
        async with aiofiles.open(self.path, "rb") as handle:
            while True:
                chunk = await handle.read(size)
                if not chunk:
                    return
                yield chunk


@dataclass
class Library:
    """A named library: its descriptor plus the files that make it up."""

    name: str
    metadata: Descriptor
    files: List[LibraryFile] = field(default_factory=list)

    def sources(self) -> List[LibraryFile]:
        return [f for f in self.files if f.kind is FileKind.SOURCE]

    def examples(self) -> List[LibraryFile]:
        return [f for f in self.files if f.kind is FileKind.EXAMPLE]
