"""
Filesystem-backed library repository.

Libraries live in directories below ``root`` as chosen by the naming
strategy. Each library directory holds exactly one descriptor, either the
current ``library.properties`` or the legacy ``spark.json``; source files sit
flat in the library directory and examples under ``examples/``.

Writes are best effort. A failure half way through :meth:`add` leaves
whatever was already written in place.
"""
from __future__ import annotations

import re
import stat
from pathlib import Path, PurePosixPath
from typing import AsyncIterator, Dict, Iterable, List, Optional, Tuple, Union

import aiofiles
from aiofiles import os as aios

from ..library import (
    Descriptor,
    FileKind,
    FileSystemLibraryFile,
    Library,
    LibraryFile,
    LibraryFormatError,
    LibraryNotFoundError,
    RepositoryError,
    split_extension,
)
from ..library.descriptor import (
    NAME_MISMATCH,
    build_descriptor_v1,
    build_descriptor_v2,
    read_descriptor_v1,
    read_descriptor_v2,
)
from ..logger import get_logger
from .base import LibraryRepository
from .layout import LIBRARY_PROPERTIES, SPARK_JSON, LibraryLayout, detect_layout
from .naming import FileSystemNamingStrategy, NamingStrategy

log = get_logger(__name__)

EXAMPLES_DIR = "examples"
COPY_CHUNK_SIZE = 64 * 1024

SOURCE_EXTENSIONS: Tuple[str, ...] = (
    "c",
    "cpp",
    "cc",
    "cxx",
    "c++",
    "h",
    "hpp",
    "hh",
    "hxx",
    "h++",
    "ipp",
    "tpp",
    "s",
)

_INCLUDE_DIRECTIVE = re.compile(
    r"^(?P<directive>[ \t]*#[ \t]*include[ \t]*)(?P<quote>[\"'])(?P<path>[^\"'\r\n]*)(?P=quote)"
)


def migrate_sourcecode(text: str, library_name: str) -> str:
    """Flatten ``#include "<lib>/<file>"`` directives to ``#include "<file>"``.

    Only lines that are preprocessor include directives are touched; the
    same text inside a comment or string literal is left as is, as are
    includes of any other library.
    """
    prefixes = (f"{library_name}/", f"{library_name}\\")
    lines = text.splitlines(keepends=True)
    for index, line in enumerate(lines):
        match = _INCLUDE_DIRECTIVE.match(line)
        if not match:
            continue
        path = match.group("path")
        if not path.startswith(prefixes):
            continue
        flattened = path[len(library_name) + 1 :]
        quote = match.group("quote")
        lines[index] = (
            f"{match.group('directive')}{quote}{flattened}{quote}" + line[match.end() :]
        )
    return "".join(lines)


class FileSystemLibraryRepository(LibraryRepository):
    """A library repository rooted at a local directory."""

    def __init__(
        self,
        root: Union[str, Path],
        naming: NamingStrategy = FileSystemNamingStrategy.BY_NAME,
        source_extensions: Optional[Iterable[str]] = None,
    ) -> None:
        self.root = Path(root)
        self.naming = naming
        self.source_extensions = frozenset(
            ext.lower().lstrip(".") for ext in (source_extensions or SOURCE_EXTENSIONS)
        )

    @property
    def writable(self) -> bool:
        return self.naming.writable

    def describe(self) -> str:
        return f"repository '{self.root}'"

    def __repr__(self) -> str:
        return f"FileSystemLibraryRepository(root={str(self.root)!r}, naming={self.naming!r})"

    # ------------------------------------------------------------------
    # Locations
    # ------------------------------------------------------------------
    def library_directory(self, name: str) -> Path:
        segment = self.naming.name_to_filesystem(name)
        return self.root / segment if segment else self.root

    def library_file_name(self, name: str, base: str, extension: str) -> Path:
        return self.library_directory(name) / f"{base}.{extension}"

    def descriptor_file_v1(self, name: str) -> Path:
        return self.library_directory(name) / SPARK_JSON

    def descriptor_file_v2(self, name: str) -> Path:
        return self.library_directory(name) / LIBRARY_PROPERTIES

    def is_source_file_name(self, name: str) -> bool:
        _, extension = split_extension(PurePosixPath(name.replace("\\", "/")).name)
        return extension.lower() in self.source_extensions

    def migrate_sourcecode(self, text: str, library_name: str) -> str:
        return migrate_sourcecode(text, library_name)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------
    def iter_names(self) -> AsyncIterator[str]:
        return self.naming.iter_names(self)

    async def get_library_layout(self, name: str) -> LibraryLayout:
        layout = await detect_layout(self.library_directory(name))
        if layout is LibraryLayout.INVALID:
            raise LibraryNotFoundError(self, name)
        return layout

    async def read_descriptor(self, layout: LibraryLayout, name: str) -> Descriptor:
        if layout is LibraryLayout.CURRENT:
            return await read_descriptor_v2(self.descriptor_file_v2(name), repository=self)
        if layout is LibraryLayout.LEGACY:
            return await read_descriptor_v1(self.descriptor_file_v1(name), name, repository=self)
        raise LibraryNotFoundError(self, name)

    async def fetch(self, name: str) -> Library:
        layout = await self.get_library_layout(name)
        descriptor = await self.read_descriptor(layout, name)
        if not self.naming.matches_name(descriptor, name):
            if self.naming.name_to_filesystem(name):
                raise LibraryFormatError(self, name, NAME_MISMATCH)
            raise LibraryNotFoundError(self, name)

        directory = self.library_directory(name)
        files: List[LibraryFile] = []
        seen: Dict[Tuple[FileKind, str], Tuple[str, ...]] = {}
        async for parts in self._walk(directory):
            library_file = self._classify(directory, parts)
            if library_file is None:
                continue
            key = (library_file.kind, library_file.filename)
            if key in seen:
                raise LibraryFormatError(
                    self,
                    name,
                    f"{'/'.join(parts)} and {'/'.join(seen[key])} are both "
                    f"{library_file.kind.value} file '{library_file.filename}'",
                )
            seen[key] = parts
            files.append(library_file)

        library = Library(name=self.naming.to_name(descriptor), metadata=descriptor, files=files)
        log.info("library_fetched", name=library.name, layout=int(layout), files=len(files))
        return library

    async def _walk(self, directory: Path, prefix: Tuple[str, ...] = ()) -> AsyncIterator[Tuple[str, ...]]:
        for entry in await aios.listdir(directory):
            if entry.startswith("."):
                continue
            path = directory / entry
            if await aios.path.isdir(path):
                async for child in self._walk(path, prefix + (entry,)):
                    yield child
            elif await aios.path.isfile(path):
                yield prefix + (entry,)

    def _classify(self, directory: Path, parts: Tuple[str, ...]) -> Optional[LibraryFile]:
        path = directory.joinpath(*parts)
        base, extension = split_extension(parts[-1])
        if EXAMPLES_DIR in parts[:-1]:
            # names are relative to the examples directory, e.g. firmware/examples/<name>
            start = parts.index(EXAMPLES_DIR) + 1
            name = "/".join(parts[start:-1] + (base,))
            return FileSystemLibraryFile(name, FileKind.EXAMPLE, extension, path)
        if self.is_source_file_name(parts[-1]):
            return FileSystemLibraryFile(base, FileKind.SOURCE, extension, path)
        return None

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------
    async def add(self, library: Library, layout: int = LibraryLayout.CURRENT) -> None:
        if not self.writable:
            raise RepositoryError(self, f"{self.describe()} is not writable")
        if layout not in (LibraryLayout.LEGACY, LibraryLayout.CURRENT):
            raise RepositoryError(self, f"unsupported library layout {layout}")

        name = self.naming.to_name(library.metadata)
        directory = self.library_directory(name)
        await self.mkdir_if_needed(directory)

        if layout == LibraryLayout.LEGACY:
            await self._write_text(directory / SPARK_JSON, build_descriptor_v1(library.metadata))
            await self._remove_if_present(directory / LIBRARY_PROPERTIES)
        else:
            await self._write_text(directory / LIBRARY_PROPERTIES, build_descriptor_v2(library.metadata))
            await self._remove_if_present(directory / SPARK_JSON)

        for library_file in library.files:
            target = self._target_path(directory, library_file)
            await self.mkdir_if_needed(target.parent)
            await self._write_file(target, library_file)

        log.info("library_added", name=name, layout=int(layout), files=len(library.files))

    def _target_path(self, directory: Path, library_file: LibraryFile) -> Path:
        relative = PurePosixPath(library_file.filename)
        if relative.is_absolute() or ".." in relative.parts:
            raise RepositoryError(self, f"file name '{library_file.filename}' escapes the library directory")
        if library_file.kind is FileKind.EXAMPLE:
            return directory.joinpath(EXAMPLES_DIR, *relative.parts)
        return directory / relative.name

    async def _write_text(self, path: Path, content: str) -> None:
        async with aiofiles.open(path, "w", encoding="utf-8") as handle:
            await handle.write(content)

    async def _write_file(self, path: Path, library_file: LibraryFile) -> None:
        async with aiofiles.open(path, "wb") as handle:
            async for chunk in library_file.iter_chunks(COPY_CHUNK_SIZE):
                await handle.write(chunk)

    async def _remove_if_present(self, path: Path) -> None:
        """Drop a descriptor of the other generation so only one layout is detected."""
        try:
            await aios.remove(path)
        except FileNotFoundError:
            return
        log.info("descriptor_replaced", path=str(path))

    async def file_stat(self, path: Union[str, Path]):
        """Return the ``os.stat_result`` for ``path`` or ``None`` when it does not exist."""
        try:
            return await aios.stat(path)
        except FileNotFoundError:
            return None

    async def mkdir_if_needed(self, path: Union[str, Path]) -> None:
        existing = await self.file_stat(path)
        if existing is not None and stat.S_ISDIR(existing.st_mode):
            return
        await aios.makedirs(path, exist_ok=True)
