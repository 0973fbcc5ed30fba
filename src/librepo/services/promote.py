"""
Copy a library from one repository into another writable repository.
"""
from __future__ import annotations

from ..library import FileKind, Library, LibraryFile, MemoryLibraryFile
from ..logger import get_logger
from ..storage import LibraryLayout, LibraryRepository, migrate_sourcecode

log = get_logger(__name__)


async def _migrated(library_file: LibraryFile, library_name: str) -> LibraryFile:
    if library_file.kind is not FileKind.SOURCE:
        return library_file
    content = await library_file.read()
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError:
        log.warning("skip_migration_binary_source", file=library_file.filename)
        return library_file
    return MemoryLibraryFile(
        library_file.name,
        library_file.kind,
        library_file.extension,
        migrate_sourcecode(text, library_name),
    )


async def promote_library(
    source: LibraryRepository,
    name: str,
    target: LibraryRepository,
    layout: int = LibraryLayout.CURRENT,
) -> Library:
    """Fetch ``name`` from ``source`` and add it to ``target`` with flattened includes."""
    fetched = await source.fetch(name)
    library_name = fetched.metadata.name
    files = [await _migrated(f, library_name) for f in fetched.files]
    library = Library(name=fetched.name, metadata=fetched.metadata, files=files)
    await target.add(library, layout)
    log.info("library_promoted", name=library_name, layout=int(layout))
    return library
