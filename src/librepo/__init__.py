"""
librepo: repositories of versioned source-code libraries.
"""
from importlib import resources

from .library import (
    Descriptor,
    FileKind,
    Library,
    LibraryError,
    LibraryFile,
    LibraryFormatError,
    LibraryNotFoundError,
    MemoryLibraryFile,
    RepositoryError,
)
from .storage import (
    CatalogLibraryRepository,
    FileSystemLibraryRepository,
    FileSystemNamingStrategy,
    LibraryLayout,
)

__all__ = [
    "CatalogLibraryRepository",
    "Descriptor",
    "FileKind",
    "FileSystemLibraryRepository",
    "FileSystemNamingStrategy",
    "Library",
    "LibraryError",
    "LibraryFile",
    "LibraryFormatError",
    "LibraryLayout",
    "LibraryNotFoundError",
    "MemoryLibraryFile",
    "RepositoryError",
    "__version__",
]

__version__ = resources.files(__name__).joinpath("VERSION").read_text(encoding="utf-8").strip()
