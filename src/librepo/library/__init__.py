"""
Library value types, descriptors and the error taxonomy.
"""
from .descriptor import Descriptor
from .errors import LibraryError, LibraryFormatError, LibraryNotFoundError, RepositoryError
from .models import (
    FileKind,
    FileSystemLibraryFile,
    Library,
    LibraryFile,
    MemoryLibraryFile,
    split_extension,
)

__all__ = [
    "Descriptor",
    "FileKind",
    "FileSystemLibraryFile",
    "Library",
    "LibraryError",
    "LibraryFile",
    "LibraryFormatError",
    "LibraryNotFoundError",
    "MemoryLibraryFile",
    "RepositoryError",
    "split_extension",
]
