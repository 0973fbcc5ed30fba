"""
Library storage: naming strategies, layout detection and repositories.
"""
from .base import LibraryRepository
from .catalog import CatalogClient, CatalogLibraryRepository
from .filesystem import FileSystemLibraryRepository, migrate_sourcecode
from .layout import LIBRARY_PROPERTIES, SPARK_JSON, LibraryLayout, detect_layout
from .naming import FileSystemNamingStrategy, NamingStrategy

__all__ = [
    "CatalogClient",
    "CatalogLibraryRepository",
    "FileSystemLibraryRepository",
    "FileSystemNamingStrategy",
    "LIBRARY_PROPERTIES",
    "LibraryLayout",
    "LibraryRepository",
    "NamingStrategy",
    "SPARK_JSON",
    "detect_layout",
    "migrate_sourcecode",
]
