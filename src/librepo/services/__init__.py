"""
Service layer: packaging, validation, promotion and contribution workflows.
"""
from .archive import targz_directory
from .contribute import LibraryContributor, Override, ValidationError
from .promote import promote_library
from .validation import LocalLibraryValidator

__all__ = [
    "LibraryContributor",
    "LocalLibraryValidator",
    "Override",
    "ValidationError",
    "promote_library",
    "targz_directory",
]
