"""
Local library validation.

Mirrors the checks a catalog performs on submission so libraries can be
packaged and checked offline. Results use the same shape a remote validator
returns: ``{"valid": bool, "errors": {key: message}}``.
"""
from __future__ import annotations

import re
from typing import Any, Dict

from ..library import LibraryError
from ..logger import get_logger
from ..storage import LibraryRepository

log = get_logger(__name__)

NAME_PATTERN = re.compile(r"^[A-Za-z0-9_\-]+$")
VERSION_PATTERN = re.compile(r"^\d+\.\d+\.\d+$")


class LocalLibraryValidator:
    async def validate_library(self, repository: LibraryRepository, name: str) -> Dict[str, Any]:
        errors: Dict[str, str] = {}
        try:
            library = await repository.fetch(name)
        except LibraryError as exc:
            errors["library"] = str(exc)
            return {"valid": False, "errors": errors}

        metadata = library.metadata
        if not NAME_PATTERN.match(metadata.name or ""):
            errors["name"] = "must contain only letters, numbers, dashes and underscores"
        if not VERSION_PATTERN.match(str(metadata.version or "")):
            errors["version"] = "must be formatted like 1.0.0"
        if not library.sources():
            errors["files"] = "must include at least one source file"

        log.info("library_validated", name=name, valid=not errors)
        return {"valid": not errors, "errors": errors}
