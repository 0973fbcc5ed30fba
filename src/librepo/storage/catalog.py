"""
Read-only view over a remote library catalog.

The transport lives behind :class:`CatalogClient`; this module only adapts it
to the repository interface.
"""
from __future__ import annotations

from typing import AsyncIterator, List, Optional, Protocol

from ..library import Library, LibraryNotFoundError, RepositoryError
from ..logger import get_logger
from .base import LibraryRepository

log = get_logger(__name__)


class CatalogClient(Protocol):
    """Protocol the remote catalog transport implements."""

    async def list_libraries(self) -> List[str]:
        ...

    async def get_library(self, name: str) -> Optional[Library]:
        ...


class CatalogLibraryRepository(LibraryRepository):
    """Repository backed by a remote catalog. Libraries can be fetched, never added."""

    def __init__(self, client: CatalogClient) -> None:
        self.client = client

    @property
    def writable(self) -> bool:
        return False

    def describe(self) -> str:
        return "library catalog"

    async def iter_names(self) -> AsyncIterator[str]:
        for name in await self.client.list_libraries():
            yield name

    async def fetch(self, name: str) -> Library:
        library = await self.client.get_library(name)
        if library is None:
            raise LibraryNotFoundError(self, name)
        log.info("catalog_library_fetched", name=name)
        return library

    async def add(self, library: Library, layout: int = 2) -> None:
        raise RepositoryError(self, f"{self.describe()} is not writable")
