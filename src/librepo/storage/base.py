"""
Abstract repository interface shared by filesystem and catalog stores.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator, List

from ..library import Library


class LibraryRepository(ABC):
    """A provider of library storage."""

    @property
    @abstractmethod
    def writable(self) -> bool:
        ...

    @abstractmethod
    def iter_names(self) -> AsyncIterator[str]:
        """Lazily yield the names of the libraries in this repository."""

    async def names(self) -> List[str]:
        return [name async for name in self.iter_names()]

    @abstractmethod
    async def fetch(self, name: str) -> Library:
        ...

    @abstractmethod
    async def add(self, library: Library, layout: int = 2) -> None:
        ...

    def describe(self) -> str:
        return type(self).__name__
