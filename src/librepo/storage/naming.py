"""
Naming strategies mapping a library identity to a filesystem location.

Repositories only talk to the :class:`NamingStrategy` interface; the three
concrete strategies are exposed as shared instances on
:class:`FileSystemNamingStrategy`.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, AsyncIterator

from aiofiles import os as aios

from ..library import LibraryNotFoundError
from ..logger import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from .filesystem import FileSystemLibraryRepository

log = get_logger(__name__)


class NamingStrategy(ABC):
    """Translate between library identities and filesystem path segments."""

    writable = True

    @abstractmethod
    def to_name(self, identity: Any) -> str:
        """Build the repository name of a library from its descriptor."""

    def name_to_filesystem(self, name: str) -> str:
        """Escape ``name`` into a path segment. Currently a pass-through."""
        return name

    def matches_name(self, identity: Any, candidate: str) -> bool:
        return self.to_name(identity) == candidate

    @abstractmethod
    def iter_names(self, repository: "FileSystemLibraryRepository") -> AsyncIterator[str]:
        ...


class _DirectoryScanStrategy(NamingStrategy):
    """Each library lives in its own sub-directory of the repository root."""

    async def iter_names(self, repository: "FileSystemLibraryRepository") -> AsyncIterator[str]:
        root = repository.root
        if not await aios.path.isdir(root):
            log.debug("repository_root_missing", root=str(root))
            return
        for entry in await aios.listdir(root):
            if entry.startswith("."):
                continue
            if not await aios.path.isdir(root / entry):
                continue
            try:
                await repository.get_library_layout(entry)
            except LibraryNotFoundError:
                log.debug("skip_invalid_library", name=entry)
                continue
            yield entry


class ByNameStrategy(_DirectoryScanStrategy):
    def to_name(self, identity: Any) -> str:
        return identity.name

    def __repr__(self) -> str:
        return "BY_NAME"


class ByNameAtVersionStrategy(_DirectoryScanStrategy):
    def to_name(self, identity: Any) -> str:
        return f"{identity.name}@{identity.version}"

    def __repr__(self) -> str:
        return "BY_NAME_AT_VERSION"


class DirectStrategy(NamingStrategy):
    """The repository root is itself the one library; it cannot be written."""

    writable = False

    def to_name(self, identity: Any) -> str:
        return identity.name

    def name_to_filesystem(self, name: str) -> str:
        return ""

    def matches_name(self, identity: Any, candidate: str) -> bool:
        return not candidate or super().matches_name(identity, candidate)

    async def iter_names(self, repository: "FileSystemLibraryRepository") -> AsyncIterator[str]:
        try:
            layout = await repository.get_library_layout("")
        except LibraryNotFoundError:
            return
        descriptor = await repository.read_descriptor(layout, "")
        yield descriptor.name

    def __repr__(self) -> str:
        return "DIRECT"


class FileSystemNamingStrategy:
    BY_NAME: NamingStrategy = ByNameStrategy()
    BY_NAME_AT_VERSION: NamingStrategy = ByNameAtVersionStrategy()
    DIRECT: NamingStrategy = DirectStrategy()

    @classmethod
    def from_label(cls, label: str) -> NamingStrategy:
        """Resolve the configuration labels ``name``, ``name@version`` and ``direct``."""
        strategies = {
            "name": cls.BY_NAME,
            "name@version": cls.BY_NAME_AT_VERSION,
            "direct": cls.DIRECT,
        }
        try:
            return strategies[label.lower()]
        except KeyError:
            raise ValueError(f"Unknown naming strategy: {label}") from None
