"""Error taxonomy shared by every repository implementation."""
from __future__ import annotations

from typing import Any


class LibraryError(Exception):
    """Base class for errors raised by a library repository."""

    def __init__(self, repository: Any, message: str) -> None:
        super().__init__(message)
        self.repository = repository
        self.message = message

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.args == other.args and self.repository is other.repository

    __hash__ = Exception.__hash__


class RepositoryError(LibraryError):
    """An operation the repository does not support, such as writing to a read-only store."""


class LibraryNotFoundError(LibraryError):
    """The requested name does not resolve to a valid library."""

    def __init__(self, repository: Any, name: str) -> None:
        super().__init__(repository, f"library '{name}' not found in {_describe(repository)}")
        self.name = name


class LibraryFormatError(LibraryError):
    """A library descriptor could not be read, parsed or does not match its name."""

    def __init__(self, repository: Any, name: str, message: str) -> None:
        super().__init__(repository, f"library '{name}': {message}")
        self.name = name
        self.detail = message


def _describe(repository: Any) -> str:
    describe = getattr(repository, "describe", None)
    if callable(describe):
        return describe()
    return repr(repository)
