"""
Contribution workflow: validate, package and submit a library to a catalog.

Phases run strictly in order and the first failure ends the run with the
exception that caused it. Callers observe progress through a notification hook::

    def notify(event, pending, *extras) -> Override | None

``pending`` is the awaitable result of the phase the event precedes. Returning
``None`` keeps that result; returning :class:`Override` substitutes another
awaitable for everything downstream, which is how callers add their own
timeouts or progress display without changing the pipeline. An overridden
phase still runs to completion before the next one starts; only its value
and its exception are replaced.
"""
from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, BinaryIO, Callable, Dict, Mapping, Optional, Protocol

from ..logger import get_logger
from ..storage import FileSystemLibraryRepository
from .archive import targz_directory

log = get_logger(__name__)

VALIDATING_LIBRARY = "validatingLibrary"
CONTRIBUTE_COMPLETE = "contributeComplete"


@dataclass(frozen=True)
class Override:
    """Returned by a notification hook to replace the phase result."""

    result: Awaitable[Any]


NotifyHook = Callable[..., Any]
Packer = Callable[[Path], Awaitable[BinaryIO]]


class ContributionClient(Protocol):
    async def contribute_library(self, archive: BinaryIO) -> Any:
        ...


class LibraryValidator(Protocol):
    async def validate_library(self, repository: Any, name: str) -> Optional[Mapping[str, Any]]:
        ...


class ValidationError(Exception):
    """The validator reported the library as invalid."""

    def __init__(self, result: Mapping[str, Any]) -> None:
        errors: Dict[str, Any] = dict(result.get("errors") or {})
        details = " ".join(f"{key} {value}" for key, value in errors.items())
        super().__init__(f"Library is not valid. {details}")
        self.result = result


async def _settle(pending: Awaitable[Any]) -> None:
    """Wait for an overridden phase to finish without letting its outcome escape."""
    if not isinstance(pending, asyncio.Future):
        return
    await asyncio.wait({pending})
    if not pending.cancelled():
        pending.exception()


class LibraryContributor:
    """Publishes libraries from a local repository through a contribution client."""

    def __init__(
        self,
        repo: FileSystemLibraryRepository,
        client: ContributionClient,
        validator: LibraryValidator,
        packer: Packer = targz_directory,
    ) -> None:
        self.repo = repo
        self.client = client
        self.validator = validator
        self.packer = packer

    async def contribute(self, notify: Optional[NotifyHook], name: str, dry_run: bool = False) -> Any:
        """Run the workflow for ``name``.

        Returns the archive stream for a dry run, otherwise the client's
        submission result (or the value an ``Override`` substituted).
        """
        directory = self.repo.library_directory(name)
        validating = asyncio.ensure_future(self._validate(name))
        await self._notify(notify, VALIDATING_LIBRARY, validating, directory)

        log.info("contribution_phase", phase="package", name=name, directory=str(directory))
        archive = await self.packer(directory)
        if dry_run:
            log.info("contribution_dry_run", name=name)
            return archive

        log.info("contribution_phase", phase="submit", name=name)
        submitted = await self.client.contribute_library(archive)
        done = asyncio.get_running_loop().create_future()
        done.set_result(submitted)
        result = await self._notify(notify, CONTRIBUTE_COMPLETE, done, name)
        log.info("contribution_complete", name=name)
        return result

    async def _validate(self, name: str) -> Optional[Mapping[str, Any]]:
        log.info("contribution_phase", phase="validate", name=name)
        result = await self.validator.validate_library(self.repo, name)
        if result is not None and not result.get("valid"):
            raise ValidationError(result)
        return result

    async def _notify(self, notify: Optional[NotifyHook], event: str, pending: Awaitable[Any], *extras: Any) -> Any:
        if notify is None:
            return await pending
        outcome = notify(event, pending, *extras)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        if outcome is None:
            return await pending
        if isinstance(outcome, Override):
            log.debug("notification_override", notify_event=event)
            result = await outcome.result
            await _settle(pending)
            return result
        raise TypeError(f"notification hook must return None or Override, got {type(outcome).__name__}")
