import asyncio
import io
from pathlib import Path
from typing import Any, List, Optional

import pytest

from librepo.services import LibraryContributor, Override, ValidationError
from librepo.storage import FileSystemLibraryRepository


class RecordingValidator:
    def __init__(self, result: Optional[dict] = None, error: Optional[Exception] = None) -> None:
        self.result = result
        self.error = error
        self.calls: List[tuple] = []

    async def validate_library(self, repository: Any, name: str) -> Optional[dict]:
        self.calls.append((repository, name))
        if self.error:
            raise self.error
        return self.result


class RecordingClient:
    def __init__(self, result: Any = "contributed", error: Optional[Exception] = None) -> None:
        self.result = result
        self.error = error
        self.archives: List[Any] = []

    async def contribute_library(self, archive: Any) -> Any:
        self.archives.append(archive)
        if self.error:
            raise self.error
        return self.result


class RecordingPacker:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.directories: List[Path] = []
        self.archive = io.BytesIO(b"archive")

    async def __call__(self, directory: Path) -> io.BytesIO:
        self.directories.append(directory)
        if self.error:
            raise self.error
        return self.archive


class RecordingHook:
    def __init__(self, overrides: Optional[dict] = None) -> None:
        self.events: List[tuple] = []
        self.overrides = overrides or {}

    def __call__(self, event: str, pending: Any, *extras: Any) -> Optional[Override]:
        self.events.append((event, extras))
        return self.overrides.get(event)


@pytest.fixture
def repo(tmp_path: Path) -> FileSystemLibraryRepository:
    return FileSystemLibraryRepository(tmp_path)


def _contributor(repo, validator=None, client=None, packer=None) -> LibraryContributor:
    return LibraryContributor(
        repo,
        client or RecordingClient(),
        validator or RecordingValidator({"valid": True}),
        packer=packer or RecordingPacker(),
    )


def test_happy_path_runs_phases_in_order(repo: FileSystemLibraryRepository) -> None:
    validator = RecordingValidator({"valid": True})
    client = RecordingClient(result=123)
    packer = RecordingPacker()
    hook = RecordingHook()
    sut = _contributor(repo, validator, client, packer)

    result = asyncio.run(sut.contribute(hook, "abcd"))

    assert result == 123
    assert validator.calls == [(repo, "abcd")]
    assert packer.directories == [repo.library_directory("abcd")]
    assert client.archives == [packer.archive]
    assert hook.events == [
        ("validatingLibrary", (repo.library_directory("abcd"),)),
        ("contributeComplete", ("abcd",)),
    ]


def test_dry_run_packages_without_submitting(repo: FileSystemLibraryRepository) -> None:
    client = RecordingClient()
    packer = RecordingPacker()
    hook = RecordingHook()
    sut = _contributor(repo, client=client, packer=packer)

    result = asyncio.run(sut.contribute(hook, "abcd", dry_run=True))

    assert result is packer.archive
    assert packer.directories == [repo.library_directory("abcd")]
    assert client.archives == []
    assert [event for event, _ in hook.events] == ["validatingLibrary"]


@pytest.mark.parametrize("result", [None, {"valid": True}])
def test_validation_passes(repo: FileSystemLibraryRepository, result) -> None:
    sut = _contributor(repo, RecordingValidator(result))
    assert asyncio.run(sut.contribute(None, "abcd")) == "contributed"


def test_invalid_result_without_details(repo: FileSystemLibraryRepository) -> None:
    validation = {"valid": False}
    client = RecordingClient()
    packer = RecordingPacker()
    sut = _contributor(repo, RecordingValidator(validation), client, packer)

    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(sut.contribute(None, "abcd"))

    assert str(excinfo.value) == "Library is not valid. "
    assert excinfo.value.result == validation
    assert packer.directories == []
    assert client.archives == []


def test_invalid_result_with_details(repo: FileSystemLibraryRepository) -> None:
    validation = {"valid": False, "errors": {"sympathy": "is needed"}}
    sut = _contributor(repo, RecordingValidator(validation))
    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(sut.contribute(None, "abcd"))
    assert str(excinfo.value) == "Library is not valid. sympathy is needed"
    assert excinfo.value.result == validation


def test_validation_message_joins_details() -> None:
    error = ValidationError({"valid": False, "errors": {"name": "is bad", "version": "is missing"}})
    assert str(error) == "Library is not valid. name is bad version is missing"


def test_validator_failure_propagates_unchanged(repo: FileSystemLibraryRepository) -> None:
    failure = RuntimeError("didn't validate")
    packer = RecordingPacker()
    sut = _contributor(repo, RecordingValidator(error=failure), packer=packer)
    with pytest.raises(RuntimeError) as excinfo:
        asyncio.run(sut.contribute(RecordingHook(), "abcd"))
    assert excinfo.value is failure
    assert packer.directories == []


def test_packaging_failure_propagates_unchanged(repo: FileSystemLibraryRepository) -> None:
    failure = OSError("disk on fire")
    client = RecordingClient()
    sut = _contributor(repo, client=client, packer=RecordingPacker(error=failure))
    with pytest.raises(OSError) as excinfo:
        asyncio.run(sut.contribute(None, "abcd"))
    assert excinfo.value is failure
    assert client.archives == []


def test_submission_failure_skips_completion_notice(repo: FileSystemLibraryRepository) -> None:
    failure = ConnectionError("catalog unreachable")
    hook = RecordingHook()
    sut = _contributor(repo, client=RecordingClient(error=failure))
    with pytest.raises(ConnectionError) as excinfo:
        asyncio.run(sut.contribute(hook, "abcd"))
    assert excinfo.value is failure
    assert [event for event, _ in hook.events] == ["validatingLibrary"]


def test_hook_returning_none_keeps_result(repo: FileSystemLibraryRepository) -> None:
    sut = _contributor(repo, client=RecordingClient(result="original"))
    assert asyncio.run(sut.contribute(RecordingHook(), "abcd")) == "original"


def test_hook_override_replaces_completion_result(repo: FileSystemLibraryRepository) -> None:
    async def substitute() -> int:
        return 123

    hook = RecordingHook({"contributeComplete": Override(substitute())})
    sut = _contributor(repo, client=RecordingClient(result="original"))
    assert asyncio.run(sut.contribute(hook, "abcd")) == 123


def test_hook_override_can_absorb_validation_failure(repo: FileSystemLibraryRepository) -> None:
    async def run() -> Any:
        async def tolerate(pending):
            try:
                return await pending
            except ValidationError:
                return None

        def hook(event, pending, *extras):
            if event == "validatingLibrary":
                return Override(tolerate(pending))
            return None

        sut = _contributor(repo, RecordingValidator({"valid": False}))
        return await sut.contribute(hook, "abcd")

    assert asyncio.run(run()) == "contributed"


def test_hook_receives_pending_phase_result(repo: FileSystemLibraryRepository) -> None:
    seen = []

    async def run() -> None:
        async def hook(event, pending, *extras):
            seen.append((event, await pending))
            return None

        sut = _contributor(repo, RecordingValidator({"valid": True}), RecordingClient(result="done"))
        await sut.contribute(hook, "abcd")

    asyncio.run(run())
    assert seen == [("validatingLibrary", {"valid": True}), ("contributeComplete", "done")]


def test_hook_with_unexpected_return_value(repo: FileSystemLibraryRepository) -> None:
    sut = _contributor(repo)
    with pytest.raises(TypeError):
        asyncio.run(sut.contribute(lambda *args: "yes", "abcd"))


def test_overridden_validation_still_runs_before_packaging(repo: FileSystemLibraryRepository) -> None:
    order: List[str] = []

    class SlowValidator:
        async def validate_library(self, repository, name):
            order.append("validate:start")
            await asyncio.sleep(0.01)
            order.append("validate:end")
            raise RuntimeError("validator exploded")

    class OrderedPacker(RecordingPacker):
        async def __call__(self, directory: Path) -> io.BytesIO:
            order.append("package")
            return await super().__call__(directory)

    async def skip() -> dict:
        return {"valid": True}

    def hook(event, pending, *extras):
        if event == "validatingLibrary":
            return Override(skip())
        return None

    sut = _contributor(repo, SlowValidator(), RecordingClient(result="ok"), OrderedPacker())
    assert asyncio.run(sut.contribute(hook, "abcd")) == "ok"
    assert order == ["validate:start", "validate:end", "package"]


def test_override_may_cancel_the_pending_phase(repo: FileSystemLibraryRepository) -> None:
    validator = RecordingValidator({"valid": True})
    packer = RecordingPacker()

    async def give_up(pending) -> None:
        pending.cancel()
        return None

    def hook(event, pending, *extras):
        if event == "validatingLibrary":
            return Override(give_up(pending))
        return None

    sut = _contributor(repo, validator, packer=packer)
    assert asyncio.run(sut.contribute(hook, "abcd", dry_run=True)) is packer.archive
    assert validator.calls == []
