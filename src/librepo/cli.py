"""
Command line interface for managing library repositories.
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path
from typing import Any, BinaryIO, Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .library import LibraryError
from .logger import configure_logging, get_logger
from .services import LibraryContributor, LocalLibraryValidator, ValidationError, promote_library
from .services.archive import targz_directory
from .settings import AppSettings, load_settings
from .storage import FileSystemLibraryRepository, FileSystemNamingStrategy, LibraryLayout

app = typer.Typer(name="librepo", help="Manage repositories of versioned source-code libraries.")
configure_logging(enable_console=False)
log = get_logger(__name__)
console = Console()


def _settings() -> AppSettings:
    settings = load_settings()
    configure_logging(settings.log_level, log_file=settings.log_file)
    return settings


def _repository(settings: AppSettings, root: Optional[Path], naming: Optional[str] = None) -> FileSystemLibraryRepository:
    try:
        strategy = FileSystemNamingStrategy.from_label(naming or settings.naming_strategy)
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}")
        raise typer.Exit(code=2)
    return FileSystemLibraryRepository(
        root or settings.repository_root,
        naming=strategy,
        source_extensions=settings.source_extensions,
    )


def _run(coro: Any) -> Any:
    try:
        return asyncio.run(coro)
    except (LibraryError, ValidationError) as exc:
        typer.echo(f"[ERROR] {exc}")
        raise typer.Exit(code=2)


class _DryRunClient:
    """Contribution client for ``pack``.

    ``pack`` always runs the workflow with ``dry_run=True``, which returns the
    archive before submission, so this client is never called. Submitting to a
    catalog needs a transport that implements ``ContributionClient``; the CLI
    ships none.
    """

    async def contribute_library(self, archive: BinaryIO) -> Any:
        raise RuntimeError("No catalog client is configured; only dry runs are supported.")


@app.command("list")
def list_libraries(
    root: Optional[Path] = typer.Option(None, "--root", "-r", help="Repository root directory."),
    naming: Optional[str] = typer.Option(None, "--naming", help="Naming strategy: name, name@version or direct."),
) -> None:
    """List libraries in the repository."""
    repo = _repository(_settings(), root, naming)
    names = _run(repo.names())
    if not names:
        typer.echo(f"No libraries found in {repo.root}")
        return
    for name in names:
        typer.echo(f"- {name}")


@app.command()
def show(
    name: str = typer.Argument(..., help="Library name."),
    root: Optional[Path] = typer.Option(None, "--root", "-r", help="Repository root directory."),
    naming: Optional[str] = typer.Option(None, "--naming", help="Naming strategy: name, name@version or direct."),
) -> None:
    """Show a library's descriptor and files."""
    repo = _repository(_settings(), root, naming)
    library = _run(repo.fetch(name))

    metadata = library.metadata.to_mapping()
    for key, value in metadata.items():
        typer.echo(f"{key}: {value}")

    table = Table(title=f"{library.name} files")
    table.add_column("Kind")
    table.add_column("File")
    for library_file in library.files:
        table.add_row(library_file.kind.value, library_file.filename)
    console.print(table)


@app.command()
def install(
    source: Path = typer.Argument(..., help="Directory holding a single library."),
    root: Optional[Path] = typer.Option(None, "--root", "-r", help="Repository root directory."),
    naming: Optional[str] = typer.Option(None, "--naming", help="Naming strategy: name, name@version or direct."),
    layout: Optional[int] = typer.Option(
        None, "--layout", help="Descriptor generation to write: 1 (spark.json) or 2 (library.properties)."
    ),
) -> None:
    """Copy a library directory into the repository, flattening nested includes."""
    settings = _settings()
    if not source.is_dir():
        typer.echo(f"[ERROR] Library directory not found: {source}")
        raise typer.Exit(code=2)
    layout_version = layout or settings.layout_version
    if layout_version not in (LibraryLayout.LEGACY, LibraryLayout.CURRENT):
        typer.echo(f"[ERROR] Unsupported layout: {layout_version}")
        raise typer.Exit(code=2)

    origin = FileSystemLibraryRepository(
        source,
        naming=FileSystemNamingStrategy.DIRECT,
        source_extensions=settings.source_extensions,
    )
    target = _repository(settings, root, naming)
    library = _run(promote_library(origin, "", target, LibraryLayout(layout_version)))
    typer.echo(f"Installed {library.name} -> {target.library_directory(target.naming.to_name(library.metadata))}")


@app.command()
def pack(
    name: str = typer.Argument(..., help="Library name."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Archive path (default <name>.tar.gz)."),
    root: Optional[Path] = typer.Option(None, "--root", "-r", help="Repository root directory."),
    naming: Optional[str] = typer.Option(None, "--naming", help="Naming strategy: name, name@version or direct."),
) -> None:
    """Validate and package a library as it would be contributed, without submitting it."""
    settings = _settings()
    repo = _repository(settings, root, naming)
    ignore = tuple(settings.archive_ignore)

    async def packer(directory: Path) -> BinaryIO:
        return await targz_directory(directory, ignore=ignore)

    def notify(event: str, pending: Any, *extras: Any) -> None:
        log.debug("contribution_event", notify_event=event)
        if event == "validatingLibrary":
            typer.echo(f"Validating library {name}")
        return None

    contributor = LibraryContributor(repo, _DryRunClient(), LocalLibraryValidator(), packer=packer)
    archive = _run(contributor.contribute(notify, name, dry_run=True))

    destination = output or Path(f"{name}.tar.gz")
    with destination.open("wb") as handle:
        shutil.copyfileobj(archive, handle)
    typer.echo(f"Packaged {name} -> {destination}")


@app.command()
def version() -> None:
    """Print the installed version."""
    typer.echo(__version__)


if __name__ == "__main__":  # pragma: no cover
    app()
