"""CLI for blob-manager."""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import connect
from .config import load_settings
from .errors import ConfigError, ErrorDescriptor
from .models import MediaType
from .storage_manager import StorageManager


app = typer.Typer(help="""\
Client media repositories on Azure storage. Resolve a client key to its
containers, upload media into them and download it back.""")

console = Console()


def _managers(client_key: str, config: Optional[Path]):
    """Load settings and build managers, exiting on configuration errors."""
    try:
        settings = load_settings(config)
    except ConfigError as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    if settings.provider == "memory":
        # Memory stores start empty in every process
        console.print(
            "[red]Configuration error:[/red] the memory provider is for tests only; "
            "use provider azure"
        )
        raise typer.Exit(1)
    return connect(client_key, settings)


def _fail(error: ErrorDescriptor) -> None:
    """Print an error descriptor and exit."""
    status = error.status_code if error.status_code is not None else "-"
    console.print(f"[red]✗ {escape(error.message)}[/red] [dim]({error.kind.value}, status {status})[/dim]")
    if error.err is not None:
        console.print(f"[dim]  {escape(str(error.err))}[/dim]")
    raise typer.Exit(1)


@app.callback()
def main_options(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Global options."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command("repo-info")
def repo_info(
    client_key: str = typer.Argument(..., help="Client access key"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Settings YAML file"),
    as_json: bool = typer.Option(False, "--json", help="Print the descriptor as JSON"),
):
    """Show the repository and containers of a client.

    Examples:
        blob-manager repo-info c17992e8-44b2-41cb-b075-b9f449911e6d
    """
    client_manager, _ = _managers(client_key, config)
    error, info = client_manager.get_repository_info()
    if error:
        _fail(error)

    if as_json:
        console.print_json(json.dumps(info.model_dump(by_alias=True, exclude_none=True)))
        return

    console.print(f"[bold]{info.client_name}[/bold] (client {info.client_id})")
    table = Table()
    table.add_column("Media")
    table.add_column("Container")
    table.add_column("Store")
    table.add_column("Quota", justify="right")
    table.add_column("Size", justify="right")
    for media_type in MediaType:
        container = info.container_for(media_type)
        if container is None:
            table.add_row(media_type.name.lower(), "[dim]none[/dim]", "", "", "")
            continue
        table.add_row(
            media_type.name.lower(),
            container.container_id,
            container.media_store,
            str(container.cota),
            str(container.current_size),
        )
    console.print(table)


@app.command()
def upload(
    client_key: str = typer.Argument(..., help="Client access key"),
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="File to upload"),
    media_type: MediaType = typer.Option(MediaType.PICTURE, "--media-type", "-m", help="Media type"),
    name: Optional[str] = typer.Option(None, "--name", help="Blob name (default: file name)"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Settings YAML file"),
):
    """Upload a file into the client's container for a media type.

    Examples:
        blob-manager upload c17992e8-44b2-41cb-b075-b9f449911e6d photo.jpg -m pic
    """
    _, storage_manager = _managers(client_key, config)
    blob_name = name or file.name

    with file.open("rb") as stream:
        length = StorageManager.get_stream_length(stream)
        error, result = storage_manager.upload(media_type, blob_name, stream, length)
    if error:
        _fail(error)

    console.print(f"[green]✓[/green] Uploaded {blob_name} to {result.container}")


@app.command()
def get(
    client_key: str = typer.Argument(..., help="Client access key"),
    blob_name: str = typer.Argument(..., help="Blob to download"),
    dest: Path = typer.Argument(..., help="Destination file"),
    media_type: MediaType = typer.Option(MediaType.PICTURE, "--media-type", "-m", help="Media type"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Settings YAML file"),
):
    """Download a blob from the client's container for a media type."""
    _, storage_manager = _managers(client_key, config)

    dest.parent.mkdir(parents=True, exist_ok=True)
    with dest.open("wb") as sink:
        error, result = storage_manager.get(blob_name, sink, media_type)
    if error:
        dest.unlink(missing_ok=True)
        _fail(error)

    console.print(f"[green]✓[/green] Downloaded {blob_name} ({result.size} bytes) to {dest}")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
