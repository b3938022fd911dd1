"""
WorkerMap CLI - Command-line interface.

Run the hub server and inspect persisted snapshots from the terminal.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from workermap.core.config import HubSettings
from workermap.core.exceptions import ConfigurationError
from workermap.hub.core import reconcile
from workermap.registry.storage import LoadStatus, SnapshotStore

app = typer.Typer(
    name="workermap",
    help="WorkerMap - shared worker registry with real-time fan-out",
    no_args_is_help=True,
)
console = Console()

_LEVEL_STYLES = {
    "critical": "bold red",
    "high": "red",
    "medium": "yellow",
    "low": "green",
}


def _load_settings(data_file: Optional[Path]) -> HubSettings:
    try:
        settings = HubSettings.from_env()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(2)
    if data_file is not None:
        settings = settings.model_copy(update={"data_file": data_file})
    return settings


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Bind port"),
    data_file: Optional[Path] = typer.Option(None, "--data-file", "-f", help="Snapshot file"),
    log_level: Optional[str] = typer.Option(None, "--log-level", "-l", help="Log level"),
):
    """Run the hub server."""
    import uvicorn

    from workermap.api.app import create_app

    settings = _load_settings(data_file)
    if log_level:
        settings = settings.model_copy(update={"log_level": log_level.upper()})

    console.print(
        Panel.fit(
            f"[bold blue]WorkerMap Hub[/bold blue]\n"
            f"Listening: ws://{host}:{port}/ws\n"
            f"Snapshot: {settings.data_file}\n"
            f"Capacity: {settings.max_workers} workers\n"
            f"Rate limit: {settings.rate_limit_max}/{settings.rate_limit_window_seconds:g}s per connection",
        )
    )
    uvicorn.run(create_app(settings), host=host, port=port, log_level=settings.log_level.lower())


@app.command()
def show(
    data_file: Optional[Path] = typer.Option(None, "--data-file", "-f", help="Snapshot file"),
    limit: int = typer.Option(50, "--limit", "-n", help="Maximum rows to show"),
):
    """Show workers in the persisted snapshot."""
    settings = _load_settings(data_file)
    store = SnapshotStore(settings.data_file)
    workers = store.load()

    if store.last_load_status is not LoadStatus.LOADED:
        console.print(f"[yellow]Snapshot {store.last_load_status.value}: {settings.data_file}[/yellow]")
        return

    table = Table(title=f"Workers ({len(workers)})")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Address")
    table.add_column("Lat", justify="right")
    table.add_column("Lng", justify="right")
    table.add_column("Level")

    for i, worker in enumerate(workers[:limit], start=1):
        style = _LEVEL_STYLES.get(worker.level.value, "white")
        table.add_row(
            str(i),
            worker.name,
            worker.address,
            f"{worker.lat:.5f}",
            f"{worker.lng:.5f}",
            f"[{style}]{worker.level.value}[/{style}]",
        )

    console.print(table)
    if len(workers) > limit:
        console.print(f"[dim]... {len(workers) - limit} more[/dim]")


@app.command()
def check(
    data_file: Optional[Path] = typer.Option(None, "--data-file", "-f", help="Snapshot file"),
):
    """Validate the persisted snapshot against the current settings."""
    settings = _load_settings(data_file)
    store = SnapshotStore(settings.data_file)
    workers = store.load()
    report = reconcile(workers, settings)

    status = store.last_load_status
    status_style = {
        LoadStatus.LOADED: "green",
        LoadStatus.MISSING: "yellow",
        LoadStatus.CORRUPT: "red",
    }.get(status, "white")

    table = Table(show_header=False, box=None)
    table.add_column("Check", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Snapshot", str(settings.data_file))
    table.add_row("Status", f"[{status_style}]{status.value}[/{status_style}]")
    table.add_row("Entries read", str(len(workers) + store.skipped_on_load))
    table.add_row("Malformed entries", str(store.skipped_on_load))
    table.add_row("Invalid under current settings", str(report.invalid))
    table.add_row("Duplicates", str(report.duplicates))
    table.add_row("Over capacity", str(report.over_capacity))
    table.add_row("Workers kept", str(len(report.workers)))
    console.print(table)

    if status is LoadStatus.CORRUPT:
        raise typer.Exit(1)


@app.command()
def version():
    """Show WorkerMap version."""
    from workermap import __version__

    console.print(f"WorkerMap v{__version__}")


if __name__ == "__main__":
    app()
