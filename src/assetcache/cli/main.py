"""
CLI for the asset cache.

Commands:
    assetcache cat UUID TYPE - Write an asset's bytes to stdout or a file
    assetcache put UUID TYPE FILE - Store a file (or stdin) as an asset
    assetcache stat UUID TYPE - Show an asset's store path and size
    assetcache rm UUID TYPE - Remove an asset
    assetcache mv UUID TYPE NEW_UUID [NEW_TYPE] - Rename an asset
    assetcache info - Show cache usage
    assetcache purge - Evict least recently used assets down to the size limit
    assetcache clear - Remove every cached asset
    assetcache config - Show current configuration
    assetcache version - Print version
"""

from __future__ import annotations

import errno
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from assetcache import __version__
from assetcache.cache import DiskCache
from assetcache.config import Settings, clear_settings_cache, get_settings
from assetcache.exceptions import AssetCacheError
from assetcache.filesystem import (
    asset_exists,
    asset_size,
    read_asset,
    remove_asset,
    rename_asset,
    write_asset,
)
from assetcache.logging import setup_logging
from assetcache.types import AssetId, AssetType, OpenMode

app = typer.Typer(
    name="assetcache",
    help="Asset cache - inspect and manage cached asset stores",
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)

UuidArg = Annotated[str, typer.Argument(help="Asset UUID")]
TypeArg = Annotated[str, typer.Argument(help="Asset type (e.g. texture, mesh)")]


def _get_settings_safe() -> Settings | None:
    """Get settings, returning None if configuration is invalid."""
    try:
        clear_settings_cache()
        return get_settings()
    except ValidationError:
        return None


def _open_cache() -> DiskCache:
    """Load settings, configure logging and open the disk cache, or exit."""
    settings = _get_settings_safe()
    if settings is None:
        error_console.print(
            "[red]Error:[/red] Configuration is invalid. "
            "Run 'assetcache config' to see what's wrong."
        )
        raise typer.Exit(1)

    setup_logging(settings.LOG_LEVEL, log_file=settings.LOG_FILE)
    try:
        return DiskCache.from_settings(settings)
    except AssetCacheError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def _parse_asset(uuid_text: str, asset_type: str) -> AssetId:
    try:
        return AssetId.parse(uuid_text, asset_type)
    except AssetCacheError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def cat(
    uuid: UuidArg,
    asset_type: TypeArg,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write to this file instead of stdout"),
    ] = None,
) -> None:
    """Write an asset's bytes to stdout or a file."""
    asset_id = _parse_asset(uuid, asset_type)
    cache = _open_cache()

    data = read_asset(cache, asset_id)
    if data is None:
        error_console.print(f"[red]Asset not found:[/red] {asset_id}")
        raise typer.Exit(1)

    if output is not None:
        output.write_bytes(data)
        error_console.print(f"Wrote {len(data)} bytes to {output}")
        return

    stdout = typer.get_binary_stream("stdout")
    stdout.write(data)
    stdout.flush()


@app.command()
def put(
    uuid: UuidArg,
    asset_type: TypeArg,
    source: Annotated[str, typer.Argument(help="File to store, or '-' for stdin")],
    append: Annotated[
        bool,
        typer.Option("--append", "-a", help="Append to the existing asset"),
    ] = False,
) -> None:
    """Store a file (or stdin) as an asset."""
    asset_id = _parse_asset(uuid, asset_type)
    if source == "-":
        data = typer.get_binary_stream("stdin").read()
    else:
        path = Path(source)
        if not path.is_file():
            error_console.print(f"[red]Error:[/red] No such file: {source}")
            raise typer.Exit(1)
        data = path.read_bytes()

    cache = _open_cache()
    mode = OpenMode.APPEND if append else OpenMode.WRITE
    if not write_asset(cache, asset_id, data, mode):
        error_console.print(f"[red]Failed to write asset:[/red] {asset_id}")
        raise typer.Exit(1)

    console.print(
        f"Stored {len(data)} bytes as {asset_id} "
        f"([dim]{asset_size(cache, asset_id)} bytes total[/dim])"
    )


@app.command()
def stat(uuid: UuidArg, asset_type: TypeArg) -> None:
    """Show an asset's store path and size."""
    asset_id = _parse_asset(uuid, asset_type)
    cache = _open_cache()

    path = cache.metadata_to_filepath(asset_id.id_string, asset_id.asset_type)
    exists = asset_exists(cache, asset_id)

    table = Table(title=str(asset_id), show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Path", str(path))
    table.add_row("Exists", "yes" if exists else "no")
    table.add_row("Size", str(asset_size(cache, asset_id)))
    console.print(table)

    if not exists:
        raise typer.Exit(1)


@app.command()
def rm(uuid: UuidArg, asset_type: TypeArg) -> None:
    """Remove an asset. Removing a missing asset is not an error."""
    asset_id = _parse_asset(uuid, asset_type)
    cache = _open_cache()
    remove_asset(cache, asset_id, suppress_errno=errno.ENOENT)
    console.print(f"Removed {asset_id}")


@app.command()
def mv(
    uuid: UuidArg,
    asset_type: TypeArg,
    new_uuid: Annotated[str, typer.Argument(help="Destination asset UUID")],
    new_type: Annotated[
        Optional[str],
        typer.Argument(help="Destination asset type (defaults to the source type)"),
    ] = None,
) -> None:
    """Rename an asset, replacing any asset already at the destination."""
    old_id = _parse_asset(uuid, asset_type)
    new_id = _parse_asset(new_uuid, new_type or old_id.asset_type.value)
    cache = _open_cache()

    if not asset_exists(cache, old_id):
        error_console.print(f"[red]Asset not found:[/red] {old_id}")
        raise typer.Exit(1)

    rename_asset(cache, old_id, new_id)
    if not asset_exists(cache, new_id):
        error_console.print(f"[red]Rename failed:[/red] {old_id} -> {new_id}")
        raise typer.Exit(1)
    console.print(f"Renamed {old_id} -> {new_id}")


@app.command()
def info() -> None:
    """Show cache usage."""
    cache = _open_cache()
    cache_info = cache.cache_dir_info()

    console.print()
    console.print(
        Panel(
            f"[bold]Directory:[/bold] {cache_info.cache_dir}\n"
            f"[bold]Assets:[/bold] {cache_info.file_count}\n"
            f"[bold]Size:[/bold] {cache_info.total_bytes} bytes\n"
            f"[bold]Limit:[/bold] {cache_info.max_size_bytes} bytes\n"
            f"[bold]Usage:[/bold] {cache_info.usage_percent:.1f}%",
            title="[bold cyan]Asset Cache[/bold cyan]",
            border_style="cyan",
        )
    )
    console.print()


@app.command()
def purge() -> None:
    """Evict least recently used assets until the cache fits its size limit."""
    cache = _open_cache()
    result = cache.purge()
    console.print(
        f"Removed {result.files_removed} of {result.files_scanned} assets, "
        f"freed {result.bytes_freed} bytes"
    )


@app.command()
def clear(
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Don't ask for confirmation"),
    ] = False,
) -> None:
    """Remove every cached asset."""
    cache = _open_cache()
    if not yes:
        typer.confirm(f"Remove all cached assets under {cache.cache_dir}?", abort=True)
    removed = cache.clear_cache()
    console.print(f"Removed {removed} assets")


@app.command()
def config() -> None:
    """Show current configuration."""
    console.print()
    console.print("[bold]Asset Cache Configuration[/bold]")
    console.print()

    settings = _get_settings_safe()

    if settings is None:
        error_console.print("[red]Configuration is invalid.[/red]")
        error_console.print()
        error_console.print("Check the ASSET_CACHE_* environment variables or .env file.")
        raise typer.Exit(1)

    table = Table(title="Settings", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    for key, value in settings.redacted_display().items():
        display_value = str(value) if value is not None else "[dim]not set[/dim]"
        table.add_row(key, display_value)

    console.print(table)
    console.print()
    console.print(
        f"[bold]Known asset types:[/bold] {', '.join(t.value for t in AssetType)}"
    )
    console.print()


@app.command()
def version() -> None:
    """Print the version number."""
    console.print(f"asset-cache version {__version__}")


def main() -> None:
    """Entry point for the CLI."""
    app()
