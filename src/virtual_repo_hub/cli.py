"""virtual-repo-hub CLI."""

import logging
import sys
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from virtual_repo_hub import config as config_module
from virtual_repo_hub.analyzer import check_repos, find_repos
from virtual_repo_hub.backend import BackendError, NotARepository
from virtual_repo_hub.classifier import classify_path
from virtual_repo_hub.constants import APP_NAME, LOG_DATE_FORMAT, LOG_FORMAT
from virtual_repo_hub.models import Config
from virtual_repo_hub.reporter import Reporter

logger = logging.getLogger(APP_NAME)

app = typer.Typer(
    name="vrh",
    help="Check whether git repositories are safely backed up",
    no_args_is_help=True,
)

console = Console()


def setup_logging(verbose: bool) -> None:
    """Configure the application logger to write to stderr.

    Args:
        verbose: Log debug detail instead of warnings only.
    """
    formatter = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def resolve_config_dir(ctx: typer.Context) -> Path:
    """Return the config directory chosen on the command line or by default."""
    override = ctx.obj.get("config_dir") if ctx.obj else None
    if override is not None:
        return override

    try:
        return config_module.config_dir()
    except config_module.ConfigError as e:
        console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1) from e


def load_config_or_exit(config_dir: Path) -> Config:
    """Load config or exit with error."""
    try:
        return config_module.load_config(config_dir)
    except (FileNotFoundError, config_module.ConfigError) as e:
        console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1) from e


@app.callback()
def main(
    ctx: typer.Context,
    config_dir: Annotated[
        Path | None,
        typer.Option("--config-dir", help="Configuration directory"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("-v", "--verbose", help="Log debug output to stderr"),
    ] = False,
) -> None:
    """Check whether git repositories would lose data if deleted."""
    setup_logging(verbose)
    ctx.obj = {"config_dir": config_dir.expanduser() if config_dir else None}


@app.command()
def status(
    repo_path: Annotated[
        Path,
        typer.Argument(help="Repository path to inspect"),
    ],
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output status as JSON"),
    ] = False,
) -> None:
    """Show the classified status of a single repository."""
    repo_path = repo_path.expanduser().resolve()

    try:
        repo_status = classify_path(repo_path)
    except NotARepository as e:
        console.print(f"[red]Error:[/] Not a git repository: {repo_path}")
        raise typer.Exit(1) from e
    except BackendError as e:
        console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1) from e

    if json_output:
        print(repo_status.model_dump_json(indent=2))
        return

    Reporter(console).display_status(repo_path, repo_status)


@app.command()
def check(
    ctx: typer.Context,
    paths: Annotated[
        list[Path] | None,
        typer.Argument(help="Repositories to check (defaults to repos under starred directories)"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output results as JSON"),
    ] = False,
    workers: Annotated[
        int | None,
        typer.Option("--workers", "-j", help="Number of repositories checked in parallel"),
    ] = None,
) -> None:
    """Check whether repositories are backed up.

    Exits with status 1 if any repository is at risk or could not be checked.
    """
    if paths:
        repo_paths = [p.expanduser().resolve() for p in paths]
    else:
        config = load_config_or_exit(resolve_config_dir(ctx))
        starred = config.starred_paths()
        if not starred:
            console.print("[yellow]No starred directories. Add one with 'vrh star'.[/]")
            return
        repo_paths = find_repos(
            starred,
            exclude_patterns=config.device.exclude_patterns,
            exclude_paths=config.excluded_paths(),
        )

    result = check_repos(repo_paths, max_workers=workers)

    if json_output:
        print(result.model_dump_json(indent=2))
    else:
        Reporter(console).display_check_result(result)

    if result.failed or result.errors:
        raise typer.Exit(1)


@app.command()
def init(ctx: typer.Context) -> None:
    """Initialize configuration for this device."""
    config_dir = resolve_config_dir(ctx)
    config = config_module.init_config(config_dir)

    if config is None:
        console.print(f"[yellow]Device already initialized in[/] {config_dir}")
        return

    console.print(f"[green]Initialized device[/] {config.device_id}")
    console.print(f"Config directory: {config_dir}")


@app.command()
def star(
    ctx: typer.Context,
    alias: Annotated[str, typer.Argument(help="Short name for the directory")],
    path: Annotated[Path, typer.Argument(help="Directory to star")],
) -> None:
    """Star a directory so its repositories are checked by default."""
    config_dir = resolve_config_dir(ctx)
    config = load_config_or_exit(config_dir)

    path = path.expanduser().resolve()
    if not path.is_dir():
        console.print(f"[red]Error:[/] Not a directory: {path}")
        raise typer.Exit(1)

    config.star(alias, path)
    config_module.save_device_config(config_dir, config)
    console.print(f"[green]Starred[/] {alias} -> {path}")


@app.command()
def unstar(
    ctx: typer.Context,
    alias: Annotated[str, typer.Argument(help="Alias to remove")],
) -> None:
    """Remove a starred directory."""
    config_dir = resolve_config_dir(ctx)
    config = load_config_or_exit(config_dir)

    if not config.unstar(alias):
        console.print(f"[red]Error:[/] No starred directory named '{alias}'")
        raise typer.Exit(1)

    config_module.save_device_config(config_dir, config)
    console.print(f"[green]Removed[/] {alias}")


@app.command()
def starred(ctx: typer.Context) -> None:
    """List starred directories."""
    config = load_config_or_exit(resolve_config_dir(ctx))

    if not config.device.starred:
        console.print("[dim]No starred directories[/]")
        return

    for alias in sorted(config.device.starred):
        console.print(f"  [cyan]{alias}[/] {config.device.starred[alias]}")
