from __future__ import annotations

from datetime import timedelta
from functools import partial
from pathlib import Path

import typer

from ratcrate_browse import __version__
from ratcrate_browse.cache import CacheStore
from ratcrate_browse.logging_config import configure_logging, silence_console_logging
from ratcrate_browse.registry import DEFAULT_REGISTRY_URL, fetch_all_crates
from ratcrate_browse.tui import CrateBrowserTui

__all__ = [
    "CrateBrowserTui",
    "cli",
    "run",
]

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _version_callback(value: bool) -> None:
    if not value:
        return
    typer.echo(f"ratcrate-browse {__version__}")
    raise typer.Exit()


cli = typer.Typer(
    add_completion=False,
    help="Browse ratatui ecosystem crates in a Textual TUI.",
)


@cli.callback(invoke_without_command=True)
def run(
    refresh: bool = typer.Option(
        False,
        "--refresh",
        "-r",
        help="Ignore the cached catalog and download a fresh one.",
    ),
    cache_file: Path | None = typer.Option(
        None,
        "--cache-file",
        help="Location of the cached catalog snapshot.",
    ),
    ttl_days: int = typer.Option(
        7,
        "--ttl-days",
        envvar="RATCRATE_TTL_DAYS",
        min=0,
        help="Age in days after which the cached catalog is refreshed.",
    ),
    url: str = typer.Option(
        DEFAULT_REGISTRY_URL,
        "--url",
        envvar="RATCRATE_URL",
        help="Catalog document to download.",
    ),
    log_file: Path | None = typer.Option(
        None,
        "--log-file",
        envvar="RATCRATE_LOG_FILE",
        help="Write structured logs to this file.",
    ),
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        help="Log level used with --log-file.",
    ),
    _version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    level = log_level.upper()
    if level not in LOG_LEVELS:
        typer.echo(
            f"Invalid log level {log_level!r}; choose from {', '.join(LOG_LEVELS)}.",
            err=True,
        )
        raise typer.Exit(code=1)

    configure_logging(log_file, level)
    cache_store = CacheStore(cache_file)
    snapshot = cache_store.load()
    silence_console_logging()

    CrateBrowserTui(
        cache_store=cache_store,
        snapshot=snapshot,
        fetch=partial(fetch_all_crates, url),
        ttl=timedelta(days=ttl_days),
        force_refresh=refresh,
    ).run()


if __name__ == "__main__":
    cli()
