"""Command-line entry point: parse options, check for updates, watch."""
from __future__ import annotations

import logging
import time
from pathlib import Path

import typer

from . import __version__
from .config import ConfigError, build_config
from .scanner import ScanError
from .updates import check_for_update, format_update_notice
from .watcher import watch

log = logging.getLogger(__name__)

app = typer.Typer(
    add_completion=False,
    help="dau: watch a directory and upload new images to a webhook",
    context_settings={"help_option_names": ["-h", "--help"]},
)

HOMEPAGE = "https://github.com/tardisx/discord-auto-upload"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"dau - {HOMEPAGE}")
        typer.echo(f"Version: {__version__}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # requests/urllib3 debug output is noise at our level
    logging.getLogger("urllib3").setLevel(logging.WARNING)


@app.command()
def main(
    webhook: str | None = typer.Option(None, "--webhook", "-w", envvar="DAU_WEBHOOK", help="Webhook URL"),
    directory: Path | None = typer.Option(None, "--directory", "-d", help="Directory to scan, defaults to current directory"),
    interval: int = typer.Option(10, "--watch", "-s", help="Time between scans, in seconds"),
    username: str | None = typer.Option(None, "--username", "-u", help="Username for the bot upload"),
    retries: int = typer.Option(0, "--retries", help="Extra attempts for transient upload failures"),
    no_update_check: bool = typer.Option(False, "--no-update-check", help="Skip the startup release check"),
    verbose: bool = typer.Option(False, "--verbose", help="Debug logging"),
    version: bool = typer.Option(
        False, "--version", "-v", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
) -> None:
    """Upload every new .png/.jpg/.gif under DIRECTORY to the webhook."""
    # Files modified from here on are eligible, including during startup
    started = time.time()
    _setup_logging(verbose)

    if directory is None:
        log.info("Defaulting to current directory")
        directory = Path(".")

    try:
        config = build_config(
            webhook_url=webhook,
            root=directory,
            interval=interval,
            username=username,
            retries=retries,
        )
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc

    if not no_update_check:
        release = check_for_update(__version__)
        if release is not None:
            typer.echo(format_update_notice(__version__, release))

    try:
        watch(config, mark=started)
    except ScanError as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        typer.echo("Stopped watching.")


if __name__ == "__main__":
    app()
