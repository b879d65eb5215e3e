"""CLI entry point for pneuma. Uses Click for argument parsing."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import click

from pneuma import __version__
from pneuma.app import AppContext, run_app
from pneuma.config import ConfigError, load_config
from pneuma.editor import EditorError
from pneuma.hugo import ContentSourceError
from pneuma.tui.screen import Screen
from pneuma.tui.terminal import ProcessTerminal, TerminalError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVELS = ["debug", "info", "warning", "error"]


def default_log_file() -> Path:
    state_home = os.environ.get("XDG_STATE_HOME")
    base = Path(state_home) if state_home else Path.home() / ".local" / "state"
    return base / "pneuma" / "pneuma.log"


def setup_logging(level: str, log_file: Path) -> None:
    """Send log records to *log_file*; the terminal belongs to the UI."""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(log_file),
        level=getattr(logging, level.upper()),
        format=LOG_FORMAT,
        force=True,
    )


@click.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: $PNEUMA_CONFIG or ~/.config/pneuma.json)",
)
@click.option("--site", "site_name", default=None, help="Open this site without asking")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="warning",
    show_default=True,
    help="Logging level",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Log file (default: $XDG_STATE_HOME/pneuma/pneuma.log)",
)
@click.version_option(__version__, prog_name="pneuma")
def main(config_path, site_name, log_level, log_file):
    """Browse the posts of a Hugo site and open them in your editor."""
    try:
        setup_logging(log_level, log_file or default_log_file())
    except OSError as e:
        click.echo(f"Cannot open log file: {e}", err=True)
        sys.exit(1)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    site = None
    if site_name is not None:
        site = config.find_site(site_name)
        if site is None:
            click.echo(f"Site '{site_name}' not found in config", err=True)
            sys.exit(1)

    screen = Screen(ProcessTerminal())
    ctx = AppContext(screen=screen, config=config)
    try:
        screen.start()
        run_app(ctx, site)
    except (TerminalError, EditorError, ContentSourceError) as e:
        logger.exception("Fatal error")
        screen.close()
        click.echo(f"pneuma: {e}", err=True)
        sys.exit(1)
    finally:
        screen.close()


if __name__ == "__main__":
    main()
