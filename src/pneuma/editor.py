"""Run the user's editor on a post while the screen is suspended."""

from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path

from pneuma.tui.screen import Screen

logger = logging.getLogger(__name__)


class EditorError(Exception):
    """The editor process could not be started."""


def editor_command(editor: str, path: Path) -> list[str]:
    """Split *editor* like a shell would and append *path*.

    ``"code --wait"`` becomes ``["code", "--wait", path]``.
    """
    try:
        argv = shlex.split(editor)
    except ValueError as e:
        raise EditorError(f"cannot parse editor command {editor!r}: {e}") from e
    if not argv:
        raise EditorError("no editor configured")
    return [*argv, str(path)]


def start_editor(screen: Screen, editor: str, path: Path) -> int:
    """Open *path* in *editor* with the terminal handed over; return its exit code.

    The screen is resumed (and fully redrawn) whether or not the editor ran.
    """
    argv = editor_command(editor, path)
    logger.info("Starting editor: %s", argv)
    with screen.suspended():
        try:
            result = subprocess.run(argv)
        except OSError as e:
            raise EditorError(f"cannot start {argv[0]}: {e}") from e
    if result.returncode != 0:
        logger.warning("Editor %s exited with status %d", argv[0], result.returncode)
    return result.returncode
