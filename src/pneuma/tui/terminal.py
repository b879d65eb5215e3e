"""Terminal abstraction for raw-mode stdin/stdout interaction.

Provides a ``Terminal`` protocol and a concrete ``ProcessTerminal``
implementation that manages raw mode, the alternate screen, bracketed paste,
cursor visibility and resize detection via ANSI escape sequences.

Input is pulled, not pushed: :meth:`Terminal.read_input` blocks until one
complete key sequence is available.
"""

from __future__ import annotations

import codecs
import logging
import os
import select
import signal
import sys
import termios
import tty
from typing import Callable, Protocol

from pneuma.tui.stdin_buffer import StdinBuffer

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_ALT_SCREEN_ENABLE = "\x1b[?1049h"
_ALT_SCREEN_DISABLE = "\x1b[?1049l"

_BRACKETED_PASTE_ENABLE = "\x1b[?2004h"
_BRACKETED_PASTE_DISABLE = "\x1b[?2004l"

_HIDE_CURSOR = "\x1b[?25l"
_SHOW_CURSOR = "\x1b[?25h"

# How long to wait for the rest of an escape sequence before treating
# a lone ESC as the Escape key.
ESCAPE_TIMEOUT = 0.025


class TerminalError(RuntimeError):
    """The terminal could not be acquired, released or read."""


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface for terminal I/O operations."""

    def start(self, on_resize: Callable[[], None] | None = None) -> None: ...

    def stop(self) -> None: ...

    def read_input(self) -> str: ...

    def write(self, data: str) -> None: ...

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Concrete terminal implementation backed by ``sys.stdin``/``sys.stdout``.

    Manages raw mode via :mod:`tty` and :mod:`termios` and SIGWINCH-based
    resize detection.  ``start``/``stop`` may be called repeatedly, which is
    how the screen hands the terminal to a child process and takes it back.
    """

    def __init__(self) -> None:
        self._resize_handler: Callable[[], None] | None = None
        self._original_termios: list | None = None
        self._prev_sigwinch_handler: signal.Handlers | None = None
        self._stdin_buffer = StdinBuffer()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._write_log_path: str = os.environ.get("PNEUMA_TUI_WRITE_LOG", "")

    # -- properties ---------------------------------------------------------

    @property
    def started(self) -> bool:
        return self._original_termios is not None

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(sys.stdout.fileno()).columns
        except (ValueError, OSError):
            return 80

    @property
    def rows(self) -> int:
        try:
            return os.get_terminal_size(sys.stdout.fileno()).lines
        except (ValueError, OSError):
            return 24

    # -- start / stop -------------------------------------------------------

    def start(self, on_resize: Callable[[], None] | None = None) -> None:
        """Enable raw mode, the alternate screen and bracketed paste."""
        if self.started:
            return
        self._resize_handler = on_resize

        try:
            fd = sys.stdin.fileno()
            if not os.isatty(fd):
                raise TerminalError("standard input is not a terminal")
            self._original_termios = termios.tcgetattr(fd)
            tty.setraw(fd)
        except (termios.error, OSError, ValueError) as e:
            self._original_termios = None
            raise TerminalError(f"cannot enter raw mode: {e}") from e

        self._raw_write(_ALT_SCREEN_ENABLE + _BRACKETED_PASTE_ENABLE + _HIDE_CURSOR)

        self._prev_sigwinch_handler = signal.getsignal(signal.SIGWINCH)
        signal.signal(signal.SIGWINCH, self._on_sigwinch)
        logger.debug("Terminal started")

    def stop(self) -> None:
        """Restore terminal state and clean up all handlers."""
        if not self.started:
            return

        self._raw_write(_BRACKETED_PASTE_DISABLE + _SHOW_CURSOR + _ALT_SCREEN_DISABLE)

        if self._prev_sigwinch_handler is not None:
            signal.signal(signal.SIGWINCH, self._prev_sigwinch_handler)
            self._prev_sigwinch_handler = None

        self._stdin_buffer.clear()
        self._decoder.reset()

        try:
            termios.tcsetattr(sys.stdin.fileno(), termios.TCSADRAIN, self._original_termios)
        except (termios.error, OSError) as e:
            raise TerminalError(f"cannot restore terminal mode: {e}") from e
        finally:
            self._original_termios = None
            self._resize_handler = None
        logger.debug("Terminal stopped")

    # -- input --------------------------------------------------------------

    def read_input(self) -> str:
        """Block until one complete key sequence (or paste) is available."""
        fd = sys.stdin.fileno()
        while True:
            ready = self._stdin_buffer.pop()
            if ready is not None:
                return ready

            if self._stdin_buffer.has_partial:
                readable, _, _ = select.select([fd], [], [], ESCAPE_TIMEOUT)
                if not readable:
                    self._stdin_buffer.flush()
                    continue

            try:
                raw = os.read(fd, 4096)
            except OSError as e:
                raise TerminalError(f"cannot read from terminal: {e}") from e
            if not raw:
                raise TerminalError("terminal input closed")
            self._stdin_buffer.feed(self._decoder.decode(raw))

    # -- output -------------------------------------------------------------

    def write(self, data: str) -> None:
        """Write data to stdout and optionally to the write log."""
        self._raw_write(data)

        if self._write_log_path:
            try:
                with open(self._write_log_path, "a") as f:
                    f.write(data)
            except OSError as e:
                logger.warning("Disabling write log %s: %s", self._write_log_path, e)
                self._write_log_path = ""

    # -- private ------------------------------------------------------------

    def _on_sigwinch(self, signum: int, frame: object) -> None:
        if self._resize_handler is not None:
            self._resize_handler()

    def _raw_write(self, data: str) -> None:
        try:
            sys.stdout.write(data)
            sys.stdout.flush()
        except OSError as e:
            raise TerminalError(f"cannot write to terminal: {e}") from e
