"""Screen: widget composition, the interaction loop and terminal suspension.

A :class:`Screen` owns a :class:`~pneuma.tui.terminal.Terminal`, the set of
widgets currently drawn and the active
:class:`~pneuma.tui.commands.CommandRegistry`.  The host application builds
widgets, installs commands and calls :meth:`Screen.tick` until a command
closes the screen.

Loop states::

    idle --start()--> running --suspend()--> suspended --resume()--> running
                         |
                      close()
                         v
                       closed

Rendering is differential: each widget is rendered to lines, painted onto a
row buffer the size of the terminal, and only the rows that changed since the
previous frame are rewritten.  A full redraw (clear + every row) happens on
the first frame, after a resize, after :meth:`Screen.reset` and after
:meth:`Screen.resume`, since a child process may have left anything on the
terminal.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, Literal, Mapping, Protocol, Sequence

from pneuma.tui.commands import Command, CommandRegistry
from pneuma.tui.components import Label, Table
from pneuma.tui.keys import KeyChord, parse_chord
from pneuma.tui.stdin_buffer import BRACKETED_PASTE_END, BRACKETED_PASTE_START
from pneuma.tui.terminal import Terminal
from pneuma.tui.utils import sanitize, skip_columns, truncate_to_width, visible_width

logger = logging.getLogger(__name__)

__all__ = [
    "Screen",
    "ScreenState",
    "Widget",
]

ScreenState = Literal["idle", "running", "suspended", "closed"]

# ---------------------------------------------------------------------------
# Escape sequences used while painting
# ---------------------------------------------------------------------------

_CLEAR_SCREEN = "\x1b[2J"
_CLEAR_LINE = "\x1b[2K"
_MOVE_TO_FMT = "\x1b[{};{}H"
_HIDE_CURSOR = "\x1b[?25l"
_SHOW_CURSOR = "\x1b[?25h"
_REVERSE = "\x1b[7m"
_RESET = "\x1b[0m"

# Rows kept free below a scrolling widget for the line prompt and the status message
_RESERVED_ROWS = 3

_CANCEL_CHORDS = {KeyChord.named("escape"), KeyChord.of("c", "ctrl")}
_CLEAR_LINE_CHORD = KeyChord.of("u", "ctrl")


class Widget(Protocol):
    """A positioned, renderable screen element.

    ``selected_line`` and ``set_viewport`` are optional -- checked at
    call-sites via ``getattr``.
    """

    dirty: bool

    @property
    def position(self) -> tuple[int, int]: ...

    @property
    def height(self) -> int: ...

    def render(self, width: int) -> list[str]: ...

    def invalidate(self) -> None: ...


# A painted run of text on one row: (column, text, highlighted)
_Segment = tuple[int, str, bool]


def _paint(segments: list[_Segment], column: int, text: str, highlight: bool) -> list[_Segment]:
    """Paint *text* at *column* over *segments*, clipping what it covers."""
    end = column + visible_width(text)
    painted: list[_Segment] = []
    for seg_col, seg_text, seg_hl in segments:
        seg_end = seg_col + visible_width(seg_text)
        if seg_end <= column or seg_col >= end:
            painted.append((seg_col, seg_text, seg_hl))
            continue
        if seg_col < column:
            painted.append((seg_col, truncate_to_width(seg_text, column - seg_col), seg_hl))
        if seg_end > end:
            painted.append((end, skip_columns(seg_text, end - seg_col), seg_hl))
    painted.append((column, text, highlight))
    return painted


def _join(segments: list[_Segment]) -> str:
    out: list[str] = []
    pos = 0
    for col, text, highlight in sorted(segments, key=lambda s: s[0]):
        if not text:
            continue
        if col > pos:
            out.append(" " * (col - pos))
        out.append(f"{_REVERSE}{text}{_RESET}" if highlight else text)
        pos = col + visible_width(text)
    return "".join(out)


class Screen:
    """The single active screen of the application."""

    def __init__(
        self,
        terminal: Terminal,
        registry: CommandRegistry | None = None,
    ) -> None:
        self.terminal: Terminal = terminal
        self.registry: CommandRegistry = registry or CommandRegistry()

        self._state: ScreenState = "idle"
        self._widgets: list[Widget] = []
        self._message: Label | None = None

        # Hardware cursor position requested by the application
        self._cursor: tuple[int, int] | None = None

        # Previous render state (for differential updates)
        self._previous_lines: list[str] = []
        self._previous_size: tuple[int, int] = (0, 0)

        # Render scheduling
        self._full_redraw_pending: bool = True
        self._layout_changed: bool = True

        # Metrics
        self._full_redraw_count: int = 0
        self._draw_count: int = 0

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> ScreenState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state == "running"

    @property
    def closed(self) -> bool:
        return self._state == "closed"

    @property
    def widgets(self) -> list[Widget]:
        return list(self._widgets)

    @property
    def full_redraws(self) -> int:
        """Number of full (non-differential) redraws performed."""
        return self._full_redraw_count

    @property
    def draws(self) -> int:
        """Number of frames written to the terminal."""
        return self._draw_count

    @property
    def last_frame(self) -> list[str]:
        """Rows written by the most recent draw, styling included."""
        return list(self._previous_lines)

    @property
    def needs_draw(self) -> bool:
        return (
            self._full_redraw_pending
            or self._layout_changed
            or any(w.dirty for w in self._widgets)
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Take the terminal and enter the running state."""
        if self._state != "idle":
            raise RuntimeError(f"cannot start a screen that is {self._state}")
        self.terminal.start(on_resize=self._on_resize)
        self._state = "running"
        self._full_redraw_pending = True

    def close(self) -> None:
        """Quit: release the terminal. Safe to call more than once."""
        if self._state == "closed":
            return
        previous = self._state
        self._state = "closed"
        if previous == "running":
            self.terminal.stop()
        logger.debug("Screen closed (was %s)", previous)

    def __enter__(self) -> Screen:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Widgets
    # ------------------------------------------------------------------

    def add_label(self, column: int, row: int, text: str) -> Label:
        label = Label(column, row, text)
        self.add_widget(label)
        return label

    def add_table(
        self,
        column: int,
        row: int,
        headings: Sequence[str],
        rows: Sequence[Sequence[str]],
    ) -> Table:
        """Create a table, register it for drawing and return it."""
        table = Table(column, row, headings, rows)
        self.add_widget(table)
        return table

    def add_widget(self, widget: Widget) -> None:
        self._widgets.append(widget)
        self._layout_changed = True

    def remove_widget(self, widget: Widget) -> None:
        """Remove *widget* (no-op if absent)."""
        try:
            self._widgets.remove(widget)
        except ValueError:
            return
        self._layout_changed = True

    def reset(self) -> None:
        """Clear every widget and binding for a screen transition."""
        self._widgets.clear()
        self._message = None
        self._cursor = None
        self.registry.set_commands({})
        self._layout_changed = True
        self._full_redraw_pending = True

    def content_height(self) -> int:
        """First row below every widget except the status message."""
        self._fit_viewports(self.terminal.rows)
        bottom = 0
        for widget in self._widgets:
            if widget is self._message:
                continue
            bottom = max(bottom, widget.position[1] + widget.height)
        return bottom

    def show_message(self, text: str) -> None:
        """Show *text* on the last terminal row, replacing any previous one."""
        if self._message is not None:
            self.remove_widget(self._message)
            self._message = None
        if text:
            self._message = self.add_label(0, max(0, self.terminal.rows - 1), text)

    def clear_message(self) -> None:
        self.show_message("")

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def set_commands(self, commands: Mapping[KeyChord, Command]) -> None:
        """Install *commands* as the complete binding set."""
        self.registry.set_commands(commands)

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    def move_cursor(self, column: int, row: int) -> None:
        """Show the hardware cursor at ``(column, row)`` on the next draw."""
        self._cursor = (column, row)

    def hide_cursor(self) -> None:
        self._cursor = None

    # ------------------------------------------------------------------
    # Interaction loop
    # ------------------------------------------------------------------

    def tick(self) -> Command | None:
        """Read one input event, run its command (if bound) and redraw.

        Unbound keys are ignored.  Exceptions raised by a command propagate.
        Returns the command that ran, if any.
        """
        if self._state != "running":
            raise RuntimeError(f"cannot tick while {self._state}")

        data = self.terminal.read_input()
        command = self.registry.resolve(data)
        if command is None:
            logger.debug("Ignoring unbound input %r", data)
        else:
            logger.debug("Running command %r", command.description)
            command()

        if self._state == "running" and self.needs_draw:
            self.draw()
        return command

    def run(self) -> None:
        """Tick until a command closes the screen."""
        if self._state == "idle":
            self.start()
        if self.needs_draw:
            self.draw()
        while self._state != "closed":
            self.tick()

    def _on_resize(self) -> None:
        self._full_redraw_pending = True

    # ------------------------------------------------------------------
    # Suspension
    # ------------------------------------------------------------------

    def suspend(self) -> None:
        """Hand the terminal back to cooked mode for a foreground child."""
        if self._state != "running":
            raise RuntimeError(f"cannot suspend while {self._state}")
        self.terminal.stop()
        self._state = "suspended"
        logger.debug("Screen suspended")

    def resume(self) -> None:
        """Reacquire the terminal and schedule one full redraw."""
        if self._state != "suspended":
            raise RuntimeError(f"cannot resume while {self._state}")
        self.terminal.start(on_resize=self._on_resize)
        self._state = "running"
        self._full_redraw_pending = True
        logger.debug("Screen resumed")

    @contextmanager
    def suspended(self) -> Iterator[None]:
        """Suspend for the duration of the block, resuming even on error."""
        self.suspend()
        try:
            yield
        finally:
            self.resume()

    # ------------------------------------------------------------------
    # Nested prompts
    # ------------------------------------------------------------------

    def wait_for_input(
        self,
        prompt: str = "",
        position: tuple[int, int] | None = None,
    ) -> str:
        """Read one line of text typed after *prompt*.

        Keys are read straight from the terminal; bound commands do not run
        while the prompt is open.  Enter returns the text, Escape or Ctrl+C
        returns ``""``.
        """
        if self._state != "running":
            raise RuntimeError(f"cannot prompt while {self._state}")

        column, row = position if position is not None else (0, self.content_height() + 1)
        saved_cursor = self._cursor
        text = ""
        label: Label | None = None
        try:
            while True:
                if label is not None:
                    self.remove_widget(label)
                shown = prompt + text
                # Padded so the prompt hides whatever else is on its row
                width = max(0, self.terminal.columns - column)
                label = self.add_label(column, row, truncate_to_width(shown, width, pad=True))
                self.move_cursor(min(column + visible_width(shown), max(0, self.terminal.columns - 1)), row)
                self.draw()

                data = self.terminal.read_input()
                if data.startswith(BRACKETED_PASTE_START):
                    pasted = data[len(BRACKETED_PASTE_START):]
                    if pasted.endswith(BRACKETED_PASTE_END):
                        pasted = pasted[: -len(BRACKETED_PASTE_END)]
                    text += sanitize(pasted)
                    continue

                chord = parse_chord(data)
                if chord is None:
                    continue
                if chord.key == "enter" and not chord.modifiers:
                    return text
                if chord in _CANCEL_CHORDS:
                    return ""
                if chord.key == "backspace":
                    text = text[:-1]
                elif chord == _CLEAR_LINE_CHORD:
                    text = ""
                elif chord.is_printable:
                    text += chord.rune
        finally:
            if label is not None:
                self.remove_widget(label)
            self._cursor = saved_cursor

    def confirm(self, prompt: str, position: tuple[int, int] | None = None) -> bool:
        """Ask a yes/no question; only ``y`` or ``Y`` counts as yes."""
        return self.wait_for_input(prompt, position) in ("y", "Y")

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _fit_viewports(self, height: int) -> None:
        """Shrink scrolling widgets to the rows left below their top edge."""
        for widget in self._widgets:
            set_viewport: Callable[[int], None] | None = getattr(widget, "set_viewport", None)
            if set_viewport is not None:
                set_viewport(height - widget.position[1] - _RESERVED_ROWS)

    def compose(self, width: int, height: int) -> list[str]:
        """Paint every widget onto *height* rows of *width* columns."""
        self._fit_viewports(height)
        rows: list[list[_Segment]] = [[] for _ in range(height)]
        for widget in self._widgets:
            column, top = widget.position
            if column >= width:
                continue
            selected_line: Callable[[], int | None] | None = getattr(widget, "selected_line", None)
            highlighted = selected_line() if selected_line is not None else None
            for offset, line in enumerate(widget.render(width - column)):
                y = top + offset
                if y < 0 or y >= height or not line:
                    continue
                rows[y] = _paint(rows[y], column, line, offset == highlighted)
        return [_join(segments) for segments in rows]

    def draw(self) -> None:
        """Write the current widget state to the terminal.

        Only rows that changed since the previous frame are rewritten,
        unless a full redraw is pending.  No-op unless running.
        """
        if self._state != "running":
            return

        width = self.terminal.columns
        height = self.terminal.rows
        if width <= 0 or height <= 0:
            return

        if self._message is not None and self._message.position[1] != height - 1:
            # Keep the status message on the last row across resizes
            self.show_message(self._message.text)

        lines = self.compose(width, height)

        force_full = self._full_redraw_pending or (width, height) != self._previous_size
        out: list[str] = [_HIDE_CURSOR]

        if force_full:
            self._full_redraw_count += 1
            out.append(_CLEAR_SCREEN)
            for y, line in enumerate(lines):
                if line:
                    out.append(_MOVE_TO_FMT.format(y + 1, 1))
                    out.append(line)
        else:
            for y, line in enumerate(lines):
                if line != self._previous_lines[y]:
                    out.append(_MOVE_TO_FMT.format(y + 1, 1))
                    out.append(_CLEAR_LINE)
                    out.append(line)

        if self._cursor is not None:
            column, row = self._cursor
            out.append(_MOVE_TO_FMT.format(row + 1, column + 1))
            out.append(_SHOW_CURSOR)

        self.terminal.write("".join(out))
        self._draw_count += 1

        self._previous_lines = lines
        self._previous_size = (width, height)
        self._full_redraw_pending = False
        self._layout_changed = False
        for widget in self._widgets:
            widget.dirty = False
