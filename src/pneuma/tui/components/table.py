"""Table component with a heading row and a selectable body."""

from __future__ import annotations

import logging
from typing import Sequence

from pneuma.tui.utils import sanitize, truncate_to_width, visible_width

logger = logging.getLogger(__name__)

COLUMN_GAP = "  "


class Table:
    """Heading row plus body rows with a clamped selection cursor.

    The cursor always satisfies ``0 <= index < max(1, len(rows))``.
    Mutations only mark the table dirty; drawing is left to the screen.
    """

    def __init__(
        self,
        column: int,
        row: int,
        headings: Sequence[str],
        rows: Sequence[Sequence[str]],
    ) -> None:
        self._position = (column, row)
        self._headings: list[str] = []
        self._rows: list[list[str]] = []
        self._index = 0
        self._max_visible: int | None = None
        self.dirty = True
        self._replace(headings, rows)

    # -- properties ---------------------------------------------------------

    @property
    def position(self) -> tuple[int, int]:
        return self._position

    @property
    def headings(self) -> list[str]:
        return list(self._headings)

    @property
    def rows(self) -> list[list[str]]:
        return [list(r) for r in self._rows]

    @property
    def index(self) -> int:
        """Cursor position; only meaningful as an index into :attr:`rows`."""
        return self._index

    @property
    def selected_row(self) -> list[str] | None:
        if not self._rows:
            return None
        return list(self._rows[self._index])

    @property
    def height(self) -> int:
        start, end = self._visible_range()
        return 1 + end - start

    @property
    def max_visible(self) -> int | None:
        """Most body rows drawn at once; ``None`` draws every row."""
        return self._max_visible

    def __len__(self) -> int:
        return len(self._rows)

    # -- navigation ---------------------------------------------------------

    def next_item(self) -> None:
        if self._index < len(self._rows) - 1:
            self._index += 1
            self.dirty = True

    def previous_item(self) -> None:
        if self._index > 0:
            self._index -= 1
            self.dirty = True

    # -- content ------------------------------------------------------------

    def set_content(
        self,
        headings: Sequence[str],
        rows: Sequence[Sequence[str]],
    ) -> None:
        """Replace headings and rows, keeping the cursor when still valid.

        A cursor past the new last row is clamped to it (or to 0 when the
        table becomes empty).
        """
        self._replace(headings, rows)

    def _replace(self, headings: Sequence[str], rows: Sequence[Sequence[str]]) -> None:
        self._headings = [str(h) for h in headings]
        self._rows = [[str(cell) for cell in r] for r in rows]
        mismatched = sum(1 for r in self._rows if len(r) != len(self._headings))
        if mismatched:
            logger.warning(
                "%d of %d table rows do not have %d cells",
                mismatched, len(self._rows), len(self._headings),
            )
        self._index = min(self._index, max(0, len(self._rows) - 1))
        self.dirty = True

    def invalidate(self) -> None:
        self.dirty = True

    def set_viewport(self, height: int) -> None:
        """Limit drawing to *height* lines, heading included."""
        max_visible = max(1, height - 1)
        if max_visible != self._max_visible:
            self._max_visible = max_visible
            self.dirty = True

    def _visible_range(self) -> tuple[int, int]:
        """Body rows to draw, kept centred on the cursor while scrolling."""
        total = len(self._rows)
        if self._max_visible is None or total <= self._max_visible:
            return 0, total
        start = max(0, min(self._index - self._max_visible // 2, total - self._max_visible))
        return start, start + self._max_visible

    # -- rendering ----------------------------------------------------------

    def column_widths(self) -> list[int]:
        widths = [visible_width(sanitize(h)) for h in self._headings]
        for r in self._rows:
            for i, cell in enumerate(r[: len(widths)]):
                widths[i] = max(widths[i], visible_width(sanitize(cell)))
        return widths

    def _format_row(self, cells: Sequence[str], widths: list[int]) -> str:
        parts = []
        for i, width in enumerate(widths):
            cell = sanitize(cells[i]) if i < len(cells) else ""
            parts.append(truncate_to_width(cell, width, pad=True))
        return COLUMN_GAP.join(parts)

    def render(self, width: int) -> list[str]:
        """Heading row followed by one line per visible body row."""
        widths = self.column_widths()
        start, end = self._visible_range()
        lines = [self._format_row(self._headings, widths)]
        lines.extend(self._format_row(r, widths) for r in self._rows[start:end])
        return [truncate_to_width(line, width) for line in lines]

    def selected_line(self) -> int | None:
        """Offset of the cursor row within :meth:`render` output."""
        if not self._rows:
            return None
        start, _ = self._visible_range()
        return 1 + self._index - start
