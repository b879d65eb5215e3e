"""Label component - static text at a fixed screen position."""

from __future__ import annotations

from pneuma.tui.utils import sanitize, truncate_to_width


class Label:
    """Static text drawn at ``(column, row)``.

    Labels are immutable: to change the text, remove the label from the
    screen and add a new one.
    """

    def __init__(self, column: int, row: int, text: str) -> None:
        self._position = (column, row)
        self._text = text
        self.dirty = True

    @property
    def position(self) -> tuple[int, int]:
        return self._position

    @property
    def text(self) -> str:
        return self._text

    @property
    def height(self) -> int:
        return 1

    def invalidate(self) -> None:
        self.dirty = True

    def render(self, width: int) -> list[str]:
        return [truncate_to_width(sanitize(self._text), width)]

    def __repr__(self) -> str:
        return f"Label({self._position[0]}, {self._position[1]}, {self._text!r})"
