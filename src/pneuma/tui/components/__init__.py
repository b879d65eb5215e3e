"""TUI components."""

from pneuma.tui.components.label import Label
from pneuma.tui.components.table import Table

__all__ = [
    "Label",
    "Table",
]
