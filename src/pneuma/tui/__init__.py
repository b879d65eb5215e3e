"""pneuma.tui -- terminal command-dispatch and widget-state engine.

Public API re-exports for convenient access::

    from pneuma.tui import Screen, ProcessTerminal, KeyChord, Command
"""

from pneuma.tui.commands import Command, CommandRegistry
from pneuma.tui.components import Label, Table
from pneuma.tui.keys import Key, KeyChord, parse_chord
from pneuma.tui.screen import Screen, ScreenState, Widget
from pneuma.tui.stdin_buffer import StdinBuffer
from pneuma.tui.terminal import ProcessTerminal, Terminal, TerminalError
from pneuma.tui.utils import sanitize, truncate_to_width, visible_width

__all__ = [
    # Commands
    "Command",
    "CommandRegistry",
    # Components
    "Label",
    "Table",
    # Keys
    "Key",
    "KeyChord",
    "parse_chord",
    # Screen
    "Screen",
    "ScreenState",
    "Widget",
    # Input
    "StdinBuffer",
    # Terminal
    "ProcessTerminal",
    "Terminal",
    "TerminalError",
    # Utils
    "sanitize",
    "truncate_to_width",
    "visible_width",
]
