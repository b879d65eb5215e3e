"""Command bindings: key chords mapped to callbacks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Mapping

from pneuma.tui.keys import KeyChord, parse_chord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Command:
    """A zero-argument action plus the label shown in the help line."""

    callback: Callable[[], object]
    description: str

    def __call__(self) -> None:
        self.callback()


class CommandRegistry:
    """Exact-match lookup table from :class:`KeyChord` to :class:`Command`.

    The whole binding set is swapped by :meth:`set_commands`; bindings of a
    previous screen never survive a replacement.
    """

    def __init__(self, commands: Mapping[KeyChord, Command] | None = None) -> None:
        self._commands: dict[KeyChord, Command] = dict(commands or {})

    def set_commands(self, commands: Mapping[KeyChord, Command]) -> None:
        """Replace every binding with *commands*."""
        self._commands = dict(commands)
        logger.debug("Installed %d command bindings", len(self._commands))

    def lookup(self, chord: KeyChord) -> Command | None:
        return self._commands.get(chord)

    def resolve(self, data: str) -> Command | None:
        """Return the command bound to raw input *data*, or ``None``."""
        chord = parse_chord(data)
        if chord is None:
            return None
        return self._commands.get(chord)

    def describe(self) -> list[tuple[str, str]]:
        """``(chord label, description)`` pairs in binding order."""
        return [(chord.label, cmd.description) for chord, cmd in self._commands.items()]

    def __contains__(self, chord: object) -> bool:
        return chord in self._commands

    def __len__(self) -> int:
        return len(self._commands)
