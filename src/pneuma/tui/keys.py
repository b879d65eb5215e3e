"""Keyboard input decoding for terminal applications.

Turns one complete raw input sequence (as split by
:class:`~pneuma.tui.stdin_buffer.StdinBuffer`) into a :class:`KeyChord`, the
value type used as the lookup key of a command registry. Handles plain
characters, control characters, ESC-prefixed Alt combinations, legacy
cursor/function-key escape sequences, and xterm-style modified sequences
(``CSI 1;<mod>A``, ``CSI <n>;<mod>~``, ``CSI 27;<mod>;<code>~`` and
``CSI <code>;<mod>u``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# KeyChord
# ---------------------------------------------------------------------------

RUNE = "rune"


@dataclass(frozen=True)
class KeyChord:
    """One keyboard event: a key classifier, its rune and the modifier set.

    ``key`` is ``"rune"`` for printable characters (with ``rune`` holding the
    character) or a named key such as ``"enter"`` or ``"up"`` (with ``rune``
    empty).  Equality is structural and exact: ``q`` and ``Q`` differ.
    """

    key: str
    rune: str = ""
    modifiers: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, char: str, *modifiers: str) -> KeyChord:
        """Chord for a printable character."""
        return cls(RUNE, char, frozenset(modifiers))

    @classmethod
    def named(cls, name: str, *modifiers: str) -> KeyChord:
        """Chord for a named key (``enter``, ``escape``, ``up``...)."""
        return cls(name, "", frozenset(modifiers))

    @property
    def is_printable(self) -> bool:
        return self.key == RUNE and not (self.modifiers & {"ctrl", "alt"})

    @property
    def label(self) -> str:
        """Human-readable form such as ``ctrl+c`` or ``enter``."""
        base = self.rune if self.key == RUNE else self.key
        if base == " ":
            base = "space"
        mods = [m for m in MODIFIER_ORDER if m in self.modifiers]
        return "+".join([*mods, base])

    def __str__(self) -> str:
        return self.label


# ---------------------------------------------------------------------------
# Key helper object
# ---------------------------------------------------------------------------


class Key:
    """Named key constants."""

    escape = "escape"
    enter = "enter"
    tab = "tab"
    backspace = "backspace"
    delete = "delete"
    insert = "insert"
    home = "home"
    end = "end"
    page_up = "pageUp"
    page_down = "pageDown"
    up = "up"
    down = "down"
    left = "left"
    right = "right"


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MODIFIER_ORDER: tuple[str, ...] = ("ctrl", "alt", "shift")

MODIFIERS: dict[str, int] = {
    "shift": 1,
    "alt": 2,
    "ctrl": 4,
}

LOCK_MASK = 64 + 128

# Unmodified escape sequences -> key names
LEGACY_KEY_SEQUENCES: dict[str, str] = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[1~": "home",
    "\x1b[2~": "insert",
    "\x1b[3~": "delete",
    "\x1b[4~": "end",
    "\x1b[5~": "pageUp",
    "\x1b[6~": "pageDown",
    "\x1bOP": "f1",
    "\x1bOQ": "f2",
    "\x1bOR": "f3",
    "\x1bOS": "f4",
    "\x1b[15~": "f5",
    "\x1b[17~": "f6",
    "\x1b[18~": "f7",
    "\x1b[19~": "f8",
    "\x1b[20~": "f9",
    "\x1b[21~": "f10",
    "\x1b[23~": "f11",
    "\x1b[24~": "f12",
    "\x1b[E": "clear",
}

# Final byte of ``CSI 1;<mod><letter>`` -> key name
_LETTER_KEYS: dict[str, str] = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
    "P": "f1",
    "Q": "f2",
    "R": "f3",
    "S": "f4",
}

# Number of ``CSI <n>;<mod>~`` -> key name
_TILDE_KEYS: dict[int, str] = {
    1: "home",
    2: "insert",
    3: "delete",
    4: "end",
    5: "pageUp",
    6: "pageDown",
    15: "f5",
    17: "f6",
    18: "f7",
    19: "f8",
    20: "f9",
    21: "f10",
    23: "f11",
    24: "f12",
}

# Codepoints with a dedicated key name
CODEPOINTS: dict[int, str] = {
    27: "escape",
    9: "tab",
    13: "enter",
    127: "backspace",
    57414: "enter",  # keypad enter
}

_MODIFIED_LETTER_RE = re.compile(r"^\x1b\[1;(\d+)(?::\d+)?([ABCDHFPQRS])$")
_MODIFIED_TILDE_RE = re.compile(r"^\x1b\[(\d+);(\d+)(?::\d+)?~$")
_MODIFY_OTHER_KEYS_RE = re.compile(r"^\x1b\[27;(\d+);(\d+)~$")
_CSI_U_RE = re.compile(r"^\x1b\[(\d+)(?::\d*)*(?:;(\d+)(?::\d+)?)?u$")

_BRACKETED_PASTE_START = "\x1b[200~"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def modifiers_from_param(param: int) -> frozenset[str]:
    """Decode an xterm modifier parameter (``1 + bitmask``) into names.

    Caps Lock / Num Lock bits are ignored.
    """
    bits = (param - 1) & ~LOCK_MASK
    return frozenset(name for name, bit in MODIFIERS.items() if bits & bit)


def _from_codepoint(code: int, mods: frozenset[str]) -> KeyChord | None:
    name = CODEPOINTS.get(code)
    if name is not None:
        return KeyChord(name, "", mods)
    if code == 32:
        return KeyChord(RUNE, " ", mods)
    if code <= 0:
        return None
    ch = chr(code)
    if not ch.isprintable():
        return None
    return KeyChord(RUNE, ch, mods)


def _single_char(ch: str, extra: frozenset[str] = frozenset()) -> KeyChord | None:
    """Decode a single character, optionally already carrying Alt."""
    if ch in ("\r", "\n"):
        return KeyChord("enter", "", extra)
    if ch == "\t":
        return KeyChord("tab", "", extra)
    if ch in ("\x7f", "\x08"):
        return KeyChord("backspace", "", extra)
    if ch == "\x1b":
        return KeyChord("escape", "", extra)
    if ch == "\x00":
        return KeyChord(RUNE, " ", extra | {"ctrl"})
    code = ord(ch)
    if 1 <= code <= 26:
        return KeyChord(RUNE, chr(code + ord("a") - 1), extra | {"ctrl"})
    if ch.isprintable():
        return KeyChord(RUNE, ch, extra)
    return None


# ---------------------------------------------------------------------------
# parse_chord: determine which key was pressed from raw input
# ---------------------------------------------------------------------------


def parse_chord(data: str) -> KeyChord | None:
    """Decode one complete raw input sequence into a :class:`KeyChord`.

    Returns ``None`` for empty input, pastes, multi-character text, or
    sequences that do not name a key.
    """
    if not data or data.startswith(_BRACKETED_PASTE_START):
        return None

    if data in LEGACY_KEY_SEQUENCES:
        return KeyChord.named(LEGACY_KEY_SEQUENCES[data])

    if data == "\x1b[Z":
        return KeyChord.named("tab", "shift")

    m = _MODIFIED_LETTER_RE.match(data)
    if m:
        return KeyChord(_LETTER_KEYS[m.group(2)], "", modifiers_from_param(int(m.group(1))))

    m = _MODIFY_OTHER_KEYS_RE.match(data)
    if m:
        return _from_codepoint(int(m.group(2)), modifiers_from_param(int(m.group(1))))

    m = _MODIFIED_TILDE_RE.match(data)
    if m:
        name = _TILDE_KEYS.get(int(m.group(1)))
        if name is None:
            return None
        return KeyChord(name, "", modifiers_from_param(int(m.group(2))))

    m = _CSI_U_RE.match(data)
    if m:
        mods = modifiers_from_param(int(m.group(2))) if m.group(2) else frozenset()
        return _from_codepoint(int(m.group(1)), mods)

    if len(data) == 1:
        return _single_char(data)

    # Alt + key (ESC prefix)
    if len(data) == 2 and data[0] == "\x1b":
        return _single_char(data[1], frozenset({"alt"}))

    return None
