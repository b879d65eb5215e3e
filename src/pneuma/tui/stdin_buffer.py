"""StdinBuffer splits terminal input into complete key sequences.

Input read from a raw-mode terminal can arrive in chunks holding several keys
at once, or with an escape sequence split across reads.  Without buffering,
partial sequences would be misinterpreted as separate keypresses.

The buffer is synchronous: callers ``feed`` it whatever they read and
``pop`` complete sequences one at a time.  A bracketed paste is queued as a
single item, still wrapped in its start/end markers.
"""

from __future__ import annotations

import re
from collections import deque

ESC = "\x1b"
BRACKETED_PASTE_START = "\x1b[200~"
BRACKETED_PASTE_END = "\x1b[201~"

_SGR_MOUSE_RE = re.compile(r"^<\d+;\d+;\d+[Mm]$")


def _is_complete_sequence(data: str) -> str:
    """Check if a string is a complete escape sequence or needs more data.

    Returns 'complete', 'incomplete', or 'not-escape'.
    """
    if not data.startswith(ESC):
        return "not-escape"

    if len(data) == 1:
        return "incomplete"

    after_esc = data[1:]

    # CSI sequences: ESC [
    if after_esc.startswith("["):
        if after_esc.startswith("[M"):
            return "complete" if len(data) >= 6 else "incomplete"
        return _is_complete_csi_sequence(data)

    # OSC, DCS and APC sequences end with ST (or BEL for OSC)
    if after_esc[0] in "]P_":
        if data.endswith(f"{ESC}\\") or (after_esc[0] == "]" and data.endswith("\x07")):
            return "complete"
        return "incomplete"

    # SS3 sequences: ESC O
    if after_esc.startswith("O"):
        return "complete" if len(after_esc) >= 2 else "incomplete"

    # Meta key sequences: ESC followed by a single character
    return "complete"


def _is_complete_csi_sequence(data: str) -> str:
    if len(data) < 3:
        return "incomplete"

    payload = data[2:]
    last_char = payload[-1]

    if 0x40 <= ord(last_char) <= 0x7E:
        if payload.startswith("<"):
            return "complete" if _SGR_MOUSE_RE.match(payload) else "incomplete"
        return "complete"

    return "incomplete"


def _extract_complete_sequences(buffer: str) -> tuple[list[str], str]:
    """Split accumulated buffer into complete sequences.

    Returns (sequences, remainder).
    """
    sequences: list[str] = []
    pos = 0

    while pos < len(buffer):
        remaining = buffer[pos:]

        if not remaining.startswith(ESC):
            sequences.append(remaining[0])
            pos += 1
            continue

        seq_end = 1
        while seq_end <= len(remaining):
            if _is_complete_sequence(remaining[:seq_end]) == "complete":
                break
            seq_end += 1
        else:
            return sequences, remaining

        sequences.append(remaining[:seq_end])
        pos += seq_end

    return sequences, ""


class StdinBuffer:
    """Accumulates raw input and hands out complete sequences."""

    def __init__(self) -> None:
        self._buffer: str = ""
        self._paste_buffer: str | None = None
        self._ready: deque[str] = deque()

    def feed(self, data: str) -> None:
        """Add freshly read input."""
        if self._paste_buffer is not None:
            self._paste_buffer += data
            self._finish_paste()
            return

        self._buffer += data

        start_index = self._buffer.find(BRACKETED_PASTE_START)
        if start_index != -1:
            before, after = (
                self._buffer[:start_index],
                self._buffer[start_index + len(BRACKETED_PASTE_START):],
            )
            sequences, _ = _extract_complete_sequences(before)
            self._ready.extend(sequences)
            self._buffer = ""
            self._paste_buffer = after
            self._finish_paste()
            return

        sequences, self._buffer = _extract_complete_sequences(self._buffer)
        self._ready.extend(sequences)

    def _finish_paste(self) -> None:
        if self._paste_buffer is None:
            return
        end_index = self._paste_buffer.find(BRACKETED_PASTE_END)
        if end_index == -1:
            return
        content = self._paste_buffer[:end_index]
        remaining = self._paste_buffer[end_index + len(BRACKETED_PASTE_END):]
        self._paste_buffer = None
        self._ready.append(BRACKETED_PASTE_START + content + BRACKETED_PASTE_END)
        if remaining:
            self.feed(remaining)

    def pop(self) -> str | None:
        """Return the next complete sequence, or ``None`` if none is ready."""
        if self._ready:
            return self._ready.popleft()
        return None

    @property
    def has_partial(self) -> bool:
        """True while an escape sequence or a paste is only partially read."""
        return bool(self._buffer) or self._paste_buffer is not None

    def flush(self) -> None:
        """Give up waiting on a partial escape sequence and queue it as is.

        A lone ESC becomes the Escape key this way.
        """
        if self._buffer:
            self._ready.append(self._buffer)
            self._buffer = ""

    def clear(self) -> None:
        self._buffer = ""
        self._paste_buffer = None
        self._ready.clear()
