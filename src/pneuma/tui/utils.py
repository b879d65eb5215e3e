"""Terminal text utilities: width measurement, truncation and padding.

Widgets render plain text; styling is applied by the screen when a row is
written, so these helpers work on grapheme clusters and never see ANSI codes.
"""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth

_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f-\x9f]+")

# ---------------------------------------------------------------------------
# Width cache (capped at 512 entries)
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


# ---------------------------------------------------------------------------
# Grapheme width
# ---------------------------------------------------------------------------


def _grapheme_width(g: str) -> int:
    """Return the terminal display width of a single grapheme cluster."""
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or (0x7F <= cp <= 0x9F):
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    # Emoji presentation, ZWJ sequences, skin tones, flags
    for ch in g:
        cp = ord(ch)
        if cp in (0xFE0F, 0x200D) or 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    first = g[0]
    if ord(first) >= 0x1F000:
        return 2
    if unicodedata.category(first)[0] == "M" or unicodedata.category(first) == "Cf":
        return 0
    return max(_wcwidth.wcwidth(first), 0)


def visible_width(text: str) -> int:
    """Calculate the visible terminal width of *text*."""
    if not text:
        return 0

    if text.isascii() and text.isprintable():
        return len(text)

    cached = _width_cache.get(text)
    if cached is not None:
        return cached

    total = sum(_grapheme_width(g) for g in grapheme.graphemes(text))
    return _cache_width(text, total)


# ---------------------------------------------------------------------------
# Truncation / padding
# ---------------------------------------------------------------------------


def sanitize(text: str) -> str:
    """Collapse control characters (newlines, tabs, escapes) into spaces."""
    return _CONTROL_RE.sub(" ", text or "")


def truncate_to_width(
    text: str,
    max_width: int,
    ellipsis: str = "",
    pad: bool = False,
) -> str:
    """Truncate *text* to fit within *max_width* visible columns.

    If the text is wider than *max_width*, it is cut at a grapheme boundary
    and *ellipsis* is appended (the ellipsis counts towards the width).  If
    *pad* is ``True``, the result is right-padded with spaces to exactly
    *max_width*.
    """
    if max_width <= 0:
        return ""

    text_width = visible_width(text)
    if text_width <= max_width:
        if pad:
            return text + " " * (max_width - text_width)
        return text

    target_width = max_width - visible_width(ellipsis)
    if target_width <= 0:
        return _take_columns(ellipsis, max_width)

    result = _take_columns(text, target_width) + ellipsis
    if pad:
        result += " " * (max_width - visible_width(result))
    return result


def _take_columns(text: str, max_cols: int) -> str:
    """Return the longest prefix of *text* that fits in *max_cols* columns."""
    result: list[str] = []
    cols = 0
    for g in grapheme.graphemes(text):
        w = _grapheme_width(g)
        if cols + w > max_cols:
            break
        result.append(g)
        cols += w
    return "".join(result)


def skip_columns(text: str, cols: int) -> str:
    """Drop the first *cols* visible columns of *text*.

    A wide grapheme straddling the cut is replaced by spaces so the
    remainder still starts exactly *cols* columns in.
    """
    if cols <= 0:
        return text
    skipped = 0
    graphemes = list(grapheme.graphemes(text))
    for i, g in enumerate(graphemes):
        if skipped >= cols:
            return "".join(graphemes[i:])
        skipped += _grapheme_width(g)
        if skipped > cols:
            return " " * (skipped - cols) + "".join(graphemes[i + 1:])
    return ""
