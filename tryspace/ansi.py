"""ANSI-aware text measurement and line shaping utilities.

Clipping and padding preserve escape sequences so rows stay aligned when
color codes and wide characters are present.
"""

from __future__ import annotations

import re
import unicodedata

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
TAB_STOP = 8


def char_display_width(ch: str, col: int) -> int:
    """Return terminal column width for one character at visual column ``col``."""
    if ch == "\t":
        return TAB_STOP - (col % TAB_STOP)
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


def display_width(text: str) -> int:
    """Return rendered column count of ``text`` ignoring escape sequences."""
    col = 0
    for ch in strip_ansi(text):
        col += char_display_width(ch, col)
    return col


def clip_ansi_line(text: str, max_cols: int) -> str:
    """Trim a styled line to at most ``max_cols`` display columns.

    ANSI escape sequences are preserved verbatim and do not count toward width.
    Tabs are expanded into spaces so clipping aligns with rendered cells.
    """
    if max_cols <= 0 or not text:
        return ""

    out: list[str] = []
    col = 0
    i = 0
    n = len(text)
    while i < n and col < max_cols:
        if text[i] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                out.append(match.group(0))
                i = match.end()
                continue
        ch = text[i]
        w = char_display_width(ch, col)
        if col + w > max_cols:
            break
        out.append(" " * w if ch == "\t" else ch)
        col += w
        i += 1
    return "".join(out)


def truncate_text(text: str, max_cols: int, ellipsis: str = "...") -> str:
    """Shorten plain ``text`` to ``max_cols`` columns, marking the cut."""
    if display_width(text) <= max_cols:
        return text
    if max_cols <= len(ellipsis):
        return clip_ansi_line(text, max_cols)
    return clip_ansi_line(text, max_cols - len(ellipsis)) + ellipsis


def fit_ansi_line(text: str, width: int) -> str:
    """Clip or right-pad ``text`` so it occupies exactly ``width`` columns."""
    clipped = clip_ansi_line(text, width)
    pad = width - display_width(clipped)
    return clipped + (" " * pad if pad > 0 else "")


__all__ = [
    "ANSI_ESCAPE_RE",
    "char_display_width",
    "clip_ansi_line",
    "display_width",
    "fit_ansi_line",
    "strip_ansi",
    "truncate_text",
]
