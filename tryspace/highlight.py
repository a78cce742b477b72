"""Text loading, sanitization, and Pygments highlighting for previews.

Also neutralizes terminal control bytes to avoid unsafe preview side effects.
"""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path

from pygments import highlight as pygments_highlight
from pygments.formatters import Terminal256Formatter
from pygments.lexers import TextLexer, get_lexer_for_filename
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

DEFAULT_STYLE = "monokai"

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")


def read_text_head(path: Path, max_bytes: int) -> str:
    """Read at most ``max_bytes`` from ``path`` and decode leniently."""
    with path.open("rb") as handle:
        data = handle.read(max(0, max_bytes))
    for encoding in ("utf-8", "utf-8-sig"):
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    return data.decode("utf-8", errors="replace")


def sanitize_terminal_text(source: str) -> str:
    """Escape terminal control bytes to avoid side effects (bell, cursor moves, etc.)."""
    if _CONTROL_RE.search(source) is None:
        return source

    out: list[str] = []
    for ch in source:
        code = ord(ch)
        if ch in {"\n", "\r", "\t"}:
            out.append(ch)
            continue
        # C0 controls + DEL + C1 controls.
        if code < 32 or code == 127 or 0x80 <= code <= 0x9F:
            out.append(f"\\x{code:02x}")
            continue
        out.append(ch)
    return "".join(out)


@lru_cache(maxsize=8)
def _formatter_for_style(style: str) -> Terminal256Formatter:
    try:
        get_style_by_name(style)
    except ClassNotFound:
        style = DEFAULT_STYLE
    return Terminal256Formatter(style=style)


def colorize_text(source: str, path: Path, style: str = DEFAULT_STYLE) -> str:
    """Return ``source`` highlighted for the lexer matching ``path``'s name."""
    try:
        lexer = get_lexer_for_filename(path.name, source)
    except ClassNotFound:
        lexer = TextLexer()
    return pygments_highlight(source, lexer, _formatter_for_style(style))


__all__ = [
    "DEFAULT_STYLE",
    "colorize_text",
    "read_text_head",
    "sanitize_terminal_text",
]
