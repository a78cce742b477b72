"""UI theme definitions and selection helpers.

Themes are semantic ANSI palettes consumed by the renderer. Individual tokens
can be overridden from config with ``#rrggbb``, a 256-color index, or a basic
color name.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields, replace

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6})$")

_NAMED_COLORS: dict[str, int] = {
    "black": 0,
    "red": 1,
    "green": 2,
    "yellow": 3,
    "blue": 4,
    "magenta": 5,
    "cyan": 6,
    "gray": 7,
    "grey": 7,
    "darkgray": 8,
    "darkgrey": 8,
    "lightred": 9,
    "lightgreen": 10,
    "lightyellow": 11,
    "lightblue": 12,
    "lightmagenta": 13,
    "lightcyan": 14,
    "white": 15,
}


@dataclass(frozen=True)
class UITheme:
    """Semantic ANSI palette used by the renderer."""

    name: str
    reset: str
    title: str
    title_accent: str
    search_box: str
    query_placeholder: str
    list_date: str
    list_highlight_bg: str
    list_highlight_fg: str
    match: str
    badge_git: str
    badge_marker: str
    age: str
    divider: str
    help_text: str
    help_key: str
    status_message: str
    status_error: str
    popup_bg: str
    popup_text: str


# Catppuccin Mocha palette.
DEFAULT_THEME = UITheme(
    name="default",
    reset="\033[0m",
    title="\033[1;38;2;137;180;250m",
    title_accent="\033[1;38;2;243;139;168m",
    search_box="\033[38;2;250;179;135m",
    query_placeholder="\033[2;38;2;147;153;178m",
    list_date="\033[38;2;166;173;200m",
    list_highlight_bg="\033[48;2;88;91;112m",
    list_highlight_fg="\033[1;38;2;205;214;244m",
    match="\033[1;38;2;250;179;135m",
    badge_git="\033[38;2;240;80;50m",
    badge_marker="\033[38;2;148;226;213m",
    age="\033[38;2;166;173;200m",
    divider="\033[2m",
    help_text="\033[38;2;147;153;178m",
    help_key="\033[1;38;2;205;214;244m",
    status_message="\033[1;38;2;249;226;175m",
    status_error="\033[1;38;2;243;139;168m",
    popup_bg="\033[48;2;30;30;46m",
    popup_text="\033[1;38;2;243;139;168m",
)

PLAIN_THEME = UITheme(
    name="plain",
    reset="",
    title="",
    title_accent="",
    search_box="",
    query_placeholder="",
    list_date="",
    list_highlight_bg="",
    list_highlight_fg="\033[7m",
    match="",
    badge_git="",
    badge_marker="",
    age="",
    divider="",
    help_text="",
    help_key="",
    status_message="",
    status_error="",
    popup_bg="",
    popup_text="\033[7m",
)

_THEMES: dict[str, UITheme] = {
    DEFAULT_THEME.name: DEFAULT_THEME,
}

_BACKGROUND_TOKENS = frozenset({"list_highlight_bg", "popup_bg"})
_OVERRIDABLE_TOKENS = frozenset(f.name for f in fields(UITheme)) - {"name", "reset"}


def available_theme_names() -> tuple[str, ...]:
    """Return selectable non-plain theme names."""
    return tuple(sorted(_THEMES.keys()))


def parse_color(value: object, *, background: bool = False) -> str | None:
    """Translate one config color value into an SGR escape, or ``None``."""
    layer = "48" if background else "38"
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return f"\033[{layer};5;{value}m" if 0 <= value <= 255 else None
    if not isinstance(value, str):
        return None
    text = value.strip()
    match = _HEX_RE.match(text)
    if match:
        hex_digits = match.group(1)
        red, green, blue = (int(hex_digits[i : i + 2], 16) for i in (0, 2, 4))
        return f"\033[{layer};2;{red};{green};{blue}m"
    if text.isdigit():
        return parse_color(int(text), background=background)
    index = _NAMED_COLORS.get(text.lower().replace("_", "").replace(" ", ""))
    if index is None:
        return None
    return f"\033[{layer};5;{index}m"


def apply_color_overrides(theme: UITheme, colors: dict[str, object] | None) -> UITheme:
    """Return ``theme`` with valid per-token overrides from ``colors`` applied.

    Unknown tokens and unparseable values are ignored.
    """
    if not colors:
        return theme
    overrides: dict[str, str] = {}
    for token, raw in colors.items():
        if token not in _OVERRIDABLE_TOKENS:
            continue
        sgr = parse_color(raw, background=token in _BACKGROUND_TOKENS)
        if sgr is not None:
            overrides[token] = sgr
    return replace(theme, **overrides) if overrides else theme


def normalize_theme_name(name: str | None) -> str:
    """Return a valid theme name, falling back to default."""
    if not name:
        return DEFAULT_THEME.name
    candidate = str(name).strip().lower()
    if candidate in _THEMES:
        return candidate
    return DEFAULT_THEME.name


def resolve_theme(
    name: str | None,
    *,
    no_color: bool = False,
    colors: dict[str, object] | None = None,
) -> UITheme:
    """Return concrete theme for requested name, color mode, and overrides."""
    if no_color:
        return PLAIN_THEME
    base = _THEMES.get(normalize_theme_name(name), DEFAULT_THEME)
    return apply_color_overrides(base, colors)


__all__ = [
    "DEFAULT_THEME",
    "PLAIN_THEME",
    "UITheme",
    "apply_color_overrides",
    "available_theme_names",
    "normalize_theme_name",
    "parse_color",
    "resolve_theme",
]
