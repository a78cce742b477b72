"""Full-frame ANSI renderer for :class:`ScreenModel` snapshots.

``render_lines`` is pure and returns one styled string per terminal row;
``write_frame`` is the only function here that touches a file descriptor.
"""

from __future__ import annotations

import os
from datetime import datetime

from .ansi import display_width, fit_ansi_line, truncate_text
from .screen import Mode, ScreenModel, ScreenRow
from .ui_theme import UITheme
from .workspace_index import WorkspaceEntry

TITLE = "Try Workspaces"
QUERY_PROMPT = "> "
QUERY_PLACEHOLDER = "Type to filter, or a new name / git URL to create"
EMPTY_LIST_TEXT = "No matches. Press Enter to create it."
DATE_FORMAT = "%Y-%m-%d"
RESET = "\033[0m"
PREVIEW_MIN_LIST_WIDTH = 30
CONFIRM_BOX_MIN_WIDTH = 36

# title, query, divider above the list; divider and footer below.
HEADER_ROWS = 3
FOOTER_ROWS = 2


def _styled(style: str, text: str, theme: UITheme) -> str:
    if not style or not text:
        return text
    return f"{style}{text}{theme.reset or RESET}"


def _selected(text: str, theme: UITheme) -> str:
    """Apply selection styling without discarding inner colors."""
    style = theme.list_highlight_bg + theme.list_highlight_fg
    if not style:
        return text
    reset = theme.reset or RESET
    return style + text.replace(reset, reset + style) + reset


def format_age(modified_at: datetime, now: datetime) -> str:
    """Return elapsed time since ``modified_at`` as ``(DDd HHh MMm)``."""
    total_minutes = max(0, int((now - modified_at).total_seconds() // 60))
    days, rest = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(rest, 60)
    return f"({days:02d}d {hours:02d}h {minutes:02d}m)"


def highlight_name(name: str, positions: tuple[int, ...], theme: UITheme) -> str:
    if not positions or not theme.match:
        return name
    marked = set(positions)
    parts: list[str] = []
    for idx, ch in enumerate(name):
        parts.append(_styled(theme.match, ch, theme) if idx in marked else ch)
    return "".join(parts)


def _badges(entry: WorkspaceEntry, theme: UITheme) -> str:
    badges: list[str] = []
    if entry.is_git_repo:
        badges.append(_styled(theme.badge_git, "[git]", theme))
    for marker in entry.markers:
        badges.append(_styled(theme.badge_marker, f"[{marker}]", theme))
    return " ".join(badges)


def format_row(row: ScreenRow, width: int, now: datetime, theme: UITheme, *, selected: bool) -> str:
    """Render one list row padded to ``width`` columns."""
    entry = row.entry
    marker = "> " if selected else "  "
    date_text = _styled(theme.list_date, entry.created_at.strftime(DATE_FORMAT), theme)
    age_text = format_age(entry.modified_at, now)
    badges = _badges(entry, theme)

    left = f"{marker}{date_text}  {highlight_name(entry.name, row.highlight, theme)}"
    if badges:
        left += f" {badges}"
    right = _styled(theme.age, age_text, theme)
    gap = width - display_width(left) - display_width(right)
    if gap >= 1:
        line = left + " " * gap + right
    else:
        line = fit_ansi_line(left, width)
    return _selected(line, theme) if selected else line


def list_window_start(selected: int, row_count: int, visible_rows: int) -> int:
    """Return the first visible row index that keeps ``selected`` on screen."""
    if visible_rows <= 0 or row_count <= visible_rows:
        return 0
    start = max(0, selected - visible_rows + 1)
    return min(start, row_count - visible_rows)


def _title_line(model: ScreenModel, width: int) -> str:
    theme = model.theme
    counts = f"{len(model.rows)}/{model.total_count}"
    left = f"{_styled(theme.title, TITLE, theme)}  {_styled(theme.title_accent, str(model.root), theme)}"
    gap = width - display_width(left) - len(counts)
    if gap < 1:
        return fit_ansi_line(left, width)
    return left + " " * gap + counts


def _query_line(model: ScreenModel, width: int) -> str:
    theme = model.theme
    prompt = _styled(theme.search_box, QUERY_PROMPT, theme)
    if model.query:
        cursor = "\033[7m \033[0m" if model.focus == "query" else ""
        text = model.query + cursor
    else:
        text = _styled(theme.query_placeholder, QUERY_PLACEHOLDER, theme)
    return fit_ansi_line(prompt + text, width)


def _list_lines(model: ScreenModel, width: int, rows: int, now: datetime) -> list[str]:
    theme = model.theme
    if not model.rows:
        message = EMPTY_LIST_TEXT if model.query else "No workspaces yet."
        lines = [fit_ansi_line(_styled(theme.help_text, f"  {message}", theme), width)]
        return lines + [" " * width] * (rows - 1)

    start = list_window_start(model.selected, len(model.rows), rows)
    lines: list[str] = []
    for offset in range(rows):
        idx = start + offset
        if idx >= len(model.rows):
            lines.append(" " * width)
            continue
        lines.append(format_row(model.rows[idx], width, now, theme, selected=idx == model.selected))
    return lines


def _preview_lines(model: ScreenModel, width: int, rows: int) -> list[str]:
    preview = model.preview
    theme = model.theme
    if preview is None:
        return [" " * width] * rows
    header = _styled(theme.title, truncate_text(preview.path.name, width), theme)
    if preview.error:
        body = [_styled(theme.status_error, preview.error, theme)]
    else:
        body = list(preview.lines[model.preview_start :])
    lines = [fit_ansi_line(header, width)]
    for line in body[: max(0, rows - 1)]:
        lines.append(fit_ansi_line(line, width))
    while len(lines) < rows:
        lines.append(" " * width)
    return lines


def _footer_line(model: ScreenModel, width: int) -> str:
    theme = model.theme
    if model.status_message:
        style = theme.status_error if model.status_is_error else theme.status_message
        return fit_ansi_line(_styled(style, model.status_message, theme), width)
    parts = [
        f"{_styled(theme.help_key, keys, theme)} {_styled(theme.help_text, label, theme)}"
        for keys, label in model.hints
    ]
    return fit_ansi_line("  ".join(parts), width)


def _overlay_confirm_box(lines: list[str], model: ScreenModel, width: int) -> None:
    """Draw the delete confirmation box centered over ``lines`` in place."""
    theme = model.theme
    prompt = model.confirm_prompt or ""
    question = " (y/n)"
    inner = max(CONFIRM_BOX_MIN_WIDTH, display_width(prompt) + len(question) + 4)
    inner = min(inner, max(4, width - 2))
    body_text = truncate_text(prompt + question, inner - 2)
    box = [
        "┌" + "─" * inner + "┐",
        "│" + fit_ansi_line(" " + body_text, inner) + "│",
        "└" + "─" * inner + "┘",
    ]
    top = max(0, (len(lines) - len(box)) // 2)
    left = max(0, (width - inner - 2) // 2)
    for offset, text in enumerate(box):
        row = top + offset
        if row >= len(lines):
            break
        styled = _styled(theme.popup_bg + theme.popup_text, text, theme)
        lines[row] = fit_ansi_line(" " * left + styled, width)


def render_lines(model: ScreenModel, width: int, height: int, now: datetime | None = None) -> list[str]:
    """Return exactly ``height`` styled rows describing ``model``."""
    width = max(1, width)
    height = max(1, height)
    now = now or datetime.now()
    theme = model.theme
    divider = _styled(theme.divider, "─" * width, theme)
    body_rows = max(1, height - HEADER_ROWS - FOOTER_ROWS)

    lines = [_title_line(model, width), _query_line(model, width), divider]
    if model.mode is Mode.SHOWING_PREVIEW:
        list_width = max(PREVIEW_MIN_LIST_WIDTH, width * 2 // 5)
        list_width = min(list_width, max(1, width - 2))
        preview_width = max(1, width - list_width - 1)
        left = _list_lines(model, list_width, body_rows, now)
        right = _preview_lines(model, preview_width, body_rows)
        separator = _styled(theme.divider, "│", theme)
        lines.extend(f"{a}{separator}{b}" for a, b in zip(left, right))
    else:
        lines.extend(_list_lines(model, width, body_rows, now))
    lines.append(divider)
    lines.append(_footer_line(model, width))

    if model.mode is Mode.CONFIRMING_DELETE and model.confirm_prompt:
        _overlay_confirm_box(lines, model, width)
    return lines[:height]


def render_screen(model: ScreenModel, width: int, height: int, now: datetime | None = None) -> str:
    """Return the full escape-sequence frame for ``model``."""
    out: list[str] = ["\033[H\033[J"]
    rows = render_lines(model, width, height, now)
    for idx, line in enumerate(rows):
        out.append(line)
        if "\033" in line:
            out.append("\033[0m")
        if idx + 1 < len(rows):
            out.append("\r\n")
    return "".join(out)


def write_frame(fd: int, model: ScreenModel, width: int, height: int) -> None:
    os.write(fd, render_screen(model, width, height).encode("utf-8", errors="replace"))


def write_status_frame(fd: int, model: ScreenModel, width: int, height: int, message: str) -> None:
    """Paint ``model`` with ``message`` in the footer, used before blocking work."""
    lines = render_lines(model, width, height)
    if lines:
        lines[-1] = fit_ansi_line(_styled(model.theme.status_message, message, model.theme), max(1, width))
    payload = "\033[H\033[J" + "\r\n".join(lines) + "\033[0m"
    os.write(fd, payload.encode("utf-8", errors="replace"))


__all__ = [
    "format_age",
    "format_row",
    "highlight_name",
    "list_window_start",
    "render_lines",
    "render_screen",
    "write_frame",
    "write_status_frame",
]
