"""Per-frame screen model handed from the controller to the renderer.

Values here are immutable snapshots; the renderer never reaches back into
session state.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .preview import PreviewListing
from .ui_theme import DEFAULT_THEME, UITheme
from .workspace_index import WorkspaceEntry


class Mode(Enum):
    BROWSING = "browsing"
    CONFIRMING_DELETE = "confirming_delete"
    SHOWING_PREVIEW = "showing_preview"


@dataclass(frozen=True)
class ScreenRow:
    """One list row: entry plus matched character positions in its name."""

    entry: WorkspaceEntry
    score: int
    highlight: tuple[int, ...] = ()


@dataclass(frozen=True)
class ScreenModel:
    mode: Mode
    query: str
    focus: str
    rows: tuple[ScreenRow, ...]
    selected: int
    total_count: int
    root: Path
    status_message: str = ""
    status_is_error: bool = False
    preview: PreviewListing | None = None
    preview_start: int = 0
    confirm_prompt: str | None = None
    theme: UITheme = DEFAULT_THEME
    hints: tuple[tuple[str, str], ...] = ()


__all__ = [
    "Mode",
    "ScreenModel",
    "ScreenRow",
]
