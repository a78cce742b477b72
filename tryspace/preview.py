"""Bounded, read-only preview of one workspace directory.

The listing walks at most ``max_depth`` levels and ``max_entries`` rows so huge
trees never stall the session. A README excerpt, when present, is appended
with syntax highlighting.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .highlight import DEFAULT_STYLE, colorize_text, read_text_head, sanitize_terminal_text

PREVIEW_MAX_ENTRIES = 200
PREVIEW_MAX_DEPTH = 2
README_MAX_LINES = 12
README_MAX_BYTES = 16 * 1024
SKIPPED_DIRECTORIES = frozenset({".git"})


@dataclass(frozen=True)
class PreviewListing:
    """Preview rows for one workspace plus truncation and error state."""

    path: Path
    lines: tuple[str, ...] = ()
    truncated: bool = False
    error: str | None = None


def _sorted_children(directory: Path) -> list[os.DirEntry]:
    with os.scandir(directory) as entries:
        children = list(entries)

    def is_dir(child: os.DirEntry) -> bool:
        try:
            return child.is_dir(follow_symlinks=False)
        except OSError:
            return False

    children.sort(key=lambda child: (not is_dir(child), child.name.lower()))
    return children


def _find_readme(directory: Path) -> Path | None:
    try:
        candidates = sorted(
            child for child in directory.iterdir() if child.name.lower().startswith("readme") and child.is_file()
        )
    except OSError:
        return None
    return candidates[0] if candidates else None


def readme_excerpt(
    directory: Path,
    *,
    max_lines: int = README_MAX_LINES,
    no_color: bool = False,
    style: str = DEFAULT_STYLE,
) -> list[str]:
    """Return a header row plus the first lines of the workspace README."""
    readme = _find_readme(directory)
    if readme is None:
        return []
    try:
        text = read_text_head(readme, README_MAX_BYTES)
    except OSError:
        return []
    head = "\n".join(sanitize_terminal_text(text).splitlines()[: max(0, max_lines)])
    if not head.strip():
        return []
    body = head if no_color else colorize_text(head, readme, style)
    return [f"-- {readme.name} --", *body.rstrip("\n").splitlines()]


def build_preview(
    path: Path,
    *,
    max_entries: int = PREVIEW_MAX_ENTRIES,
    max_depth: int = PREVIEW_MAX_DEPTH,
    readme_lines: int = README_MAX_LINES,
    no_color: bool = False,
    style: str = DEFAULT_STYLE,
) -> PreviewListing:
    """Build an indented listing of ``path`` bounded by depth and entry count."""
    lines: list[str] = []
    truncated = False

    def walk(directory: Path, depth: int) -> None:
        nonlocal truncated
        for child in _sorted_children(directory):
            if len(lines) >= max_entries:
                truncated = True
                return
            try:
                is_dir = child.is_dir(follow_symlinks=False)
            except OSError:
                is_dir = False
            name = sanitize_terminal_text(child.name)
            lines.append(f"{'  ' * depth}{name}{'/' if is_dir else ''}")
            if is_dir and depth + 1 < max_depth and child.name not in SKIPPED_DIRECTORIES:
                try:
                    walk(Path(child.path), depth + 1)
                except OSError:
                    continue
                if truncated:
                    return

    try:
        walk(path, 0)
    except OSError as exc:
        return PreviewListing(path=path, error=f"Cannot read {path.name}: {exc.strerror or exc}")

    if not lines:
        lines.append("(empty)")
    if truncated:
        lines.append(f"... truncated after {max_entries} entries ...")
    excerpt = readme_excerpt(path, max_lines=readme_lines, no_color=no_color, style=style)
    if excerpt:
        lines.append("")
        lines.extend(excerpt)
    return PreviewListing(path=path, lines=tuple(lines), truncated=truncated)


__all__ = [
    "PREVIEW_MAX_DEPTH",
    "PREVIEW_MAX_ENTRIES",
    "PreviewListing",
    "build_preview",
    "readme_excerpt",
]
