"""Filesystem scan of the workspace root into ordered workspace entries.

Each scan is a cold snapshot: entries are rebuilt from ``os.scandir`` and the
previous list is replaced wholesale. Ordering is most-recently-modified first.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from .errors import ErrorKind, WorkspaceError

logger = logging.getLogger(__name__)

GIT_MARKER = ".git"

# (tag, files whose presence at the workspace top level sets the tag)
PROJECT_MARKERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("rust", ("Cargo.toml",)),
    ("python", ("pyproject.toml", "requirements.txt")),
    ("go", ("go.mod",)),
    ("maven", ("pom.xml",)),
    ("flutter", ("pubspec.yaml",)),
    ("mise", ("mise.toml",)),
)


@dataclass(frozen=True)
class WorkspaceEntry:
    """One workspace directory observed under the root."""

    name: str
    path: Path
    created_at: datetime
    modified_at: datetime
    is_git_repo: bool = False
    markers: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScanResult:
    entries: list[WorkspaceEntry] = field(default_factory=list)
    error: WorkspaceError | None = None


def _created_timestamp(stat: os.stat_result) -> float:
    birth = getattr(stat, "st_birthtime", None)
    if isinstance(birth, (int, float)) and birth > 0:
        return float(birth)
    return float(stat.st_ctime)


def detect_markers(directory: Path) -> tuple[str, ...]:
    """Return project tags for marker files present in ``directory``."""
    tags: list[str] = []
    for tag, filenames in PROJECT_MARKERS:
        if any((directory / filename).exists() for filename in filenames):
            tags.append(tag)
    return tuple(tags)


def _ensure_root(root: Path) -> WorkspaceError | None:
    if root.is_dir():
        return None
    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        return WorkspaceError(ErrorKind.IO_ERROR, f"Cannot create {root}: {exc.strerror or exc}", root)
    logger.info("created workspace root %s", root)
    return None


def scan(root: Path) -> ScanResult:
    """List immediate non-hidden subdirectories of ``root`` as entries.

    A missing root is created first. Any failure to create or read the root
    yields an empty entry list plus an ``IO_ERROR``; per-entry stat failures
    only drop that entry.
    """
    root_error = _ensure_root(root)
    if root_error is not None:
        return ScanResult(error=root_error)

    entries: list[WorkspaceEntry] = []
    try:
        with os.scandir(root) as children:
            for child in children:
                if child.name.startswith("."):
                    continue
                try:
                    if not child.is_dir(follow_symlinks=True):
                        continue
                    stat = child.stat(follow_symlinks=True)
                except OSError:
                    continue
                child_path = Path(child.path).absolute()
                entries.append(
                    WorkspaceEntry(
                        name=child.name,
                        path=child_path,
                        created_at=datetime.fromtimestamp(_created_timestamp(stat)),
                        modified_at=datetime.fromtimestamp(stat.st_mtime),
                        is_git_repo=(child_path / GIT_MARKER).exists(),
                        markers=detect_markers(child_path),
                    )
                )
    except OSError as exc:
        logger.warning("scan of %s failed: %s", root, exc)
        return ScanResult(error=WorkspaceError(ErrorKind.IO_ERROR, f"Cannot read {root}: {exc.strerror or exc}", root))

    entries.sort(key=lambda entry: entry.name)
    entries.sort(key=lambda entry: entry.modified_at, reverse=True)
    logger.debug("scanned %d workspaces under %s", len(entries), root)
    return ScanResult(entries=entries)


class WorkspaceIndex:
    """In-memory snapshot of the workspace root, refreshed on demand."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.entries: list[WorkspaceEntry] = []

    def refresh(self) -> WorkspaceError | None:
        """Replace entries with a fresh scan; return the scan error, if any."""
        result = scan(self.root)
        self.entries = list(result.entries)
        return result.error

    def find(self, name: str) -> WorkspaceEntry | None:
        """Return the entry whose name equals ``name`` ignoring case."""
        folded = name.casefold()
        for entry in self.entries:
            if entry.name.casefold() == folded:
                return entry
        return None

    def __len__(self) -> int:
        return len(self.entries)


__all__ = [
    "GIT_MARKER",
    "PROJECT_MARKERS",
    "ScanResult",
    "WorkspaceEntry",
    "WorkspaceIndex",
    "detect_markers",
    "scan",
]
