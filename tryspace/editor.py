"""Editor launch helpers for opening a workspace directory.

Blocking launches run the editor while temporarily leaving raw/alternate-screen
TUI mode. Returns an error message string instead of raising for UI-friendly
handling.
"""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)

EDITOR_MODES = ("block", "detach", "shell")


def resolve_editor_command(editor_command: str | None) -> tuple[list[str] | None, str | None]:
    """Split a configured editor command and check its program is on ``PATH``.

    Returns ``(argv, None)`` on success or ``(None, message)`` otherwise.
    """
    raw = (editor_command or "").strip()
    if not raw:
        return None, "no editor configured (set \"editor\" in config or $EDITOR)"
    try:
        cmd = shlex.split(raw)
    except ValueError as exc:
        return None, f"invalid editor command {raw!r}: {exc}"
    if not cmd:
        return None, "editor command is empty"
    if shutil.which(cmd[0]) is None:
        return None, f"{cmd[0]!r} not found on PATH"
    return cmd, None


def launch_editor(
    target: Path,
    cmd: list[str],
    disable_tui_mode: Callable[[], None],
    enable_tui_mode: Callable[[], None],
) -> str | None:
    """Run ``cmd target`` in the foreground and wait for it to exit."""
    disable_tui_mode()
    try:
        completed = subprocess.run([*cmd, str(target)], check=False)
    except OSError as exc:
        return f"failed to launch editor: {exc}"
    finally:
        enable_tui_mode()
    if completed.returncode != 0:
        logger.info("editor %s exited with status %d", cmd[0], completed.returncode)
    return None


def spawn_detached_editor(target: Path, cmd: list[str]) -> str | None:
    """Start ``cmd target`` in its own session without waiting for it."""
    try:
        subprocess.Popen(
            [*cmd, str(target)],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as exc:
        return f"failed to launch editor: {exc}"
    return None


def format_editor_instruction(cmd: list[str], target: Path) -> str:
    """Shell line that opens ``target`` with ``cmd``; used by ``shell`` mode."""
    return shlex.join([*cmd, str(target)])


__all__ = [
    "EDITOR_MODES",
    "format_editor_instruction",
    "launch_editor",
    "resolve_editor_command",
    "spawn_detached_editor",
]
