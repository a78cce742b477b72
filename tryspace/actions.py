"""Side-effecting workspace operations: create, clone, delete, open editor.

These are the only places that write to the workspace root or spawn child
processes. Every operation returns an :class:`ActionResult`; on failure the
filesystem is left as it was before the call.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
from collections.abc import Callable
from datetime import date
from pathlib import Path

from .editor import launch_editor, resolve_editor_command, spawn_detached_editor
from .errors import ActionResult, ErrorKind
from .workspace_index import WorkspaceEntry

logger = logging.getLogger(__name__)

DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}-")
_GIT_URL_PREFIXES = ("http://", "https://", "git@", "ssh://", "git://")
FALLBACK_REPO_NAME = "cloned-repo"

# git must fail instead of prompting on /dev/tty while the TUI owns the terminal.
NON_INTERACTIVE_GIT_ENV = {"GIT_TERMINAL_PROMPT": "0"}


def slugify(name: str) -> str:
    """Normalize free text into a directory-safe workspace slug.

    Lowercases, turns whitespace and anything outside ``[\\w.-]`` into ``-``,
    collapses repeated dashes, and strips leading/trailing dashes and dots.
    """
    text = name.strip().lower()
    text = re.sub(r"[^\w.-]+", "-", text)
    text = re.sub(r"-{2,}", "-", text)
    return text.strip("-.")


def dated_name(slug: str, today: date) -> str:
    """Prefix ``slug`` with ``YYYY-MM-DD-`` unless it already carries a date."""
    if DATE_PREFIX_RE.match(slug):
        return slug
    return f"{today:%Y-%m-%d}-{slug}"


def is_git_url(text: str) -> bool:
    """Return whether ``text`` looks like a clonable git remote."""
    candidate = text.strip()
    if not candidate or any(ch.isspace() for ch in candidate):
        return False
    for prefix in _GIT_URL_PREFIXES:
        if candidate.startswith(prefix):
            return len(candidate) > len(prefix)
    return candidate.endswith(".git") and len(candidate) > len(".git")


def extract_repo_name(url: str) -> str:
    """Return the repository name from a remote URL's last path segment."""
    clean = url.strip().rstrip("/")
    while clean.endswith(".git"):
        clean = clean[: -len(".git")].rstrip("/")
    last = re.split(r"[/:]", clean)[-1] if clean else ""
    return last or FALLBACK_REPO_NAME


def clone_environment() -> dict[str, str]:
    """Return the process environment with git terminal prompts disabled."""
    return {**os.environ, **NON_INTERACTIVE_GIT_ENV}


class ActionExecutor:
    """Perform workspace mutations and external process launches.

    ``run_process`` and ``today`` are injectable for tests. The TUI hooks are
    bound after the terminal exists so blocking editor launches can hand the
    terminal back to the child process.
    """

    def __init__(
        self,
        *,
        shallow_clone: bool = False,
        editor_mode: str = "block",
        today: Callable[[], date] = date.today,
        run_process: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        self.shallow_clone = shallow_clone
        self.editor_mode = editor_mode
        self._today = today
        self._run_process = run_process
        self._disable_tui_mode: Callable[[], None] = lambda: None
        self._enable_tui_mode: Callable[[], None] = lambda: None

    def bind_terminal(self, disable_tui_mode: Callable[[], None], enable_tui_mode: Callable[[], None]) -> None:
        """Register terminal hooks used around blocking editor launches."""
        self._disable_tui_mode = disable_tui_mode
        self._enable_tui_mode = enable_tui_mode

    def target_for_name(self, root: Path, name: str) -> Path | None:
        slug = slugify(name)
        if not slug:
            return None
        return root / dated_name(slug, self._today())

    def create_empty(self, root: Path, name: str) -> ActionResult:
        target = self.target_for_name(root, name)
        if target is None:
            return ActionResult.failure(ErrorKind.INVALID_NAME, f"Invalid workspace name: {name!r}")
        if target.exists():
            return ActionResult.failure(ErrorKind.ALREADY_EXISTS, f"{target} already exists", target)
        try:
            root.mkdir(parents=True, exist_ok=True)
            target.mkdir()
        except FileExistsError:
            return ActionResult.failure(ErrorKind.ALREADY_EXISTS, f"{target} already exists", target)
        except OSError as exc:
            return ActionResult.failure(ErrorKind.IO_ERROR, f"Cannot create {target.name}: {exc.strerror or exc}", target)
        logger.info("created workspace %s", target)
        return ActionResult(path=target)

    def clone_command(self, url: str, target: Path) -> list[str]:
        cmd = ["git", "clone"]
        if self.shallow_clone:
            cmd += ["--depth", "1"]
        cmd += ["--recurse-submodules", "--no-single-branch", "--", url, str(target)]
        return cmd

    def create_from_git(self, root: Path, url: str) -> ActionResult:
        target = self.target_for_name(root, extract_repo_name(url))
        if target is None:
            target = root / dated_name(FALLBACK_REPO_NAME, self._today())
        if target.exists():
            return ActionResult.failure(ErrorKind.ALREADY_EXISTS, f"{target} already exists", target)
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            return ActionResult.failure(ErrorKind.IO_ERROR, f"Cannot create {root}: {exc.strerror or exc}", root)

        cmd = self.clone_command(url, target)
        logger.info("cloning %s into %s", url, target)
        try:
            completed = self._run_process(
                cmd,
                stdin=subprocess.DEVNULL,
                env=clone_environment(),
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                check=False,
            )
        except OSError as exc:
            self._discard_partial(target)
            return ActionResult.failure(ErrorKind.CLONE_FAILED, f"cannot run git: {exc}", target)

        if completed.returncode != 0:
            self._discard_partial(target)
            return ActionResult.failure(ErrorKind.CLONE_FAILED, self._clone_failure_reason(completed), target)
        return ActionResult(path=target)

    @staticmethod
    def _clone_failure_reason(completed: subprocess.CompletedProcess) -> str:
        stderr = completed.stderr or ""
        lines = [line.strip() for line in stderr.splitlines() if line.strip()]
        if lines:
            return lines[-1]
        return f"git exited with status {completed.returncode}"

    @staticmethod
    def _discard_partial(target: Path) -> None:
        if target.exists():
            logger.info("removing partial clone %s", target)
            shutil.rmtree(target, ignore_errors=True)

    def delete(self, entry: WorkspaceEntry) -> ActionResult:
        path = entry.path
        if not path.exists() and not path.is_symlink():
            return ActionResult.failure(ErrorKind.NOT_FOUND, f"{path} no longer exists", path)
        try:
            if path.is_symlink():
                path.unlink()
            else:
                shutil.rmtree(path)
        except OSError as exc:
            logger.warning("delete of %s failed: %s", path, exc)
            return ActionResult.failure(ErrorKind.IO_ERROR, f"Error deleting {entry.name}: {exc.strerror or exc}", path)
        logger.info("deleted workspace %s", path)
        return ActionResult()

    def open_in_editor(self, entry: WorkspaceEntry, editor_command: str | None) -> ActionResult:
        if not entry.path.is_dir():
            return ActionResult.failure(ErrorKind.NOT_FOUND, f"{entry.path} no longer exists", entry.path)
        cmd, error = resolve_editor_command(editor_command)
        if cmd is None:
            return ActionResult.failure(ErrorKind.LAUNCH_FAILED, error or "unknown editor error")
        if self.editor_mode == "detach":
            error = spawn_detached_editor(entry.path, cmd)
        else:
            error = launch_editor(entry.path, cmd, self._disable_tui_mode, self._enable_tui_mode)
        if error is not None:
            return ActionResult.failure(ErrorKind.LAUNCH_FAILED, error)
        return ActionResult()


__all__ = [
    "ActionExecutor",
    "NON_INTERACTIVE_GIT_ENV",
    "clone_environment",
    "DATE_PREFIX_RE",
    "dated_name",
    "extract_repo_name",
    "is_git_url",
    "slugify",
]
