"""Interaction state machine for one workspace-picking session.

The controller owns all session state, turns key tokens into actions, and
derives an immutable :class:`ScreenModel` for the renderer. It performs no
terminal I/O; filesystem work goes through the index and the executor.
"""

from __future__ import annotations

import logging
import shlex
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from .actions import ActionExecutor, is_git_url
from .editor import format_editor_instruction, resolve_editor_command
from .errors import ActionResult, ErrorKind, WorkspaceError
from .fuzzy import RankedEntry, rank
from .input import KeyBinding, KeyRegistry, is_text_key
from .preview import PreviewListing, build_preview
from .screen import Mode, ScreenModel, ScreenRow
from .ui_theme import DEFAULT_THEME, UITheme
from .workspace_index import WorkspaceEntry, WorkspaceIndex

logger = logging.getLogger(__name__)

PREVIEW_SCROLL_STEP = 1
NOTHING_SELECTED_HINT = "Nothing selected; type a name to create a workspace"


@dataclass(frozen=True)
class SessionOutcome:
    """How the session ended: a destination to enter, or plain quit.

    ``editor_argv`` is set when the editor should be started by the calling
    shell instead of by this process.
    """

    path: Path | None = None
    editor_argv: tuple[str, ...] = ()

    def instruction(self) -> str | None:
        """Return the single shell line to emit on stdout, if any."""
        if self.path is None:
            return None
        if self.editor_argv:
            return format_editor_instruction(list(self.editor_argv), self.path)
        return f"cd {shlex.quote(str(self.path))}"


@dataclass
class SessionState:
    mode: Mode = Mode.BROWSING
    query: str = ""
    focus: str = "query"
    ranked_matches: list[RankedEntry] = field(default_factory=list)
    selected_index: int = 0
    pending_entry: WorkspaceEntry | None = None
    preview: PreviewListing | None = None
    preview_start: int = 0
    status_message: str = ""
    status_is_error: bool = False
    outcome: SessionOutcome | None = None
    dirty: bool = True

    @property
    def selected_entry(self) -> WorkspaceEntry | None:
        if 0 <= self.selected_index < len(self.ranked_matches):
            return self.ranked_matches[self.selected_index].entry
        return None

    @property
    def finished(self) -> bool:
        return self.outcome is not None


class InteractionController:
    """Consume key tokens and drive index, matcher and executor.

    ``on_busy`` is called with a status text right before a blocking clone so
    the runtime can paint one frame while git runs.
    """

    def __init__(
        self,
        index: WorkspaceIndex,
        executor: ActionExecutor,
        *,
        editor_command: str | None = None,
        editor_mode: str = "block",
        theme: UITheme = DEFAULT_THEME,
        preview_builder: Callable[[Path], PreviewListing] = build_preview,
        on_busy: Callable[[str], None] | None = None,
    ) -> None:
        self.index = index
        self.executor = executor
        self.editor_command = editor_command
        self.editor_mode = editor_mode
        self.theme = theme
        self.state = SessionState()
        self._preview_builder = preview_builder
        self._on_busy = on_busy
        self._registries = self._build_registries()

    def _build_registries(self) -> dict[Mode, KeyRegistry]:
        browsing = KeyRegistry().register(
            KeyBinding(("UP",), lambda: self.move_selection(-1)),
            KeyBinding(("DOWN",), lambda: self.move_selection(1), hint=("↑↓", "Navigate")),
            KeyBinding(("ENTER",), self.activate, hint=("Enter", "Select/Create")),
            KeyBinding(("BACKSPACE",), self.backspace),
            KeyBinding(("CTRL_U",), self.clear_query),
            KeyBinding(("TAB",), self.open_preview, hint=("Tab", "Preview")),
            KeyBinding(("CTRL_D",), self.request_delete, hint=("Ctrl-D", "Delete")),
            KeyBinding(("CTRL_E",), self.open_editor, hint=("Ctrl-E", "Editor")),
            KeyBinding(("ESC", "CTRL_C"), self.quit, hint=("Esc", "Quit")),
        )
        confirming = KeyRegistry().register(
            KeyBinding(("y", "Y"), self.confirm_delete, hint=("y", "Delete")),
            KeyBinding(("n", "N", "ESC"), self.cancel, hint=("n/Esc", "Cancel")),
            KeyBinding(("CTRL_C",), self.quit),
        )
        previewing = KeyRegistry().register(
            KeyBinding(("UP",), lambda: self.scroll_preview(-PREVIEW_SCROLL_STEP)),
            KeyBinding(("DOWN",), lambda: self.scroll_preview(PREVIEW_SCROLL_STEP), hint=("↑↓", "Scroll")),
            KeyBinding(("ESC", "TAB"), self.cancel, hint=("Esc/Tab", "Back")),
            KeyBinding(("CTRL_C",), self.quit, hint=("Ctrl-C", "Quit")),
        )
        return {
            Mode.BROWSING: browsing,
            Mode.CONFIRMING_DELETE: confirming,
            Mode.SHOWING_PREVIEW: previewing,
        }

    # Lifecycle

    def start(self) -> None:
        """Load the index and compute the initial match list."""
        self._refresh_index()
        self._recompute()

    def handle_key(self, key: str) -> bool:
        """Apply one key token; return whether it changed anything."""
        state = self.state
        if state.finished or not key:
            return False
        handler = self._registries[state.mode].lookup(key)
        if handler is not None:
            self._clear_status()
            handler()
            state.dirty = True
            return True
        if state.mode is Mode.BROWSING and is_text_key(key):
            self._clear_status()
            self.insert_text(key)
            state.dirty = True
            return True
        return False

    # Query editing

    def insert_text(self, text: str) -> None:
        self.state.query += text
        self.state.focus = "query"
        self._recompute()

    def backspace(self) -> None:
        if not self.state.query:
            return
        self.state.query = self.state.query[:-1]
        self.state.focus = "query"
        self._recompute()

    def clear_query(self) -> None:
        self.state.query = ""
        self.state.focus = "query"
        self._recompute()

    def move_selection(self, delta: int) -> None:
        state = self.state
        if not state.ranked_matches:
            return
        state.selected_index = max(0, min(len(state.ranked_matches) - 1, state.selected_index + delta))
        state.focus = "list"

    # Actions

    def activate(self) -> None:
        """Resolve ENTER: navigate to an entry or create a new workspace."""
        state = self.state
        query = state.query.strip()
        if state.focus == "list" or not query:
            entry = state.selected_entry
            if entry is None:
                self._set_status(NOTHING_SELECTED_HINT)
                return
            self._navigate_to_entry(entry)
            return

        existing = self.index.find(query)
        if existing is not None:
            self._navigate_to_entry(existing)
            return

        if is_git_url(query):
            if self._on_busy is not None:
                self._on_busy(f"Cloning {query} ...")
            result = self.executor.create_from_git(self.index.root, query)
        else:
            result = self.executor.create_empty(self.index.root, query)
        self._finish_create(result)

    def _finish_create(self, result: ActionResult) -> None:
        if result.error is not None:
            self._set_error(result.error)
            return
        self._refresh_index()
        self._recompute()
        self.state.outcome = SessionOutcome(path=result.path)

    def _navigate_to_entry(self, entry: WorkspaceEntry) -> None:
        if not entry.path.is_dir():
            self._report_missing(entry)
            return
        self._finish_with(entry.path)

    def _finish_with(self, path: Path, editor_argv: tuple[str, ...] = ()) -> None:
        self.state.outcome = SessionOutcome(path=path, editor_argv=editor_argv)
        logger.debug("session outcome: %s", self.state.outcome)

    def request_delete(self) -> None:
        entry = self.state.selected_entry
        if entry is None:
            return
        self.state.pending_entry = entry
        self.state.mode = Mode.CONFIRMING_DELETE

    def confirm_delete(self) -> None:
        state = self.state
        entry = state.pending_entry
        state.pending_entry = None
        state.mode = Mode.BROWSING
        if entry is None:
            return
        result = self.executor.delete(entry)
        if result.error is None:
            self._refresh_index()
            self._recompute()
            self._set_status(f"Deleted: {entry.name}")
        elif result.error.kind is ErrorKind.NOT_FOUND:
            self._report_missing(entry)
        else:
            self._set_error(result.error)

    def cancel(self) -> None:
        state = self.state
        state.pending_entry = None
        state.preview = None
        state.preview_start = 0
        state.mode = Mode.BROWSING

    def open_preview(self) -> None:
        entry = self.state.selected_entry
        if entry is None:
            return
        if not entry.path.is_dir():
            self._report_missing(entry)
            return
        self.state.preview = self._preview_builder(entry.path)
        self.state.preview_start = 0
        self.state.mode = Mode.SHOWING_PREVIEW

    def scroll_preview(self, delta: int) -> None:
        state = self.state
        if state.preview is None:
            return
        max_start = max(0, len(state.preview.lines) - 1)
        state.preview_start = max(0, min(max_start, state.preview_start + delta))

    def open_editor(self) -> None:
        entry = self.state.selected_entry
        if entry is None:
            return
        if self.editor_mode == "shell":
            if not entry.path.is_dir():
                self._report_missing(entry)
                return
            argv, error = resolve_editor_command(self.editor_command)
            if argv is None:
                self._set_error(WorkspaceError(ErrorKind.LAUNCH_FAILED, error or "unknown editor error"))
                return
            self._finish_with(entry.path, tuple(argv))
            return

        result = self.executor.open_in_editor(entry, self.editor_command)
        if result.error is None:
            self._set_status(f"Opened {entry.name} in editor")
        elif result.error.kind is ErrorKind.NOT_FOUND:
            self._report_missing(entry)
        else:
            self._set_error(result.error)

    def quit(self) -> None:
        self.state.pending_entry = None
        self.state.mode = Mode.BROWSING
        self.state.outcome = SessionOutcome()

    # Internals

    def _refresh_index(self) -> None:
        error = self.index.refresh()
        if error is not None:
            self._set_error(error)

    def _recompute(self) -> None:
        """Re-rank against the query, keeping the selected entry pinned by path."""
        state = self.state
        previous = state.selected_entry
        state.ranked_matches = rank(self.index.entries, state.query)
        state.selected_index = 0
        if previous is not None:
            for position, match in enumerate(state.ranked_matches):
                if match.entry.path == previous.path:
                    state.selected_index = position
                    break
        if not state.ranked_matches:
            state.focus = "query"
        state.dirty = True

    def _report_missing(self, entry: WorkspaceEntry) -> None:
        error = WorkspaceError(ErrorKind.NOT_FOUND, f"{entry.path} no longer exists", entry.path)
        self._refresh_index()
        self._recompute()
        self._set_error(error)

    def _set_status(self, message: str) -> None:
        self.state.status_message = message
        self.state.status_is_error = False
        self.state.dirty = True

    def _set_error(self, error: WorkspaceError) -> None:
        logger.info("action failed: %s (%s)", error.message, error.kind.value)
        self.state.status_message = error.describe()
        self.state.status_is_error = True
        self.state.dirty = True

    def _clear_status(self) -> None:
        self.state.status_message = ""
        self.state.status_is_error = False

    # Render boundary

    def screen_model(self) -> ScreenModel:
        state = self.state
        rows = tuple(
            ScreenRow(entry=match.entry, score=match.score, highlight=match.positions)
            for match in state.ranked_matches
        )
        confirm_prompt = None
        if state.mode is Mode.CONFIRMING_DELETE and state.pending_entry is not None:
            confirm_prompt = f"Delete '{state.pending_entry.name}'?"
        return ScreenModel(
            mode=state.mode,
            query=state.query,
            focus=state.focus,
            rows=rows,
            selected=state.selected_index,
            total_count=len(self.index.entries),
            root=self.index.root,
            status_message=state.status_message,
            status_is_error=state.status_is_error,
            preview=state.preview if state.mode is Mode.SHOWING_PREVIEW else None,
            preview_start=state.preview_start,
            confirm_prompt=confirm_prompt,
            theme=self.theme,
            hints=self._registries[state.mode].hints(),
        )


__all__ = [
    "InteractionController",
    "SessionOutcome",
    "SessionState",
]
