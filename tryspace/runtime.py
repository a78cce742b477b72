"""Main interactive event loop for the terminal UI.

Renders when the session is dirty, reads one key per iteration with a short
timeout, and forwards normalized tokens to the controller. Feature logic lives
in the controller; this loop only wires terminal, input and renderer.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable

from .controller import InteractionController, SessionOutcome
from .input import KeyReader
from .screen import ScreenModel
from .terminal import TerminalController

logger = logging.getLogger(__name__)

KEY_TIMEOUT_MS = 120
DEFAULT_TERMINAL_SIZE = (80, 24)

FrameWriter = Callable[[ScreenModel, int, int], None]


def normalize_enter(key: str, skip_next_lf: bool) -> tuple[str | None, bool]:
    """Collapse CR, LF and CRLF into one ``ENTER`` token.

    Returns ``(token, skip_next_lf)``; ``token`` is ``None`` when the key is
    the LF half of a CRLF pair and should be dropped.
    """
    if skip_next_lf and key == "ENTER_LF":
        return None, False
    if key == "ENTER_CR":
        return "ENTER", True
    if key == "ENTER_LF":
        return "ENTER", False
    return key, False


def run_session(
    controller: InteractionController,
    terminal: TerminalController,
    key_reader: KeyReader,
    write_frame: FrameWriter,
    *,
    terminal_size: Callable[[], tuple[int, int]] | None = None,
) -> SessionOutcome:
    """Run the TUI until the controller records an outcome."""
    state = controller.state
    skip_next_lf = False
    last_size: tuple[int, int] | None = None

    def current_size() -> tuple[int, int]:
        if terminal_size is not None:
            return terminal_size()
        size = shutil.get_terminal_size(DEFAULT_TERMINAL_SIZE)
        return size.columns, size.lines

    with terminal.raw_mode():
        while not state.finished:
            size = current_size()
            if size != last_size:
                last_size = size
                state.dirty = True
            if state.dirty:
                write_frame(controller.screen_model(), size[0], size[1])
                state.dirty = False

            try:
                key = key_reader.read(timeout_ms=KEY_TIMEOUT_MS)
            except KeyboardInterrupt:
                key = "CTRL_C"
            if key == "":
                continue
            token, skip_next_lf = normalize_enter(key, skip_next_lf)
            if token is None:
                continue
            controller.handle_key(token)

    outcome = state.outcome or SessionOutcome()
    logger.debug("session finished with %s", outcome)
    return outcome


__all__ = [
    "KEY_TIMEOUT_MS",
    "normalize_enter",
    "run_session",
]
