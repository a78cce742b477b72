"""Terminal control helpers for the TUI session.

Owns raw-mode lifecycle and alternate-screen switching on the output fd.
The UI draws to stderr so stdout stays free for the shell instruction.
"""

from __future__ import annotations

import contextlib
import os
import termios
import tty


class TerminalController:
    """Manage terminal mode transitions for one session."""

    def __init__(self, stdin_fd: int, out_fd: int) -> None:
        """Capture tty state and bind the input and output file descriptors."""
        self.stdin_fd = stdin_fd
        self.out_fd = out_fd
        self._saved_tty_state = termios.tcgetattr(stdin_fd)
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def enable_tui_mode(self) -> None:
        """Enter raw alternate-screen mode with the cursor hidden."""
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        os.write(self.out_fd, b"\x1b[?1049h\x1b[?25l")
        self._active = True

    def disable_tui_mode(self) -> None:
        """Show the cursor, leave the alternate screen and restore tty state."""
        os.write(self.out_fd, b"\x1b[?25h\x1b[?1049l")
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)
        self._active = False

    @contextlib.contextmanager
    def raw_mode(self):
        try:
            self.enable_tui_mode()
            yield
        finally:
            self.disable_tui_mode()


__all__ = [
    "TerminalController",
]
