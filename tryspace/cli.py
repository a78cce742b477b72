"""Command-line front door for tryspace.

Parses CLI options, resolves settings, and either performs one direct
create/navigate action or runs the interactive picker. The only thing ever
written to stdout is the shell instruction line; everything else goes to
stderr.
"""

from __future__ import annotations

import argparse
import functools
import logging
import os
import shutil
import sys
import termios
from collections.abc import Sequence

from . import __version__
from .actions import ActionExecutor
from .config import Settings, load_settings
from .controller import InteractionController, SessionOutcome
from .input import KeyReader
from .log import resolve_log_file, setup_logging
from .preview import build_preview
from .render import write_frame, write_status_frame
from .runtime import DEFAULT_TERMINAL_SIZE, run_session
from .shell import SUPPORTED_SHELLS, detect_shell, install_shell_integration
from .terminal import TerminalController
from .ui_theme import UITheme, available_theme_names, resolve_theme
from .workspace_index import WorkspaceIndex

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tryspace",
        description="Pick, create, or clone dated experiment workspaces.",
    )
    parser.add_argument(
        "target",
        nargs="?",
        default=None,
        metavar="NAME_OR_URL",
        help="Workspace name to open or create, or a git URL to clone. Skips the picker.",
    )
    parser.add_argument(
        "--setup",
        choices=SUPPORTED_SHELLS,
        default=None,
        help="Install the shell wrapper that changes directory on exit.",
    )
    parser.add_argument(
        "-s",
        "--shallow-clone",
        action="store_true",
        help="Clone with --depth 1.",
    )
    parser.add_argument(
        "--theme",
        default=None,
        help=f"UI theme name ({', '.join(available_theme_names())}).",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable colors in the picker.")
    parser.add_argument("--log-file", default=None, metavar="PATH", help="Write debug logs to PATH.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _make_executor(settings: Settings, shallow_clone: bool) -> ActionExecutor:
    return ActionExecutor(
        shallow_clone=shallow_clone or settings.shallow_clone,
        editor_mode=settings.editor_mode,
    )


def run_direct(target: str, settings: Settings, executor: ActionExecutor) -> SessionOutcome:
    """Treat ``target`` as a typed query followed by ENTER, without a TUI."""
    controller = InteractionController(
        WorkspaceIndex(settings.tries_path),
        executor,
        editor_command=settings.editor,
        editor_mode=settings.editor_mode,
    )
    controller.start()
    controller.insert_text(target)
    controller.activate()
    outcome = controller.state.outcome
    if outcome is None:
        raise SystemExit(f"tryspace: {controller.state.status_message or 'nothing to do'}")
    return outcome


def run_interactive(settings: Settings, executor: ActionExecutor, theme: UITheme, no_color: bool) -> SessionOutcome:
    """Run the picker on the controlling terminal, drawing to stderr."""
    if not sys.stdin.isatty():
        raise SystemExit("tryspace: stdin is not a terminal; pass NAME_OR_URL for non-interactive use")
    stdin_fd = sys.stdin.fileno()
    out_fd = sys.stderr.fileno()
    try:
        terminal = TerminalController(stdin_fd, out_fd)
    except termios.error as exc:
        raise SystemExit(f"tryspace: cannot control terminal: {exc}") from exc
    executor.bind_terminal(terminal.disable_tui_mode, terminal.enable_tui_mode)

    def terminal_size() -> tuple[int, int]:
        size = shutil.get_terminal_size(DEFAULT_TERMINAL_SIZE)
        return size.columns, size.lines

    def paint(model, width: int, height: int) -> None:
        write_frame(out_fd, model, width, height)

    def show_busy(message: str) -> None:
        width, height = terminal_size()
        write_status_frame(out_fd, controller.screen_model(), width, height, message)

    controller = InteractionController(
        WorkspaceIndex(settings.tries_path),
        executor,
        editor_command=settings.editor,
        editor_mode=settings.editor_mode,
        theme=theme,
        preview_builder=functools.partial(build_preview, no_color=no_color),
        on_busy=show_busy,
    )
    controller.start()
    return run_session(controller, terminal, KeyReader(stdin_fd), paint, terminal_size=terminal_size)


def offer_shell_setup() -> None:
    """Ask once, on the first run, whether to install the shell wrapper."""
    shell = detect_shell()
    if shell is None or not sys.stdin.isatty():
        return
    sys.stderr.write(f"Set up {shell} integration so tryspace can change directory? [y/N] ")
    sys.stderr.flush()
    answer = sys.stdin.readline().strip().lower()
    if answer not in {"y", "yes"}:
        return
    try:
        install_shell_integration(shell)
    except OSError as exc:
        print(f"tryspace: shell setup failed: {exc}", file=sys.stderr)


def main(argv: Sequence[str] | None = None) -> None:
    """Parse CLI arguments and run one tryspace session.

    Exits with status 1 (via ``SystemExit``) when a direct action fails or the
    terminal cannot be used; otherwise prints the instruction line, if any.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(resolve_log_file(args.log_file))

    if args.setup is not None:
        try:
            install_shell_integration(args.setup)
        except OSError as exc:
            raise SystemExit(f"tryspace: shell setup failed: {exc}") from exc
        return

    settings = load_settings()
    logger.debug("settings: %s", settings)
    executor = _make_executor(settings, args.shallow_clone)

    if args.target is not None:
        outcome = run_direct(args.target, settings, executor)
    else:
        if settings.is_first_run:
            offer_shell_setup()
        no_color = args.no_color or bool(os.environ.get("NO_COLOR"))
        theme = resolve_theme(args.theme or settings.theme_name, no_color=no_color, colors=settings.colors)
        outcome = run_interactive(settings, executor, theme, no_color)

    instruction = outcome.instruction()
    if instruction:
        sys.stdout.write(instruction + "\n")
        sys.stdout.flush()


if __name__ == "__main__":
    main()
