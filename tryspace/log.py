"""Opt-in file logging.

The terminal belongs to the TUI, so nothing is logged to it. A file handler is
attached only when a log path is given on the command line or via
``TRYSPACE_LOG``.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

LOG_ENV_VAR = "TRYSPACE_LOG"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def resolve_log_file(cli_value: str | None, environ: Mapping[str, str] | None = None) -> Path | None:
    env = os.environ if environ is None else environ
    raw = cli_value or (env.get(LOG_ENV_VAR) or "").strip()
    if not raw:
        return None
    return Path(os.path.expanduser(raw))


def setup_logging(log_file: Path | None) -> None:
    """Route package logs to ``log_file`` at DEBUG, or silence them."""
    package_logger = logging.getLogger("tryspace")
    if log_file is None:
        package_logger.addHandler(logging.NullHandler())
        return
    logging.basicConfig(
        filename=str(log_file),
        level=logging.DEBUG,
        format=LOG_FORMAT,
        encoding="utf-8",
        force=True,
    )


__all__ = [
    "LOG_ENV_VAR",
    "resolve_log_file",
    "setup_logging",
]
