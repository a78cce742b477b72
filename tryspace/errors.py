"""Failure taxonomy shared by the workspace index and action executor.

Failures are plain values carried inside results; nothing here is raised.
The controller turns them into status-line text.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ErrorKind(Enum):
    IO_ERROR = "io_error"
    ALREADY_EXISTS = "already_exists"
    CLONE_FAILED = "clone_failed"
    LAUNCH_FAILED = "launch_failed"
    NOT_FOUND = "not_found"
    INVALID_NAME = "invalid_name"


@dataclass(frozen=True)
class WorkspaceError:
    """One typed failure plus the human-readable reason behind it."""

    kind: ErrorKind
    message: str
    path: Path | None = None

    def describe(self) -> str:
        """Return status-line text for this failure."""
        if self.kind is ErrorKind.ALREADY_EXISTS and self.path is not None:
            return f"Already exists: {self.path.name}"
        if self.kind is ErrorKind.NOT_FOUND and self.path is not None:
            return f"No longer exists: {self.path.name}"
        if self.kind is ErrorKind.CLONE_FAILED:
            return f"Clone failed: {self.message}"
        if self.kind is ErrorKind.LAUNCH_FAILED:
            return f"Cannot open editor: {self.message}"
        return self.message


@dataclass(frozen=True)
class ActionResult:
    """Outcome of one executor operation.

    Exactly one of ``error`` or the success payload is meaningful: ``path`` is
    the created workspace for create operations and ``None`` otherwise.
    """

    path: Path | None = None
    error: WorkspaceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, kind: ErrorKind, message: str, path: Path | None = None) -> ActionResult:
        return cls(error=WorkspaceError(kind=kind, message=message, path=path))


__all__ = [
    "ActionResult",
    "ErrorKind",
    "WorkspaceError",
]
