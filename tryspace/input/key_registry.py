"""Per-mode key-binding tables with footer hint metadata."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class KeyBinding:
    """Mapping from one or more key tokens to a single action callback.

    ``hint`` is an optional ``(keys label, description)`` pair shown in the
    footer while the owning mode is active.
    """

    keys: tuple[str, ...]
    handler: Callable[[], None]
    hint: tuple[str, str] | None = None


class KeyRegistry:
    """Small key-dispatch table for one interaction mode."""

    def __init__(self) -> None:
        self._handlers: dict[str, Callable[[], None]] = {}
        self._hints: list[tuple[str, str]] = []

    def register(self, *bindings: KeyBinding) -> KeyRegistry:
        """Register bindings, overwriting handlers for repeated keys."""
        for binding in bindings:
            for key in binding.keys:
                self._handlers[key] = binding.handler
            if binding.hint is not None:
                self._hints.append(binding.hint)
        return self

    def lookup(self, key: str) -> Callable[[], None] | None:
        return self._handlers.get(key)

    def hints(self) -> tuple[tuple[str, str], ...]:
        return tuple(self._hints)


__all__ = [
    "KeyBinding",
    "KeyRegistry",
]
