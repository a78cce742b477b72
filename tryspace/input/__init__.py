"""Input-layer public API for key decoding and key-binding dispatch.

Low-level terminal decoding (`read_key`) is kept apart from the binding
tables the controller builds per interaction mode.
"""

from .key_registry import KeyBinding, KeyRegistry
from .reader import ESC_SEQUENCE_TIMEOUT_MS, UNKNOWN_KEY, KeyReader, is_text_key, read_key

__all__ = [
    "ESC_SEQUENCE_TIMEOUT_MS",
    "KeyBinding",
    "KeyReader",
    "KeyRegistry",
    "UNKNOWN_KEY",
    "is_text_key",
    "read_key",
]
