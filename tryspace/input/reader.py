"""Low-level terminal input decoding.

Reads raw bytes from stdin and translates them into normalized key tokens.
Handles ESC-sequence timing, control keys, and multi-byte UTF-8 characters.
"""

from __future__ import annotations

import os
import select

ESC_SEQUENCE_TIMEOUT_MS = 25

# Token for escape sequences with no binding (F-keys, modified arrows, Alt+key).
UNKNOWN_KEY = "UNKNOWN"

_CSI_FINAL_MIN = 0x40
_CSI_FINAL_MAX = 0x7E
_CSI_MAX_PARAMS = 64

_CONTROL_TOKENS: dict[bytes, str] = {
    b"\x03": "CTRL_C",
    b"\x04": "CTRL_D",
    b"\x05": "CTRL_E",
    b"\x15": "CTRL_U",
    b"\t": "TAB",
    b"\x08": "BACKSPACE",
    b"\x7f": "BACKSPACE",
    b"\r": "ENTER_CR",
    b"\n": "ENTER_LF",
}

_CSI_FINAL_TOKENS: dict[bytes, str] = {
    b"A": "UP",
    b"B": "DOWN",
    b"C": "RIGHT",
    b"D": "LEFT",
    b"H": "HOME",
    b"F": "END",
}

_CSI_TILDE_TOKENS: dict[bytes, str] = {
    b"1": "HOME",
    b"3": "DELETE",
    b"4": "END",
    b"5": "PAGE_UP",
    b"6": "PAGE_DOWN",
}


def is_text_key(key: str) -> bool:
    """Return whether ``key`` is a printable character token."""
    return len(key) == 1 and key.isprintable()


def _utf8_sequence_length(lead: int) -> int:
    if lead >= 0xF0:
        return 4
    if lead >= 0xE0:
        return 3
    if lead >= 0xC0:
        return 2
    return 1


class KeyReader:
    """Stateful decoder over one input file descriptor.

    Bytes read ahead while disambiguating a lone ESC are kept for the next call.
    """

    def __init__(self, fd: int) -> None:
        self.fd = fd
        self._pending: list[bytes] = []

    def _read_ready_byte(self, timeout_ms: int) -> bytes | None:
        if self._pending:
            return self._pending.pop(0)
        ready, _, _ = select.select([self.fd], [], [], max(0.0, timeout_ms / 1000.0))
        if not ready:
            return None
        ch = os.read(self.fd, 1)
        if not ch:
            return None
        return ch

    def read(self, timeout_ms: int | None = None) -> str:
        """Block for one key token; ``""`` when ``timeout_ms`` elapses first."""
        if self._pending:
            ch = self._pending.pop(0)
        else:
            if timeout_ms is not None:
                ready, _, _ = select.select([self.fd], [], [], max(0.0, timeout_ms / 1000.0))
                if not ready:
                    return ""
            ch = os.read(self.fd, 1)
            if not ch:
                return ""

        token = _CONTROL_TOKENS.get(ch)
        if token is not None:
            return token
        if ch == b"\x1b":
            return self._read_escape_sequence()

        length = _utf8_sequence_length(ch[0])
        data = ch
        while len(data) < length:
            more = self._read_ready_byte(ESC_SEQUENCE_TIMEOUT_MS)
            if more is None:
                break
            data += more
        return data.decode("utf-8", errors="replace")

    def _read_escape_sequence(self) -> str:
        seq = self._read_ready_byte(ESC_SEQUENCE_TIMEOUT_MS)
        if seq is None:
            return "ESC"
        if seq == b"\x1b":
            self._pending.append(seq)
            return "ESC"
        if seq == b"[":
            return self._read_csi()
        if seq == b"O":
            final = self._read_ready_byte(ESC_SEQUENCE_TIMEOUT_MS)
            if final is None:
                return UNKNOWN_KEY
            return _CSI_FINAL_TOKENS.get(final, UNKNOWN_KEY)

        # Alt+key: swallow the whole character so it is not typed as text.
        length = _utf8_sequence_length(seq[0])
        for _ in range(length - 1):
            if self._read_ready_byte(ESC_SEQUENCE_TIMEOUT_MS) is None:
                break
        return UNKNOWN_KEY

    def _read_csi(self) -> str:
        params = b""
        while True:
            ch = self._read_ready_byte(ESC_SEQUENCE_TIMEOUT_MS)
            if ch is None:
                return UNKNOWN_KEY
            if _CSI_FINAL_MIN <= ch[0] <= _CSI_FINAL_MAX:
                break
            params += ch
            if len(params) > _CSI_MAX_PARAMS:
                return UNKNOWN_KEY
        if not params:
            return _CSI_FINAL_TOKENS.get(ch, UNKNOWN_KEY)
        if ch == b"~":
            return _CSI_TILDE_TOKENS.get(params, UNKNOWN_KEY)
        return UNKNOWN_KEY


def read_key(fd: int, timeout_ms: int | None = None) -> str:
    """Decode one key from ``fd`` without read-ahead state."""
    return KeyReader(fd).read(timeout_ms)


__all__ = [
    "ESC_SEQUENCE_TIMEOUT_MS",
    "KeyReader",
    "UNKNOWN_KEY",
    "is_text_key",
    "read_key",
]
