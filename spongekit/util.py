"""General helpers: system-call error wrapping, randomness, timing, checksums and hexdumps."""

from __future__ import annotations

import os
import random
import sys
import time
from collections.abc import Callable
from typing import TypeVar

_T = TypeVar("_T")

_PROGRAM_START_NS = time.monotonic_ns()


class TaggedError(OSError):
    """An OS-level error annotated with the operation that was being attempted."""

    def __init__(self, attempt: str, error_code: int, description: str | None = None) -> None:
        if description is None:
            description = os.strerror(error_code)
        super().__init__(error_code, description)
        self.attempt = attempt

    def __str__(self) -> str:
        return f"{self.attempt}: {self.strerror}"


class UnixError(TaggedError):
    """A TaggedError raised by a failed system call."""

    def __init__(self, attempt: str, error: int) -> None:
        super().__init__(attempt, error)


def system_call(attempt: str, call: Callable[[], _T], errno_mask: int = 0) -> _T | None:
    """Run ``call``, converting an OSError into a UnixError tagged with ``attempt``.

    If the failure's errno equals a non-zero ``errno_mask``, None is returned instead.
    """
    try:
        return call()
    except OSError as exc:
        code = exc.errno or 0
        if errno_mask and code == errno_mask:
            return None
        raise UnixError(attempt, code) from exc


def get_random_generator() -> random.Random:
    """Return a Mersenne Twister generator seeded with a full state's worth of entropy."""
    seed = int.from_bytes(os.urandom(624 * 4), "big")
    return random.Random(seed)


def timestamp_ms() -> int:
    """Milliseconds elapsed since this module was loaded."""
    return (time.monotonic_ns() - _PROGRAM_START_NS) // 1_000_000


class InternetChecksum:
    """The ones'-complement Internet checksum, computed incrementally."""

    def __init__(self, initial_sum: int = 0) -> None:
        self._sum = initial_sum & 0xFFFFFFFF
        self._parity = False

    def add(self, data: bytes | bytearray | memoryview) -> None:
        """Add bytes to the running sum; data may be split at any byte boundary."""
        for byte in bytes(data):
            value = byte if self._parity else byte << 8
            self._sum = (self._sum + value) & 0xFFFFFFFF
            self._parity = not self._parity

    def value(self) -> int:
        """The checksum of everything added so far, in host order."""
        total = self._sum
        while total > 0xFFFF:
            total = (total >> 16) + (total & 0xFFFF)
        return ~total & 0xFFFF


def _printable(byte: int) -> str:
    return chr(byte) if 0x20 <= byte <= 0x7E else "."


def format_hexdump(data: bytes | bytearray | memoryview, indent: int = 0) -> str:
    """Render bytes as a hexdump: offset, 16 bytes in 2-byte groups, and printable characters."""
    raw = bytes(data)
    prefix = " " * indent
    chunks = [raw[offset : offset + 16] for offset in range(0, len(raw), 16)]
    out: list[str] = []
    for number, chunk in enumerate(chunks):
        hex_text = chunk.hex()
        groups = " ".join(hex_text[pos : pos + 4] for pos in range(0, len(hex_text), 4))
        out.append(f"{prefix}{number * 16:08x}:    {groups}")
        if number != len(chunks) - 1:
            out.append("    " + "".join(map(_printable, chunk)) + "\n")
    remainder = (16 - (len(raw) & 0xF)) % 16
    last_chars = "".join(map(_printable, chunks[-1])) if chunks else " "
    out.append(" " * (2 * remainder + remainder // 2 + 4) + last_chars + "\n\n")
    return "".join(out)


def hexdump(data: bytes | bytearray | memoryview, indent: int = 0) -> None:
    """Print a hexdump of ``data`` to standard output."""
    sys.stdout.write(format_hexdump(data, indent))
    sys.stdout.flush()