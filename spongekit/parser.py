"""Big-endian integer parsing and serialisation for network packets."""

from __future__ import annotations

import enum

from spongekit.buffer import Buffer


class ParseResult(enum.Enum):
    """The outcome of parsing a packet."""

    NoError = 0
    BadChecksum = 1
    PacketTooShort = 2
    WrongIPVersion = 3
    HeaderTooShort = 4
    TruncatedPacket = 5
    Unsupported = 6


def as_string(result: ParseResult) -> str:
    """The name of a ParseResult."""
    return result.name


class NetParser:
    """Reads network-byte-order integers from the front of a Buffer, recording the first error."""

    def __init__(self, buffer: Buffer | bytes | bytearray | memoryview) -> None:
        self._buffer = buffer._clone() if isinstance(buffer, Buffer) else Buffer(buffer)
        self.error = ParseResult.NoError

    def buffer(self) -> Buffer:
        """The unparsed remainder."""
        return self._buffer._clone()

    def has_error(self) -> bool:
        """True once any error has been recorded."""
        return self.error is not ParseResult.NoError

    def _check_size(self, size: int) -> None:
        if size > len(self._buffer):
            self.error = ParseResult.PacketTooShort

    def _parse_int(self, length: int) -> int:
        self._check_size(length)
        if self.has_error():
            return 0
        return int.from_bytes(self._buffer.read_prefix(length), "big")

    def u32(self) -> int:
        """Parse a 32-bit big-endian integer."""
        return self._parse_int(4)

    def u16(self) -> int:
        """Parse a 16-bit big-endian integer."""
        return self._parse_int(2)

    def u8(self) -> int:
        """Parse an 8-bit integer."""
        return self._parse_int(1)

    def remove_prefix(self, n: int) -> None:
        """Skip ``n`` bytes."""
        self._check_size(n)
        if self.has_error():
            return
        self._buffer.remove_prefix(n)


def unparse_u32(val: int) -> bytes:
    """A 32-bit integer in network byte order."""
    return (val & 0xFFFFFFFF).to_bytes(4, "big")


def unparse_u16(val: int) -> bytes:
    """A 16-bit integer in network byte order."""
    return (val & 0xFFFF).to_bytes(2, "big")


def unparse_u8(val: int) -> bytes:
    """An 8-bit integer."""
    return (val & 0xFF).to_bytes(1, "big")