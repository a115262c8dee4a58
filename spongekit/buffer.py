"""Byte buffers that can cheaply discard data from the front."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable


class Buffer:
    """A read-only byte string that can discard bytes from the front without copying."""

    __slots__ = ("_storage", "_offset")

    def __init__(self, data: bytes | bytearray | memoryview = b"") -> None:
        self._storage = bytes(data)
        self._offset = 0

    def _clone(self) -> Buffer:
        twin = Buffer.__new__(Buffer)
        twin._storage = self._storage
        twin._offset = self._offset
        return twin

    def view(self) -> memoryview:
        """A zero-copy view of the remaining bytes."""
        return memoryview(self._storage)[self._offset :]

    def __len__(self) -> int:
        return len(self._storage) - self._offset

    def __bytes__(self) -> bytes:
        return self._storage[self._offset :]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Buffer):
            return bytes(self) == bytes(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Buffer({bytes(self)!r})"

    def at(self, n: int) -> int:
        """The byte at position ``n``."""
        if not 0 <= n < len(self):
            raise IndexError("Buffer.at")
        return self._storage[self._offset + n]

    def copy(self) -> bytes:
        """A copy of the remaining bytes."""
        return bytes(self)

    def remove_prefix(self, n: int) -> None:
        """Discard the first ``n`` bytes."""
        if n > len(self):
            raise IndexError("Buffer.remove_prefix")
        self._offset += n
        if self._offset == len(self._storage):
            self._storage = b""
            self._offset = 0

    def peak_out(self, n: int) -> bytes:
        """A copy of up to ``n`` leading bytes, leaving the buffer unchanged."""
        n = min(n, len(self))
        return self._storage[self._offset : self._offset + n]

    def read_prefix(self, n: int) -> bytes:
        """Return and discard up to ``n`` leading bytes."""
        data = self.peak_out(n)
        self.remove_prefix(len(data))
        return data


class BufferList:
    """A discontiguous byte string made of Buffers, discardable from the front."""

    def __init__(self, initial: Buffer | bytes | bytearray | memoryview | None = None) -> None:
        self._buffers: deque[Buffer] = deque()
        if isinstance(initial, Buffer):
            self._buffers.append(initial._clone())
        elif initial is not None:
            self._buffers.append(Buffer(initial))

    def __len__(self) -> int:
        return sum(len(buf) for buf in self._buffers)

    def __bytes__(self) -> bytes:
        return self.concatenate()

    def buffers(self) -> tuple[Buffer, ...]:
        """The underlying Buffers, in order."""
        return tuple(buf._clone() for buf in self._buffers)

    def append(self, other: BufferList) -> None:
        """Append every Buffer of another BufferList."""
        self._buffers.extend(buf._clone() for buf in other._buffers)

    def push_back(self, buf: Buffer) -> None:
        """Append a single Buffer."""
        self._buffers.append(buf._clone())

    def to_buffer(self) -> Buffer:
        """Convert to one Buffer; only allowed when there is at most one piece."""
        if not self._buffers:
            return Buffer()
        if len(self._buffers) == 1:
            return self._buffers[0]._clone()
        raise RuntimeError(
            "BufferList: please use concatenate() to combine a multi-Buffer BufferList into one Buffer"
        )

    def remove_prefix(self, n: int) -> None:
        """Discard the first ``n`` bytes."""
        while n > 0:
            if not self._buffers:
                raise IndexError("BufferList.remove_prefix")
            front = self._buffers[0]
            if n < len(front):
                front.remove_prefix(n)
                n = 0
            else:
                n -= len(front)
                self._buffers.popleft()

    def concatenate(self) -> bytes:
        """All bytes joined into one copy."""
        return b"".join(bytes(buf) for buf in self._buffers)

    def read_prefix(self, n: int) -> bytes:
        """Return and discard up to ``n`` leading bytes."""
        data = self.peak_out(n)
        self.remove_prefix(len(data))
        return data

    def peak_out(self, n: int) -> bytes:
        """A copy of up to ``n`` leading bytes, leaving the list unchanged."""
        pieces: list[bytes] = []
        for buf in self._buffers:
            if len(buf) <= n:
                pieces.append(bytes(buf))
                n -= len(buf)
            else:
                pieces.append(buf.peak_out(n))
                break
        return b"".join(pieces)


class BufferViewList:
    """A non-owning view of a discontiguous byte string."""

    def __init__(self, data: BufferList | Buffer | bytes | bytearray | memoryview | str) -> None:
        self._views: deque[memoryview] = deque()
        pieces: Iterable[memoryview]
        if isinstance(data, BufferList):
            pieces = (buf.view() for buf in data.buffers())
        elif isinstance(data, Buffer):
            pieces = (data.view(),)
        elif isinstance(data, str):
            pieces = (memoryview(data.encode()),)
        else:
            pieces = (memoryview(data).cast("B"),)
        self._views.extend(pieces)

    def __len__(self) -> int:
        return sum(len(view) for view in self._views)

    def remove_prefix(self, n: int) -> None:
        """Discard the first ``n`` bytes."""
        while n > 0:
            if not self._views:
                raise IndexError("BufferViewList.remove_prefix")
            front = self._views[0]
            if n < len(front):
                self._views[0] = front[n:]
                n = 0
            else:
                n -= len(front)
                self._views.popleft()

    def as_iovecs(self) -> list[memoryview]:
        """The views as a list suitable for scatter/gather writes such as os.writev."""
        return list(self._views)