"""Reference-counted file descriptor handles that track EOF and I/O counts."""

from __future__ import annotations

import os
import sys
from types import TracebackType

from spongekit.buffer import Buffer, BufferList, BufferViewList
from spongekit.util import system_call

_MAX_READ = 1024 * 1024

Writable = str | bytes | bytearray | memoryview | Buffer | BufferList | BufferViewList


class _FDWrapper:
    """The shared state behind one kernel file descriptor; closes it when collected."""

    __slots__ = ("fd", "eof", "closed", "read_count", "write_count")

    def __init__(self, fd: int) -> None:
        if fd < 0:
            raise ValueError(f"invalid fd number:{fd}")
        self.fd = fd
        self.eof = False
        self.closed = False
        self.read_count = 0
        self.write_count = 0

    def close(self) -> None:
        system_call("close", lambda: os.close(self.fd))
        self.eof = self.closed = True

    def __del__(self) -> None:
        try:
            if not self.closed:
                self.close()
        except Exception as exc:  # never raise from a finaliser
            print(f"Exception destructing FDWrapper: {exc}", file=sys.stderr)


def _as_views(data: Writable) -> BufferViewList:
    if isinstance(data, BufferViewList):
        return BufferViewList(b"".join(bytes(view) for view in data.as_iovecs()))
    return BufferViewList(data)


class FileDescriptor:
    """A handle to a file descriptor; duplicates share state and the last one closes it."""

    def __init__(self, fd: int | FileDescriptor) -> None:
        if isinstance(fd, FileDescriptor):
            self._internal = fd._internal
        else:
            self._internal = _FDWrapper(fd)

    def _register_read(self) -> None:
        self._internal.read_count += 1

    def _register_write(self) -> None:
        self._internal.write_count += 1

    def duplicate(self) -> FileDescriptor:
        """Another handle sharing this descriptor and its state."""
        twin = FileDescriptor.__new__(FileDescriptor)
        twin._internal = self._internal
        return twin

    def read(self, limit: int | None = None) -> bytes:
        """Read up to ``limit`` bytes (at most 1 MiB per call); an empty result marks EOF."""
        size = _MAX_READ if limit is None else min(_MAX_READ, limit)
        data = system_call("read", lambda: os.read(self.fd_num(), size))
        if size > 0 and not data:
            self._internal.eof = True
        if len(data) > size:
            raise RuntimeError("read() read more than requested")
        self._register_read()
        return data

    def write(self, data: Writable, write_all: bool = True) -> int:
        """Write ``data``; with ``write_all`` keep writing until everything is written."""
        views = _as_views(data)
        total = 0
        while True:
            iovecs = views.as_iovecs()
            written = system_call("writev", lambda: os.writev(self.fd_num(), iovecs))
            if written == 0 and len(views) != 0:
                raise RuntimeError("write returned 0 given non-empty input buffer")
            if written > len(views):
                raise RuntimeError("write wrote more than length of input buffer")
            self._register_write()
            views.remove_prefix(written)
            total += written
            if not (write_all and len(views)):
                return total

    def close(self) -> None:
        """Close the underlying descriptor."""
        self._internal.close()

    def set_blocking(self, blocking_state: bool) -> None:
        """Switch between blocking (True) and non-blocking (False) mode."""
        system_call("fcntl", lambda: os.set_blocking(self.fd_num(), blocking_state))

    def fd_num(self) -> int:
        """The kernel descriptor number."""
        return self._internal.fd

    def eof(self) -> bool:
        """Whether a read has hit end of file."""
        return self._internal.eof

    def closed(self) -> bool:
        """Whether the descriptor has been closed."""
        return self._internal.closed

    def read_count(self) -> int:
        """How many times the descriptor has been read."""
        return self._internal.read_count

    def write_count(self) -> int:
        """How many times the descriptor has been written."""
        return self._internal.write_count

    def __enter__(self) -> FileDescriptor:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if not self.closed():
            self.close()

    def __repr__(self) -> str:
        return f"FileDescriptor(fd={self.fd_num()}, closed={self.closed()})"