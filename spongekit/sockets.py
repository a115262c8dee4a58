"""TCP, UDP and Unix-domain stream sockets built on FileDescriptor."""

from __future__ import annotations

import contextlib
import socket
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import TypeVar

from spongekit.address import Address
from spongekit.buffer import Buffer, BufferList, BufferViewList
from spongekit.file_descriptor import FileDescriptor
from spongekit.util import system_call

_T = TypeVar("_T")

_MSG_TRUNC = getattr(socket, "MSG_TRUNC", 0)

Payload = BufferViewList | BufferList | Buffer | bytes | bytearray | memoryview | str


@contextlib.contextmanager
def _borrow(fd_num: int) -> Iterator[socket.socket]:
    """A socket-module object over ``fd_num`` that does not take ownership of it."""
    sock = socket.socket(fileno=fd_num)
    try:
        yield sock
    finally:
        sock.detach()


class Socket(FileDescriptor):
    """Base class for network sockets."""

    def __init__(self, domain: int, type: int, fd: FileDescriptor | None = None) -> None:
        """Create a new socket, or adopt ``fd`` after checking its domain and type."""
        if fd is None:
            super().__init__(system_call("socket", lambda: socket.socket(domain, type, 0).detach()))
            return
        super().__init__(fd)
        if self._syscall("getsockopt", _socket_domain) != domain:
            raise RuntimeError("socket domain mismatch")
        if self._syscall("getsockopt", lambda s: s.getsockopt(socket.SOL_SOCKET, socket.SO_TYPE)) != type:
            raise RuntimeError("socket type mismatch")

    def _syscall(self, attempt: str, action: Callable[[socket.socket], _T]) -> _T:
        def run() -> _T:
            with _borrow(self.fd_num()) as sock:
                return action(sock)

        return system_call(attempt, run)

    def bind(self, address: Address) -> None:
        """Bind to a local address."""
        self._syscall("bind", lambda s: s.bind(address.sockaddr()))

    def connect(self, address: Address) -> None:
        """Connect to a peer address."""
        self._syscall("connect", lambda s: s.connect(address.sockaddr()))

    def shutdown(self, how: int) -> None:
        """Shut down reading (SHUT_RD), writing (SHUT_WR) or both (SHUT_RDWR)."""
        self._syscall("shutdown", lambda s: s.shutdown(how))
        if how == socket.SHUT_RD:
            self._register_read()
        elif how == socket.SHUT_WR:
            self._register_write()
        elif how == socket.SHUT_RDWR:
            self._register_read()
            self._register_write()
        else:
            raise RuntimeError("Socket.shutdown() called with invalid `how`")

    def local_address(self) -> Address:
        """The address the socket is bound to."""
        return Address.from_sockaddr(self._syscall("getsockname", lambda s: s.getsockname()))

    def peer_address(self) -> Address:
        """The address of the connected peer."""
        return Address.from_sockaddr(self._syscall("getpeername", lambda s: s.getpeername()))

    def set_reuseaddr(self) -> None:
        """Allow the local address to be reused sooner (SO_REUSEADDR)."""
        self._syscall("setsockopt", lambda s: s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1))


def _socket_domain(sock: socket.socket) -> int:
    so_domain = getattr(socket, "SO_DOMAIN", None)
    if so_domain is None:
        return int(sock.family)
    return sock.getsockopt(socket.SOL_SOCKET, so_domain)


@dataclass
class ReceivedDatagram:
    """A received datagram and the address it came from."""

    source_address: Address
    payload: bytes


class UDPSocket(Socket):
    """A UDP socket."""

    def __init__(self, fd: FileDescriptor | None = None) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_DGRAM, fd)

    def recv(self, mtu: int = 65536) -> ReceivedDatagram:
        """Receive one datagram; raise RuntimeError if it is larger than ``mtu``."""
        storage = bytearray(mtu)
        nbytes, source = self._syscall(
            "recvfrom", lambda s: s.recvfrom_into(storage, mtu, _MSG_TRUNC)
        )
        if nbytes > mtu:
            raise RuntimeError("recvfrom (oversized datagram)")
        self._register_read()
        return ReceivedDatagram(Address.from_sockaddr(source), bytes(storage[:nbytes]))

    def _sendmsg(self, destination: Address | None, payload: Payload) -> None:
        views = payload if isinstance(payload, BufferViewList) else BufferViewList(payload)
        iovecs = views.as_iovecs()

        def action(sock: socket.socket) -> int:
            if destination is None:
                return sock.sendmsg(iovecs)
            return sock.sendmsg(iovecs, [], 0, destination.sockaddr())

        sent = self._syscall("sendmsg", action)
        if sent != len(views):
            raise RuntimeError("datagram payload too big for sendmsg()")

    def sendto(self, destination: Address, payload: Payload) -> None:
        """Send a datagram to ``destination``."""
        self._sendmsg(destination, payload)
        self._register_write()

    def send(self, payload: Payload) -> None:
        """Send a datagram to the connected peer."""
        self._sendmsg(None, payload)
        self._register_write()


class TCPSocket(Socket):
    """A TCP socket."""

    def __init__(self, fd: FileDescriptor | None = None) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_STREAM, fd)

    def listen(self, backlog: int = 16) -> None:
        """Mark the socket as accepting connections."""
        self._syscall("listen", lambda s: s.listen(backlog))

    def accept(self) -> TCPSocket:
        """Block until a connection arrives and return a socket connected to the peer."""
        self._register_read()
        conn_fd = self._syscall("accept", lambda s: s.accept()[0].detach())
        return TCPSocket(FileDescriptor(conn_fd))


class LocalStreamSocket(Socket):
    """A Unix-domain stream socket adopted from an existing descriptor."""

    def __init__(self, fd: FileDescriptor) -> None:
        super().__init__(socket.AF_UNIX, socket.SOCK_STREAM, fd)