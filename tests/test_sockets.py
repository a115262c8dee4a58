import errno
import os
import socket

import pytest

from spongekit.address import Address
from spongekit.buffer import BufferList
from spongekit.file_descriptor import FileDescriptor
from spongekit.sockets import LocalStreamSocket, ReceivedDatagram, TCPSocket, UDPSocket
from spongekit.util import UnixError


def _read_exactly(fd, n):
    data = b""
    while len(data) < n:
        chunk = fd.read(n - len(data))
        if not chunk:
            break
        data += chunk
    return data


def _close_all(*fds):
    for fd in fds:
        if not fd.closed():
            fd.close()


@pytest.fixture
def tcp_trio():
    listener = TCPSocket()
    listener.set_reuseaddr()
    listener.bind(Address("127.0.0.1", 0))
    listener.listen()
    client = TCPSocket()
    client.connect(listener.local_address())
    conn = listener.accept()
    yield listener, client, conn
    _close_all(conn, client, listener)


@pytest.fixture
def udp_pair():
    first = UDPSocket()
    first.bind(Address("127.0.0.1", 0))
    second = UDPSocket()
    second.bind(Address("127.0.0.1", 0))
    yield first, second
    _close_all(first, second)


def test_tcp_roundtrip(tcp_trio):
    _, client, conn = tcp_trio
    assert client.write(b"hello") == 5
    assert _read_exactly(conn, 5) == b"hello"
    assert conn.read_count() >= 1


def test_tcp_addresses(tcp_trio):
    listener, client, conn = tcp_trio
    assert conn.peer_address() == client.local_address()
    assert client.peer_address() == listener.local_address()
    assert listener.local_address().ip() == "127.0.0.1"


def test_accept_registers_read(tcp_trio):
    listener, _, _ = tcp_trio
    assert listener.read_count() == 1


def test_shutdown_write_signals_eof(tcp_trio):
    _, client, conn = tcp_trio
    before = client.write_count()
    client.shutdown(socket.SHUT_WR)
    assert client.write_count() == before + 1
    assert conn.read() == b""
    assert conn.eof()


def test_shutdown_both_counts(tcp_trio):
    _, client, _ = tcp_trio
    reads, writes = client.read_count(), client.write_count()
    client.shutdown(socket.SHUT_RDWR)
    assert (client.read_count(), client.write_count()) == (reads + 1, writes + 1)


def test_shutdown_invalid_how(tcp_trio):
    _, client, _ = tcp_trio
    with pytest.raises(UnixError) as info:
        client.shutdown(99)
    assert info.value.attempt == "shutdown"


def test_connect_refused():
    listener = TCPSocket()
    listener.bind(Address("127.0.0.1", 0))
    target = listener.local_address()
    listener.close()
    with TCPSocket() as client:
        with pytest.raises(UnixError) as info:
            client.connect(target)
    assert info.value.errno == errno.ECONNREFUSED
    assert info.value.attempt == "connect"


def test_set_reuseaddr():
    with TCPSocket() as sock:
        sock.set_reuseaddr()
        probe = socket.socket(fileno=sock.fd_num())
        try:
            value = probe.getsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR)
        finally:
            probe.detach()
    assert value == 1


def test_udp_sendto_and_recv(udp_pair):
    first, second = udp_pair
    first.sendto(second.local_address(), b"datagram")
    received = second.recv()
    assert isinstance(received, ReceivedDatagram)
    assert received.payload == b"datagram"
    assert received.source_address == first.local_address()
    assert first.write_count() == 1
    assert second.read_count() == 1


def test_udp_connected_send_with_buffer_list(udp_pair):
    first, second = udp_pair
    first.connect(second.local_address())
    payload = BufferList(b"ab")
    payload.append(BufferList(b"cd"))
    first.send(payload)
    assert second.recv().payload == b"abcd"


def test_udp_oversized_datagram(udp_pair):
    first, second = udp_pair
    first.sendto(second.local_address(), b"x" * 100)
    with pytest.raises(RuntimeError, match="oversized"):
        second.recv(mtu=10)


def test_udp_payload_too_large(udp_pair):
    first, second = udp_pair
    with pytest.raises(UnixError) as info:
        first.sendto(second.local_address(), b"x" * 70000)
    assert info.value.errno == errno.EMSGSIZE


def test_type_mismatch():
    fd = FileDescriptor(socket.socket(socket.AF_INET, socket.SOCK_STREAM).detach())
    with pytest.raises(RuntimeError, match="socket type mismatch"):
        UDPSocket(fd)


def test_domain_mismatch():
    fd = FileDescriptor(socket.socket(socket.AF_INET, socket.SOCK_STREAM).detach())
    with pytest.raises(RuntimeError, match="socket domain mismatch"):
        LocalStreamSocket(fd)


def test_local_stream_socket_roundtrip():
    a, b = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
    left = LocalStreamSocket(FileDescriptor(a.detach()))
    right = LocalStreamSocket(FileDescriptor(b.detach()))
    try:
        left.write(b"ping")
        assert _read_exactly(right, 4) == b"ping"
        assert left.write_count() == 1
    finally:
        _close_all(left, right)


def test_non_socket_descriptor_rejected():
    read_end, write_end = os.pipe()
    try:
        with pytest.raises(UnixError) as info:
            LocalStreamSocket(FileDescriptor(read_end))
        assert info.value.attempt == "getsockopt"
    finally:
        os.close(write_end)