"""IPv4 socket addresses and name resolution."""

from __future__ import annotations

import socket
from typing import Union

from spongekit.util import TaggedError

SockAddr = Union[tuple, str, bytes]

_NUMERIC_LOOKUP = socket.AI_NUMERICHOST | socket.AI_NUMERICSERV
_NUMERIC_NAMEINFO = socket.NI_NUMERICHOST | socket.NI_NUMERICSERV


def _getaddrinfo(node: str, service: str, flags: int) -> tuple[int, SockAddr]:
    try:
        results = socket.getaddrinfo(node, service, socket.AF_INET, 0, 0, flags)
    except socket.gaierror as exc:
        raise TaggedError(f"getaddrinfo({node}, {service})", exc.errno or 0, exc.strerror) from exc
    if not results:
        raise RuntimeError("getaddrinfo returned successfully but with no results")
    family, _type, _proto, _canonname, sockaddr = results[0]
    return family, sockaddr


def _check_port(port: int) -> int:
    port = int(port)
    if not 0 <= port <= 0xFFFF:
        raise ValueError(f"port {port} out of range")
    return port


class Address:
    """An IPv4 (or other family) socket address, with DNS helpers."""

    __slots__ = ("_family", "_sockaddr")

    def __init__(self, ip: str, port: int = 0) -> None:
        """Build from a dotted-quad string and a numeric port, without resolving names."""
        self._family, self._sockaddr = _getaddrinfo(ip, str(_check_port(port)), _NUMERIC_LOOKUP)

    @classmethod
    def _build(cls, family: int, sockaddr: SockAddr) -> Address:
        address = cls.__new__(cls)
        address._family = family
        address._sockaddr = sockaddr
        return address

    @classmethod
    def resolve(cls, hostname: str, service: str) -> Address:
        """Resolve a hostname and a service name (e.g. "http") to an IPv4 address."""
        family, sockaddr = _getaddrinfo(hostname, service, socket.AI_ALL)
        return cls._build(family, sockaddr)

    @classmethod
    def from_sockaddr(cls, sockaddr: SockAddr) -> Address:
        """Build from a socket-module address: (host, port), an IPv6 4-tuple or a Unix path."""
        if isinstance(sockaddr, (str, bytes)):
            return cls._build(socket.AF_UNIX, sockaddr)
        if not isinstance(sockaddr, tuple):
            raise TypeError(f"unsupported sockaddr: {sockaddr!r}")
        if len(sockaddr) == 2:
            host, port = sockaddr
            try:
                socket.inet_pton(socket.AF_INET, host)
            except (OSError, TypeError) as exc:
                raise ValueError(f"invalid IPv4 sockaddr: {sockaddr!r}") from exc
            return cls._build(socket.AF_INET, (host, _check_port(port)))
        if len(sockaddr) == 4:
            host, port, flowinfo, scope_id = sockaddr
            return cls._build(socket.AF_INET6, (host, _check_port(port), flowinfo, scope_id))
        raise TypeError(f"unsupported sockaddr: {sockaddr!r}")

    @classmethod
    def from_ipv4_numeric(cls, ip_address: int) -> Address:
        """Build from a 32-bit numeric IPv4 address (port 0)."""
        if not 0 <= ip_address <= 0xFFFFFFFF:
            raise ValueError(f"IPv4 address {ip_address} out of range")
        return cls._build(socket.AF_INET, (socket.inet_ntoa(ip_address.to_bytes(4, "big")), 0))

    @property
    def family(self) -> int:
        """The address family, e.g. socket.AF_INET."""
        return self._family

    def ip_port(self) -> tuple[str, int]:
        """The numeric host string and the port."""
        if not isinstance(self._sockaddr, tuple):
            raise TaggedError("getnameinfo", socket.EAI_FAMILY, "ai_family not supported")
        try:
            host, service = socket.getnameinfo(self._sockaddr, _NUMERIC_NAMEINFO)
        except socket.gaierror as exc:
            raise TaggedError("getnameinfo", exc.errno or 0, exc.strerror) from exc
        return host, int(service)

    def ip(self) -> str:
        """The numeric host string, e.g. "18.243.0.1"."""
        return self.ip_port()[0]

    def port(self) -> int:
        """The port number."""
        return self.ip_port()[1]

    def ipv4_numeric(self) -> int:
        """The IPv4 address as a 32-bit integer."""
        if self._family != socket.AF_INET or not isinstance(self._sockaddr, tuple):
            raise RuntimeError("ipv4_numeric called on non-IPV4 address")
        return int.from_bytes(socket.inet_aton(self._sockaddr[0]), "big")

    def sockaddr(self) -> SockAddr:
        """The address in the form the socket module accepts."""
        return self._sockaddr

    def __str__(self) -> str:
        host, port = self.ip_port()
        return f"{host}:{port}"

    def __repr__(self) -> str:
        return f"Address.from_sockaddr({self._sockaddr!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return self._family == other._family and self._sockaddr == other._sockaddr

    def __hash__(self) -> int:
        return hash((int(self._family), self._sockaddr))