"""Buffers, packet parsing, checksums, addresses, descriptors, sockets, TUN/TAP and an event loop."""

__version__ = "0.1.0"

__all__ = [
    "address",
    "buffer",
    "eventloop",
    "file_descriptor",
    "parser",
    "sockets",
    "tun",
    "util",
]