"""File descriptors for existing Linux TUN and TAP devices."""

from __future__ import annotations

import fcntl
import os
import struct

from spongekit.file_descriptor import FileDescriptor
from spongekit.util import system_call

CLONEDEV = "/dev/net/tun"
IFNAMSIZ = 16
IFF_TUN = 0x0001
IFF_TAP = 0x0002
IFF_NO_PI = 0x1000
TUNSETIFF = 0x400454CA

_IFREQ = struct.Struct("@16sH22x")
IFREQ_SIZE = _IFREQ.size


def build_ifreq(devname: str, is_tun: bool) -> bytes:
    """A ``struct ifreq`` naming ``devname`` with TUN or TAP flags and no packet info."""
    name = os.fsencode(devname).split(b"\0", 1)[0][: IFNAMSIZ - 1]
    flags = (IFF_TUN if is_tun else IFF_TAP) | IFF_NO_PI
    return _IFREQ.pack(name, flags)


class TunTapFD(FileDescriptor):
    """A descriptor attached to an existing persistent TUN or TAP device."""

    def __init__(self, devname: str, is_tun: bool) -> None:
        super().__init__(system_call("open", lambda: os.open(CLONEDEV, os.O_RDWR)))
        request = build_ifreq(devname, is_tun)
        system_call("ioctl", lambda: fcntl.ioctl(self.fd_num(), TUNSETIFF, request))


class TunFD(TunTapFD):
    """A descriptor for a TUN device (carries IP datagrams)."""

    def __init__(self, devname: str) -> None:
        super().__init__(devname, True)


class TapFD(TunTapFD):
    """A descriptor for a TAP device (carries Ethernet frames)."""

    def __init__(self, devname: str) -> None:
        super().__init__(devname, False)