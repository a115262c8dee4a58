# spongekit

Building blocks for user-space networking programs on Linux. The package has
no third-party dependencies.

## Modules

### `spongekit.util`

- `InternetChecksum(initial_sum=0)`: the ones'-complement Internet checksum.
  You compute it step by step. `add(data)` accepts bytes split at any byte
  boundary. `value()` returns the 16-bit checksum. If the data already holds a
  correct checksum field, `value()` returns 0.
- `system_call(attempt, call, errno_mask=0)`: runs `call()`. If it raises an
  `OSError`, that error becomes a `UnixError` tagged with `attempt`. There is
  one exception: if the errno equals a non-zero `errno_mask`, the function
  returns `None` instead.
- `TaggedError` and `UnixError`: subclasses of `OSError`. Their string form is
  `"<attempt>: <description>"`.
- `timestamp_ms()`: milliseconds on a monotonic clock, counted from when the
  module was loaded.
- `get_random_generator()`: a `random.Random` seeded from `os.urandom`.
- `format_hexdump(data, indent=0)` returns a hex dump as a string, and
  `hexdump(data, indent=0)` prints it to standard output. Each line shows the
  offset, 16 bytes in groups of two, and the printable characters.

### `spongekit.buffer`

- `Buffer`: a read-only byte string. `remove_prefix(n)` drops bytes from the
  front without copying. `peak_out(n)` copies a prefix, and `read_prefix(n)`
  copies a prefix and drops it. `at(n)` returns one byte. `copy()` and
  `bytes(buf)` return the remaining bytes.
- `BufferList`: a byte string made of several `Buffer` pieces, for example
  headers followed by a payload. It supports `append`, `push_back`,
  `remove_prefix`, `peak_out`, `read_prefix` and `concatenate`.
  `to_buffer()` raises `RuntimeError` if the list holds more than one piece.
- `BufferViewList`: a list of `memoryview` slices over bytes, a `Buffer` or a
  `BufferList`. `as_iovecs()` returns the slices, ready for `os.writev` or
  `socket.sendmsg`.

### `spongekit.parser`

- `NetParser(buffer)` reads big-endian integers with `u8()`, `u16()` and
  `u32()`, and skips bytes with `remove_prefix(n)`. When the input runs out,
  it sets `error` to `ParseResult.PacketTooShort`, and from then on every read
  returns 0. `has_error()` reports whether an error has been recorded.
- `ParseResult` is an enum of parse outcomes. `as_string(result)` returns the
  name of one.
- `unparse_u8`, `unparse_u16` and `unparse_u32` encode integers in network
  byte order.

### `spongekit.address`

`Address(ip, port=0)` is built from a numeric IPv4 address, with no name
lookup. There are also three other constructors:

- `Address.resolve(hostname, service)` looks the name up with DNS.
- `Address.from_sockaddr(sockaddr)` accepts a socket-module address.
- `Address.from_ipv4_numeric(n)` accepts a 32-bit integer.

To read an address back, use `ip_port()`, `ip()`, `port()`, `ipv4_numeric()`,
`sockaddr()` or `str(addr)`, which gives `"ip:port"`. A failed lookup raises
`TaggedError`.

### `spongekit.file_descriptor`

`FileDescriptor(fd)` wraps a kernel file descriptor.

- `duplicate()` returns a second handle that shares the same state. The
  descriptor is closed once no handle uses it any longer, or earlier if you
  call `close()` or use the handle as a context manager.
- `read(limit=None)` reads at most 1 MiB per call. An empty read marks EOF.
- `write(data, write_all=True)` writes with `writev`. It accepts bytes, `str`,
  `Buffer`, `BufferList` or `BufferViewList`.
- `set_blocking()` switches blocking mode on or off.
- `eof()`, `closed()`, `read_count()` and `write_count()` report the state
  that the event loop relies on.

### `spongekit.sockets`

- `UDPSocket`: `recv(mtu=65536)` returns a `ReceivedDatagram`, which holds
  `source_address` and `payload`. It raises `RuntimeError` if the datagram is
  larger than `mtu`. `sendto(address, payload)` sends to an address, and
  `send(payload)` sends to the connected peer.
- `TCPSocket`: adds `listen(backlog=16)` and `accept()`.
- `LocalStreamSocket(fd)`: adopts an existing Unix-domain stream socket.

All three share the `Socket` methods `bind`, `connect`, `shutdown`,
`local_address`, `peer_address` and `set_reuseaddr`. If you adopt an existing
descriptor whose domain or type is wrong, the constructor raises
`RuntimeError`.

### `spongekit.tun`

`TunFD(devname)` and `TapFD(devname)` open an existing persistent TUN or TAP
device through `/dev/net/tun`, with no packet information.
`build_ifreq(devname, is_tun)` builds the request structure that is passed to
`ioctl`. You need permission to use the device.

### `spongekit.eventloop`

`EventLoop.add_rule(fd, direction, callback, interest, cancel)` registers a
callback for a descriptor. `direction` is `Direction.IN` or `Direction.OUT`.
The callback runs when the descriptor is ready and `interest()` returns true.

`wait_next_event(timeout_ms)` polls once and returns one of these results:

- `Result.SUCCESS` after it has run the callbacks that were ready.
- `Result.TIMEOUT` if nothing became ready in time.
- `Result.EXIT` if no rule is left to poll, or if `poll` was interrupted.

Rules are cancelled, and their `cancel` callback runs, in three cases: an
input descriptor reaches EOF, a descriptor is closed, or a descriptor only
hangs up. Each callback must read from or write to its descriptor, or its
interest function must stop returning true. If neither happens, the loop
detects a busy wait and raises `RuntimeError`.

## Examples

Computing an Internet checksum:

```python
from spongekit.util import InternetChecksum

cksum = InternetChecksum()
cksum.add(b"\x45\x00\x00\x1c")
print(hex(cksum.value()))
```

Parsing a header:

```python
from spongekit.buffer import Buffer
from spongekit.parser import NetParser, ParseResult, unparse_u16, unparse_u32

parser = NetParser(Buffer(unparse_u16(0x1234) + unparse_u32(7)))
assert parser.u16() == 0x1234
assert parser.u32() == 7
assert parser.u8() == 0            # nothing left to read
assert parser.error is ParseResult.PacketTooShort
```

Addresses:

```python
from spongekit.address import Address

addr = Address("127.0.0.1", 8080)
print(addr)                        # 127.0.0.1:8080
print(addr.ipv4_numeric())         # 2130706433
assert Address.from_ipv4_numeric(addr.ipv4_numeric()).ip() == "127.0.0.1"
```

An event loop around a pipe:

```python
import os
from spongekit.eventloop import Direction, EventLoop, Result
from spongekit.file_descriptor import FileDescriptor

r, w = os.pipe()
reader, writer = FileDescriptor(r), FileDescriptor(w)
received = []

loop = EventLoop()
loop.add_rule(reader, Direction.IN, lambda: received.append(reader.read()))
writer.write(b"hello")
writer.close()
while loop.wait_next_event(100) is not Result.EXIT:
    pass
print(b"".join(received))          # b'hello'
```

## What the package does not do

The package provides only the low-level pieces. It has no TCP implementation
of its own, and no reliable byte stream or segment reassembly. It also has no
Ethernet, ARP or IP packet types beyond the integer parser, and no
command-line programs. Programs that need those must build them on top of
these modules.

## Installation and tests

```
pip install .
pip install ".[test]"
pytest
```