# kernkit

Building blocks of a small teaching kernel, as plain Python objects: string
helpers, a reduced printf, bitmaps, an ELF header parser and a simple
datagram network stack. It has no dependencies outside the standard library.

## Modules

### `kernkit.libc`

- `kwrite(writer, text)` calls `writer` with each character of `text`,
  stopping at the first NUL.
- `kread(reader, length)` reads characters from `reader` (one per call, `""`
  at end of input) until a newline, returning at most `length - 1` of them.
- `stringcmp(str1, str2)` returns the difference of the first differing
  characters, or 0 if the strings are equal.
- `stringcopy(source, buflen)` returns what of `source` fits in a
  NUL-terminated buffer of `buflen` characters.
- `atoi(text)` parses a leading decimal integer after optional whitespace and
  sign, ignoring whatever follows; overflow wraps in 32 bits.

### `kernkit.xprintf`

- `snprintf(size, fmt, *args)` formats into at most `size` characters,
  terminator included, and returns a `Formatted(text, written)` tuple;
  `written` is -1 when the output was truncated.
- `kprintf(fmt, *args, stream=None)` formats to `stream` (standard output by
  default) and returns the number of characters written. Calls are
  serialised by a lock.

Conversions are `d i o u x X c s p`, with `%%`-style passthrough of any other
character. The `#` flag gives `0x` for `x` and `X`; `0` zero-pads `o u x X p`;
`+` and space apply to `d i`. `-` is accepted and ignored. Field width and
precision apply to `o u x X p`, precision also to `s`; both are capped at 11.
Integers are taken as 32-bit values.

### `kernkit.bitmap`

- `bitmap_sizeof(num_bits)` is the storage in bytes, a multiple of 4.
- `Bitmap(size)` with `get(pos)`, `set(pos, value)` (value 0 or 1) and
  `find_and_set()`, which sets the first zero bit below `size` and returns
  its position, or `None` when none is free.

### `kernkit.elf`

`parse_header(stream)` reads a 32-bit big-endian MIPS ELF executable from a
binary stream and returns an `ElfInfo` with the entry point and the location,
file size, page count and virtual address of its read-only and read-write
loadable segments. Anything else raises `ElfError` (a `ValueError`).

### `kernkit.protocols`

`ProtocolRegistry` maps protocol ids (`PROTOCOL_POP`, `PROTOCOL_SOP`) to frame
handlers: `register(protocol_id, handler, init=None)`,
`get_frame_handler(protocol_id)` and `init_all()`.

### `kernkit.network`

`Network(interfaces, protocols)` works over a list of `NetworkInterface`
objects, each with an `address`, an `mtu` and a `transmit(frame, destination)`
callable that raises `OSError` on failure.

- `send(source, destination, protocol_id, payload)` sends through the
  interface at `source`, or through every interface when `source` is
  `BROADCAST_ADDRESS`; a `LOOPBACK_ADDRESS` destination is delivered locally.
  Failures raise `NetworkError`, whose `code` is `NET_ERROR` or
  `NET_DOESNT_EXIST`.
- `receive_frame(source, destination, protocol_id, payload)` hands a received
  frame to its protocol's handler.
- `get_mtu(local_address)` and `get_source_address(interface)` answer
  interface queries.

### `kernkit.sockets`

`SocketTable(max_sockets)` with `open(protocol, port=0)`, which binds the
lowest free port when `port` is 0, `close(sock)` and `lookup(protocol, port)`.
Errors raise `SocketError`.

### `kernkit.pop`

`PopProtocol(network, sockets, queue_size=16, min_age=1000, clock=None)`
registers itself with the network's protocol registry and provides:

- `sendto(sock, addr, dport, data)`, which sends one packet and returns the
  number of bytes sent;
- `recvfrom(sock, buflength, timeout=None)`, which waits for a packet and
  returns a `Datagram(address, port, data)`, raising `TimeoutError` on
  timeout;
- `push_frame(...)`, the frame handler, which queues incoming packets and
  drops the oldest one only once it is at least `min_age` old;
- `service_once()`, which delivers or discards one queued packet.

`PopHeader` packs and unpacks the 8-byte packet header.

### `kernkit.debug`

`DebugLog(bootargs, stream=None)` prints a message with
`log(level, fmt, *args)` only when `level` is among the boot arguments;
`enabled(level)` tells whether it would.

## Example

```python
from kernkit.xprintf import snprintf
from kernkit.bitmap import Bitmap

print(snprintf(64, "%s has %d items at %p", "pool", 3, 0x1000).text)
# pool has 3 items at 0x1000

bits = Bitmap(40)
first = bits.find_and_set()   # 0
second = bits.find_and_set()  # 1
```

## What it does not do

There is no command to run and nothing talks to real hardware: network
interfaces are whatever `transmit` callables you supply, and received frames
must be passed to `Network.receive_frame` by your own code. `PROTOCOL_SOP`
sockets can be opened, but no stream protocol is provided. `parse_header`
only describes an executable; nothing here loads or runs it.

## Running the tests

```
pip install -e .[test]
pytest
```