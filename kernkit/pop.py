"""POP, the packet oriented protocol: unreliable datagrams between ports."""

from __future__ import annotations

import struct
import threading
import time
from dataclasses import dataclass
from typing import Callable, NamedTuple, Optional

from kernkit.elf import PAGE_SIZE
from kernkit.network import BROADCAST_ADDRESS, Network
from kernkit.protocols import PROTOCOL_POP
from kernkit.sockets import SocketError, SocketTable

__all__ = ["HEADER_SIZE", "PopHeader", "Datagram", "PopProtocol"]

_HEADER = struct.Struct(">HHI")  # source port, destination port, payload size
HEADER_SIZE = _HEADER.size


def _millis() -> int:
    return int(time.monotonic() * 1000)


@dataclass(frozen=True)
class PopHeader:
    """The 8-byte header in front of every POP packet."""

    source_port: int
    dest_port: int
    size: int

    def pack(self) -> bytes:
        """Encode the header in network byte order."""
        return _HEADER.pack(self.source_port, self.dest_port, self.size)

    @classmethod
    def unpack(cls, data: bytes) -> "PopHeader":
        """Decode the header at the start of ``data``."""
        if len(data) < HEADER_SIZE:
            raise ValueError(f"POP header needs {HEADER_SIZE} bytes, got {len(data)}")
        return cls(*_HEADER.unpack_from(data))


class Datagram(NamedTuple):
    """A received packet: sender address, sender port and payload."""

    address: int
    port: int
    data: bytes


@dataclass
class _Receive:
    bufsize: int
    result: Optional[Datagram] = None


@dataclass
class _QueueEntry:
    frame: Optional[bytes] = None
    socket: Optional[int] = None
    timestamp: int = 0
    sender: int = 0
    busy: bool = False

    def clear(self) -> None:
        self.frame = None
        self.socket = None
        self.timestamp = 0
        self.sender = 0
        self.busy = False


class PopProtocol:
    """Queues incoming POP packets and hands them to sockets that wait for them.

    Incoming frames are kept in a queue of ``queue_size`` slots. When the
    queue is full, the oldest frame is dropped in favour of a new one, but
    only if it has waited at least ``min_age`` clock units; otherwise the new
    frame is refused. ``clock`` returns the current time, in milliseconds by
    default.
    """

    def __init__(
        self,
        network: Network,
        sockets: SocketTable,
        queue_size: int = 16,
        min_age: int = 1000,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        if queue_size < 1:
            raise ValueError("POP queue needs at least one slot")
        self.network = network
        self.sockets = sockets
        self.min_age = min_age
        self.clock = clock if clock is not None else _millis
        self._queue = [_QueueEntry() for _ in range(queue_size)]
        self._queue_lock = threading.Lock()
        self._send_lock = threading.Lock()
        if PROTOCOL_POP not in network.protocols:
            network.protocols.register(PROTOCOL_POP, self.push_frame)

    def __len__(self) -> int:
        """Number of frames waiting in the queue."""
        with self._queue_lock:
            return sum(entry.frame is not None for entry in self._queue)

    def push_frame(self, fromaddr: int, toaddr: int, protocol_id: int, frame: bytes) -> bool:
        """Put a received frame into the queue; False if it was dropped."""
        if protocol_id != PROTOCOL_POP:
            raise ValueError(f"frame of protocol {protocol_id} handed to POP")
        frame = bytes(frame)
        if len(frame) < HEADER_SIZE:
            return False

        with self._queue_lock:
            free = next((e for e in self._queue if e.frame is None), None)
            if free is None:
                candidates = [e for e in self._queue if not e.busy]
                oldest = min(candidates, key=lambda e: e.timestamp, default=None)
                if oldest is None or self.clock() - oldest.timestamp < self.min_age:
                    return False
                free = oldest
            free.frame = frame
            free.socket = None
            free.timestamp = self.clock()
            free.sender = fromaddr
            free.busy = False

        self._drain()
        return True

    def sendto(self, sock: int, addr: int, dport: int, data: bytes) -> int:
        """Send ``data`` from ``sock`` to port ``dport`` at ``addr``.

        At most one packet is sent, so the number of bytes sent, which is
        returned, may be less than ``len(data)``.
        """
        if dport == 0:
            raise SocketError("port 0 cannot be used for communication")
        data = bytes(data)
        if not data:
            raise ValueError("nothing to send")

        size = min(
            len(data),
            self.network.get_mtu(BROADCAST_ADDRESS) - HEADER_SIZE,
            PAGE_SIZE - HEADER_SIZE,
        )
        if size < 1:
            raise SocketError("network MTU too small for a POP packet")

        with self.sockets.lock:
            slot = self.sockets[sock]
            if slot.protocol != PROTOCOL_POP:
                raise SocketError(f"socket {sock} is not a POP socket")
            sport = slot.port

        packet = PopHeader(sport, dport, size).pack() + data[:size]
        with self._send_lock:
            self.network.send(BROADCAST_ADDRESS, addr, PROTOCOL_POP, packet)
        return size

    def recvfrom(self, sock: int, buflength: int, timeout: Optional[float] = None) -> Datagram:
        """Wait for a packet to ``sock`` and return at most ``buflength`` bytes of it.

        Raises TimeoutError if nothing arrives within ``timeout`` seconds.
        Only one receive may be pending on a socket at a time.
        """
        if buflength < 1:
            raise ValueError("receive buffer length must be at least 1")
        request = _Receive(buflength)
        with self.sockets.lock:
            slot = self.sockets[sock]
            if slot.protocol != PROTOCOL_POP:
                raise SocketError(f"socket {sock} is not a POP socket")
            if slot.receive_request is not None:
                raise SocketError(f"a receive is already pending on socket {sock}")
            slot.receive_request = request
            done = slot.receive_complete
        assert done is not None

        # Frames may have arrived before the call.
        self._drain()

        if not done.acquire(timeout=timeout):
            with self.sockets.lock:
                if slot.receive_request is request:
                    slot.receive_request = None
                    raise TimeoutError(f"no packet arrived on socket {sock}")
            if not done.acquire(blocking=False):
                raise SocketError(f"socket {sock} was closed while receiving")
        if request.result is None:
            raise SocketError(f"socket {sock} was closed while receiving")
        return request.result

    def service_once(self) -> bool:
        """Deliver or discard one queued frame; False if there was nothing to do."""
        with self.sockets.lock, self._queue_lock:
            for entry in self._queue:
                if entry.frame is None:
                    continue
                header = PopHeader.unpack(entry.frame)
                if entry.socket is None:
                    entry.socket = self.sockets.lookup(PROTOCOL_POP, header.dest_port)

                # Nobody listens on the port, or the socket has been closed.
                if entry.socket is None or self.sockets[entry.socket].protocol != PROTOCOL_POP:
                    entry.clear()
                    return True

                slot = self.sockets[entry.socket]
                request = slot.receive_request
                if isinstance(request, _Receive):
                    entry.busy = True
                    payload = entry.frame[HEADER_SIZE:HEADER_SIZE + header.size]
                    request.result = Datagram(
                        entry.sender, header.source_port, payload[: request.bufsize]
                    )
                    slot.receive_request = None
                    if slot.receive_complete is not None:
                        slot.receive_complete.release()
                    entry.clear()
                    return True
        return False

    def _drain(self) -> None:
        while self.service_once():
            pass