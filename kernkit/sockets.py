"""The open socket table shared by the network protocols."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

from kernkit.protocols import PROTOCOL_POP, PROTOCOL_SOP

__all__ = ["SocketError", "SocketDescriptor", "SocketTable", "MAX_PORT"]

MAX_PORT = 0xFFFF
_SUPPORTED_PROTOCOLS = (PROTOCOL_POP, PROTOCOL_SOP)


class SocketError(Exception):
    """A socket could not be opened or used."""


@dataclass
class SocketDescriptor:
    """One slot of the socket table.

    A slot is free while ``protocol`` is 0. ``receive_complete`` is released
    by a protocol when a pending receive on this socket has been served;
    ``receive_request`` holds whatever the protocol needs to serve it.
    """

    port: int = 0
    protocol: int = 0
    receive_complete: Optional[threading.Semaphore] = None
    receive_request: Any = field(default=None)

    @property
    def is_open(self) -> bool:
        return self.protocol != 0

    def _reset(self) -> None:
        self.port = 0
        self.protocol = 0
        self.receive_complete = None
        self.receive_request = None


class SocketTable:
    """A fixed number of socket slots; a socket is the index of its slot."""

    def __init__(self, max_sockets: int) -> None:
        if max_sockets < 1:
            raise ValueError("socket table needs at least one slot")
        self.lock = threading.RLock()
        self._slots = [SocketDescriptor() for _ in range(max_sockets)]

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[SocketDescriptor]:
        return iter(self._slots)

    def __getitem__(self, sock: int) -> SocketDescriptor:
        self._check(sock)
        return self._slots[sock]

    def _check(self, sock: int) -> None:
        if not 0 <= sock < len(self._slots):
            raise IndexError(f"socket {sock} outside the socket table")

    def _port_in_use(self, port: int) -> bool:
        return any(s.is_open and s.port == port for s in self._slots)

    def lookup(self, protocol: int, port: int) -> Optional[int]:
        """Return the open socket of ``protocol`` bound to ``port``, or None."""
        with self.lock:
            return next(
                (
                    index
                    for index, slot in enumerate(self._slots)
                    if slot.protocol == protocol and slot.port == port
                ),
                None,
            )

    def open(self, protocol: int, port: int = 0) -> int:
        """Open a socket of ``protocol`` bound to ``port`` and return it.

        When ``port`` is 0 the socket is bound to the lowest unused number.
        """
        if protocol not in _SUPPORTED_PROTOCOLS:
            raise SocketError(f"unsupported protocol {protocol}")
        if not 0 <= port <= MAX_PORT:
            raise SocketError(f"port {port} out of range")

        with self.lock:
            sock = next(
                (i for i, slot in enumerate(self._slots) if not slot.is_open), None
            )
            if sock is None:
                raise SocketError("socket table full")

            if port == 0:
                port = next(
                    (p for p in range(1, MAX_PORT + 1) if not self._port_in_use(p)),
                    None,
                )
                if port is None:
                    raise SocketError("no free port")
            elif self._port_in_use(port):
                raise SocketError(f"port {port} already in use")

            slot = self._slots[sock]
            slot.port = port
            slot.protocol = protocol
            slot.receive_complete = threading.Semaphore(0)
            slot.receive_request = None
            return sock

    def close(self, sock: int) -> None:
        """Close ``sock``; closing a socket that is not open does nothing."""
        self._check(sock)
        with self.lock:
            slot = self._slots[sock]
            if slot.receive_complete is not None:
                slot._reset()