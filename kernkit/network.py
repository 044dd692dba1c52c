"""Frame layer: sends frames through network interfaces and hands received
frames to the protocol that owns them."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Callable, Iterable

from kernkit.elf import PAGE_SIZE
from kernkit.protocols import ProtocolRegistry

__all__ = [
    "BROADCAST_ADDRESS",
    "LOOPBACK_ADDRESS",
    "MAX_MTU",
    "FRAME_HEADER_SIZE",
    "NET_ERROR",
    "NET_DOESNT_EXIST",
    "NetworkInterface",
    "NetworkError",
    "Network",
]

BROADCAST_ADDRESS = 0xFFFFFFFF
LOOPBACK_ADDRESS = 0x00000000
MAX_MTU = 4096

NET_ERROR = -1
NET_DOESNT_EXIST = -2

_HEADER = struct.Struct(">III")  # destination, source, protocol id
FRAME_HEADER_SIZE = _HEADER.size
_MAX_PAYLOAD = PAGE_SIZE - FRAME_HEADER_SIZE


class NetworkError(Exception):
    """A frame could not be delivered; ``code`` is NET_ERROR or NET_DOESNT_EXIST."""

    def __init__(self, message: str, code: int = NET_ERROR) -> None:
        super().__init__(message)
        self.code = code


@dataclass
class NetworkInterface:
    """A network device: its address, frame size and a transmit function.

    ``transmit(frame, destination)`` sends a whole frame, header included,
    and raises OSError on failure.
    """

    address: int
    mtu: int
    transmit: Callable[[bytes, int], object]


def _encode_frame(source: int, destination: int, protocol_id: int, payload: bytes) -> bytes:
    return _HEADER.pack(destination, source, protocol_id) + payload


class Network:
    """The set of network interfaces and the protocols frames are handed to."""

    def __init__(
        self,
        interfaces: Iterable[NetworkInterface],
        protocols: ProtocolRegistry,
    ) -> None:
        self.interfaces = list(interfaces)
        for nic in self.interfaces:
            # A frame must fit into one page.
            if nic.mtu > PAGE_SIZE:
                raise ValueError(
                    f"interface {nic.address:#010x} has MTU {nic.mtu} above page size"
                )
        self.protocols = protocols

    def receive_frame(
        self, source: int, destination: int, protocol_id: int, payload: bytes
    ) -> bool:
        """Pass a received frame to its protocol; False if nobody accepted it."""
        handler = self.protocols.get_frame_handler(protocol_id)
        if handler is None:
            return False
        return bool(handler(source, destination, protocol_id, bytes(payload)))

    def _receive_raw(self, frame: bytes) -> bool:
        if len(frame) < FRAME_HEADER_SIZE:
            return False
        destination, source, protocol_id = _HEADER.unpack_from(frame)
        return self.receive_frame(source, destination, protocol_id, frame[FRAME_HEADER_SIZE:])

    def get_source_address(self, interface: int) -> int:
        """Return the address of interface number ``interface``, or 0 if there is none."""
        if 0 <= interface < len(self.interfaces):
            return self.interfaces[interface].address
        return 0

    def get_mtu(self, local_address: int) -> int:
        """Return the payload size the given interface can carry, or 0 if unknown.

        For the broadcast address the smallest over all interfaces is returned.
        """
        if local_address == BROADCAST_ADDRESS:
            smallest = min((nic.mtu for nic in self.interfaces), default=MAX_MTU + 1)
            return smallest - FRAME_HEADER_SIZE
        if local_address == LOOPBACK_ADDRESS:
            return _MAX_PAYLOAD
        for nic in self.interfaces:
            if nic.address == local_address:
                return nic.mtu - FRAME_HEADER_SIZE
        return 0

    def _interface_by_address(self, address: int) -> NetworkInterface | None:
        return next((nic for nic in self.interfaces if nic.address == address), None)

    @staticmethod
    def _transmit(nic: NetworkInterface, destination: int, frame: bytes) -> bool:
        try:
            nic.transmit(frame, destination)
        except OSError:
            return False
        return True

    def send(self, source: int, destination: int, protocol_id: int, payload: bytes) -> None:
        """Send ``payload`` from ``source`` to ``destination``.

        A broadcast source sends through every interface; a loopback
        destination hands the frame straight to the local protocol.
        """
        payload = bytes(payload)
        if not 0 < len(payload) <= _MAX_PAYLOAD:
            raise ValueError(f"payload must be 1 to {_MAX_PAYLOAD} bytes")

        if destination == LOOPBACK_ADDRESS:
            if source == BROADCAST_ADDRESS:
                source = LOOPBACK_ADDRESS
            if not self.receive_frame(source, destination, protocol_id, payload):
                raise NetworkError("loopback frame was not accepted", NET_ERROR)
            return

        frame = _encode_frame(source, destination, protocol_id, payload)

        if source != BROADCAST_ADDRESS:
            nic = self._interface_by_address(source)
            if nic is None:
                raise NetworkError(f"no interface at address {source:#010x}", NET_DOESNT_EXIST)
            if not self._transmit(nic, destination, frame):
                raise NetworkError("sending the frame failed", NET_ERROR)
            return

        results = [self._transmit(nic, destination, frame) for nic in self.interfaces]
        if not all(results):
            raise NetworkError("sending the frame failed on some interface", NET_ERROR)