"""Registry of the network protocols that sit above the frame layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

__all__ = [
    "PROTOCOL_POP",
    "PROTOCOL_SOP",
    "FrameHandler",
    "ProtocolRegistry",
]

PROTOCOL_POP = 1
PROTOCOL_SOP = 2

FrameHandler = Callable[[int, int, int, bytes], object]
"""Called as ``handler(source, destination, protocol_id, payload)``; a false
result means the frame was not accepted."""


@dataclass(frozen=True)
class _Entry:
    protocol_id: int
    handler: FrameHandler
    init: Optional[Callable[[], object]]


class ProtocolRegistry:
    """Maps protocol ids to their frame handlers and start-up functions."""

    def __init__(self) -> None:
        self._entries: dict[int, _Entry] = {}

    def __contains__(self, protocol_id: object) -> bool:
        return protocol_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def register(
        self,
        protocol_id: int,
        handler: FrameHandler,
        init: Optional[Callable[[], object]] = None,
    ) -> None:
        """Add a protocol with its frame handler and optional initializer."""
        if not callable(handler):
            raise TypeError("frame handler must be callable")
        if init is not None and not callable(init):
            raise TypeError("protocol initializer must be callable")
        if protocol_id in self._entries:
            raise ValueError(f"protocol {protocol_id} is already registered")
        self._entries[protocol_id] = _Entry(protocol_id, handler, init)

    def get_frame_handler(self, protocol_id: int) -> Optional[FrameHandler]:
        """Return the frame handler for ``protocol_id``, or None if unknown."""
        entry = self._entries.get(protocol_id)
        return entry.handler if entry is not None else None

    def init_all(self) -> None:
        """Run the initializer of every registered protocol, in registration order."""
        for entry in self._entries.values():
            if entry.init is not None:
                entry.init()