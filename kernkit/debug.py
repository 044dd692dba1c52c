"""Debug messages printed only when their level is given as a boot argument."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable, Optional, TextIO, Union

from kernkit.xprintf import kprintf

__all__ = ["DebugLog"]


class DebugLog:
    """Prints formatted messages whose level name is among the boot arguments."""

    def __init__(
        self,
        bootargs: Union[Mapping[str, Any], Iterable[str]],
        stream: Optional[TextIO] = None,
    ) -> None:
        if isinstance(bootargs, str):
            bootargs = [bootargs]
        self.bootargs = bootargs if isinstance(bootargs, Mapping) else frozenset(bootargs)
        self.stream = stream

    def enabled(self, level: str) -> bool:
        """Tell whether messages of ``level`` are printed."""
        return level in self.bootargs

    def __call__(self, level: str, fmt: str, *args: Any) -> Optional[int]:
        """Print ``fmt % args`` if ``level`` is enabled; return the count written, or None."""
        if not self.enabled(level):
            return None
        return kprintf(fmt, *args, stream=self.stream)