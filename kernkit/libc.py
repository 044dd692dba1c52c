"""Small string and console helpers used throughout the kernel toolkit."""

from __future__ import annotations

from itertools import zip_longest
from typing import Callable

__all__ = ["kwrite", "kread", "stringcmp", "stringcopy", "atoi"]

_WHITESPACE = " \t\r\n"


def _until_nul(text: str) -> str:
    """Return the part of ``text`` before the first NUL character."""
    return text.split("\0", 1)[0]


def _wrap_int32(value: int) -> int:
    """Wrap ``value`` into the signed 32-bit range."""
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value >= 0x80000000 else value


def kwrite(writer: Callable[[str], object], text: str) -> None:
    """Send ``text`` one character at a time to ``writer``, stopping at NUL."""
    for ch in _until_nul(text):
        writer(ch)


def kread(reader: Callable[[], str], length: int) -> str:
    """Read a line of at most ``length - 1`` characters from ``reader``.

    ``reader`` returns one character per call, or an empty string at end of
    input. Reading stops at a newline, which is consumed but not returned.
    When the limit is reached, one further character is consumed and dropped.
    """
    if length < 1:
        raise ValueError("buffer length must be at least 1")
    chars: list[str] = []
    while True:
        ch = reader()
        if ch == "" or ch == "\n" or len(chars) >= length - 1:
            break
        chars.append(ch)
    return "".join(chars)


def stringcmp(str1: str, str2: str) -> int:
    """Compare two strings, returning the difference of the first differing characters."""
    for a, b in zip_longest(_until_nul(str1), _until_nul(str2), fillvalue="\0"):
        if a != b:
            return ord(a) - ord(b)
    return 0


def stringcopy(source: str, buflen: int) -> str:
    """Return what fits of ``source`` in a NUL-terminated buffer of ``buflen`` characters."""
    if buflen < 1:
        raise ValueError("buffer length must be at least 1")
    return _until_nul(source)[: buflen - 1]


def atoi(text: str) -> int:
    """Convert the leading decimal integer of ``text``; 32-bit overflow wraps."""
    stripped = text.lstrip(_WHITESPACE)
    if not stripped or stripped[0] == "\0":
        return 0
    sign = 1
    if stripped[0] in "+-":
        if stripped[0] == "-":
            sign = -1
        stripped = stripped[1:]
    value = 0
    for ch in stripped:
        if not "0" <= ch <= "9":
            break
        value = _wrap_int32(10 * value + sign * (ord(ch) - ord("0")))
    return value