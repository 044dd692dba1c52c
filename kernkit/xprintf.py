"""Scaled-down printf-style formatting to strings and to a console stream."""

from __future__ import annotations

import enum
import sys
import threading
from typing import Any, Iterator, NamedTuple, TextIO

__all__ = ["Formatted", "snprintf", "kprintf"]

_DIGITS = "0123456789ABCDEF0123456789abcdef"
_MAX_FIELD = 11
_CONSOLE_LIMIT = 0x7FFFFFFF
_console_lock = threading.Lock()


class _Flag(enum.IntFlag):
    NONE = 0
    SMALLS = 0x01
    ALT = 0x02
    ZEROPAD = 0x04
    LEFT = 0x08
    SPACE = 0x10
    SIGN = 0x20


class Formatted(NamedTuple):
    """Result of :func:`snprintf`: the text and the count written, or -1 if truncated."""

    text: str
    written: int


def _to_uint32(value: Any) -> int:
    if not isinstance(value, int):
        raise TypeError(f"integer argument expected, got {type(value).__name__}")
    return value & 0xFFFFFFFF


def _to_int32(value: Any) -> int:
    value = _to_uint32(value)
    return value - 0x100000000 if value >= 0x80000000 else value


def _scan_int(fmt: str, pos: int) -> tuple[int, int]:
    """Scan digits at ``pos``; only the digits 1 to 8 are accepted."""
    value = 0
    while pos < len(fmt) and "0" < fmt[pos] < "9":
        value = 10 * value + int(fmt[pos])
        pos += 1
    return value, pos


def _uint_text(n: int, base: int, flags: _Flag, prec: int, width: int) -> str:
    offset = 16 if flags & _Flag.SMALLS else 0
    rev: list[str] = []
    while True:
        rev.append(_DIGITS[offset + n % base])
        n //= base
        if n == 0:
            break
    prec = min(prec, _MAX_FIELD)
    width = min(width, _MAX_FIELD)
    rev.extend("0" * (prec - len(rev)))
    rev.extend(" " * (width - len(rev)))
    return "".join(reversed(rev))


def _put(out: list[str], text: str, size: int) -> None:
    room = size - len(out)
    if room > 0:
        out.extend(text[:room])


def _take(values: Iterator[Any]) -> Any:
    try:
        return next(values)
    except StopIteration:
        raise TypeError("not enough arguments for format string") from None


def _render(fmt: str, args: tuple[Any, ...], size: int) -> tuple[str, int]:
    """Format ``fmt`` into at most ``size`` characters, terminator included."""
    if size <= 0:
        return "", 0
    fmt = fmt.split("\0", 1)[0]
    end = len(fmt)
    values = iter(args)
    out: list[str] = []
    pos = 0

    while len(out) < size:
        if pos >= end:
            break
        ch = fmt[pos]
        pos += 1
        if ch != "%":
            out.append(ch)
            continue
        if pos >= end:
            break
        ch = fmt[pos]
        pos += 1

        flags = _Flag.NONE
        width = prec = -1
        while True:
            if ch == "#":
                flags |= _Flag.ALT
            elif ch == "0":
                flags |= _Flag.ZEROPAD
            elif ch == " ":
                flags |= _Flag.SPACE
            elif ch == "+":
                flags |= _Flag.SIGN
            elif ch == "-":
                flags |= _Flag.LEFT
            elif ch == ".":
                prec, pos = _scan_int(fmt, pos)
            elif ch in "123456789":
                width, scanned = _scan_int(fmt, pos - 1)
                if scanned == pos - 1:
                    raise ValueError(f"unsupported field width in format {fmt!r}")
                pos = scanned
            else:
                break
            if pos >= end:
                ch = ""
                break
            ch = fmt[pos]
            pos += 1
        if not ch:
            break

        if ch in "di":
            value = _to_int32(_take(values))
            if value < 0:
                out.append("-")
                value = -value
            if flags & _Flag.SIGN:
                out.append("+")
            elif flags & _Flag.SPACE:
                out.append(" ")
            _put(out, _uint_text(value, 10, flags, 0, 0), size)
        elif ch in "ou":
            if prec < width and flags & _Flag.ZEROPAD:
                prec = width
            value = _to_uint32(_take(values))
            _put(out, _uint_text(value, 8 if ch == "o" else 10, flags, prec, width), size)
        elif ch in "pxX":
            if ch == "p":
                flags |= _Flag.ALT
            if ch in "px":
                flags |= _Flag.SMALLS
            if flags & _Flag.ALT:
                out.append("0")
                if len(out) < size:
                    out.append("x")
                width -= 2
            if prec < width and flags & _Flag.ZEROPAD:
                prec = width
            value = _to_uint32(_take(values))
            _put(out, _uint_text(value, 16, flags, prec, width), size)
        elif ch == "c":
            arg = _take(values)
            code = ord(arg) if isinstance(arg, str) else _to_uint32(arg)
            out.append(chr(code & 0xFF))
        elif ch == "s":
            text = _take(values)
            if not isinstance(text, str):
                raise TypeError(f"str argument expected, got {type(text).__name__}")
            limit = size
            if prec != -1 and len(out) + prec < size:
                limit = len(out) + prec
            _put(out, text.split("\0", 1)[0], limit)
        else:
            out.append(ch)

    written = len(out)
    if written >= size:
        del out[size - 1:]
        written = -1
    return "".join(out), written


def snprintf(size: int, fmt: str, *args: Any) -> Formatted:
    """Format into a buffer of ``size`` characters including the terminator."""
    text, written = _render(fmt, args, size)
    return Formatted(text, written)


def kprintf(fmt: str, *args: Any, stream: TextIO | None = None) -> int:
    """Format to ``stream`` (standard output by default); NULs are not printed."""
    target = sys.stdout if stream is None else stream
    with _console_lock:
        text, written = _render(fmt, args, _CONSOLE_LIMIT)
        target.write(text.replace("\0", ""))
    return written