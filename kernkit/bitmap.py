"""Fixed-size bitmaps stored in 32-bit words."""

from __future__ import annotations

__all__ = ["bitmap_sizeof", "Bitmap"]

_WORD_BITS = 32


def bitmap_sizeof(num_bits: int) -> int:
    """Return the bytes needed to hold ``num_bits`` bits, a multiple of 4."""
    return ((num_bits + _WORD_BITS - 1) // _WORD_BITS) * 4


class Bitmap:
    """A bitmap of ``size`` bits, all initially zero.

    Storage is rounded up to whole 32-bit words, so bits past ``size`` in
    the last word can be read and written, but are never handed out by
    :meth:`find_and_set`.
    """

    def __init__(self, size: int) -> None:
        if size < 0:
            raise ValueError("bitmap size must not be negative")
        self.size = size
        self._capacity = bitmap_sizeof(size) * 8
        self._bits = 0

    def __len__(self) -> int:
        return self.size

    def _check(self, pos: int) -> None:
        if pos < 0:
            raise ValueError("bit position must not be negative")
        if pos >= self._capacity:
            raise IndexError(f"bit position {pos} outside the bitmap")

    def get(self, pos: int) -> int:
        """Return the bit at ``pos`` as 0 or 1."""
        self._check(pos)
        return (self._bits >> pos) & 1

    def set(self, pos: int, value: int) -> None:
        """Set the bit at ``pos`` to ``value``, which must be 0 or 1."""
        self._check(pos)
        if value == 0:
            self._bits &= ~(1 << pos)
        elif value == 1:
            self._bits |= 1 << pos
        else:
            raise ValueError("bit value other than 0 or 1")

    def find_and_set(self) -> int | None:
        """Set the first zero bit and return its position, or None if there is none."""
        mask = (1 << self._capacity) - 1
        free = ~self._bits & mask
        if not free:
            return None
        pos = (free & -free).bit_length() - 1
        if pos >= self.size:
            return None
        self._bits |= 1 << pos
        return pos