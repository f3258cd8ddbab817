"""Switch sets stored as Python integers used as bitmasks."""

from __future__ import annotations

from collections.abc import Iterator


def iter_bits(mask: int) -> Iterator[int]:
    """Yield the indices of the set bits of ``mask`` in ascending order."""
    if mask < 0:
        raise ValueError("bit masks must be non-negative")
    while mask:
        low = mask & -mask
        yield low.bit_length() - 1
        mask ^= low


def popcount(mask: int) -> int:
    """Return the number of set bits in ``mask``."""
    if mask < 0:
        raise ValueError("bit masks must be non-negative")
    return mask.bit_count()