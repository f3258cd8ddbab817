"""Order-independent group signatures built from 64-bit mixing hashes."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

MASK64 = (1 << 64) - 1
_GOLDEN = 0x9E3779B97F4A7C15
_SEED_1 = 0x243F6A8885A308D3
_SEED_2 = 0x13198A2E03707344


@dataclass(frozen=True)
class GroupKey:
    """Signature of a group: its size plus two additive hashes."""

    size: int
    h1: int
    h2: int


def mix64(x: int) -> int:
    """Scramble a 64-bit value with the splitmix64 finaliser."""
    x &= MASK64
    x ^= x >> 30
    x = (x * 0xBF58476D1CE4E5B9) & MASK64
    x ^= x >> 27
    x = (x * 0x94D049BB133111EB) & MASK64
    return x ^ (x >> 31)


def hash_fields(fields: Iterable[int], seed: int) -> int:
    """Fold a sequence of integers into one 64-bit hash."""
    h = seed & MASK64
    for value in fields:
        h = mix64(h ^ ((value + _GOLDEN) & MASK64))
    return h


def singleton_key(fields: Iterable[int]) -> GroupKey:
    """Return the key of a one-member group described by ``fields``."""
    fields = tuple(fields)
    return GroupKey(1, hash_fields(fields, _SEED_1), hash_fields(fields, _SEED_2))


def merge_key(a: GroupKey, b: GroupKey) -> GroupKey:
    """Combine two keys; the result does not depend on the order."""
    return GroupKey(a.size + b.size, (a.h1 + b.h1) & MASK64, (a.h2 + b.h2) & MASK64)