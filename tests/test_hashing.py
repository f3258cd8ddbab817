import pytest

from unitmerge.hashing import GroupKey, MASK64, hash_fields, merge_key, mix64, singleton_key


def test_mix64_zero_is_fixed_point():
    assert mix64(0) == 0


def test_mix64_matches_splitmix64_first_output():
    assert mix64(0x9E3779B97F4A7C15) == 0xE220A8397B1DCDAF


@pytest.mark.parametrize("x", [1, 2, 12345, MASK64, 1 << 63])
def test_mix64_stays_in_64_bits(x):
    assert 0 <= mix64(x) <= MASK64


def test_mix64_truncates_wide_input():
    assert mix64((1 << 64) + 7) == mix64(7)


def test_hash_fields_empty_returns_seed():
    assert hash_fields([], 7) == 7


def test_hash_fields_order_matters():
    a = hash_fields([1, 2], 0x243F6A8885A308D3)
    b = hash_fields([2, 1], 0x243F6A8885A308D3)
    assert a != b
    assert 0 <= a <= MASK64 and 0 <= b <= MASK64


def test_singleton_key_uses_both_seeds():
    key = singleton_key([3, 1])
    assert key.size == 1
    assert key.h1 == hash_fields([3, 1], 0x243F6A8885A308D3)
    assert key.h2 == hash_fields([3, 1], 0x13198A2E03707344)


def test_singleton_key_deterministic_and_hashable():
    assert singleton_key((0, 2, 1)) == singleton_key([0, 2, 1])
    assert len({singleton_key([0, 2, 1]), singleton_key([0, 2, 1])}) == 1


def test_merge_key_commutative_and_sizes_add():
    a = singleton_key([0, 1])
    b = singleton_key([1, 0])
    ab = merge_key(a, b)
    assert ab == merge_key(b, a)
    assert ab.size == a.size + b.size


def test_merge_key_associative():
    a, b, c = singleton_key([1]), singleton_key([2]), singleton_key([3])
    assert merge_key(merge_key(a, b), c) == merge_key(a, merge_key(b, c))


def test_merge_key_wraps():
    merged = merge_key(GroupKey(1, MASK64, MASK64), GroupKey(2, 1, 2))
    assert merged == GroupKey(3, 0, 1)