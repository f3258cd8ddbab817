import pytest

from unitmerge.bitset import iter_bits, popcount


def test_iter_bits_small_mask():
    assert list(iter_bits(0b1011)) == [0, 1, 3]


def test_iter_bits_empty():
    assert list(iter_bits(0)) == []


def test_iter_bits_beyond_one_word():
    assert list(iter_bits(1 << 100)) == [100]


@pytest.mark.parametrize("mask", [1, 0b110, (1 << 64) | 5, (1 << 200) - 1, 0xDEADBEEF << 70])
def test_iter_bits_round_trip(mask):
    bits = list(iter_bits(mask))
    assert sum(1 << b for b in bits) == mask
    assert bits == sorted(bits)
    assert len(bits) == len(set(bits))


@pytest.mark.parametrize("mask", [0, 1, 0b1011, (1 << 130) | (1 << 3), (1 << 64) - 1])
def test_popcount_matches_iteration(mask):
    assert popcount(mask) == len(list(iter_bits(mask)))


def test_negative_mask_rejected():
    with pytest.raises(ValueError):
        list(iter_bits(-1))
    with pytest.raises(ValueError):
        popcount(-5)