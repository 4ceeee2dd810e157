import math

import pytest

from eis_sieve.intmath import (
    INT64_MAX,
    INT64_MIN,
    align_up_to_residue,
    checked_i64,
    gcd,
    integer_sqrt,
    sort3,
)


def test_integer_sqrt_small_values():
    assert integer_sqrt(0) == 0
    assert integer_sqrt(1) == 1
    assert integer_sqrt(24) == 4
    assert integer_sqrt(25) == 5


@pytest.mark.parametrize("x", [
    2**52 + 1,
    10**18,
    10**18 - 1,
    (2**31 - 1) ** 2,
    (2**31 - 1) ** 2 - 1,
    INT64_MAX,
])
def test_integer_sqrt_is_exact_where_float_is_not(x):
    r = integer_sqrt(x)
    assert r == math.isqrt(x)
    assert r * r <= x < (r + 1) * (r + 1)


def test_integer_sqrt_rejects_negative():
    with pytest.raises(ValueError):
        integer_sqrt(-1)


def test_gcd():
    assert gcd(0, 0) == 0
    assert gcd(0, 7) == 7
    assert gcd(-12, 18) == 6
    assert gcd(12, -18) == 6
    assert gcd(17, 5) == 1


@pytest.mark.parametrize("x, modulus, residue, expected", [
    (0, 4, 1, 1),
    (1, 4, 1, 1),
    (2, 4, 1, 5),
    (-4, 4, 1, -3),
    (-6, 4, 3, -5),
    (-2, 4, 3, -1),
    (7, 4, 0, 8),
    (3, 4, -1, 3),
    (3, 4, 7, 3),
])
def test_align_up_to_residue(x, modulus, residue, expected):
    y = align_up_to_residue(x, modulus, residue)
    assert y == expected
    assert y >= x
    assert y - x < modulus
    assert (y - residue) % modulus == 0


def test_align_up_to_residue_rejects_bad_modulus():
    with pytest.raises(ValueError):
        align_up_to_residue(5, 0, 1)


def test_checked_i64_bounds():
    assert checked_i64(INT64_MAX) == INT64_MAX
    assert checked_i64(INT64_MIN) == INT64_MIN
    with pytest.raises(OverflowError):
        checked_i64(INT64_MAX + 1)
    with pytest.raises(OverflowError):
        checked_i64(INT64_MIN - 1)


def test_sort3():
    assert sort3(3, 1, 2) == (1, 2, 3)
    assert sort3(-4, 9, 8) == (-4, 8, 9)
    assert sort3(2, 2, 1) == (1, 2, 2)
