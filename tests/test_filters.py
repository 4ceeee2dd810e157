import pytest

from eis_sieve.filters import (
    gaussian_decomposition,
    is_perfect_power_with_large_base,
    may_be_eisenstein_prime_candidate,
)


def test_gcd_filter():
    assert may_be_eisenstein_prime_candidate(0, 0) is False
    assert may_be_eisenstein_prime_candidate(4, 2) is False
    assert may_be_eisenstein_prime_candidate(3, 1) is True
    assert may_be_eisenstein_prime_candidate(-3, 1) is True
    assert may_be_eisenstein_prime_candidate(-7, -3) is True
    assert may_be_eisenstein_prime_candidate(0, 1) is True
    assert may_be_eisenstein_prime_candidate(0, 5) is False
    assert may_be_eisenstein_prime_candidate(13, 13) is False


@pytest.mark.parametrize("z", [
    169,            # 13^2
    2197,           # 13^3
    13**5,
    13**7,
    14**3,
    4096,           # 64^2 = 16^3
    3**10,          # 243^2
    (2**31 - 1) ** 2,
    1000003**3,
])
def test_large_base_powers_are_detected(z):
    assert is_perfect_power_with_large_base(z) is True


@pytest.mark.parametrize("z", [
    0, 1, 2, 37, 144, 168,
    1728,           # 12^3
    512,            # 8^3
    7**5,
    2**13,
    481,
    10**10 + 19,
])
def test_other_values_pass(z):
    assert is_perfect_power_with_large_base(z) is False


def test_min_base_is_configurable():
    assert is_perfect_power_with_large_base(169, min_base=14) is False
    assert is_perfect_power_with_large_base(1728, min_base=12) is True
    assert is_perfect_power_with_large_base(144, min_base=12) is True


def test_perfect_power_rejects_negative():
    with pytest.raises(ValueError):
        is_perfect_power_with_large_base(-169)


def test_gaussian_decomposition():
    assert gaussian_decomposition(13) == (2, 3)
    assert gaussian_decomposition(25) == (3, 4)
    assert gaussian_decomposition(481) == (9, 20)
    assert gaussian_decomposition(2) == (1, 1)
    assert gaussian_decomposition(3) is None
    assert gaussian_decomposition(1) is None
    assert gaussian_decomposition(0) is None


def test_gaussian_decomposition_values_are_plain_ints():
    a, b = gaussian_decomposition(10**4 + 1)
    assert type(a) is int and type(b) is int
    assert 0 < a <= b
    assert a * a + b * b == 10**4 + 1


@pytest.mark.parametrize("min_base", [1, 0, -13])
def test_min_base_below_two_is_rejected(min_base):
    with pytest.raises(ValueError):
        is_perfect_power_with_large_base(10**6 + 3, min_base=min_base)


def test_min_base_two_counts_every_perfect_power():
    assert is_perfect_power_with_large_base(8, min_base=2) is True
    assert is_perfect_power_with_large_base(4, min_base=2) is True
    assert is_perfect_power_with_large_base(10**6 + 3, min_base=2) is False
