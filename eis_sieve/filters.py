"""Cheap rejection tests on a candidate norm.

Neither test proves anything about primality.  Both are necessary
conditions: a value that fails can never be a prime norm of the kind the
search is after, a value that passes still goes to the real primality
check afterwards.
"""

from __future__ import annotations

from typing import Optional, Tuple

from sympy.solvers.diophantine.diophantine import sum_of_squares

from .intmath import gcd, integer_sqrt

DEFAULT_MIN_BASE = 13

# Float k-th roots can land just under an exact integer base; comparing
# against min_base - slack keeps bases equal to min_base in play.
_ROOT_SLACK = 0.05


def may_be_eisenstein_prime_candidate(d: int, e: int) -> bool:
    """False when N(d, e) = d^2 - d*e + e^2 cannot be prime.

    If g = gcd(d, e) > 1 then N(d, e) = g^2 * N(d/g, e/g), never prime.
    """
    if d == 0 and e == 0:
        return False
    return gcd(d, e) <= 1


def _equals_power(z: int, a: int, k: int) -> bool:
    p = 1
    for _ in range(k):
        p *= a
        if p > z:
            return False
    return p == z


def is_perfect_power_with_large_base(z: int, min_base: int = DEFAULT_MIN_BASE) -> bool:
    """True iff z == a**k for some integer a >= min_base and k >= 2.

    Squares cover every even exponent.  Odd exponents are tried while
    min_base**k still fits under z; each float root estimate is checked
    exactly against its rounded value and both neighbours.
    """
    if min_base < 2:
        raise ValueError(f"minimum base must be at least 2, got {min_base}")
    if z < 0:
        raise ValueError(f"perfect power test on negative value {z}")
    if z < min_base * min_base:
        return False

    r = integer_sqrt(z)
    if r >= min_base and r * r == z:
        return True

    floor_root = min_base - _ROOT_SLACK
    k = 3
    while min_base ** k <= z:
        root = z ** (1.0 / k)
        if root < floor_root:
            break  # larger k only shrinks the root
        r = int(round(root))
        if r >= min_base:
            if _equals_power(z, r, k):
                return True
            if r > min_base and _equals_power(z, r - 1, k):
                return True
            if _equals_power(z, r + 1, k):
                return True
        k += 2
    return False


def gaussian_decomposition(z: int) -> Optional[Tuple[int, int]]:
    """First (a, b) with a*a + b*b == z and 0 < a <= b, or None."""
    if z <= 1:
        return None
    best = min(sum_of_squares(z, 2), default=None)
    if best is None:
        return None
    return int(best[0]), int(best[1])
