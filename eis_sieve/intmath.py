"""Exact integer helpers used by the candidate search.

The search works in a signed 64-bit working width.  Python integers never
wrap, so every product that could leave that range goes through
checked_i64(), which raises OverflowError instead of silently growing.
"""

from __future__ import annotations

import math
from typing import Tuple

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1


def checked_i64(value: int) -> int:
    if value < INT64_MIN or value > INT64_MAX:
        raise OverflowError(f"value {value} outside signed 64-bit range")
    return value


def integer_sqrt(x: int) -> int:
    """Return floor(sqrt(x)) exactly.

    The float estimate is only a seed; the two correction loops make the
    result satisfy r*r <= x < (r+1)*(r+1), which callers rely on for the
    perfect-square test r*r == x.
    """
    if x < 0:
        raise ValueError(f"integer_sqrt of negative value {x}")
    if x == 0:
        return 0
    r = int(math.sqrt(x))
    while r * r > x:
        r -= 1
    while (r + 1) * (r + 1) <= x:
        r += 1
    return r


def gcd(a: int, b: int) -> int:
    a, b = abs(a), abs(b)
    while b:
        a, b = b, a % b
    return a


def align_up_to_residue(x: int, modulus: int, residue: int) -> int:
    """Smallest y >= x with y == residue (mod modulus)."""
    if modulus <= 0:
        raise ValueError(f"modulus must be positive, got {modulus}")
    residue %= modulus
    return x + (residue - x) % modulus


def sort3(a: int, b: int, c: int) -> Tuple[int, int, int]:
    # canonical key for a triple up to permutation
    if a > b:
        a, b = b, a
    if b > c:
        b, c = c, b
    if a > b:
        a, b = b, a
    return a, b, c
