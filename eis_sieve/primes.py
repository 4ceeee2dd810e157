"""Primality oracle: 6k±1 trial division and a segmented 6k±1 wheel sieve.

Both skip multiples of 2 and 3 entirely.  For the sizes this project runs
at (p1 up to ~10^5, z up to ~10^10) trial division is fast enough for the
per-candidate checks, and the sieve only has to reach the p1 bound.
"""

from __future__ import annotations

from typing import Iterator, List

from .intmath import integer_sqrt

DEFAULT_SEGMENT_SIZE = 1 << 16


def is_prime(n: int) -> bool:
    if n <= 1:
        return False
    if n <= 3:
        return True
    if n % 2 == 0 or n % 3 == 0:
        return False
    limit = integer_sqrt(n)
    i = 5
    while i <= limit:
        if n % i == 0 or n % (i + 2) == 0:
            return False
        i += 6
    return True


def _base_primes(limit: int) -> List[int]:
    """Primes 5 <= p <= limit, used to cross out composites in each segment."""
    if limit < 5:
        return []
    flags = bytearray([1]) * (limit + 1)
    flags[0:2] = b"\x00\x00"
    for p in range(2, integer_sqrt(limit) + 1):
        if flags[p]:
            flags[p * p::p] = bytes(len(range(p * p, limit + 1, p)))
    return [p for p in range(5, limit + 1) if flags[p]]


def primes_up_to(n: int, segment_size: int = DEFAULT_SEGMENT_SIZE) -> Iterator[int]:
    """Yield every prime <= n in ascending order.

    The range [5, n] is processed in windows of segment_size numbers so
    memory stays flat for large bounds; inside a window only positions of
    the form 6k±1 are read back.
    """
    if segment_size <= 0:
        raise ValueError(f"segment_size must be positive, got {segment_size}")
    if n >= 2:
        yield 2
    if n >= 3:
        yield 3
    if n < 5:
        return

    base = _base_primes(integer_sqrt(n))

    low = 5
    while low <= n:
        high = min(low + segment_size - 1, n)
        composite = bytearray(high - low + 1)
        for p in base:
            pp = p * p
            if pp > high:
                break
            start = max(pp, ((low + p - 1) // p) * p)
            if start > high:
                continue
            composite[start - low::p] = b"\x01" * len(range(start, high + 1, p))

        x = low
        while x % 6 not in (1, 5):
            x += 1
        step = 2 if x % 6 == 5 else 4
        while x <= high:
            if not composite[x - low]:
                yield x
            x += step
            step = 6 - step

        low = high + 1
