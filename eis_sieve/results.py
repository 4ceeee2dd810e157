"""Output records: one per accepted candidate, plus the primality flags.

The primality check of p1, p2 and z is reporting only.  A candidate is
never dropped because one of them is composite.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from .primes import is_prime
from .search import DEFAULT_SEARCH, SearchParams, SearchStats, SieveCandidate, find_candidates_with_stats


class Primality(Enum):
    PRIME = "prime"
    COMPOSITE = "composite"
    UNTESTED = "untested"

    @classmethod
    def from_bool(cls, flag: bool) -> "Primality":
        return cls.PRIME if flag else cls.COMPOSITE


@dataclass(frozen=True)
class SieveRecord:
    p1: int
    p2: int
    z: int
    n: int
    k1: int
    k2: int
    k3: int
    a: Optional[int]
    b: Optional[int]
    d: int
    e: int
    is_prime_p1: Primality
    is_prime_p2: Primality
    is_prime_z: Primality


def assemble_record(
    candidate: SieveCandidate,
    test_primality: bool = True,
    prime_test: Callable[[int], bool] = is_prime,
) -> SieveRecord:
    if test_primality:
        flags = tuple(Primality.from_bool(prime_test(v)) for v in (candidate.p1, candidate.p2, candidate.z))
    else:
        flags = (Primality.UNTESTED,) * 3

    a, b = candidate.gauss if candidate.gauss is not None else (None, None)

    return SieveRecord(
        p1=candidate.p1,
        p2=candidate.p2,
        z=candidate.z,
        n=candidate.n,
        k1=candidate.k1,
        k2=candidate.k2,
        k3=candidate.k3,
        a=a,
        b=b,
        d=candidate.d,
        e=candidate.e,
        is_prime_p1=flags[0],
        is_prime_p2=flags[1],
        is_prime_z=flags[2],
    )


def records_for_prime(
    p1: int,
    params: SearchParams = DEFAULT_SEARCH,
    test_primality: bool = True,
) -> Tuple[List[SieveRecord], SearchStats]:
    """Search one p1 and assemble its records (the unit of work for a worker)."""
    candidates, stats = find_candidates_with_stats(p1, params)
    records = [assemble_record(c, test_primality=test_primality) for c in candidates]
    return records, stats
