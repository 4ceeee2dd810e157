"""Candidate search for one driving prime p1.

For p1 and n >= 1 put p2 = p1 + 4n and z = p1^2 - 12n^2.  We look for
integer triples (k1, k2, k3) with

    k1 + k2 + k3 = p1
    k1*k2 + k2*k3 + k3*k1 = 4n^2            (the "ellipse" constraint)

which together force z = d^2 - d*e + e^2 for d = k1 - k2, e = k1 - k3.
Eliminating k3 leaves a quadratic in k2 for every fixed k1:

    k2^2 + B*k2 + C = 0,   B = k1 - p1,   C = k1^2 - p1*k1 + 4n^2

so k2 = (-B ± sqrt(B^2 - 4C)) / 2 and integer solutions need a square
discriminant and an even numerator.  k1 runs over one residue class mod 4,
starting at ceil((p1 - 2*sqrt(z)) / 3) (the smallest k1 for which the
discriminant can be non-negative) and stopping at p1 - 1 (k1 = p1 only
gives degenerate triples).

Per (p1, n, residue slot) the surviving triples are kept only when there
is exactly one of them.  Several solutions for one configuration go with
composite or degenerate norm structure in this search space.

Arithmetic is checked against the signed 64-bit range: an overflow in z
ends the n-loop (z only grows in magnitude with n), an overflow in the
discriminant skips that k1, an overflow in (d, e, norm) drops that triple.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

from .filters import (
    DEFAULT_MIN_BASE,
    gaussian_decomposition,
    is_perfect_power_with_large_base,
    may_be_eisenstein_prime_candidate,
)
from .intmath import align_up_to_residue, checked_i64, integer_sqrt, sort3


# ----------------------------- switches (set by cli) -----------------------------
ASSERTIONS = False


class ResidueSlot(Enum):
    """Which coordinate of the triple carries p1 mod 4.

    K1 is the production configuration.  K2 and K3 start k1 in class 0 and
    require k2 (resp. k3) to share p1's residue instead; they are opt-in.
    """

    K1 = "k1"
    K2 = "k2"
    K3 = "k3"


@dataclass(frozen=True)
class SearchParams:
    slots: Tuple[ResidueSlot, ...] = (ResidueSlot.K1,)
    modulus: int = 4
    min_power_base: int = DEFAULT_MIN_BASE
    gauss: bool = False


DEFAULT_SEARCH = SearchParams()


@dataclass(frozen=True)
class SieveCandidate:
    p1: int
    p2: int
    n: int
    z: int
    k1: int
    k2: int
    k3: int
    d: int
    e: int
    gauss: Optional[Tuple[int, int]] = None
    slot: ResidueSlot = ResidueSlot.K1


@dataclass
class SearchStats:
    n_tried: int = 0
    k1_tried: int = 0
    negative_discriminants: int = 0
    non_square_discriminants: int = 0
    odd_numerators: int = 0
    slot_residue_rejects: int = 0
    duplicates: int = 0
    gcd_rejects: int = 0
    power_rejects: int = 0
    overflow_skips: int = 0
    classes_kept: int = 0
    classes_empty: int = 0
    classes_ambiguous: int = 0  # two or more triples, all dropped

    def merge(self, other: "SearchStats") -> None:
        for name, value in asdict(other).items():
            setattr(self, name, getattr(self, name) + value)

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


# ----------------------------- bounds -----------------------------
def max_n(p1: int) -> int:
    # n <= p1 / sqrt(3); z turns negative well before that, which ends the loop
    return int(p1 / math.sqrt(3))


def k1_bounds(p1: int, z: int) -> Tuple[int, int]:
    k1_lo = math.ceil((p1 - 2.0 * math.sqrt(z)) / 3.0)
    return k1_lo, p1 - 1


def _norm_i64(d: int, e: int) -> int:
    dd = checked_i64(d * d)
    de = checked_i64(d * e)
    ee = checked_i64(e * e)
    return checked_i64(checked_i64(dd - de) + ee)


# ----------------------------- per-class search -----------------------------
def _try_candidate(
    p1: int,
    n: int,
    z: int,
    k1: int,
    num: int,
    slot: ResidueSlot,
    params: SearchParams,
    seen: Set[Tuple[int, int, int]],
    stats: SearchStats,
) -> Optional[SieveCandidate]:
    """Turn one root numerator num = -B ± sqrt(delta) into a candidate, or None."""
    if num & 1:
        stats.odd_numerators += 1
        return None

    k2 = num // 2
    k3 = p1 - k1 - k2

    residue = p1 % params.modulus
    if slot is ResidueSlot.K2 and k2 % params.modulus != residue:
        stats.slot_residue_rejects += 1
        return None
    if slot is ResidueSlot.K3 and k3 % params.modulus != residue:
        stats.slot_residue_rejects += 1
        return None

    key = sort3(k1, k2, k3)
    if key in seen:
        stats.duplicates += 1
        return None
    seen.add(key)

    try:
        d = checked_i64(k1 - k2)
        e = checked_i64(k1 - k3)
        z_eis = _norm_i64(d, e)
    except OverflowError:
        stats.overflow_skips += 1
        return None

    if not may_be_eisenstein_prime_candidate(d, e):
        stats.gcd_rejects += 1
        return None

    if is_perfect_power_with_large_base(z, params.min_power_base):
        stats.power_rejects += 1
        return None

    if ASSERTIONS:
        assert k1 + k2 + k3 == p1, f"triple ({k1},{k2},{k3}) does not sum to p1={p1}"
        assert z_eis == z, f"N({d},{e})={z_eis} != z={z} for p1={p1} n={n}"

    gauss = gaussian_decomposition(z) if params.gauss else None

    return SieveCandidate(
        p1=p1,
        p2=p1 + 4 * n,
        n=n,
        z=z,
        k1=k1,
        k2=k2,
        k3=k3,
        d=d,
        e=e,
        gauss=gauss,
        slot=slot,
    )


def search_residue_class(
    p1: int,
    n: int,
    z: int,
    k1_lo: int,
    k1_hi: int,
    slot: ResidueSlot,
    params: SearchParams = DEFAULT_SEARCH,
    stats: Optional[SearchStats] = None,
) -> List[SieveCandidate]:
    """All filtered candidates of one (p1, n, slot) class, before the uniqueness rule.

    The permutation set lives only for this call.
    """
    if stats is None:
        stats = SearchStats()

    m = params.modulus
    r1 = p1 % m if slot is ResidueSlot.K1 else 0
    four_n2 = 4 * n * n

    seen: Set[Tuple[int, int, int]] = set()
    local: List[SieveCandidate] = []

    for k1 in range(align_up_to_residue(k1_lo, m, r1), k1_hi + 1, m):
        stats.k1_tried += 1
        try:
            b = checked_i64(k1 - p1)
            c = checked_i64(checked_i64(k1 * k1) - checked_i64(p1 * k1) + four_n2)
            delta = checked_i64(checked_i64(b * b) - checked_i64(4 * c))
        except OverflowError:
            stats.overflow_skips += 1
            continue

        if delta < 0:
            stats.negative_discriminants += 1
            continue
        s = integer_sqrt(delta)
        if s * s != delta:
            stats.non_square_discriminants += 1
            continue

        # s == 0 is a double root; the second numerator would repeat the first
        nums = (-b + s,) if s == 0 else (-b + s, -b - s)
        for num in nums:
            cand = _try_candidate(p1, n, z, k1, num, slot, params, seen, stats)
            if cand is not None:
                local.append(cand)

    return local


# ----------------------------- per-prime search -----------------------------
def find_candidates_with_stats(
    p1: int, params: SearchParams = DEFAULT_SEARCH
) -> Tuple[List[SieveCandidate], SearchStats]:
    stats = SearchStats()
    out: List[SieveCandidate] = []

    n_max = max_n(p1)
    if n_max <= 0:
        return out, stats

    for n in range(1, n_max + 1):
        try:
            z = checked_i64(checked_i64(p1 * p1) - checked_i64(12 * n * n))
        except OverflowError:
            stats.overflow_skips += 1
            break
        if z < 0:
            break
        stats.n_tried += 1

        k1_lo, k1_hi = k1_bounds(p1, z)
        if k1_lo > k1_hi:
            continue

        for slot in params.slots:
            local = search_residue_class(p1, n, z, k1_lo, k1_hi, slot, params, stats)
            if len(local) == 1:
                stats.classes_kept += 1
                out.extend(local)
            elif local:
                stats.classes_ambiguous += 1
            else:
                stats.classes_empty += 1

    return out, stats


def find_candidates(p1: int, params: SearchParams = DEFAULT_SEARCH) -> List[SieveCandidate]:
    return find_candidates_with_stats(p1, params)[0]
