"""Eis_Sieve: Eisenstein-norm candidate sieve over primes p1."""

from .search import ResidueSlot, SearchParams, SieveCandidate, find_candidates

__all__ = ["ResidueSlot", "SearchParams", "SieveCandidate", "find_candidates"]
__version__ = "1.0.0"
