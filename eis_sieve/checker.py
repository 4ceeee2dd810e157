#!/usr/bin/env python3
"""
Check an Eis_Sieve CSV: every row must describe a valid accepted candidate

Re-derives each row independently with sympy instead of the sieve's own
helpers: triple sum, p2 and z from (p1, n), the Eisenstein norm identity,
gcd(d, e) = 1, no perfect power with base >= 13, the Gaussian pair when one
was written, and the primality flags against sympy.isprime.
"""

from __future__ import annotations

import argparse
import sys
from typing import Dict, List, Optional, Tuple

import sympy

from .export import read_rows

MIN_BASE = 13


def _int_or_none(cell: Optional[str]) -> Optional[int]:
    if cell is None:
        raise ValueError("missing cell")
    cell = cell.strip()
    return int(cell) if cell else None


def is_large_base_power(z: int, min_base: int = MIN_BASE) -> bool:
    """z == a**k with a >= min_base, k >= 2, decided from sympy.perfect_power."""
    pp = sympy.perfect_power(z) if z > 1 else False
    if not pp:
        return False
    base, exp = pp
    # the largest base comes from the smallest prime dividing the exponent
    k = sympy.primefactors(exp)[0]
    return base ** (exp // k) >= min_base


def check_row(row: Dict[str, str]) -> List[str]:
    """Return the list of problems found in one exported row (empty = valid)."""
    problems: List[str] = []

    p1, p2, z, n = (int(row[c]) for c in ("P1", "P2", "Z", "N"))
    k1, k2, k3 = (int(row[c]) for c in ("K1", "K2", "K3"))
    d, e = int(row["D"]), int(row["E"])
    a, b = _int_or_none(row["A"]), _int_or_none(row["B"])

    if k1 + k2 + k3 != p1:
        problems.append(f"k1+k2+k3={k1 + k2 + k3} != p1={p1}")
    if p2 != p1 + 4 * n:
        problems.append(f"p2={p2} != p1+4n={p1 + 4 * n}")
    if z != p1 * p1 - 12 * n * n:
        problems.append(f"z={z} != p1^2-12n^2={p1 * p1 - 12 * n * n}")
    if d != k1 - k2 or e != k1 - k3:
        problems.append(f"(d,e)=({d},{e}) != (k1-k2,k1-k3)=({k1 - k2},{k1 - k3})")
    if z != d * d - d * e + e * e:
        problems.append(f"N(d,e)={d * d - d * e + e * e} != z={z}")
    if sympy.igcd(d, e) != 1:
        problems.append(f"gcd(d,e)={sympy.igcd(d, e)}")
    if is_large_base_power(z):
        problems.append(f"z={z} is a perfect power with base >= {MIN_BASE}")

    # 0;0 is the placeholder for "not computed" in the reference dialect
    if a is not None and b is not None and (a, b) != (0, 0):
        if a * a + b * b != z:
            problems.append(f"a^2+b^2={a * a + b * b} != z={z}")

    for col, value in (("IsPrimeP1", p1), ("IsPrimeP2", p2), ("IsPrimeZ", z)):
        if row.get(col) is None:
            problems.append(f"{col} is missing")
            continue
        flag = row[col].strip()
        if flag == "?":
            continue
        if flag not in ("0", "1"):
            problems.append(f"{col}={flag!r} is not 0/1/?")
        elif (flag == "1") != bool(sympy.isprime(value)):
            problems.append(f"{col}={flag} but sympy.isprime({value})={sympy.isprime(value)}")

    return problems


def check_file(path: str, verbose: bool = False) -> Tuple[int, List[Tuple[int, List[str]]]]:
    """Check every row; returns (rows_checked, [(line_number, problems), ...])."""
    errors: List[Tuple[int, List[str]]] = []
    checked = 0
    for line_num, row in enumerate(read_rows(path), 2):
        checked += 1
        try:
            problems = check_row(row)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            problems = [f"unparsable row: {e!r}"]
        if problems:
            errors.append((line_num, problems))
            print(f"\n[!] FAILED at line {line_num}: p1={row.get('P1')} n={row.get('N')}")
            for p in problems:
                print(f"    {p}")
        elif verbose:
            print(f"p1 = {row['P1']} n = {row['N']} z = {row['Z']} "
                  f"(d,e) = ({row['D']},{row['E']}) ok")
    return checked, errors


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Re-verify an Eis_Sieve CSV with sympy.")
    ap.add_argument("csv_path")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args(argv)

    print(f"Checking {args.csv_path} ...")
    print("=" * 70)

    checked, errors = check_file(args.csv_path, verbose=args.verbose)

    print("\n" + "=" * 70)
    print(f"Checked {checked} rows")
    if errors:
        print(f"\n[!] Found {len(errors)} invalid rows:")
        for line_num, problems in errors:
            print(f"   Line {line_num}: {'; '.join(problems)}")
        return 1
    print("\n[+] All rows are valid sieve candidates.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
