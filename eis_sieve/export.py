"""Semicolon-delimited export of sieve records, and the run summary JSON.

Dialects
--------
reference  Flags render as 1/0.  An UNTESTED flag renders as 1, exactly as
           the legacy tables did (their nullable flags defaulted to
           true), and a Gaussian pair that was not computed renders as 0;0.
explicit   Flags render as 1/0 and UNTESTED as "?".  A Gaussian pair that
           was not computed leaves both cells empty.
"""

from __future__ import annotations

import csv
import hashlib
import json
import os
from typing import Dict, Iterable, Iterator, List, Optional

from .results import Primality, SieveRecord

HEADER = [
    "P1", "P2", "Z", "N",
    "K1", "K2", "K3",
    "A", "B", "D", "E",
    "IsPrimeP1", "IsPrimeP2", "IsPrimeZ",
]
DELIMITER = ";"
DIALECTS = ("reference", "explicit")


def _flag(value: Primality, dialect: str) -> str:
    if value is Primality.PRIME:
        return "1"
    if value is Primality.COMPOSITE:
        return "0"
    # UNTESTED: the reference tables report it as prime
    return "1" if dialect == "reference" else "?"


def _coord(value: Optional[int], dialect: str) -> str:
    if value is None:
        return "0" if dialect == "reference" else ""
    return str(value)


def render_row(r: SieveRecord, dialect: str = "reference") -> List[str]:
    if dialect not in DIALECTS:
        raise ValueError(f"unknown export dialect {dialect!r}; expected one of {DIALECTS}")
    return [
        str(r.p1), str(r.p2), str(r.z), str(r.n),
        str(r.k1), str(r.k2), str(r.k3),
        _coord(r.a, dialect), _coord(r.b, dialect), str(r.d), str(r.e),
        _flag(r.is_prime_p1, dialect),
        _flag(r.is_prime_p2, dialect),
        _flag(r.is_prime_z, dialect),
    ]


class SieveCsvWriter:
    """Streaming writer: the header goes out on open, rows as they arrive."""

    def __init__(self, path: str, dialect: str = "reference") -> None:
        if dialect not in DIALECTS:
            raise ValueError(f"unknown export dialect {dialect!r}; expected one of {DIALECTS}")
        self.path = path
        self.dialect = dialect
        self.rows_written = 0
        self._f = None
        self._w = None

    def __enter__(self) -> "SieveCsvWriter":
        self._f = open(self.path, "w", newline="", encoding="utf-8")
        self._w = csv.writer(self._f, delimiter=DELIMITER, lineterminator="\n")
        self._w.writerow(HEADER)
        return self

    def write(self, records: Iterable[SieveRecord]) -> None:
        for r in records:
            self._w.writerow(render_row(r, self.dialect))
            self.rows_written += 1

    def flush(self) -> None:
        self._f.flush()

    def __exit__(self, exc_type, exc, tb) -> None:
        self._f.close()


def write_records(path: str, records: Iterable[SieveRecord], dialect: str = "reference") -> int:
    with SieveCsvWriter(path, dialect) as w:
        w.write(records)
        return w.rows_written


def read_rows(path: str) -> Iterator[Dict[str, str]]:
    """Yield exported rows as header -> cell dicts."""
    with open(path, "r", newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f, delimiter=DELIMITER)
        if reader.fieldnames != HEADER:
            raise ValueError(f"{path}: unexpected header {reader.fieldnames!r}")
        for row in reader:
            yield row


# ----------------------------- run summary -----------------------------
def sha256_file(path: str) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1 << 20), b""):
            h.update(chunk)
    return h.hexdigest()


def write_summary_json(
    path: str,
    max_prime: int,
    primes_scanned: int,
    records_written: int,
    start_utc: str,
    end_utc: str,
    runtime_sec: float,
    env: Dict[str, object],
    params: Dict[str, object],
    search_stats: Dict[str, int],
    csv_file: str,
    log_file: str,
) -> None:
    summary = {
        "environment": env,
        "max_prime": max_prime,
        "norm_equation": "z = p1^2 - 12*n^2 = d^2 - d*e + e^2",
        "params": params,
        "primes_scanned": primes_scanned,
        "records_written": records_written,
        "start_utc": start_utc,
        "end_utc": end_utc,
        "runtime_seconds": runtime_sec,
        "search_stats": search_stats,
        "artifacts": {
            "csv_file": csv_file,
            "csv_file_sha256": sha256_file(csv_file) if csv_file and os.path.isfile(csv_file) else None,
            "log_file": log_file,
            "log_file_sha256": sha256_file(log_file) if log_file and os.path.isfile(log_file) else None,
        },
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(summary, f, indent=2, sort_keys=True)
