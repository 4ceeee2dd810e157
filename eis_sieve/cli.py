#!/usr/bin/env python3
"""
Eis_Sieve: Eisenstein-norm candidate sieve over primes p1

Purpose
-------
For every prime p1 up to --max_prime, search Descartes-style triples
(k1, k2, k3) with k1 + k2 + k3 = p1 and k1*k2 + k2*k3 + k3*k1 = 4n^2.
Each such triple carries the norm

    z = p1^2 - 12 n^2 = d^2 - d*e + e^2,    d = k1 - k2,  e = k1 - k3,

and pairs p1 with p2 = p1 + 4n.  Triples that survive the gcd filter, the
large-base perfect power filter and the one-solution-per-residue-class
rule are written to a semicolon-delimited table, together with trial
division primality flags for p1, p2 and z.

Artifacts (per run, in --outdir)
--------------------------------
  sieve_p{max}_{stamp}.csv   one row per accepted candidate
  run_p{max}.log             START / progress / DONE / ERROR lines (UTC)
  summary_p{max}.json        environment, parameters, search counters,
                             SHA-256 of the CSV and the log

Examples
--------
    python3 -m eis_sieve.cli --max_prime 100000 --workers 8
    python3 -m eis_sieve.cli --max_prime 2000 --gauss --format explicit
    python3 -m eis_sieve.checker Eis_Sieve_v1_runs/sieve_p2000_*.csv

Use --version to print a machine-readable environment/version block.
"""

from __future__ import annotations

import argparse
import json
import os
import platform
import subprocess
import sys
import time
from datetime import datetime, timezone
from multiprocessing import get_context
from typing import Dict, Iterator, List, Optional, Tuple

import sympy

from . import search
from .export import DIALECTS, SieveCsvWriter, sha256_file, write_summary_json
from .primes import primes_up_to
from .results import SieveRecord, records_for_prime
from .search import ResidueSlot, SearchParams, SearchStats

program_name, program_version = "Eis_Sieve", 1


# ----------------------------- switches (set by args) -----------------------------
DEBUG = False
ASSERTIONS = False


# ----------------------------- small utilities -----------------------------
def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()

def utc_stamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")

def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)

def get_git_commit() -> Optional[str]:
    # Best effort: if this file is inside a git repo, return HEAD commit hash.
    try:
        r = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            capture_output=True,
            text=True,
            check=True,
        )
        s = (r.stdout or "").strip()
        return s if s else None
    except (OSError, subprocess.CalledProcessError):
        return None

def env_block(script_path: str, argv: List[str]) -> Dict[str, object]:
    return {
        "program": f"{program_name} v{program_version}",
        "script_path": os.path.abspath(script_path),
        "script_sha256": sha256_file(script_path),
        "git_commit": get_git_commit(),
        "command_line": " ".join(argv),
        "python_version": sys.version.replace("\n", " "),
        "platform": platform.platform(),
        "sympy_version": sympy.__version__,
    }

def min_power_base(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value {text!r}")
    if value < 2:
        raise argparse.ArgumentTypeError(f"minimum power base must be at least 2, got {value}")
    return value

def parse_slots(text: str) -> Tuple[ResidueSlot, ...]:
    slots: List[ResidueSlot] = []
    for part in text.split(","):
        part = part.strip().lower()
        if not part:
            continue
        try:
            slot = ResidueSlot(part)
        except ValueError:
            raise argparse.ArgumentTypeError(f"unknown residue slot {part!r} (use k1, k2, k3)")
        if slot not in slots:
            slots.append(slot)
    if not slots:
        raise argparse.ArgumentTypeError("at least one residue slot is required")
    return tuple(slots)


# ----------------------------- workers -----------------------------
def _init_worker(debug: bool, assertions: bool) -> None:
    global DEBUG, ASSERTIONS
    DEBUG = debug
    ASSERTIONS = assertions
    search.ASSERTIONS = assertions


def _prime_task(args: Tuple[int, SearchParams, bool]) -> Tuple[int, List[SieveRecord], SearchStats]:
    p1, params, test_primality = args
    records, stats = records_for_prime(p1, params, test_primality)
    return p1, records, stats


def iter_prime_results(
    max_prime: int,
    params: SearchParams,
    test_primality: bool,
    workers: int = 1,
    chunksize: int = 16,
) -> Iterator[Tuple[int, List[SieveRecord], SearchStats]]:
    """Yield (p1, records, stats) for every prime p1 <= max_prime, in p1 order.

    With workers > 1 the primes are farmed out to a process pool; Pool.imap
    hands results back in submission order, so the output is the same as
    the serial run.
    """
    tasks = ((p1, params, test_primality) for p1 in primes_up_to(max_prime))
    if workers <= 1:
        for t in tasks:
            yield _prime_task(t)
        return

    ctx = get_context("fork") if sys.platform == "darwin" else get_context()
    with ctx.Pool(
        processes=workers,
        initializer=_init_worker,
        initargs=(DEBUG, ASSERTIONS),
    ) as pool:
        for res in pool.imap(_prime_task, tasks, chunksize=max(1, chunksize)):
            yield res


# ----------------------------- one run -----------------------------
def run_sieve(
    max_prime: int,
    outdir: str,
    params: SearchParams,
    test_primality: bool = True,
    dialect: str = "reference",
    workers: int = 1,
    chunksize: int = 16,
    csv_path: Optional[str] = None,
    progress_every: int = 1000,
    env: Optional[Dict[str, object]] = None,
) -> Dict[str, object]:
    """Scan all primes <= max_prime and stream accepted candidates to CSV.

    Returns a result dict with keys:
      max_prime, primes_scanned, records_written, csv_path, log_path,
      summary_path, runtime_sec, search_stats  (and error, on failure)
    """
    ensure_dir(outdir)
    if csv_path is None:
        csv_path = os.path.join(outdir, f"sieve_p{max_prime}_{utc_stamp()}.csv")
    log_path = os.path.join(outdir, f"run_p{max_prime}.log")
    summary_path = os.path.join(outdir, f"summary_p{max_prime}.json")

    start_utc = utc_now_iso()
    t0 = time.time()
    totals = SearchStats()
    primes_scanned = 0
    records_written = 0

    result: Dict[str, object] = {
        "max_prime": max_prime,
        "primes_scanned": 0,
        "records_written": 0,
        "csv_path": csv_path,
        "log_path": log_path,
        "summary_path": summary_path,
        "runtime_sec": 0.0,
        "search_stats": {},
    }
    params_info: Dict[str, object] = {
        "slots": [s.value for s in params.slots],
        "modulus": params.modulus,
        "min_power_base": params.min_power_base,
        "gauss": params.gauss,
        "test_primality": test_primality,
        "format": dialect,
        "workers": workers,
        "chunksize": chunksize,
    }

    with open(log_path, "a", encoding="utf-8") as logf:
        logf.write(
            f"{start_utc} START max_prime={max_prime} slots={','.join(params_info['slots'])} "
            f"gauss={params.gauss} test_primality={test_primality} format={dialect} "
            f"workers={workers} chunksize={chunksize} csv={csv_path} "
            f"debug={DEBUG} assertions={ASSERTIONS}\n"
        )
        logf.flush()

        try:
            with SieveCsvWriter(csv_path, dialect) as writer:
                for p1, records, stats in iter_prime_results(
                    max_prime, params, test_primality, workers=workers, chunksize=chunksize
                ):
                    primes_scanned += 1
                    totals.merge(stats)
                    writer.write(records)
                    records_written = writer.rows_written

                    if DEBUG:
                        logf.write(
                            f"{utc_now_iso()} debug p1={p1} candidates={len(records)} "
                            f"ambiguous_classes={stats.classes_ambiguous} "
                            f"gcd_rejects={stats.gcd_rejects} power_rejects={stats.power_rejects}\n"
                        )
                    if progress_every > 0 and primes_scanned % progress_every == 0:
                        writer.flush()
                        logf.write(
                            f"{utc_now_iso()} progress primes={primes_scanned} last_p1={p1} "
                            f"records={records_written} kept_classes={totals.classes_kept} "
                            f"ambiguous_classes={totals.classes_ambiguous} "
                            f"gcd_rejects={totals.gcd_rejects} power_rejects={totals.power_rejects} "
                            f"overflow_skips={totals.overflow_skips}\n"
                        )
                        logf.flush()

            end_utc = utc_now_iso()
            runtime = time.time() - t0
            logf.write(
                f"{end_utc} DONE max_prime={max_prime} primes={primes_scanned} "
                f"records={records_written} runtime_sec={runtime:.3f}\n"
            )
            logf.flush()

            result.update({
                "primes_scanned": primes_scanned,
                "records_written": records_written,
                "runtime_sec": runtime,
                "search_stats": totals.as_dict(),
            })

            write_summary_json(
                path=summary_path,
                max_prime=max_prime,
                primes_scanned=primes_scanned,
                records_written=records_written,
                start_utc=start_utc,
                end_utc=end_utc,
                runtime_sec=runtime,
                env=env or {},
                params=params_info,
                search_stats=totals.as_dict(),
                csv_file=csv_path,
                log_file=log_path,
            )

        except Exception as e:
            end_utc = utc_now_iso()
            logf.write(f"{end_utc} ERROR max_prime={max_prime} primes={primes_scanned} error={repr(e)}\n")
            logf.flush()
            print(f"[!] ERROR max_prime={max_prime}: {e!r} (see {log_path})")
            result["error"] = repr(e)

    return result


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description=f"{program_name}: Eisenstein-norm candidate sieve over primes p1.",
    )
    ap.add_argument("--version", action="store_true",
                    help="Print version/environment info and exit")
    ap.add_argument("--max_prime", type=int, default=100_000,
                    help="Upper bound (inclusive) for the driving prime p1 (default 100000).")
    ap.add_argument("--outdir", default=f"{program_name}_v{program_version}_runs")
    ap.add_argument("--csv_path", default=None,
                    help="Explicit CSV path; default is {outdir}/sieve_p{max_prime}_{UTC stamp}.csv")
    ap.add_argument("--slots", type=parse_slots, default=(ResidueSlot.K1,),
                    help="Comma-separated residue slots to search (k1,k2,k3). Default k1, the "
                         "production configuration; k2/k3 are experimental.")
    ap.add_argument("--gauss", action="store_true",
                    help="Compute a Gaussian pair z = a^2 + b^2 for every accepted candidate. "
                         "Without it A;B are not computed.")
    ap.add_argument("--no_primality", action="store_true",
                    help="Skip the trial division checks of p1, p2, z (flags become untested).")
    ap.add_argument("--format", default="reference", choices=list(DIALECTS),
                    help="reference: untested flags render as 1 and missing A;B as 0 (legacy tables). "
                         "explicit: untested flags render as ? and missing A;B stay empty.")
    ap.add_argument("--min_power_base", type=min_power_base, default=13,
                    help="Reject z = a^k with a >= this base (default 13, at least 2).")
    ap.add_argument("--workers", type=int, default=1,
                    help="Worker processes; 0 = os.cpu_count(). Output is identical to a serial run.")
    ap.add_argument("--chunksize", type=int, default=16)
    ap.add_argument("--progress_every", type=int, default=1000)
    ap.add_argument("--debug", action="store_true")
    ap.add_argument("--assertions", action="store_true")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    global DEBUG, ASSERTIONS

    args = build_parser().parse_args(argv)

    # Version/env reporting (for reproducible runs)
    if args.version:
        info = env_block(__file__, sys.argv)
        print(json.dumps(info, indent=2, sort_keys=True))
        return 0

    DEBUG = bool(args.debug)
    ASSERTIONS = bool(args.assertions)
    search.ASSERTIONS = ASSERTIONS

    workers = args.workers if args.workers and args.workers > 0 else (os.cpu_count() or 1)
    params = SearchParams(
        slots=args.slots,
        min_power_base=args.min_power_base,
        gauss=bool(args.gauss),
    )

    print(f"[+] {program_name} v{program_version}")
    print(f"[+] max_prime={args.max_prime} outdir={args.outdir}")
    print(f"[+] slots={','.join(s.value for s in params.slots)} gauss={params.gauss} "
          f"primality={'off' if args.no_primality else 'on'} format={args.format}")
    print(f"[+] workers={workers} chunksize={args.chunksize}")
    print(f"[+] debug={DEBUG} assertions={ASSERTIONS}")
    print(f"[+] start time (UTC): {utc_now_iso()}\n")

    # run_sieve logs its own failures; this catches the ones before the log is open
    try:
        res = run_sieve(
            max_prime=args.max_prime,
            outdir=args.outdir,
            params=params,
            test_primality=not args.no_primality,
            dialect=args.format,
            workers=workers,
            chunksize=args.chunksize,
            csv_path=args.csv_path,
            progress_every=args.progress_every,
            env=env_block(__file__, sys.argv),
        )
    except OSError as e:
        print(f"[!] ERROR max_prime={args.max_prime}: {e!r} (outdir={args.outdir})")
        return 1
    if "error" in res:
        return 1

    print(
        f"[>] primes={res['primes_scanned']} records={res['records_written']} "
        f"runtime={float(res['runtime_sec'])/60:.2f} min"
    )
    print(f"[>] csv written to {res['csv_path']}")
    print(f"\n[+] Finished. End time (UTC): {utc_now_iso()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
