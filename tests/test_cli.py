import json
import os

import pytest

from eis_sieve import cli
from eis_sieve.search import ResidueSlot, SearchParams

HEADER_LINE = "P1;P2;Z;N;K1;K2;K3;A;B;D;E;IsPrimeP1;IsPrimeP2;IsPrimeZ"


def _run(tmp_path, name, **kw):
    kw.setdefault("params", SearchParams())
    return cli.run_sieve(outdir=str(tmp_path), csv_path=str(tmp_path / name), **kw)


def test_end_to_end_p1_up_to_5(tmp_path):
    res = _run(tmp_path, "p5.csv", max_prime=5)
    assert "error" not in res
    assert res["primes_scanned"] == 3
    assert res["records_written"] == 1
    text = (tmp_path / "p5.csv").read_text(encoding="utf-8")
    assert text == HEADER_LINE + "\n" + "5;9;13;1;1;4;0;0;0;-3;1;1;0;1\n"


def test_end_to_end_p1_up_to_7(tmp_path):
    _run(tmp_path, "p7.csv", max_prime=7)
    lines = (tmp_path / "p7.csv").read_text(encoding="utf-8").splitlines()
    assert lines[1:] == [
        "5;9;13;1;1;4;0;0;0;-3;1;1;0;1",
        "7;11;37;1;-1;6;2;0;0;-7;-3;1;1;1",
        "7;15;1;2;3;2;2;0;0;1;1;1;0;0",
    ]


def test_explicit_format_without_primality(tmp_path):
    _run(tmp_path, "explicit.csv", max_prime=5, test_primality=False, dialect="explicit")
    lines = (tmp_path / "explicit.csv").read_text(encoding="utf-8").splitlines()
    assert lines[1] == "5;9;13;1;1;4;0;;;-3;1;?;?;?"


def test_gauss_column(tmp_path):
    _run(tmp_path, "gauss.csv", max_prime=5, params=SearchParams(gauss=True))
    lines = (tmp_path / "gauss.csv").read_text(encoding="utf-8").splitlines()
    assert lines[1] == "5;9;13;1;1;4;0;2;3;-3;1;1;0;1"


def test_summary_and_log(tmp_path):
    res = _run(tmp_path, "s.csv", max_prime=100, progress_every=5)
    with open(res["summary_path"], encoding="utf-8") as f:
        summary = json.load(f)
    assert summary["max_prime"] == 100
    assert summary["primes_scanned"] == 25
    assert summary["records_written"] == res["records_written"]
    assert summary["params"]["slots"] == ["k1"]
    assert summary["search_stats"]["classes_kept"] == res["records_written"]
    assert summary["artifacts"]["csv_file_sha256"]

    with open(res["log_path"], encoding="utf-8") as f:
        log = f.read()
    assert " START max_prime=100 " in log
    assert " progress primes=5 " in log
    assert " DONE max_prime=100 primes=25 " in log


def test_parallel_run_matches_serial(tmp_path):
    params = SearchParams(slots=(ResidueSlot.K1, ResidueSlot.K2))
    _run(tmp_path, "serial.csv", max_prime=600, params=params, workers=1)
    _run(tmp_path, "parallel.csv", max_prime=600, params=params, workers=2, chunksize=3)
    serial = (tmp_path / "serial.csv").read_bytes()
    parallel = (tmp_path / "parallel.csv").read_bytes()
    assert serial == parallel
    assert serial.count(b"\n") > 10


def test_io_failure_is_reported(tmp_path, capsys):
    bad = tmp_path / "missing" / "out.csv"
    res = cli.run_sieve(max_prime=20, outdir=str(tmp_path), params=SearchParams(), csv_path=str(bad))
    assert "error" in res
    assert "[!] ERROR" in capsys.readouterr().out
    with open(res["log_path"], encoding="utf-8") as f:
        assert " ERROR max_prime=20 " in f.read()


def test_main_exit_codes(tmp_path):
    ok = cli.main(["--max_prime", "30", "--outdir", str(tmp_path), "--slots", "k1,k3", "--gauss"])
    assert ok == 0
    assert any(name.startswith("sieve_p30_") for name in os.listdir(tmp_path))

    bad = cli.main(["--max_prime", "30", "--outdir", str(tmp_path),
                    "--csv_path", str(tmp_path / "nope" / "x.csv")])
    assert bad == 1


def test_version_block(capsys):
    assert cli.main(["--version"]) == 0
    info = json.loads(capsys.readouterr().out)
    assert info["program"] == "Eis_Sieve v1"
    assert "sympy_version" in info


def test_parse_slots():
    assert cli.parse_slots("k1") == (ResidueSlot.K1,)
    assert cli.parse_slots("K2, k1,k2") == (ResidueSlot.K2, ResidueSlot.K1)


def test_outdir_that_is_a_file_is_reported(tmp_path, capsys):
    not_a_dir = tmp_path / "taken"
    not_a_dir.write_text("x", encoding="utf-8")
    assert cli.main(["--max_prime", "10", "--outdir", str(not_a_dir)]) == 1
    assert "[!] ERROR max_prime=10" in capsys.readouterr().out


def test_summary_write_failure_is_logged(tmp_path, monkeypatch, capsys):
    def fail(**kw):
        raise OSError("disk full")

    monkeypatch.setattr(cli, "write_summary_json", fail)
    res = _run(tmp_path, "s.csv", max_prime=10)
    assert "disk full" in res["error"]
    assert "[!] ERROR" in capsys.readouterr().out
    with open(res["log_path"], encoding="utf-8") as f:
        log = f.read()
    assert " DONE max_prime=10 " in log
    assert " ERROR max_prime=10 " in log


def test_min_power_base_must_be_at_least_two(capsys):
    assert cli.min_power_base("13") == 13
    assert cli.min_power_base("2") == 2
    for bad in ("1", "0", "-5"):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["--min_power_base", bad])
    assert "at least 2" in capsys.readouterr().err
