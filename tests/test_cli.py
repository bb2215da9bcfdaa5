from __future__ import annotations

import io
import json
import sys
from pathlib import Path

import pytest

from snapshot_builder import KVS, REGISTER, build_snapshot, encode_header, padded_string
from snapshot_inspect import cli
from snapshot_inspect.config import reset_config_cache


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("SNAPSHOT_INSPECT_CONFIG", "SNAPSHOT_INSPECT_PREFIX_DEPTH", "SNAPSHOT_INSPECT_FORMAT"):
        monkeypatch.delenv(name, raising=False)
    reset_config_cache()


def _snapshot_file(tmp_path: Path, data: bytes) -> Path:
    path = tmp_path / "state.bin"
    path.write_bytes(data)
    return path


def _sample() -> bytes:
    return build_snapshot(
        (REGISTER, padded_string(10)),
        (REGISTER, padded_string(20)),
        (REGISTER, padded_string(30)),
        (KVS, {"Key": "foo/bar/baz", "Value": "y" * 25}),
    )


def test_stats_table(tmp_path: Path, capsys) -> None:
    path = _snapshot_file(tmp_path, _sample())
    assert cli.main(["stats", str(path)]) == cli.EXIT_OK
    out = capsys.readouterr().out
    assert "RECORD SUMMARY" in out
    assert f"{'Register':>30} {3:>8} {'60B':>12}" in out
    assert f"{'KVS':>30} {1:>8} {'50B':>12}" in out
    assert f"{'':>30} {'TOTAL:':>8} {'110B':>12}" in out
    assert f"{'foo/bar':>22} {1:>8} {'50B':>12}" in out


def test_stats_json_from_stdin(monkeypatch, capsys) -> None:
    stdin = io.TextIOWrapper(io.BytesIO(_sample()))
    monkeypatch.setattr(sys, "stdin", stdin)
    assert cli.main(["stats", "--format", "json", "--depth", "1"]) == cli.EXIT_OK
    report = json.loads(capsys.readouterr().out)
    assert report["record_bytes"] == 110
    assert report["prefix_depth"] == 1
    assert report["key_prefixes"] == [{"prefix": "foo", "count": 1, "total_bytes": 50}]


def test_truncated_snapshot_exits_non_zero(tmp_path: Path, capsys) -> None:
    path = _snapshot_file(tmp_path, _sample()[:-3])
    assert cli.main(["stats", str(path)]) == cli.EXIT_SNAPSHOT_ERROR
    assert "RECORD SUMMARY" not in capsys.readouterr().out


def test_bad_header_exits_non_zero(tmp_path: Path) -> None:
    path = _snapshot_file(tmp_path, b"\xc1")
    assert cli.main(["stats", str(path)]) == cli.EXIT_SNAPSHOT_ERROR


def test_unknown_tag_still_succeeds(tmp_path: Path, capsys) -> None:
    path = _snapshot_file(tmp_path, build_snapshot((250, "mystery")))
    assert cli.main(["stats", str(path)]) == cli.EXIT_OK
    assert "Unknown(250)" in capsys.readouterr().out


def test_missing_input_file(tmp_path: Path) -> None:
    assert cli.main(["stats", str(tmp_path / "absent.bin")]) == cli.EXIT_SNAPSHOT_ERROR


def test_invalid_option_values(tmp_path: Path) -> None:
    path = _snapshot_file(tmp_path, _sample())
    assert cli.main(["stats", str(path), "--depth", "0"]) == cli.EXIT_USAGE
    assert cli.main(["stats", str(path), "--key-type", "Bogus"]) == cli.EXIT_USAGE


def test_records_listing(tmp_path: Path, capsys) -> None:
    path = _snapshot_file(tmp_path, _sample())
    assert cli.main(["records", str(path)]) == cli.EXIT_OK
    lines = capsys.readouterr().out.splitlines()
    header_len = len(encode_header())
    assert lines[0] == f"# header last_index=42 bytes={header_len}"
    assert lines[1] == f"{header_len:>12} {10:>8} Register"
    assert lines[-1] == f"{header_len + 60:>12} {50:>8} KVS foo/bar/baz"
    assert len(lines) == 5


def test_records_listing_fails_on_truncation(tmp_path: Path) -> None:
    path = _snapshot_file(tmp_path, _sample()[:-1])
    assert cli.main(["records", str(path)]) == cli.EXIT_SNAPSHOT_ERROR


def test_subcommand_required() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main([])
    assert excinfo.value.code == 2
