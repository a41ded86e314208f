from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

import pytest

from tabrec.io.errors import IoReadError, IoWriteError
from tabrec.io.fs import (
    latest_file_by_mtime,
    latest_file_by_name,
    read_bytes,
    timestamp_file_name,
    write_bytes_atomic,
)


def test_timestamp_file_name_replaces_every_placeholder() -> None:
    now = datetime(2024, 5, 1, 9, 30, 0)
    assert timestamp_file_name("out/users_*.csv", now=now) == "out/users_20240501_093000.csv"
    assert timestamp_file_name("*/a_*.csv", fmt="%Y", now=now) == "2024/a_2024.csv"
    assert timestamp_file_name("out/{ts}.json", placeholder="{ts}", now=now) == (
        "out/20240501_093000.json"
    )
    assert timestamp_file_name("out/users.csv", now=now) == "out/users.csv"


def test_write_bytes_atomic_creates_parents_and_leaves_no_tmp(tmp_path: Path) -> None:
    target = tmp_path / "a" / "b" / "data.csv"

    write_bytes_atomic(str(target), b"x\n1\n")
    write_bytes_atomic(str(target), b"x\n2\n")

    assert target.read_bytes() == b"x\n2\n"
    assert os.listdir(target.parent) == ["data.csv"]


def test_write_bytes_atomic_failure_cleans_up(tmp_path: Path) -> None:
    blocker = tmp_path / "taken"
    blocker.mkdir()
    (blocker / "inner").write_text("keep")

    with pytest.raises(IoWriteError):
        write_bytes_atomic(str(blocker), b"data")

    assert sorted(os.listdir(tmp_path)) == ["taken"]


def test_latest_file_by_name(tmp_path: Path) -> None:
    for stamp in ("20240101_000000", "20240301_000000", "20240201_000000"):
        (tmp_path / f"users_{stamp}.csv").write_text("x")
    (tmp_path / "users_20990101_000000.json").write_text("x")

    latest = latest_file_by_name(str(tmp_path / "users_*.csv"))

    assert Path(latest).name == "users_20240301_000000.csv"


def test_latest_file_by_mtime(tmp_path: Path) -> None:
    old = tmp_path / "b.csv"
    new = tmp_path / "a.csv"
    old.write_text("x")
    new.write_text("x")
    os.utime(old, (1_000_000, 1_000_000))
    os.utime(new, (2_000_000, 2_000_000))

    assert Path(latest_file_by_mtime(str(tmp_path / "*.csv"))).name == "a.csv"


def test_no_match_raises_read_error(tmp_path: Path) -> None:
    with pytest.raises(IoReadError):
        latest_file_by_name(str(tmp_path / "*.csv"))
    with pytest.raises(IoReadError):
        latest_file_by_mtime(str(tmp_path / "*.csv"))
    with pytest.raises(IoReadError):
        read_bytes(str(tmp_path / "missing.csv"))
