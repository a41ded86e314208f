from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import pyarrow.parquet as pq
import pytest

from tabrec.core.codec import marshal, unmarshal
from tabrec.core.errors import EmptyDocumentError
from tabrec.core.fields import csv_field
from tabrec.io import formats
from tabrec.io.config import IoSettings
from tabrec.io.errors import IoFormatError, IoReadError
from tabrec.io.files import (
    read_csv_file,
    read_file,
    read_json_file,
    read_yaml_file,
    write_csv_file,
    write_file,
    write_json_file,
    write_yaml_file,
)
from tabrec.io.formats import FileFormat, format_for_path, get_format, list_formats, register_format


@dataclass
class User:
    id: int = csv_field("id")
    name: str = csv_field("name")
    joined: datetime = csv_field("joined", default=datetime(2024, 1, 1, tzinfo=UTC))
    active: bool = csv_field("active", default=True)
    score: float = csv_field("score", default=0.0)
    note: str = csv_field("note", omitempty=True, default="")


USERS = [
    User(1, "Ada", datetime(2024, 5, 1, 9, 30, tzinfo=UTC), True, 9.5),
    User(2, "Grace", datetime(2024, 6, 2, tzinfo=UTC), False, 7.25),
]


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    for key in ("TABREC_IO_DELIMITER", "TABREC_IO_LATEST_BY", "TABREC_IO_TIMESTAMP_PLACEHOLDER"):
        monkeypatch.delenv(key, raising=False)


@pytest.mark.parametrize("suffix", [".csv", ".json", ".yaml", ".yml", ".parquet"])
def test_round_trip_every_builtin_format(tmp_path: Path, suffix: str) -> None:
    path = str(tmp_path / f"users{suffix}")

    written = write_file(USERS, path)

    assert written == path
    assert read_file(list[User], path) == USERS
    assert read_file(User, path) == USERS[0]


def test_builtin_formats_registered() -> None:
    names = [fmt.name for fmt in list_formats()]
    assert names[:4] == ["csv", "json", "yaml", "parquet"]
    assert format_for_path("a/B.YML").name == "yaml"
    assert get_format("JSON").name == "json"


def test_unknown_format_rejected(tmp_path: Path) -> None:
    with pytest.raises(IoFormatError):
        write_file(USERS, str(tmp_path / "users.xlsx"))
    with pytest.raises(IoFormatError):
        write_file(USERS, str(tmp_path / "users"))
    with pytest.raises(IoFormatError):
        get_format("xlsx")


def test_explicit_format_overrides_extension(tmp_path: Path) -> None:
    path = write_file(USERS, str(tmp_path / "users.txt"), fmt="csv")

    assert Path(path).read_bytes() == marshal(USERS)
    assert read_file(list[User], path, fmt="csv") == USERS


def test_placeholder_stamps_write_and_read_picks_latest(tmp_path: Path) -> None:
    settings = IoSettings()
    (tmp_path / "users_20000101_000000.csv").write_bytes(marshal([User(9, "old")]))

    written = write_csv_file(USERS, str(tmp_path / "users_*.csv"), settings=settings)

    assert "*" not in written
    assert Path(written).name.startswith("users_")
    assert read_csv_file(list[User], str(tmp_path / "users_*.csv"), settings=settings) == USERS


def test_custom_placeholder_and_mtime_policy(tmp_path: Path) -> None:
    settings = IoSettings(timestamp_placeholder="{ts}", timestamp_format="%Y", latest_by="mtime")

    written = write_json_file(USERS, str(tmp_path / "users_{ts}.json"), settings=settings)

    assert Path(written).name == f"users_{datetime.now():%Y}.json"
    assert read_json_file(list[User], str(tmp_path / "users_{ts}.json"), settings=settings) == USERS


def test_read_without_match_raises(tmp_path: Path) -> None:
    with pytest.raises(IoReadError):
        read_file(list[User], str(tmp_path / "nothing_*.csv"))


def test_csv_uses_settings_delimiter(tmp_path: Path) -> None:
    settings = IoSettings(delimiter=";")
    path = write_csv_file([User(1, "Ada")], str(tmp_path / "u.csv"), settings=settings)

    assert Path(path).read_text().splitlines()[0] == "id;name;joined;active;score"
    assert read_csv_file(User, path, settings=settings) == User(1, "Ada")


def test_json_rows_keep_column_order_and_iso_datetimes(tmp_path: Path) -> None:
    path = write_json_file(USERS[:1], str(tmp_path / "u.json"))

    rows = json.loads(Path(path).read_text())

    assert rows == [
        {
            "id": 1,
            "name": "Ada",
            "joined": "2024-05-01T09:30:00+00:00",
            "active": True,
            "score": 9.5,
        }
    ]
    assert list(rows[0]) == ["id", "name", "joined", "active", "score"]


def test_json_single_object_and_bad_shapes(tmp_path: Path) -> None:
    p = tmp_path / "one.json"
    p.write_text('{"id": 3, "name": "Lin", "extra": "ignored"}')
    assert read_json_file(User, str(p)) == User(3, "Lin")

    p.write_text("5")
    with pytest.raises(IoFormatError):
        read_json_file(User, str(p))

    p.write_text("[1, 2]")
    with pytest.raises(IoFormatError):
        read_json_file(list[User], str(p))

    p.write_text("{not json")
    with pytest.raises(IoFormatError):
        read_json_file(User, str(p))


def test_yaml_rows_and_empty_document(tmp_path: Path) -> None:
    path = write_yaml_file(USERS, str(tmp_path / "u.yaml"))
    assert read_yaml_file(list[User], path) == USERS

    empty = tmp_path / "empty.yaml"
    empty.write_text("")
    with pytest.raises(EmptyDocumentError):
        read_yaml_file(list[User], str(empty))


def test_parquet_embeds_record_type_metadata(tmp_path: Path) -> None:
    path = write_file(USERS, str(tmp_path / "users.parquet"), settings=IoSettings(compression="snappy"))

    meta = pq.read_schema(path).metadata

    assert meta[b"tabrec_record_type"] == f"{User.__module__}.{User.__qualname__}".encode()
    assert b"tabrec_version" in meta


def test_empty_sequence_needs_record_type(tmp_path: Path) -> None:
    path = write_file([], str(tmp_path / "none.csv"), record_type=User)

    assert Path(path).read_text() == "id,name,joined,active,score\n"
    assert read_file(list[User], path) == []


def test_registered_custom_format(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(formats, "_FORMATS", dict(formats._FORMATS))

    def dump(value, *, record_type, settings):
        return marshal(value, record_type=record_type, delimiter="\t")

    def load(data, target, *, settings):
        return unmarshal(data, target, delimiter="\t")

    register_format(FileFormat("tsv", (".tsv",), dump, load))

    path = write_file(USERS, str(tmp_path / "users.tsv"))

    assert Path(path).read_text().startswith("id\tname\t")
    assert read_file(list[User], path) == USERS
