from __future__ import annotations

from pathlib import Path

import pytest

from tabrec.io.config import IoSettings
from tabrec.io.errors import IoConfigError

ENV_KEYS = [
    "TABREC_IO_ENCODING",
    "TABREC_IO_DELIMITER",
    "TABREC_IO_STRICT_COLUMNS",
    "TABREC_IO_TIMESTAMP_FORMAT",
    "TABREC_IO_TIMESTAMP_PLACEHOLDER",
    "TABREC_IO_LATEST_BY",
    "TABREC_IO_JSON_INDENT",
    "TABREC_IO_COMPRESSION",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def _write_tabrec_toml(tmp: Path, content: str) -> Path:
    p = tmp / "tabrec.toml"
    p.write_text(content)
    return p


def test_io_settings_precedence_env_over_toml(tmp_path: Path, monkeypatch) -> None:
    # Arrange TOML
    _write_tabrec_toml(
        tmp_path,
        """
        [io]
        delimiter = ";"
        json_indent = 4
        compression = "lz4"
        """.strip(),
    )
    # Ensure cwd for IoSettings.from_toml() search
    monkeypatch.chdir(tmp_path)
    # Arrange ENV that should override TOML
    monkeypatch.setenv("TABREC_IO_DELIMITER", "|")
    monkeypatch.setenv("TABREC_IO_COMPRESSION", "snappy")

    s = IoSettings.load()

    # Assert precedence: env > TOML > defaults
    assert s.delimiter == "|"
    assert s.compression == "snappy"
    assert s.json_indent == 4  # TOML only
    assert s.latest_by == "name"  # default


def test_io_settings_from_toml_top_level_keys(tmp_path: Path, monkeypatch) -> None:
    _write_tabrec_toml(
        tmp_path,
        """
        strict_columns = true
        latest_by = "mtime"
        timestamp_format = "%Y%m%d"
        """.strip(),
    )
    monkeypatch.chdir(tmp_path)

    s = IoSettings.load()

    assert s.strict_columns is True
    assert s.latest_by == "mtime"
    assert s.timestamp_format == "%Y%m%d"


def test_io_settings_from_pyproject_tool_table(tmp_path: Path, monkeypatch) -> None:
    (tmp_path / "pyproject.toml").write_text(
        """
        [project]
        name = "demo"

        [tool.tabrec.io]
        delimiter = "\\t"
        timestamp_placeholder = "{ts}"
        """.strip()
    )
    monkeypatch.chdir(tmp_path)

    s = IoSettings.load()

    assert s.delimiter == "\t"
    assert s.timestamp_placeholder == "{ts}"


def test_io_settings_explicit_path(tmp_path: Path) -> None:
    p = tmp_path / "custom.toml"
    p.write_text('[io]\nencoding = "latin-1"\n')

    assert IoSettings.from_toml(p).encoding == "latin-1"


def test_io_settings_defaults_when_no_config(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    s = IoSettings.load()

    assert s == IoSettings()
    assert s.delimiter == ","
    assert s.encoding == "utf-8"
    assert s.compression == "zstd"


@pytest.mark.parametrize(
    "key, value",
    [
        ("TABREC_IO_JSON_INDENT", "wide"),
        ("TABREC_IO_LATEST_BY", "size"),
        ("TABREC_IO_COMPRESSION", "gzip"),
        ("TABREC_IO_DELIMITER", ",;"),
        ("TABREC_IO_STRICT_COLUMNS", "maybe"),
    ],
)
def test_invalid_values_raise(tmp_path: Path, monkeypatch, key: str, value: str) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv(key, value)

    with pytest.raises(IoConfigError):
        IoSettings.load()


def test_invalid_toml_raises(tmp_path: Path, monkeypatch) -> None:
    _write_tabrec_toml(tmp_path, "[io\ndelimiter = ")
    monkeypatch.chdir(tmp_path)

    with pytest.raises(IoConfigError):
        IoSettings.load()
