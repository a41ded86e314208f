"""
tabrec.io — File persistence and DataFrame bridge for tabrec records.

## Responsibilities
- Persist records as CSV, JSON, YAML, or Parquet files chosen by extension or name.
- Guarantee atomic tmp→final file writes and timestamped file names.
- Bridge records to and from polars DataFrames.
- Keep tabrec.core as the single source of truth for field resolution, cell
  conversion, and the column set.

## Public API
- IoSettings — Configuration for IO behavior (env > TOML > defaults).
- write_file / read_file (+ csv/json/yaml wrappers) — record files.
- FileFormat, register_format, get_format, format_for_path, list_formats — format registry.
- to_frame / from_frame — polars DataFrame bridge.
- Io* errors — see tabrec.io.errors.

## Import DAG discipline
- Depends only on stdlib, polars/pyarrow, PyYAML, and tabrec.core.*.

## Examples
```python
from tabrec.io import read_file, write_file

path = write_file(users, "out/users_*.csv")  # doctest: +SKIP
latest = read_file(list[User], "out/users_*.csv")  # doctest: +SKIP
```

## Notes
- IO write path: tmp file → fsync → os.replace(tmp, final) on the same filesystem for atomicity.
- Parquet files embed b"tabrec_record_type" and b"tabrec_version" key-value metadata.
"""

from __future__ import annotations

from .config import IoSettings
from .errors import IoConfigError, IoError, IoFormatError, IoReadError, IoWriteError
from .files import (
    read_csv_file,
    read_file,
    read_json_file,
    read_yaml_file,
    write_csv_file,
    write_file,
    write_json_file,
    write_yaml_file,
)
from .formats import FileFormat, format_for_path, get_format, list_formats, register_format
from .frames import from_frame, to_frame

__all__ = [
    "IoSettings",
    "write_file",
    "read_file",
    "write_csv_file",
    "read_csv_file",
    "write_json_file",
    "read_json_file",
    "write_yaml_file",
    "read_yaml_file",
    "FileFormat",
    "register_format",
    "get_format",
    "format_for_path",
    "list_formats",
    "to_frame",
    "from_frame",
    "IoError",
    "IoConfigError",
    "IoFormatError",
    "IoReadError",
    "IoWriteError",
]
