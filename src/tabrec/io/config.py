"""
Configuration for the tabrec.io module.

Defines IoSettings, a frozen dataclass carrying runtime configuration for file
persistence. Defaults for the text layout come from tabrec.core.constants (the
single source of truth for the codec).

Source of truth
- tabrec.core.constants.DEFAULT_DELIMITER, TEXT_ENCODING

Import DAG discipline
- Depends only on stdlib and tabrec.core.constants.

Notes
- Precedence when loading: environment > TOML > defaults.
- Invalid values raise IoConfigError rather than being ignored.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Literal

from tabrec.core.constants import DEFAULT_DELIMITER, TEXT_ENCODING

from .errors import IoConfigError

__all__ = ["IoSettings", "LatestBy", "Compression"]

logger = logging.getLogger(__name__)

LatestBy = Literal["name", "mtime"]
Compression = Literal["zstd", "lz4", "snappy"]

_LATEST_BY = ("name", "mtime")
_COMPRESSIONS = ("zstd", "lz4", "snappy")
_TRUE = {"1", "true", "t", "yes", "y", "on"}
_FALSE = {"0", "false", "f", "no", "n", "off"}


@dataclass(frozen=True)
class IoSettings:
    """
    Runtime settings for the tabrec.io layer.

    Attributes:
        encoding (str): Text encoding for JSON and YAML files.
        delimiter (str): Single-character CSV field delimiter.
        strict_columns (bool): Reject record types that declare a column name twice.
        timestamp_format (str): strftime pattern substituted for the placeholder
            in write paths.
        timestamp_placeholder (str): Token in write paths replaced by a timestamp.
        latest_by (Literal["name","mtime"]): How read_file picks among glob matches.
        json_indent (int): Indentation for JSON output (0 for compact).
        compression (Literal["zstd","lz4","snappy"]): Parquet compression codec.

    Examples:
        >>> from tabrec.io import IoSettings
        >>> IoSettings(delimiter=";")  # doctest: +ELLIPSIS
        IoSettings(...)
    """

    encoding: str = TEXT_ENCODING
    delimiter: str = DEFAULT_DELIMITER
    strict_columns: bool = False
    timestamp_format: str = "%Y%m%d_%H%M%S"
    timestamp_placeholder: str = "*"
    latest_by: LatestBy = "name"
    json_indent: int = 2
    compression: Compression = "zstd"

    # Configuration loaders (env/TOML) with precedence: env > TOML > defaults.

    @classmethod
    def _apply_mapping(cls, base: IoSettings, cfg: dict[str, Any] | None) -> IoSettings:
        """
        Apply a loose config mapping onto IoSettings, returning a new instance.

        Raises:
            IoConfigError: If a recognized key holds an invalid value.
        """
        if not isinstance(cfg, dict):
            return base

        s = base

        def _bool(key: str, v: Any) -> bool:
            if isinstance(v, bool):
                return v
            if isinstance(v, int):
                return bool(v)
            if isinstance(v, str):
                lo = v.strip().lower()
                if lo in _TRUE:
                    return True
                if lo in _FALSE:
                    return False
            raise IoConfigError(f"{key} must be a boolean, got {v!r}")

        def _choice(key: str, v: Any, allowed: tuple[str, ...]) -> str:
            if isinstance(v, str) and v.strip().lower() in allowed:
                return v.strip().lower()
            raise IoConfigError(f"{key} must be one of {', '.join(allowed)}, got {v!r}")

        def _text(key: str, v: Any) -> str:
            if isinstance(v, str) and v:
                return v
            raise IoConfigError(f"{key} must be a non-empty string, got {v!r}")

        if "encoding" in cfg:
            s = replace(s, encoding=_text("encoding", cfg["encoding"]))

        # delimiter (csv requires exactly one character)
        if "delimiter" in cfg:
            delim = cfg["delimiter"]
            if not isinstance(delim, str) or len(delim) != 1 or delim in "\r\n\"":
                raise IoConfigError(f"delimiter must be a single character, got {delim!r}")
            s = replace(s, delimiter=delim)

        if "strict_columns" in cfg:
            s = replace(s, strict_columns=_bool("strict_columns", cfg["strict_columns"]))

        if "timestamp_format" in cfg:
            s = replace(s, timestamp_format=_text("timestamp_format", cfg["timestamp_format"]))

        if "timestamp_placeholder" in cfg:
            s = replace(
                s, timestamp_placeholder=_text("timestamp_placeholder", cfg["timestamp_placeholder"])
            )

        if "latest_by" in cfg:
            s = replace(s, latest_by=_choice("latest_by", cfg["latest_by"], _LATEST_BY))  # type: ignore[arg-type]

        # json_indent
        if "json_indent" in cfg:
            raw = cfg["json_indent"]
            try:
                if isinstance(raw, bool):
                    raise ValueError(raw)
                indent = int(raw)
            except (TypeError, ValueError) as exc:
                raise IoConfigError(f"json_indent must be an integer, got {raw!r}") from exc
            if indent < 0:
                raise IoConfigError(f"json_indent must be >= 0, got {indent}")
            s = replace(s, json_indent=indent)

        if "compression" in cfg:
            s = replace(s, compression=_choice("compression", cfg["compression"], _COMPRESSIONS))  # type: ignore[arg-type]

        return s

    @classmethod
    def from_env(cls, base: IoSettings | None = None, prefix: str = "TABREC_IO_") -> IoSettings:
        """
        Build IoSettings from environment variables. Precedence is env > base (if provided) > defaults.

        Recognized variables:
            - TABREC_IO_ENCODING
            - TABREC_IO_DELIMITER
            - TABREC_IO_STRICT_COLUMNS (1/0/true/false/yes/no/on/off)
            - TABREC_IO_TIMESTAMP_FORMAT
            - TABREC_IO_TIMESTAMP_PLACEHOLDER
            - TABREC_IO_LATEST_BY ("name" | "mtime")
            - TABREC_IO_JSON_INDENT
            - TABREC_IO_COMPRESSION ("zstd" | "lz4" | "snappy")

        Raises:
            IoConfigError: If a variable holds an invalid value.
        """
        s = base or cls()

        mapping: dict[str, Any] = {}
        for key in (
            "encoding",
            "delimiter",
            "strict_columns",
            "timestamp_format",
            "timestamp_placeholder",
            "latest_by",
            "json_indent",
            "compression",
        ):
            v = os.getenv(prefix + key.upper())
            if v:
                mapping[key] = v

        return cls._apply_mapping(s, mapping)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> IoSettings:
        """
        Build IoSettings from a TOML file.

        Search order when `path` is None:
            1) ./tabrec.toml (with either top-level [io] or direct keys)
            2) ./pyproject.toml under [tool.tabrec.io]

        Returns defaults if no file is present.

        Raises:
            IoConfigError: If the file is not valid TOML or holds an invalid value.
        """
        s = cls()

        def _load_toml(p: Path) -> dict[str, Any]:
            try:
                with p.open("rb") as fh:
                    return tomllib.load(fh)
            except tomllib.TOMLDecodeError as exc:
                raise IoConfigError(f"invalid TOML in {p}: {exc}") from exc

        cfg: dict[str, Any] | None = None

        cand: list[Path] = []
        if path is not None:
            cand.append(Path(path))
        else:
            cand.append(Path.cwd() / "tabrec.toml")
            cand.append(Path.cwd() / "pyproject.toml")

        for p in cand:
            if not p.exists():
                continue
            data = _load_toml(p)
            if p.name == "pyproject.toml":
                # Expect [tool.tabrec.io]
                tool = data.get("tool", {})
                cfg = tool.get("tabrec", {}).get("io") if isinstance(tool, dict) else None
            elif isinstance(data.get("io"), dict):
                cfg = data["io"]
            else:
                cfg = data
            if cfg:
                logger.debug("io settings loaded from %s", p)
                break

        return cls._apply_mapping(s, cfg)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> IoSettings:
        """
        Load IoSettings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path. If None, search defaults (tabrec.toml, pyproject.toml).

        Returns:
            IoSettings
        """
        s = cls.from_toml(path)
        s = cls.from_env(base=s)
        return s
