"""
Custom exceptions for the tabrec.io module.

Purpose
- Provide IO-layer specific error types that map cleanly to responsibilities in tabrec.io.
- Keep tabrec.core as the source of truth for codec errors (see tabrec.core.errors).

Source of truth and boundaries
- tabrec.core.errors.CodecError and its subclasses are raised by the codec and pass
  through this layer unchanged.
- tabrec.io raises Io* errors for filesystem/format/configuration concerns:
  - IoConfigError: invalid or unsupported configuration.
  - IoFormatError: no registered format for a name or extension, or a payload
    of the wrong shape for a format.
  - IoReadError: no file matches a path pattern.
  - IoWriteError: atomic write path failed (tmp write/fsync/rename).

Notes
- These exceptions do not perform any IO and are stdlib-only.
"""

from __future__ import annotations

__all__ = [
    "IoError",
    "IoConfigError",
    "IoFormatError",
    "IoReadError",
    "IoWriteError",
]


class IoError(Exception):
    """
    Base class for IO-related errors in tabrec.io.

    Notes:
        Use this as a catch-all for IO-layer failures, distinct from tabrec.core errors.
    """


class IoConfigError(IoError):
    """
    Raised when IO configuration is invalid or unsupported.

    Examples:
        - Unknown parquet compression codec
        - Delimiter longer than one character
    """


class IoFormatError(IoError):
    """
    Raised when a file format cannot be resolved or its payload has the wrong shape.

    Examples:
        - "report.xlsx" with no format registered for ".xlsx"
        - A JSON document that is neither an array nor an object
    """


class IoReadError(IoError):
    """Raised when no file matches a read path or glob pattern."""


class IoWriteError(IoError):
    """
    Raised when a write operation fails to complete atomically.

    Notes:
        The write path is tmp file → fsync → os.replace(tmp, final). Failures at any step
        surface as IoWriteError (with best-effort cleanup of tmp files).
    """
