"""
Exception types for cctoast-wsl.

Expected outcomes (no-op merges, missing files) are reported through result
objects. These exceptions are reserved for conditions the caller has to act on.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cctoast_wsl.jsonc import ParseError


class CctoastError(Exception):
    """Base class for all cctoast-wsl errors."""


class JsoncParseError(CctoastError):
    """Settings text could not be parsed as JSONC."""

    def __init__(self, errors: list[ParseError], path: Path | None = None) -> None:
        self.errors = list(errors)
        self.path = path
        first = self.errors[0].message if self.errors else "unknown parse error"
        where = f"{path}: " if path is not None else ""
        super().__init__(f"JSONC parsing failed: {where}{first}")


class SettingsValidationError(CctoastError):
    """Well-formed JSON that does not have the expected settings shape."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Invalid settings structure: {detail}")


class SettingsFileError(CctoastError):
    """Filesystem failure while reading or writing a settings file."""

    def __init__(self, path: Path, cause: OSError) -> None:
        self.path = path
        self.cause = cause
        reason = cause.strerror or str(cause)
        super().__init__(f"{path}: {reason}")
