"""
Atomic read-merge-write of settings files.

Every mutation of a settings file goes through rewrite_file() (merge_file() is
the common case): read the current document, compute the new one, skip the
write when nothing changed, otherwise optionally back up the old bytes, write
a sibling temp file, fsync it and rename it over the target.

There is no locking. Two processes writing the same file concurrently each
produce a complete file; the last rename wins.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from cctoast_wsl.errors import JsoncParseError, SettingsFileError
from cctoast_wsl.jsonc import ParseError, parse_settings
from cctoast_wsl.merge import MergeOptions, deep_merge

logger = logging.getLogger(__name__)

BACKUP_DIR_NAME = "backup"

Document = dict[str, Any]


@dataclass(frozen=True)
class MergeResult:
    """Outcome of merge_file / rewrite_file."""

    merged: Document
    changed: bool
    backup_path: Path | None = None


def expand_path(path: str | Path) -> Path:
    """Expand a leading ~ to the home directory; other paths are unchanged."""
    text = str(path)
    if text == "~":
        return Path.home()
    if text.startswith("~/"):
        return Path.home() / text[2:]
    return Path(text)


def serialize(document: Any) -> str:
    """Render a document the way it is written to disk."""
    return json.dumps(document, indent=2, ensure_ascii=False, allow_nan=False) + "\n"


def canonical(document: Any) -> str:
    """Key-order independent rendering used for change detection."""
    return json.dumps(document, indent=2, sort_keys=True, ensure_ascii=False, allow_nan=False)


def temp_path_for(path: Path) -> Path:
    return path.parent / f".{path.name}.tmp.{os.getpid()}"


def atomic_write(path: Path, content: str) -> None:
    """
    Write content to path via temp file + fsync + rename.

    The temp file lives in the same directory so the rename stays on one
    filesystem. An existing target keeps its permission bits. On failure the
    temp file is removed and the original error is re-raised; a failing
    cleanup is only logged.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = temp_path_for(path)

    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if path.exists():
            shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError as cleanup_error:
            logger.warning("Could not remove temp file %s: %s", tmp_path, cleanup_error)
        raise


def backup_path_for(path: Path, now: datetime | None = None, counter: int = 0) -> Path:
    """Timestamped backup location in a backup/ directory next to path."""
    now = now or datetime.now(timezone.utc)
    stamp = now.strftime("%Y-%m-%dT%H-%M-%S-%fZ")
    if counter:
        stamp = f"{stamp}-{counter}"
    return path.parent / BACKUP_DIR_NAME / f"{stamp}-{path.name}"


def create_backup(path: Path, content: bytes) -> Path:
    """
    Store content as a new backup of path and return the backup location.

    Names never collide: an existing name gets a counter after the timestamp.
    """
    now = datetime.now(timezone.utc)
    candidate = backup_path_for(path, now)
    candidate.parent.mkdir(parents=True, exist_ok=True)
    counter = 0

    while True:
        try:
            with open(candidate, "xb") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            logger.debug("Backed up %s to %s", path, candidate)
            return candidate
        except FileExistsError:
            counter += 1
            candidate = backup_path_for(path, now, counter)


def read_document(path: Path) -> tuple[Document, bytes | None]:
    """Current document and raw bytes; ({}, None) when the file is absent."""
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        return {}, None
    except OSError as e:
        raise SettingsFileError(path, e) from e

    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        error = ParseError(
            message=f"File is not valid UTF-8 (byte offset {e.start})",
            line=raw.count(b"\n", 0, e.start) + 1,
            column=e.start - raw.rfind(b"\n", 0, e.start),
            offset=e.start,
        )
        raise JsoncParseError([error], path) from e

    if not text.strip():
        return {}, raw

    try:
        return parse_settings(text), raw
    except JsoncParseError as e:
        raise JsoncParseError(e.errors, path) from e


def rewrite_file(
    path: str | Path,
    transform: Callable[[Document], Document],
    options: MergeOptions | None = None,
) -> MergeResult:
    """
    Apply transform to the document stored at path and persist the result.

    A missing file is read as {}. A blank file is also read as {}. Any other
    unparsable content raises instead of being replaced.

    Raises:
        JsoncParseError: the existing file is not valid JSONC
        SettingsValidationError: the existing file has the wrong shape
        SettingsFileError: reading or writing failed
    """
    options = options or MergeOptions()
    target = expand_path(path)

    current, raw = read_document(target)
    merged = transform(current)

    if canonical(current) == canonical(merged):
        logger.debug("No changes for %s, skipping write", target)
        return MergeResult(merged=merged, changed=False)

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        backup = None
        if options.create_backup and raw is not None:
            backup = create_backup(target, raw)
        atomic_write(target, serialize(merged))
    except OSError as e:
        raise SettingsFileError(target, e) from e

    logger.debug("Wrote %s", target)
    return MergeResult(merged=merged, changed=True, backup_path=backup)


def merge_file(
    path: str | Path, updates: Document, options: MergeOptions | None = None
) -> MergeResult:
    """Deep-merge updates into the settings file at path."""
    options = options or MergeOptions()
    return rewrite_file(path, lambda current: deep_merge(current, updates, options), options)
