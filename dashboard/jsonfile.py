"""
Home Dashboard - JSON File Helpers
====================================
Shared read/write helpers for the flat JSON files the dashboard keeps on
disk (users.json, devices.json, data/<key>.json).

Writes go to a temporary file in the target directory first and are then
moved into place with os.replace(), so a crash mid-write leaves either the
old file or the new one, never a truncated mix.
"""

import json
import os
import tempfile
from typing import Any


def reject_constant(token: str) -> Any:
    """parse_constant hook: NaN and Infinity are not valid JSON values."""
    raise ValueError(f"non-standard JSON constant: {token}")


def read_json(path: str) -> Any:
    """
    Load a JSON document from disk.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the content is not valid JSON (including NaN/Infinity).
    """
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f, parse_constant=reject_constant)


def write_json_atomic(path: str, data: Any) -> None:
    """
    Serialize 'data' to 'path' (indent 2) atomically.

    Raises:
        OSError:    If the directory is not writable or the rename fails.
        TypeError:  If 'data' is not JSON-serializable.
        ValueError: If 'data' contains NaN or Infinity.
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(
        prefix=f".{os.path.basename(path)}.", suffix=".tmp", dir=directory
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, allow_nan=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
