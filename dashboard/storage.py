"""
Home Dashboard - Blob Store
=============================
Per-key JSON document storage used by the front-end pages to persist
their own state (flashcard decks, practice progress, preferences...).

File layout:
    data/
      <key>.json   <- one document per key, any JSON value

Keys are validated before touching the filesystem so that a key can
never point outside the data directory.
"""

import os
import re
import threading
from typing import Any

from dashboard.jsonfile import read_json, write_json_atomic


KEY_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9_.-]{0,127}")


class InvalidKeyError(ValueError):
    """Raised for keys that are empty, too long, or could escape data/."""


class BlobStore:
    """
    Key -> JSON document store backed by one file per key.

    Attributes:
        data_dir: Directory holding the <key>.json files.
    """

    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        self._lock = threading.Lock()
        os.makedirs(data_dir, exist_ok=True)

    def path_for(self, key: str) -> str:
        """
        Return the file path for 'key'.

        Raises:
            InvalidKeyError: If the key is not a plain file-name-safe token.
        """
        if not isinstance(key, str) or not KEY_PATTERN.fullmatch(key) or ".." in key:
            raise InvalidKeyError(key)
        return os.path.join(self.data_dir, f"{key}.json")

    def get(self, key: str) -> Any:
        """
        Read the document stored under 'key'.

        Returns:
            The parsed JSON value, or None when nothing is stored.

        Raises:
            InvalidKeyError:      Bad key.
            ValueError:           Stored file is not valid JSON.
            OSError:              File exists but cannot be read.
        """
        path = self.path_for(key)
        if not os.path.exists(path):
            return None
        return read_json(path)

    def put(self, key: str, value: Any) -> None:
        """
        Store 'value' under 'key', replacing any previous document.

        Raises:
            InvalidKeyError: Bad key.
            OSError:         The file could not be written.
        """
        path = self.path_for(key)
        with self._lock:
            write_json_atomic(path, value)

    def delete(self, key: str) -> bool:
        """
        Remove the document stored under 'key'.

        Returns:
            True if a file was removed, False if there was nothing to delete.

        Raises:
            InvalidKeyError: Bad key.
        """
        path = self.path_for(key)
        with self._lock:
            try:
                os.remove(path)
            except FileNotFoundError:
                return False
        return True
