"""
Home Dashboard - User Store
=============================
Account storage for the dashboard login page.

Security model:
- All accounts live in a single users.json file (JSON array)
- Passwords are stored as bcrypt hashes, never in plaintext
- The file is loaded once at startup and rewritten in full on signup

Record layout:
    {
        "id": "3f0c...-uuid4",
        "username": "alice",
        "email": "alice@example.com",   # "" when not given
        "password": "$2b$10$..."        # bcrypt hash
    }
"""

import os
import threading
import uuid

import bcrypt

from dashboard.eventlog import EventLog
from dashboard.jsonfile import read_json, write_json_atomic


class UserExistsError(Exception):
    """Raised when signing up with a username that is already taken."""


class UserStore:
    """
    In-memory user list backed by users.json.

    Attributes:
        users_file:    Path to the JSON file holding all user records.
        bcrypt_rounds: Cost factor passed to bcrypt.gensalt().
        users:         Loaded user records (list of dicts).
    """

    def __init__(self, users_file: str, events: EventLog, bcrypt_rounds: int = 10):
        """
        Initialize the store and load existing users.

        Args:
            users_file:    Absolute path to users.json.
            events:        Event log for signup/login messages.
            bcrypt_rounds: bcrypt cost factor for new hashes.
        """
        self.users_file = users_file
        self.bcrypt_rounds = bcrypt_rounds
        self.events = events
        self.users: list[dict] = []
        self._lock = threading.Lock()
        self._load()

    def find(self, username: str) -> dict | None:
        """Return the user record for 'username', or None."""
        for user in self.users:
            if user.get("username") == username:
                return user
        return None

    def create(self, username: str, password: str, email: str = "") -> dict:
        """
        Register a new user.

        Args:
            username: Unique login name.
            password: Plaintext password (hashed before storage).
            email:    Optional contact address.

        Returns:
            The stored user record (including the hash).

        Raises:
            ValueError:      If username or password is empty.
            UserExistsError: If the username is already taken.
            OSError:         If users.json cannot be written.
        """
        if not username or not password:
            raise ValueError("Username and password are required.")

        with self._lock:
            if self.find(username) is not None:
                raise UserExistsError(username)

            password_hash = bcrypt.hashpw(
                password.encode("utf-8"), bcrypt.gensalt(rounds=self.bcrypt_rounds)
            )
            user = {
                "id": str(uuid.uuid4()),
                "username": username,
                "email": email or "",
                "password": password_hash.decode("utf-8"),
            }
            self.users.append(user)
            try:
                self._save()
            except OSError:
                # Keep memory consistent with what is on disk
                self.users.remove(user)
                raise

        self.events.info("SIGNUP", f"New user '{username}' registered")
        return user

    def verify(self, username: str, password: str) -> dict | None:
        """
        Check credentials.

        Returns:
            The user record when the password matches, None otherwise.
        """
        user = self.find(username)
        if not user or not user.get("password"):
            return None
        try:
            if bcrypt.checkpw(password.encode("utf-8"), user["password"].encode("utf-8")):
                return user
        except ValueError:
            # Malformed hash in users.json
            self.events.warning(f"Stored password hash for '{username}' is invalid")
        return None

    # -- Internal helpers ------------------------------------------------------

    def _load(self) -> None:
        """Load users.json from disk; a missing file means no users yet."""
        if not os.path.exists(self.users_file):
            return
        try:
            data = read_json(self.users_file)
        except (ValueError, OSError) as e:
            self.events.error("USERS", f"Could not read {self.users_file}: {e}")
            return
        if isinstance(data, list):
            self.users = [u for u in data if isinstance(u, dict)]
        else:
            self.events.error("USERS", f"{self.users_file} does not contain a list")

    def _save(self) -> None:
        """Rewrite users.json with the full user list."""
        write_json_atomic(self.users_file, self.users)
