"""
Home Dashboard - Configuration Manager
=======================================
Handles loading of application configuration from two sources:

1. config.yaml  - Non-sensitive settings (ports, session lifetime, paths)
2. Environment  - Secrets (SESSION_SECRET), usually loaded from .env

Usage:
    config = ConfigManager(project_dir="/path/to/dashboard")
    settings = config.load()             # Returns merged config dict
    secret = config.session_secret()     # Reads SESSION_SECRET
"""

import os
import yaml
from dotenv import dotenv_values


# Default configuration values used when config.yaml is missing or incomplete.
DEFAULTS = {
    "web": {
        "port": 3000,
        "host": "0.0.0.0",
    },
    "session": {
        "max_age": 3600,
        "cookie_name": "dashboard_session",
        "cookie_secure": False,
    },
    "auth": {
        "bcrypt_rounds": 10,
    },
    "api": {
        "require_login": True,
    },
    "paths": {
        "users_file": "users.json",
        "devices_file": "devices.json",
        "data_dir": "data",
        "public_dir": "public",
    },
}

SECRET_ENV_NAME = "SESSION_SECRET"


class ConfigManager:
    """
    Configuration reader for the dashboard.

    Attributes:
        project_dir: Root directory of the dashboard project.
        config_path: Full path to config.yaml.
        env_path:    Full path to .env file.
    """

    def __init__(self, project_dir: str):
        self.project_dir = project_dir
        self.config_path = os.path.join(project_dir, "config.yaml")
        self.env_path = os.path.join(project_dir, ".env")

    def load(self) -> dict:
        """
        Load and merge configuration from config.yaml with defaults.

        Missing values are filled from DEFAULTS, so a partial YAML file
        still yields a complete configuration.

        Returns:
            A dictionary containing the full configuration.
        """
        config = _deep_copy(DEFAULTS)

        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    user_config = yaml.safe_load(f) or {}
                if not isinstance(user_config, dict):
                    raise yaml.YAMLError("config.yaml must contain a mapping")
                _deep_merge(config, user_config)
            except (yaml.YAMLError, OSError) as e:
                # Corrupted config falls back to defaults; caller reports it
                config["_config_error"] = str(e)

        return config

    def resolve_path(self, config: dict, name: str) -> str:
        """
        Resolve a configured path (paths.<name>) against the project dir.

        Absolute paths in config.yaml are returned unchanged.
        """
        value = config["paths"].get(name, DEFAULTS["paths"][name])
        return os.path.join(self.project_dir, value)

    def session_secret(self) -> str | None:
        """
        Return the session signing secret.

        The process environment wins over the project's .env file so that
        deployments can inject the secret without touching disk.
        """
        secret = os.environ.get(SECRET_ENV_NAME)
        if secret:
            return secret
        if os.path.exists(self.env_path):
            return dotenv_values(self.env_path).get(SECRET_ENV_NAME) or None
        return None


# -- Helper Functions ---------------------------------------------------------

def _deep_copy(d: dict) -> dict:
    """Create a deep copy of a nested dictionary."""
    result = {}
    for key, value in d.items():
        if isinstance(value, dict):
            result[key] = _deep_copy(value)
        elif isinstance(value, list):
            result[key] = list(value)
        else:
            result[key] = value
    return result


def _deep_merge(base: dict, override: dict) -> None:
    """
    Recursively merge 'override' into 'base' (in-place).

    For nested dicts, values are merged recursively.
    For all other types, override replaces base.
    """
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
