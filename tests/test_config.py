"""
Tests for configuration loading and the event log.
"""

import os

from conftest import write_config
from dashboard.config import DEFAULTS, ConfigManager
from dashboard.eventlog import EventLog


class TestConfigManager:
    def test_defaults_without_file(self, tmp_path):
        config = ConfigManager(str(tmp_path)).load()
        assert config["web"] == DEFAULTS["web"]
        assert config["session"]["max_age"] == 3600

    def test_partial_file_is_merged(self, tmp_path):
        write_config(tmp_path, "session:\n  max_age: 60\nweb:\n  port: 8123\n")
        config = ConfigManager(str(tmp_path)).load()
        assert config["session"]["max_age"] == 60
        assert config["session"]["cookie_name"] == "dashboard_session"
        assert config["web"] == {"port": 8123, "host": "0.0.0.0"}

    def test_defaults_are_not_mutated(self, tmp_path):
        write_config(tmp_path, "web:\n  port: 1\n")
        ConfigManager(str(tmp_path)).load()
        assert DEFAULTS["web"]["port"] == 3000

    def test_corrupt_file_falls_back(self, tmp_path):
        write_config(tmp_path, "web: [unclosed\n")
        config = ConfigManager(str(tmp_path)).load()
        assert "_config_error" in config
        assert config["web"]["port"] == 3000

    def test_resolve_path(self, tmp_path):
        manager = ConfigManager(str(tmp_path))
        config = manager.load()
        assert manager.resolve_path(config, "users_file") == os.path.join(str(tmp_path), "users.json")

    def test_secret_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SESSION_SECRET", "from-env")
        assert ConfigManager(str(tmp_path)).session_secret() == "from-env"

    def test_secret_from_dotenv_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("SESSION_SECRET", raising=False)
        (tmp_path / ".env").write_text("SESSION_SECRET=from-file\n")
        assert ConfigManager(str(tmp_path)).session_secret() == "from-file"

    def test_no_secret(self, tmp_path, monkeypatch):
        monkeypatch.delenv("SESSION_SECRET", raising=False)
        assert ConfigManager(str(tmp_path)).session_secret() is None


class TestEventLog:
    def test_writes_daily_file_and_remembers_last_event(self, tmp_path, capsys):
        events = EventLog(str(tmp_path))
        events.info("DEVICE", "Desk Light turned ON")
        events.warning("something odd")

        assert events.last_event == "Desk Light turned ON"
        assert events.last_event_at is not None
        assert "[DEVICE] Desk Light turned ON" in capsys.readouterr().out

        (log_file,) = os.listdir(tmp_path)
        with open(os.path.join(tmp_path, log_file), encoding="utf-8") as f:
            lines = f.read().splitlines()
        assert lines[0].endswith("[DEVICE] Desk Light turned ON")
        assert lines[1].endswith("[WARN] something odd")
