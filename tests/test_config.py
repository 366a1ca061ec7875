# Config tests
# Created: 2026-10-19

import logging

import pytest
from pydantic import ValidationError

from peerbrowse.config import get_settings, get_state_dir
from peerbrowse.logging_setup import setup_logging


class TestSettings:
    def test_defaults(self):
        """Test Settings default values."""
        settings = get_settings()
        assert settings.api_url == "http://localhost:5030"
        assert settings.status_poll_interval == 0.5
        assert settings.state_key == "peerbrowse-browse-state"

    def test_env_override(self, monkeypatch):
        """Test settings read from PEERBROWSE_ environment variables."""
        monkeypatch.setenv("PEERBROWSE_API_URL", "http://nas:5030")
        monkeypatch.setenv("PEERBROWSE_STATUS_POLL_INTERVAL", "2")
        get_settings.cache_clear()

        settings = get_settings()
        assert settings.api_url == "http://nas:5030"
        assert settings.status_poll_interval == 2.0

    def test_non_positive_poll_interval_rejected(self, monkeypatch):
        """Test a poll interval of zero is refused at load time."""
        monkeypatch.setenv("PEERBROWSE_STATUS_POLL_INTERVAL", "0")
        get_settings.cache_clear()

        with pytest.raises(ValidationError):
            get_settings()

    def test_state_dir_created(self, tmp_path):
        """Test the state directory is created on demand."""
        state_dir = get_state_dir()
        assert state_dir == tmp_path / "state"
        assert state_dir.is_dir()


class TestLogging:
    def test_setup_is_idempotent(self):
        """Test repeated setup adjusts the level without adding handlers."""
        setup_logging("INFO")
        setup_logging("DEBUG")

        handlers = [h for h in logging.getLogger().handlers if h.get_name() == "peerbrowse-rich"]
        assert len(handlers) == 1
        assert logging.getLogger().level == logging.DEBUG
