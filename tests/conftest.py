import pytest

from peerbrowse.config import get_settings


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep tests away from ~/.peerbrowse and any PEERBROWSE_* in the environment."""
    for name in ("API_URL", "API_KEY", "STATE_KEY", "STATUS_POLL_INTERVAL", "LOG_LEVEL"):
        monkeypatch.delenv(f"PEERBROWSE_{name}", raising=False)
    monkeypatch.setenv("PEERBROWSE_STATE_DIR", str(tmp_path / "state"))
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
