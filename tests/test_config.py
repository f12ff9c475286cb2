"""Tests for timelog/config.py: construct Settings directly, bypassing module singleton."""

from timelog import config
from timelog.config import Settings, get_settings


def make_settings(monkeypatch, **overrides):
    """Apply env overrides then construct a fresh Settings instance."""
    for k, v in overrides.items():
        monkeypatch.setenv(k.upper(), str(v))
    return Settings()


def test_redmine_url_trailing_slash_stripped(monkeypatch):
    s = make_settings(monkeypatch, REDMINE_URL="https://redmine.example.com/ ")
    assert s.redmine_url == "https://redmine.example.com"


def test_defaults(monkeypatch):
    s = make_settings(monkeypatch)
    assert s.redmine_api_key == ""
    assert s.redmine_timeout == 5.0
    assert s.log_json is False


def test_derived_paths_use_data_dir(monkeypatch, tmp_path):
    s = make_settings(monkeypatch, DATA_DIR=str(tmp_path))
    assert s.db_path == str(tmp_path / "timelog.db")
    assert s.logs_dir.startswith(s.data_dir)


def test_timeout_parsed_as_float(monkeypatch):
    s = make_settings(monkeypatch, REDMINE_TIMEOUT="12.5")
    assert s.redmine_timeout == 12.5


def test_proxy_reads_singleton(monkeypatch):
    monkeypatch.setenv("REDMINE_API_KEY", "from-env")
    assert config.settings.redmine_api_key == "from-env"
    assert get_settings() is get_settings()
