"""Unit tests for MonitorConfig."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from src.shutdowns.config import MonitorConfig

ENV_VARS = (
    "ADDRESS_CITY",
    "ADDRESS_STREET",
    "ADDRESS_BUILDING",
    "STORAGE_PATH",
    "SNAPSHOT_PATH",
    "TELEGRAM_BOT_TOKEN",
    "TELEGRAM_CHAT_ID",
    "CRON_PATTERN",
    "REQUEST_TIMEOUT_MS",
    "SUGGESTION_CLICK_TIMEOUT_MS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestMonitorConfig:
    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("ADDRESS_CITY", "с. Софіївська Борщагівка")
        config = MonitorConfig(_env_file=None)

        assert config.cron_pattern == "*/15 * * * *"
        assert config.timezone == "Europe/Kyiv"
        assert config.headless is True
        assert config.storage_path == "data/schedules.json"
        assert config.resolved_snapshot_path == Path("data/notified.json")
        assert not config.telegram_enabled
        assert config.address.street is None

    def test_missing_city(self):
        with pytest.raises(ValidationError):
            MonitorConfig(_env_file=None)

    def test_blank_city(self, monkeypatch):
        monkeypatch.setenv("ADDRESS_CITY", "   ")
        with pytest.raises(ValidationError):
            MonitorConfig(_env_file=None)

    def test_address_and_timings(self, monkeypatch):
        monkeypatch.setenv("ADDRESS_CITY", "м. Ірпінь")
        monkeypatch.setenv("ADDRESS_STREET", "вул. Садова")
        monkeypatch.setenv("ADDRESS_BUILDING", "")
        monkeypatch.setenv("REQUEST_TIMEOUT_MS", "15000")
        config = MonitorConfig(_env_file=None)

        assert config.address.describe() == "м. Ірпінь, вул. Садова"
        assert config.address.building is None
        assert config.form_timings.request_timeout_ms == 15000

    def test_telegram_and_snapshot(self, monkeypatch):
        monkeypatch.setenv("ADDRESS_CITY", "м. Ірпінь")
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")
        monkeypatch.setenv("TELEGRAM_CHAT_ID", "-100500")
        monkeypatch.setenv("SNAPSHOT_PATH", "/var/lib/shutdowns/last.json")
        config = MonitorConfig(_env_file=None)

        assert config.telegram_enabled
        assert config.resolved_snapshot_path == Path("/var/lib/shutdowns/last.json")

    def test_invalid_timeout(self, monkeypatch):
        monkeypatch.setenv("ADDRESS_CITY", "м. Ірпінь")
        monkeypatch.setenv("REQUEST_TIMEOUT_MS", "0")
        with pytest.raises(ValidationError):
            MonitorConfig(_env_file=None)

    def test_suggestion_click_timeout(self, monkeypatch):
        monkeypatch.setenv("ADDRESS_CITY", "м. Ірпінь")
        assert MonitorConfig(_env_file=None).form_timings.suggestion_click_timeout_ms == 1000

        monkeypatch.setenv("SUGGESTION_CLICK_TIMEOUT_MS", "2500")
        timings = MonitorConfig(_env_file=None).form_timings

        assert timings.suggestion_click_timeout_ms == 2500
        assert timings.suggestion_timeout_ms == 8000
