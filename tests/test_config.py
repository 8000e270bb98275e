import pytest

import finpilot.config as config
from finpilot.config import get_settings


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_no_settings_snapshot_at_import() -> None:
    assert not hasattr(config, "settings")


def test_environment_read_after_cache_clear(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("OCR_PREPROCESS", "no")
    s = get_settings()
    assert s.LOG_LEVEL == "DEBUG"
    assert s.OCR_PREPROCESS is False
    assert get_settings() is s

    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    get_settings.cache_clear()
    assert get_settings().LOG_LEVEL == "WARNING"


def test_demo_mode_without_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GOOGLE_API_KEY", "")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    assert get_settings().demo_mode is True
