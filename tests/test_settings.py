import dataclasses

import pytest

from fintrack.config.settings import Settings, get_settings


def test_defaults(monkeypatch) -> None:
    for key in ["PORT", "DEFAULT_CURRENCY", "CACHE_TTL_SPOT_SECONDS", "COINGECKO_API_KEY", "DATA_DIR"]:
        monkeypatch.delenv(key, raising=False)
    settings = get_settings()
    assert settings.port == 8000
    assert settings.default_currency == "usd"
    assert settings.cache_ttl_spot_seconds == 30
    assert settings.coingecko_api_key is None
    assert settings.data_dir == "data"


def test_environment_overrides_and_bad_values(monkeypatch) -> None:
    monkeypatch.setenv("PORT", "not-a-number")
    monkeypatch.setenv("DEFAULT_CURRENCY", " EUR ")
    monkeypatch.setenv("PROVIDER_MIN_INTERVAL_SECONDS", "0.5")
    monkeypatch.setenv("COINGECKO_BASE_URL", "https://pro-api.coingecko.com/api/v3/")
    settings = get_settings()
    assert settings.port == 8000
    assert settings.default_currency == "eur"
    assert settings.provider_min_interval_seconds == 0.5
    assert settings.coingecko_base_url == "https://pro-api.coingecko.com/api/v3"

    monkeypatch.setenv("DEFAULT_CURRENCY", "btc")
    assert get_settings().default_currency == "usd"


def test_settings_are_frozen() -> None:
    settings = Settings()
    with pytest.raises(dataclasses.FrozenInstanceError):
        settings.port = 1  # type: ignore[misc]
