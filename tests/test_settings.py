import pytest

from stormdash.settings import Settings


def test_settings_normalise_urls_and_categories() -> None:
    settings = Settings(
        nws_api_base="https://api.weather.gov/",
        spc_base_url=" https://www.spc.noaa.gov/ ",
        alert_categories_raw="Warning, watch,,",
    )
    assert settings.nws_api_base == "https://api.weather.gov"
    assert settings.spc_base_url == "https://www.spc.noaa.gov"
    assert settings.alert_categories == ["warning", "watch"]
    assert settings.alerts_url == (
        "https://api.weather.gov/alerts/active?status=actual&message_type=alert"
    )
    assert settings.discussion_feed_url.endswith("/products/spcmdrss.xml")
    assert settings.fetch_timeout_seconds == 10.0
    assert settings.alerts_poll_seconds == 120


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STORMDASH_ALERTS_POLL_SECONDS", "30")
    monkeypatch.setenv("STORMDASH_ALERT_CATEGORIES", "watch")

    settings = Settings()

    assert settings.alerts_poll_seconds == 30
    assert settings.alert_categories == ["watch"]


def test_settings_raise_when_missing_urls() -> None:
    with pytest.raises(ValueError):
        Settings(nws_api_base="", spc_base_url="https://www.spc.noaa.gov")


def test_settings_reject_non_positive_intervals() -> None:
    with pytest.raises(ValueError):
        Settings(alerts_poll_seconds=0)
