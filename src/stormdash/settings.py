"""Configuration settings for StormDash."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="STORMDASH_",
        extra="ignore",
        populate_by_name=True,
    )

    nws_api_base: str = "https://api.weather.gov"
    spc_base_url: str = "https://www.spc.noaa.gov"
    user_agent: str = "stormdash (https://github.com/stormdash/stormdash)"
    fetch_timeout_seconds: float = 10.0

    alerts_poll_seconds: int = 120
    outlook_poll_seconds: int = 600
    discussion_poll_seconds: int = 600

    outlook_day: str = "1"
    outlook_product_type: str = "categorical"
    alert_categories_raw: str = Field(
        default="warning,watch,advisory", alias="STORMDASH_ALERT_CATEGORIES"
    )
    damage_threat_rules_path: str | None = None

    report_dir: str = "local/poll_reports"
    metrics_path: str = "local/metrics.jsonl"

    @model_validator(mode="after")
    def _require_endpoints(self) -> "Settings":
        for attr in ("nws_api_base", "spc_base_url"):
            value = getattr(self, attr)
            if not value or not str(value).strip():
                raise ValueError(f"{attr} must be configured")
            setattr(self, attr, str(value).strip().rstrip("/"))
        for attr in (
            "alerts_poll_seconds",
            "outlook_poll_seconds",
            "discussion_poll_seconds",
        ):
            if getattr(self, attr) <= 0:
                raise ValueError(f"{attr} must be positive")
        if self.fetch_timeout_seconds <= 0:
            raise ValueError("fetch_timeout_seconds must be positive")
        # normalise filesystem paths
        self.report_dir = str(Path(self.report_dir))
        self.metrics_path = str(Path(self.metrics_path))
        return self

    @property
    def alert_categories(self) -> list[str]:
        return _split_csv(self.alert_categories_raw)

    @property
    def alerts_url(self) -> str:
        return f"{self.nws_api_base}/alerts/active?status=actual&message_type=alert"

    @property
    def discussion_feed_url(self) -> str:
        return f"{self.spc_base_url}/products/spcmdrss.xml"

    @property
    def discussion_index_url(self) -> str:
        return f"{self.spc_base_url}/products/md/"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def _split_csv(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [part.strip().lower() for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple)):
        return [str(item).strip().lower() for item in value if str(item).strip()]
    raise TypeError("alert_categories must be a comma-delimited string or list")
