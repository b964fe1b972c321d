"""Pydantic models describing Auto-Alert runtime configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


class ScraperConfig(BaseModel):
    """Scrape cycle cadence and worker pool width."""

    interval_seconds: float = 600.0
    start_offset_seconds: float = 0.0
    workers: int = 5

    @model_validator(mode="after")
    def _validate(self) -> "ScraperConfig":
        if self.interval_seconds <= 0:
            raise ValueError("scraper interval must be positive")
        if self.start_offset_seconds < 0:
            raise ValueError("scraper start offset must be >= 0")
        if self.workers < 1:
            raise ValueError("scraper workers must be >= 1")
        return self


class DispatcherConfig(BaseModel):
    interval_seconds: float = 1200.0

    @field_validator("interval_seconds")
    @classmethod
    def _positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("dispatcher interval must be positive")
        return value


class MarketplaceConfig(BaseModel):
    """Settings for the marketplace search client."""

    base_url: str = "https://www.polovniautomobili.com"
    search_path: str = "/auto-oglasi/pretraga"
    page_limit: int = 9999
    delay_range: tuple[float, float] = (1.0, 3.0)
    timeout: float = 60.0
    user_agent_list: list[str] | None = None

    @field_validator("delay_range", mode="before")
    @classmethod
    def _coerce_delay(cls, value: Any) -> tuple[float, float]:
        if value in (None, ""):
            return (0.0, 0.0)
        if isinstance(value, (list, tuple)) and len(value) == 2:
            low, high = float(value[0]), float(value[1])
            if low < 0 or high < 0:
                raise ValueError("Delay range values must be non-negative")
            if high < low:
                raise ValueError("Delay range upper bound must be >= lower bound")
            return (low, high)
        raise ValueError("Delay range expects a two-item list or tuple")

    @field_validator("page_limit")
    @classmethod
    def _page_limit(cls, value: int) -> int:
        if value < 2:
            raise ValueError("page_limit must be >= 2")
        return value


class TelegramConfig(BaseModel):
    bot_token: str = ""
    api_base: str = "https://api.telegram.org"
    timeout: float = 15.0


class AppConfig(BaseModel):
    """Top-level configuration shared by every component."""

    scraper: ScraperConfig = Field(default_factory=ScraperConfig)
    dispatcher: DispatcherConfig = Field(default_factory=DispatcherConfig)
    marketplace: MarketplaceConfig = Field(default_factory=MarketplaceConfig)
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    taxonomy_refresh_seconds: float = 86400.0
    database_path: Path = Field(default=Path("data/auto_alert.db"))
    log_level: str = "INFO"

    @field_validator("database_path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value)

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: Any) -> str:
        return str(value).upper()

    def resolved_database_path(self, base_dir: Path) -> Path:
        if not self.database_path.is_absolute():
            return (base_dir / self.database_path).resolve()
        return self.database_path


__all__ = [
    "AppConfig",
    "DispatcherConfig",
    "MarketplaceConfig",
    "ScraperConfig",
    "TelegramConfig",
]
