"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository, parse_duration
from .models import (
    AppConfig,
    DispatcherConfig,
    MarketplaceConfig,
    ScraperConfig,
    TelegramConfig,
)

__all__ = [
    "AppConfig",
    "ConfigLocator",
    "ConfigRepository",
    "DispatcherConfig",
    "MarketplaceConfig",
    "ScraperConfig",
    "TelegramConfig",
    "parse_duration",
]
