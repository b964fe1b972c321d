"""Shared fixtures: temporary repositories, record builders and stub collaborators."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable

import pytest

from auto_alert.config import ConfigLocator, ConfigRepository
from auto_alert.delivery import DeliveryChannel, DeliveryResult, Sent
from auto_alert.infra import SQLiteRepository
from auto_alert.models import RawListing, Subscription


@pytest.fixture(autouse=True)
def _isolate_home(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "AUTO_ALERT_HOME",
        "TELEGRAM_BOT_TOKEN",
        "SCRAPER_INTERVAL",
        "SCRAPER_START_OFFSET",
        "SCRAPER_WORKERS_COUNT",
        "WORKER_NOTIFICATION_INTERVAL",
        "PAGE_LIMIT",
        "LOG_LEVEL",
        "DATABASE_PATH",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def repository(tmp_path: Path) -> Iterable[SQLiteRepository]:
    repo = SQLiteRepository(tmp_path / "auto_alert.db")
    yield repo
    repo.close()


@pytest.fixture
def config_repository(tmp_path: Path) -> ConfigRepository:
    return ConfigRepository(ConfigLocator(project_root=tmp_path, environ={}), environ={})


@pytest.fixture
def sample_subscription() -> Callable[..., Subscription]:
    def _factory(**overrides: object) -> Subscription:
        payload: dict[str, object] = {
            "id": "sub-1",
            "user_id": 1001,
            "brand": "audi",
            "models": ["a4"],
            "chassis": [],
            "regions": [],
            "price_from": "1000",
            "price_to": "20000",
            "year_from": "2010",
            "year_to": "2020",
        }
        payload.update(overrides)
        return Subscription(**payload)  # type: ignore[arg-type]

    return _factory


@pytest.fixture
def sample_raw_listing() -> Callable[..., RawListing]:
    def _factory(listing_id: str = "100", price: str = "10.000 €", **overrides: object) -> RawListing:
        payload: dict[str, object] = {
            "id": listing_id,
            "title": f"Audi A4 #{listing_id}",
            "price": price,
            "year": "2015",
            "engine_volume": "1968 cm3",
            "transmission": "Manuelni",
            "body_type": "Limuzina",
            "mileage": "180.000 km",
            "location": "Beograd",
            "link": f"https://www.polovniautomobili.com/auto-oglasi/{listing_id}/audi-a4",
        }
        payload.update(overrides)
        return RawListing(**payload)  # type: ignore[arg-type]

    return _factory


class StubSource:
    """Marketplace stand-in returning canned listings per brand."""

    def __init__(self, listings: dict[str, list[RawListing]] | None = None) -> None:
        self.listings = listings or {}
        self.errors: dict[str, Exception] = {}
        self.calls: list[dict[str, str]] = []

    def fetch_listings(self, params: dict[str, str]) -> list[RawListing]:
        self.calls.append(dict(params))
        brand = params.get("brand", "")
        if brand in self.errors:
            raise self.errors[brand]
        return list(self.listings.get(brand, []))


class StubChannel(DeliveryChannel):
    """Delivery channel that records messages and replays scripted results."""

    def __init__(self, results: dict[int, DeliveryResult | Exception] | None = None) -> None:
        self.results = results or {}
        self.sent: list[tuple[int, str]] = []
        self.closed = False

    def send(self, user_id: int, text: str) -> DeliveryResult:
        self.sent.append((user_id, text))
        result = self.results.get(user_id, Sent())
        if isinstance(result, Exception):
            raise result
        return result

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def stub_source() -> StubSource:
    return StubSource()


@pytest.fixture
def stub_channel() -> StubChannel:
    return StubChannel()


@pytest.fixture
def channel_factory() -> Callable[..., StubChannel]:
    return StubChannel
