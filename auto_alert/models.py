"""Domain records shared by the scrape, diff and dispatch stages."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum


class ScrapeMode(str, Enum):
    """Which slice of the marketplace a scrape cycle requests."""

    ALL = "all"
    NEW_ONLY = "new_only"


class NotificationStatus(str, Enum):
    SENT = "SENT"
    FAILED = "FAILED"


class ChangeKind(str, Enum):
    """Classification produced by the change detection engine."""

    BASELINE = "baseline"
    NEW = "new"
    PRICE_CHANGED = "price_changed"


@dataclass(slots=True)
class Subscription:
    """A saved search owned by a single chat user."""

    id: str
    user_id: int
    brand: str
    models: list[str] = field(default_factory=list)
    chassis: list[str] = field(default_factory=list)
    regions: list[str] = field(default_factory=list)
    price_from: str = ""
    price_to: str = ""
    year_from: str = ""
    year_to: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(slots=True)
class RawListing:
    """One advertisement as parsed from a marketplace search page."""

    id: str
    title: str
    price: str
    year: str = ""
    engine_volume: str = ""
    transmission: str = ""
    body_type: str = ""
    mileage: str = ""
    location: str = ""
    link: str = ""
    date: datetime | None = None


@dataclass(slots=True)
class Listing:
    """Persisted listing state, unique per (listing_id, subscription_id)."""

    listing_id: str
    subscription_id: str
    title: str
    price: str
    new_price: str | None = None
    engine_volume: str = ""
    transmission: str = ""
    body_type: str = ""
    mileage: str = ""
    location: str = ""
    link: str = ""
    date: datetime | None = None
    needs_send: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def key(self) -> tuple[str, str]:
        return self.listing_id, self.subscription_id

    @property
    def has_price_change(self) -> bool:
        return bool(self.new_price) and self.new_price != self.price

    def evolve(self, **changes: object) -> "Listing":
        return replace(self, **changes)

    @classmethod
    def from_raw(cls, raw: RawListing, subscription_id: str, **overrides: object) -> "Listing":
        listing = cls(
            listing_id=raw.id,
            subscription_id=subscription_id,
            title=raw.title,
            price=raw.price,
            engine_volume=raw.engine_volume,
            transmission=raw.transmission,
            body_type=raw.body_type,
            mileage=raw.mileage,
            location=raw.location,
            link=raw.link,
            date=raw.date,
        )
        return replace(listing, **overrides) if overrides else listing


@dataclass(slots=True)
class NotificationRecord:
    """Append-only audit entry for a single delivery attempt."""

    subscription_id: str
    listing_id: str
    status: NotificationStatus
    reason: str = ""
    id: str | None = None
    created_at: datetime | None = None


@dataclass(slots=True)
class UpsertOp:
    """A listing row to write, tagged with why it is being written."""

    listing: Listing
    kind: ChangeKind

    @property
    def needs_send(self) -> bool:
        return self.listing.needs_send


__all__ = [
    "ChangeKind",
    "Listing",
    "NotificationRecord",
    "NotificationStatus",
    "RawListing",
    "ScrapeMode",
    "Subscription",
    "UpsertOp",
]
