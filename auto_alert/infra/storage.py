"""SQLite-backed repository for subscriptions, listings and notifications."""

from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Iterable

from ..models import Listing, NotificationRecord, NotificationStatus, Subscription
from .base import NotFoundError, Repository, RepositoryError

SCHEMA = """
CREATE TABLE IF NOT EXISTS subscriptions (
    id TEXT PRIMARY KEY,
    user_id INTEGER NOT NULL,
    brand TEXT NOT NULL,
    models TEXT NOT NULL DEFAULT '[]',
    chassis TEXT NOT NULL DEFAULT '[]',
    regions TEXT NOT NULL DEFAULT '[]',
    price_from TEXT NOT NULL DEFAULT '',
    price_to TEXT NOT NULL DEFAULT '',
    year_from TEXT NOT NULL DEFAULT '',
    year_to TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_subscriptions_user ON subscriptions(user_id);

CREATE TABLE IF NOT EXISTS listings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    listing_id TEXT NOT NULL,
    subscription_id TEXT NOT NULL REFERENCES subscriptions(id) ON DELETE CASCADE,
    title TEXT NOT NULL DEFAULT '',
    price TEXT NOT NULL DEFAULT '',
    new_price TEXT,
    engine_volume TEXT NOT NULL DEFAULT '',
    transmission TEXT NOT NULL DEFAULT '',
    body_type TEXT NOT NULL DEFAULT '',
    mileage TEXT NOT NULL DEFAULT '',
    location TEXT NOT NULL DEFAULT '',
    link TEXT NOT NULL DEFAULT '',
    date TEXT,
    is_need_send INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    UNIQUE(listing_id, subscription_id)
);

CREATE INDEX IF NOT EXISTS idx_listings_need_send ON listings(is_need_send);

CREATE TABLE IF NOT EXISTS notifications (
    id TEXT PRIMARY KEY,
    subscription_id TEXT NOT NULL,
    listing_id TEXT NOT NULL,
    status TEXT NOT NULL,
    reason TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL
);
"""

UPSERT_LISTING = """
INSERT INTO listings (listing_id, subscription_id, title, price, new_price, engine_volume,
                      transmission, body_type, mileage, location, link, date, is_need_send,
                      created_at, updated_at)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT (listing_id, subscription_id) DO UPDATE SET title         = excluded.title,
                                                        price         = excluded.price,
                                                        new_price     = excluded.new_price,
                                                        engine_volume = excluded.engine_volume,
                                                        transmission  = excluded.transmission,
                                                        body_type     = excluded.body_type,
                                                        mileage       = excluded.mileage,
                                                        location      = excluded.location,
                                                        link          = excluded.link,
                                                        date          = excluded.date,
                                                        is_need_send  = excluded.is_need_send,
                                                        updated_at    = excluded.updated_at
"""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _to_text(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _from_text(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SQLiteRepository(Repository):
    """Single shared connection guarded by a lock, safe for worker threads."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        if str(path) != ":memory:":
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = Lock()
        self._conn = sqlite3.connect(str(path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        with self._lock:
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._conn.executescript(SCHEMA)
            self._conn.commit()

    def _execute(self, sql: str, params: Iterable[object] = ()) -> list[sqlite3.Row]:
        with self._lock:
            try:
                cursor = self._conn.execute(sql, tuple(params))
                rows = cursor.fetchall()
                self._conn.commit()
            except sqlite3.Error as exc:
                self._conn.rollback()
                raise RepositoryError(str(exc)) from exc
        return rows

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------
    def create_subscription(self, subscription: Subscription) -> Subscription:
        now = _now()
        created = Subscription(
            id=subscription.id or uuid.uuid4().hex,
            user_id=subscription.user_id,
            brand=subscription.brand,
            models=list(subscription.models),
            chassis=list(subscription.chassis),
            regions=list(subscription.regions),
            price_from=subscription.price_from,
            price_to=subscription.price_to,
            year_from=subscription.year_from,
            year_to=subscription.year_to,
            created_at=now,
            updated_at=now,
        )
        self._execute(
            """
            INSERT INTO subscriptions (id, user_id, brand, models, chassis, regions, price_from,
                                       price_to, year_from, year_to, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                created.id,
                created.user_id,
                created.brand,
                json.dumps(created.models, ensure_ascii=False),
                json.dumps(created.chassis, ensure_ascii=False),
                json.dumps(created.regions, ensure_ascii=False),
                created.price_from,
                created.price_to,
                created.year_from,
                created.year_to,
                _to_text(now),
                _to_text(now),
            ),
        )
        return created

    def list_subscriptions(self) -> list[Subscription]:
        rows = self._execute("SELECT * FROM subscriptions ORDER BY created_at, rowid")
        return [self._subscription_from_row(row) for row in rows]

    def get_subscriptions_by_user(self, user_id: int) -> list[Subscription]:
        rows = self._execute(
            "SELECT * FROM subscriptions WHERE user_id = ? ORDER BY created_at, rowid", (user_id,)
        )
        return [self._subscription_from_row(row) for row in rows]

    def get_subscription_by_id(self, subscription_id: str) -> Subscription:
        rows = self._execute("SELECT * FROM subscriptions WHERE id = ?", (subscription_id,))
        if not rows:
            raise NotFoundError(f"subscription {subscription_id} not found")
        return self._subscription_from_row(rows[0])

    def delete_subscription(self, subscription_id: str) -> bool:
        with self._lock:
            try:
                self._conn.execute("DELETE FROM listings WHERE subscription_id = ?", (subscription_id,))
                cursor = self._conn.execute(
                    "DELETE FROM subscriptions WHERE id = ?", (subscription_id,)
                )
                self._conn.commit()
            except sqlite3.Error as exc:
                self._conn.rollback()
                raise RepositoryError(str(exc)) from exc
        return cursor.rowcount > 0

    def delete_subscriptions_and_listings_for_user(self, user_id: int) -> int:
        with self._lock:
            try:
                self._conn.execute(
                    "DELETE FROM listings WHERE subscription_id IN "
                    "(SELECT id FROM subscriptions WHERE user_id = ?)",
                    (user_id,),
                )
                cursor = self._conn.execute("DELETE FROM subscriptions WHERE user_id = ?", (user_id,))
                self._conn.commit()
            except sqlite3.Error as exc:
                self._conn.rollback()
                raise RepositoryError(str(exc)) from exc
        return cursor.rowcount

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------
    def get_listings_for_subscription(self, subscription_id: str) -> list[Listing]:
        rows = self._execute(
            "SELECT * FROM listings WHERE subscription_id = ? ORDER BY id", (subscription_id,)
        )
        return [self._listing_from_row(row) for row in rows]

    def get_pending_listings(self) -> list[Listing]:
        rows = self._execute("SELECT * FROM listings WHERE is_need_send = 1 ORDER BY id")
        return [self._listing_from_row(row) for row in rows]

    def upsert_listing(self, listing: Listing) -> None:
        now = _to_text(_now())
        self._execute(
            UPSERT_LISTING,
            (
                listing.listing_id,
                listing.subscription_id,
                listing.title,
                listing.price,
                listing.new_price,
                listing.engine_volume,
                listing.transmission,
                listing.body_type,
                listing.mileage,
                listing.location,
                listing.link,
                _to_text(listing.date),
                int(listing.needs_send),
                now,
                now,
            ),
        )

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------
    def record_notification(self, record: NotificationRecord) -> NotificationRecord:
        stored = NotificationRecord(
            subscription_id=record.subscription_id,
            listing_id=record.listing_id,
            status=record.status,
            reason=record.reason,
            id=record.id or uuid.uuid4().hex,
            created_at=record.created_at or _now(),
        )
        self._execute(
            """
            INSERT INTO notifications (id, subscription_id, listing_id, status, reason, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                stored.id,
                stored.subscription_id,
                stored.listing_id,
                stored.status.value,
                stored.reason,
                _to_text(stored.created_at),
            ),
        )
        return stored

    def list_notifications(self, listing_id: str | None = None) -> list[NotificationRecord]:
        if listing_id is None:
            rows = self._execute("SELECT * FROM notifications ORDER BY created_at, rowid")
        else:
            rows = self._execute(
                "SELECT * FROM notifications WHERE listing_id = ? ORDER BY created_at, rowid", (listing_id,)
            )
        return [
            NotificationRecord(
                id=row["id"],
                subscription_id=row["subscription_id"],
                listing_id=row["listing_id"],
                status=NotificationStatus(row["status"]),
                reason=row["reason"],
                created_at=_from_text(row["created_at"]),
            )
            for row in rows
        ]

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # ------------------------------------------------------------------
    @staticmethod
    def _subscription_from_row(row: sqlite3.Row) -> Subscription:
        return Subscription(
            id=row["id"],
            user_id=row["user_id"],
            brand=row["brand"],
            models=json.loads(row["models"]),
            chassis=json.loads(row["chassis"]),
            regions=json.loads(row["regions"]),
            price_from=row["price_from"],
            price_to=row["price_to"],
            year_from=row["year_from"],
            year_to=row["year_to"],
            created_at=_from_text(row["created_at"]),
            updated_at=_from_text(row["updated_at"]),
        )

    @staticmethod
    def _listing_from_row(row: sqlite3.Row) -> Listing:
        return Listing(
            listing_id=row["listing_id"],
            subscription_id=row["subscription_id"],
            title=row["title"],
            price=row["price"],
            new_price=row["new_price"],
            engine_volume=row["engine_volume"],
            transmission=row["transmission"],
            body_type=row["body_type"],
            mileage=row["mileage"],
            location=row["location"],
            link=row["link"],
            date=_from_text(row["date"]),
            needs_send=bool(row["is_need_send"]),
            created_at=_from_text(row["created_at"]),
            updated_at=_from_text(row["updated_at"]),
        )


__all__ = ["SQLiteRepository"]
