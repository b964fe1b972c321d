"""Repository contract consumed by the scrape and dispatch stages."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..models import Listing, NotificationRecord, Subscription


class RepositoryError(Exception):
    """A storage operation failed."""


class NotFoundError(RepositoryError):
    """The requested record does not exist."""


class Repository(ABC):
    """Durable storage for subscriptions, listings and notification audit rows."""

    @abstractmethod
    def list_subscriptions(self) -> list[Subscription]:
        """Return every subscription."""

    @abstractmethod
    def get_subscription_by_id(self, subscription_id: str) -> Subscription:
        """Return one subscription or raise :class:`NotFoundError`."""

    @abstractmethod
    def get_listings_for_subscription(self, subscription_id: str) -> list[Listing]:
        """Return persisted listings owned by the subscription."""

    @abstractmethod
    def upsert_listing(self, listing: Listing) -> None:
        """Insert or update the row keyed by (listing_id, subscription_id)."""

    @abstractmethod
    def get_pending_listings(self) -> list[Listing]:
        """Return every listing flagged for sending."""

    @abstractmethod
    def record_notification(self, record: NotificationRecord) -> NotificationRecord:
        """Append an audit record for one delivery attempt."""

    @abstractmethod
    def delete_subscriptions_and_listings_for_user(self, user_id: int) -> int:
        """Remove a user's subscriptions with their listings; return how many were removed."""

    def close(self) -> None:
        """Release underlying resources."""


__all__ = ["NotFoundError", "Repository", "RepositoryError"]
