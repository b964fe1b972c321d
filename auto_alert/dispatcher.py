"""Notification dispatcher: deliver pending listings and record the outcome."""

from __future__ import annotations

from dataclasses import dataclass, field
from threading import Event
from typing import Callable

import structlog

from .delivery import DeliveryChannel, Failed, RecipientGone, Sent, render_listing
from .infra import Repository
from .logging_conf import component_logger
from .models import Listing, NotificationRecord, NotificationStatus


@dataclass(slots=True)
class DispatchSummary:
    pending: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    recipients_gone: set[int] = field(default_factory=set)

    def as_dict(self) -> dict[str, int]:
        return {
            "pending": self.pending,
            "sent": self.sent,
            "failed": self.failed,
            "skipped": self.skipped,
            "recipients_gone": len(self.recipients_gone),
        }


class NotificationDispatcher:
    """Sweep ``needs_send`` listings and push each one to its owner.

    Listings are handled one at a time. A successful delivery clears the pending
    flag and promotes any pending price; a transient failure keeps the listing
    pending for the next sweep; a recipient that is gone has all of their
    subscriptions and listings removed.
    """

    def __init__(
        self,
        repository: Repository,
        channel: DeliveryChannel,
        renderer: Callable[[Listing], str] = render_listing,
        stop_event: Event | None = None,
    ) -> None:
        self.repository = repository
        self.channel = channel
        self.renderer = renderer
        self.stop_event = stop_event or Event()
        self.logger = component_logger("dispatcher")

    def process_pending(self) -> DispatchSummary:
        listings = self.repository.get_pending_listings()
        summary = DispatchSummary(pending=len(listings))
        for index, listing in enumerate(listings):
            if self.stop_event.is_set():
                summary.skipped += len(listings) - index
                self.logger.info("dispatch_cycle_stopped", remaining=len(listings) - index)
                break
            self._dispatch(listing, summary)
        self.logger.info("dispatch_cycle_finished", **summary.as_dict())
        return summary

    def _dispatch(self, listing: Listing, summary: DispatchSummary) -> None:
        log = self.logger.bind(
            listing_id=listing.listing_id, subscription_id=listing.subscription_id
        )
        try:
            subscription = self.repository.get_subscription_by_id(listing.subscription_id)
        except Exception as exc:  # noqa: BLE001
            log.error("subscription_resolve_failed", error=str(exc))
            summary.skipped += 1
            return
        if subscription.user_id in summary.recipients_gone:
            summary.skipped += 1
            return
        log = log.bind(user_id=subscription.user_id)

        try:
            result = self.channel.send(subscription.user_id, self.renderer(listing))
        except Exception as exc:  # noqa: BLE001
            result = Failed(reason=str(exc) or type(exc).__name__)

        if isinstance(result, RecipientGone):
            log.warning("recipient_gone", reason=result.reason)
            summary.recipients_gone.add(subscription.user_id)
            self._remove_user(subscription.user_id, log)
            return

        if isinstance(result, Sent):
            record = NotificationRecord(
                subscription_id=listing.subscription_id,
                listing_id=listing.listing_id,
                status=NotificationStatus.SENT,
            )
            updated = listing.evolve(
                price=listing.new_price if listing.has_price_change else listing.price,
                new_price=None,
                needs_send=False,
            )
            summary.sent += 1
            log.info("notification_sent")
        else:
            record = NotificationRecord(
                subscription_id=listing.subscription_id,
                listing_id=listing.listing_id,
                status=NotificationStatus.FAILED,
                reason=result.reason or "unknown delivery failure",
            )
            updated = listing.evolve(needs_send=True)
            summary.failed += 1
            log.error("notification_failed", reason=record.reason)

        try:
            self.repository.record_notification(record)
        except Exception as exc:  # noqa: BLE001
            log.error("notification_record_failed", error=str(exc))
        try:
            self.repository.upsert_listing(updated)
        except Exception as exc:  # noqa: BLE001
            log.error("listing_update_failed", error=str(exc))

    def _remove_user(self, user_id: int, log: structlog.stdlib.BoundLogger) -> None:
        try:
            removed = self.repository.delete_subscriptions_and_listings_for_user(user_id)
        except Exception as exc:  # noqa: BLE001
            log.error("recipient_cleanup_failed", error=str(exc))
            return
        log.info("recipient_cleaned_up", subscriptions_removed=removed)


__all__ = ["DispatchSummary", "NotificationDispatcher"]
