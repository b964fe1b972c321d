"""Scrape orchestrator: subscriptions → marketplace fetch → diff → persist."""

from __future__ import annotations

from dataclasses import dataclass, field
from threading import Event
from typing import Protocol

from .engine import ChangeDetectionEngine, CycleError, WorkerPool
from .infra import ListingCache, Repository, RepositoryError
from .logging_conf import component_logger
from .models import ChangeKind, RawListing, ScrapeMode, Subscription

RECENT_SORT = "renewDate_desc"
RECENT_DATE_LIMIT = "1"  # last 24h


class ListingSource(Protocol):
    def fetch_listings(self, params: dict[str, str]) -> list[RawListing]: ...


class PersistenceError(RepositoryError):
    """One or more upserts for a subscription failed."""

    def __init__(self, subscription_id: str, errors: list[tuple[str, Exception]]) -> None:
        self.subscription_id = subscription_id
        self.errors = errors
        failed = ", ".join(listing_id for listing_id, _ in errors)
        super().__init__(
            f"failed to upsert {len(errors)} listing(s) for subscription {subscription_id}: {failed}"
        )


@dataclass(slots=True)
class SubscriptionResult:
    subscription_id: str
    fetched: int = 0
    upserts: dict[ChangeKind, int] = field(default_factory=dict)

    @property
    def total_upserts(self) -> int:
        return sum(self.upserts.values())


@dataclass(slots=True)
class CycleSummary:
    mode: ScrapeMode
    subscriptions: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    upserts: int = 0

    def as_dict(self) -> dict[str, object]:
        return {
            "mode": self.mode.value,
            "subscriptions": self.subscriptions,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "upserts": self.upserts,
        }


class ScrapeOrchestrator:
    """Fan subscriptions out over a bounded worker pool, one scrape per subscription."""

    def __init__(
        self,
        repository: Repository,
        client: ListingSource,
        chassis: ListingCache[str, str],
        regions: ListingCache[str, str] | None = None,
        workers: int = 5,
        engine: ChangeDetectionEngine | None = None,
        stop_event: Event | None = None,
    ) -> None:
        self.repository = repository
        self.client = client
        self.chassis = chassis
        self.regions = regions
        self.pool = WorkerPool(workers, name="scraper")
        self.engine = engine or ChangeDetectionEngine()
        self.stop_event = stop_event or Event()
        self.logger = component_logger("scraper")
        self._seeded = False

    # ------------------------------------------------------------------
    def next_mode(self) -> ScrapeMode:
        """The first cycle seeds the full inventory; later cycles look at recent listings."""

        return ScrapeMode.NEW_ONLY if self._seeded else ScrapeMode.ALL

    def tick(self) -> CycleSummary:
        """Run the next scheduled cycle, switching to NEW_ONLY once seeded."""

        mode = self.next_mode()
        try:
            return self.run_cycle(mode)
        finally:
            self._seeded = True

    def run_cycle(self, mode: ScrapeMode) -> CycleSummary:
        """Scrape every subscription once.

        Raises :class:`CycleError` naming each failed subscription; the others are
        still fully processed.
        """

        summary = CycleSummary(mode=mode)
        subscriptions = self.repository.list_subscriptions()
        if not subscriptions:
            self.logger.info("no_subscriptions_found", mode=mode.value)
            return summary
        summary.subscriptions = len(subscriptions)
        self.logger.info("scrape_cycle_started", mode=mode.value, subscriptions=len(subscriptions))

        outcome = self.pool.map(
            subscriptions,
            lambda sub: self.scrape_subscription(sub, mode),
            key=lambda sub: sub.id,
            stop_event=self.stop_event,
        )
        summary.succeeded = len(outcome.results)
        summary.failed = len(outcome.failures)
        summary.skipped = outcome.skipped
        summary.upserts = sum(result.total_upserts for result in outcome.results)
        self.logger.info("scrape_cycle_finished", **summary.as_dict())
        if outcome.failures:
            raise CycleError(outcome.failures, label=f"scrape cycle ({mode.value})")
        return summary

    def scrape_subscription(self, subscription: Subscription, mode: ScrapeMode) -> SubscriptionResult:
        log = self.logger.bind(subscription_id=subscription.id)
        result = SubscriptionResult(subscription_id=subscription.id)
        params = self.build_params(subscription, mode)

        fetched = self.client.fetch_listings(params)
        result.fetched = len(fetched)
        if not fetched:
            log.info("no_listings_found")
            return result

        existing = self.repository.get_listings_for_subscription(subscription.id)
        diff = self.engine.diff(subscription.id, existing, fetched)

        errors: list[tuple[str, Exception]] = []
        for op in diff.ops:
            try:
                self.repository.upsert_listing(op.listing)
            except Exception as exc:  # noqa: BLE001
                log.error("listing_upsert_failed", listing_id=op.listing.listing_id, error=str(exc))
                errors.append((op.listing.listing_id, exc))
                continue
            result.upserts[op.kind] = result.upserts.get(op.kind, 0) + 1
        if errors:
            raise PersistenceError(subscription.id, errors)

        log.info(
            "subscription_scraped",
            fetched=result.fetched,
            unchanged=diff.unchanged,
            **{kind.value: count for kind, count in result.upserts.items()},
        )
        return result

    def build_params(self, subscription: Subscription, mode: ScrapeMode) -> dict[str, str]:
        params = {
            "brand": subscription.brand,
            "price_from": subscription.price_from,
            "price_to": subscription.price_to,
            "year_from": subscription.year_from,
            "year_to": subscription.year_to,
            "showOldNew": "all",
        }
        if subscription.models:
            params["model[]"] = ",".join(subscription.models)
        if subscription.regions:
            params["region[]"] = ",".join(self._resolve_regions(subscription.regions))
        if subscription.chassis:
            chassis_ids = self.chassis.get_many(subscription.chassis)
            if chassis_ids:
                params["chassis[]"] = ",".join(chassis_ids)
        if mode is ScrapeMode.NEW_ONLY:
            params["sort"] = RECENT_SORT
            params["date_limit"] = RECENT_DATE_LIMIT
        return params

    def _resolve_regions(self, names: list[str]) -> list[str]:
        # unknown names are passed through: subscriptions may already hold marketplace values
        if self.regions is None:
            return list(names)
        return [self.regions.get(name) or name for name in names]


__all__ = ["CycleSummary", "PersistenceError", "ScrapeOrchestrator", "SubscriptionResult"]
