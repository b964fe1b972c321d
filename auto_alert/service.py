"""Process-level wiring and lifecycle for the scraper and dispatcher loops."""

from __future__ import annotations

from dataclasses import dataclass, field
from threading import Event

from .config import AppConfig, ConfigRepository
from .delivery import DeliveryChannel, TelegramChannel
from .dispatcher import NotificationDispatcher
from .engine import MarketplaceClient
from .infra import ListingCache, SQLiteRepository, UserAgentPool
from .logging_conf import component_logger
from .scheduler import APSchedulerAdapter, supervised
from .scraper import ListingSource, ScrapeOrchestrator
from .taxonomy import TaxonomyLoader, TaxonomyService

SCRAPE_JOB = "scrape_new_listings"
DISPATCH_JOB = "dispatch_notifications"
TAXONOMY_JOB = "refresh_taxonomies"


@dataclass
class Service:
    """Own every long-lived component and drive them from one scheduler."""

    config: AppConfig
    repository: SQLiteRepository
    taxonomy: TaxonomyService
    client: ListingSource
    orchestrator: ScrapeOrchestrator
    dispatcher: NotificationDispatcher
    channel: DeliveryChannel
    scheduler: APSchedulerAdapter
    stop_event: Event = field(default_factory=Event)

    def __post_init__(self) -> None:
        self.logger = component_logger("service")

    def start(self) -> None:
        """Load taxonomies, seed the baseline, then hand periodic work to the scheduler."""

        self.taxonomy.load_initial()
        offset = self.config.scraper.start_offset_seconds
        if offset:
            self.logger.info("scraper_start_delayed", seconds=offset)
            if self.stop_event.wait(offset):
                return
        supervised("seed_listings", self.orchestrator.tick)()
        if self.stop_event.is_set():
            return

        self.scheduler.schedule_interval(
            SCRAPE_JOB, self.orchestrator.tick, self.config.scraper.interval_seconds
        )
        self.scheduler.schedule_interval(
            DISPATCH_JOB, self.dispatcher.process_pending, self.config.dispatcher.interval_seconds
        )
        self.scheduler.schedule_interval(
            TAXONOMY_JOB, self.taxonomy.refresh, self.config.taxonomy_refresh_seconds
        )
        self.scheduler.start()
        self.logger.info(
            "service_started",
            scrape_interval=self.config.scraper.interval_seconds,
            dispatch_interval=self.config.dispatcher.interval_seconds,
            workers=self.config.scraper.workers,
        )

    def stop(self) -> None:
        """Signal cancellation and wait for in-flight jobs to finish their current unit."""

        self.stop_event.set()
        self.scheduler.shutdown(wait=True)
        for resource in (self.client, self.channel, self.repository):
            close = getattr(resource, "close", None)
            if close is not None:
                close()
        self.logger.info("service_stopped")


def build_service(
    repository: ConfigRepository,
    *,
    channel: DeliveryChannel | None = None,
    client: ListingSource | None = None,
) -> Service:
    config = repository.load()
    stop_event = Event()
    store = SQLiteRepository(repository.database_path())
    marketplace = client or MarketplaceClient(
        config.marketplace, UserAgentPool(config.marketplace.user_agent_list)
    )
    taxonomy = TaxonomyService(
        TaxonomyLoader(repository.locator.taxonomy_dir),
        chassis=ListingCache(),
        regions=ListingCache(),
        source=marketplace if isinstance(marketplace, MarketplaceClient) else None,
    )
    orchestrator = ScrapeOrchestrator(
        store,
        marketplace,
        chassis=taxonomy.chassis,
        regions=taxonomy.regions,
        workers=config.scraper.workers,
        stop_event=stop_event,
    )
    delivery = channel or TelegramChannel(config.telegram)
    return Service(
        config=config,
        repository=store,
        taxonomy=taxonomy,
        client=marketplace,
        orchestrator=orchestrator,
        dispatcher=NotificationDispatcher(store, delivery, stop_event=stop_event),
        channel=delivery,
        scheduler=APSchedulerAdapter(),
        stop_event=stop_event,
    )


__all__ = ["DISPATCH_JOB", "SCRAPE_JOB", "TAXONOMY_JOB", "Service", "build_service"]
