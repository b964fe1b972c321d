"""Typer CLI entrypoint for Auto-Alert."""

from __future__ import annotations

import signal
from dataclasses import dataclass
from typing import Optional, Sequence

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from .config import AppConfig, ConfigRepository
from .delivery import TelegramChannel
from .dispatcher import NotificationDispatcher
from .engine import CycleError, MarketplaceClient
from .infra import SQLiteRepository, UserAgentPool
from .logging_conf import configure_logging
from .models import ScrapeMode, Subscription
from .scraper import ScrapeOrchestrator
from .service import build_service
from .taxonomy import TaxonomyError, TaxonomyLoader, TaxonomyService

app = typer.Typer(
    help="Auto-Alert: car listing watcher and notifier",
    no_args_is_help=True,
    rich_markup_mode=None,
)
subscription_app = typer.Typer(
    name="subscription",
    help="Manage saved searches",
    no_args_is_help=True,
    rich_markup_mode=None,
)
app.add_typer(subscription_app, name="subscription")

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    config: AppConfig

    def store(self) -> SQLiteRepository:
        return SQLiteRepository(self.repository.database_path())


def build_state(verbose: bool) -> AppState:
    repository = ConfigRepository()
    config = repository.load()
    configure_logging("DEBUG" if verbose else config.log_level, repository.locator.logs_dir)
    return AppState(repository=repository, config=config)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _split(values: Optional[Sequence[str]]) -> list[str]:
    items: list[str] = []
    for value in values or ():
        items.extend(part.strip() for part in value.split(",") if part.strip())
    return items


def _render_subscriptions(subscriptions: Sequence[Subscription]) -> Table:
    table = Table(title=f"Subscriptions · {len(subscriptions)}", box=box.SIMPLE_HEAD)
    table.add_column("ID", style="cyan", overflow="fold")
    table.add_column("User", style="magenta")
    table.add_column("Brand", style="green")
    table.add_column("Models", overflow="fold")
    table.add_column("Price", style="yellow")
    table.add_column("Year", style="yellow")
    table.add_column("Chassis / Regions", overflow="fold")
    for sub in subscriptions:
        table.add_row(
            sub.id,
            str(sub.user_id),
            sub.brand,
            ", ".join(sub.models) or "-",
            f"{sub.price_from or '*'} - {sub.price_to or '*'}",
            f"{sub.year_from or '*'} - {sub.year_to or '*'}",
            " / ".join(filter(None, (", ".join(sub.chassis), ", ".join(sub.regions)))) or "-",
        )
    return table


@app.callback()
def main(
    ctx: typer.Context, verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging")
) -> None:
    ctx.obj = build_state(verbose)


@app.command("run", help="Start the scraper and dispatcher loops until interrupted.")
def run(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    try:
        service = build_service(state.repository)
    except ValueError as exc:
        console.print(f"Cannot start: {exc}", style="red")
        raise typer.Exit(code=1)

    def _handle_signal(signum, _frame) -> None:  # noqa: ANN001
        console.print(f"Received signal {signum}, shutting down…", style="yellow")
        service.stop_event.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)
    try:
        service.start()
    except TaxonomyError as exc:
        console.print(f"Failed to load taxonomies: {exc}", style="red")
        service.stop()
        raise typer.Exit(code=1)
    console.print("Auto-Alert is running. Press Ctrl+C to stop.", style="green")
    while not service.stop_event.wait(1.0):
        pass
    service.stop()
    console.print("Stopped gracefully.", style="dim")


@app.command("scrape", help="Run a single scrape cycle.")
def scrape(
    ctx: typer.Context,
    all_listings: bool = typer.Option(False, "--all", help="Scrape full inventory instead of the last 24h"),
) -> None:
    state = _get_state(ctx)
    taxonomy = TaxonomyService(TaxonomyLoader(state.repository.locator.taxonomy_dir))
    try:
        taxonomy.load_initial()
    except TaxonomyError as exc:
        console.print(f"Failed to load taxonomies: {exc}", style="red")
        raise typer.Exit(code=1)
    store = state.store()
    client = MarketplaceClient(
        state.config.marketplace, UserAgentPool(state.config.marketplace.user_agent_list)
    )
    orchestrator = ScrapeOrchestrator(
        store,
        client,
        chassis=taxonomy.chassis,
        regions=taxonomy.regions,
        workers=state.config.scraper.workers,
    )
    mode = ScrapeMode.ALL if all_listings else ScrapeMode.NEW_ONLY
    try:
        summary = orchestrator.run_cycle(mode)
    except CycleError as exc:
        console.print(str(exc), style="red")
        raise typer.Exit(code=1)
    finally:
        client.close()
        store.close()
    console.print(
        f"Scraped {summary.succeeded}/{summary.subscriptions} subscriptions, {summary.upserts} upserts.",
        style="green",
    )


@app.command("dispatch", help="Deliver every pending notification once.")
def dispatch(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    try:
        channel = TelegramChannel(state.config.telegram)
    except ValueError as exc:
        console.print(str(exc), style="red")
        raise typer.Exit(code=1)
    store = state.store()
    try:
        summary = NotificationDispatcher(store, channel).process_pending()
    finally:
        channel.close()
        store.close()
    console.print(
        f"Sent {summary.sent}, failed {summary.failed}, skipped {summary.skipped}, "
        f"recipients removed {len(summary.recipients_gone)}.",
        style="green" if not summary.failed else "yellow",
    )


@subscription_app.command("add", help="Create a subscription.")
def subscription_add(
    ctx: typer.Context,
    user: int = typer.Option(..., "--user", help="Telegram chat id of the owner"),
    brand: str = typer.Option(..., "--brand"),
    model: Optional[list[str]] = typer.Option(None, "--model", help="Repeat or comma-separate"),
    chassis: Optional[list[str]] = typer.Option(None, "--chassis"),
    region: Optional[list[str]] = typer.Option(None, "--region"),
    price_from: str = typer.Option("", "--price-from"),
    price_to: str = typer.Option("", "--price-to"),
    year_from: str = typer.Option("", "--year-from"),
    year_to: str = typer.Option("", "--year-to"),
) -> None:
    state = _get_state(ctx)
    brand = brand.strip().lower()
    models = [name.lower() for name in _split(model)]
    taxonomy = TaxonomyService(TaxonomyLoader(state.repository.locator.taxonomy_dir))
    try:
        taxonomy.load_initial()
        taxonomy.check_selection(brand, models)
    except TaxonomyError as exc:
        console.print(f"Cannot create subscription: {exc}", style="red")
        raise typer.Exit(code=1)
    store = state.store()
    try:
        created = store.create_subscription(
            Subscription(
                id="",
                user_id=user,
                brand=brand,
                models=models,
                chassis=_split(chassis),
                regions=_split(region),
                price_from=price_from,
                price_to=price_to,
                year_from=year_from,
                year_to=year_to,
            )
        )
    finally:
        store.close()
    console.print(f"Subscription `{created.id}` created.", style="green")


@subscription_app.command("list", help="Show subscriptions.")
def subscription_list(
    ctx: typer.Context,
    user: Optional[int] = typer.Option(None, "--user", help="Only this owner"),
) -> None:
    state = _get_state(ctx)
    store = state.store()
    try:
        subs = store.get_subscriptions_by_user(user) if user is not None else store.list_subscriptions()
    finally:
        store.close()
    if not subs:
        console.print("No subscriptions yet. Use `auto-alert subscription add`.", style="yellow")
        raise typer.Exit(code=0)
    console.print(_render_subscriptions(subs))


@subscription_app.command("remove", help="Delete a subscription together with its listings.")
def subscription_remove(
    ctx: typer.Context,
    subscription_id: str = typer.Argument(..., help="Subscription ID"),
) -> None:
    state = _get_state(ctx)
    store = state.store()
    try:
        removed = store.delete_subscription(subscription_id)
    finally:
        store.close()
    if not removed:
        console.print(f"Subscription `{subscription_id}` not found.", style="red")
        raise typer.Exit(code=1)
    console.print(f"Subscription `{subscription_id}` removed.", style="green")


__all__ = ["app"]
