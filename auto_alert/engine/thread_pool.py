"""Bounded worker pool fanning items out with per-item error isolation."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from threading import Event
from typing import Callable, Generic, Iterable, TypeVar

from ..logging_conf import component_logger

T = TypeVar("T")
R = TypeVar("R")


@dataclass(slots=True)
class ItemFailure:
    key: str
    error: BaseException


@dataclass(slots=True)
class PoolOutcome(Generic[R]):
    results: list[R]
    failures: list[ItemFailure]
    skipped: int = 0

    @property
    def ok(self) -> bool:
        return not self.failures


class CycleError(Exception):
    """Aggregate of every per-item failure from one pool run."""

    def __init__(self, failures: Iterable[ItemFailure], label: str = "cycle") -> None:
        self.failures = list(failures)
        self.label = label
        details = "; ".join(f"{failure.key}: {failure.error}" for failure in self.failures)
        super().__init__(f"{label} failed for {len(self.failures)} item(s): {details}")

    @property
    def keys(self) -> list[str]:
        return [failure.key for failure in self.failures]


class WorkerPool:
    """Run a callable over many items using at most ``width`` threads.

    Every call gets its own executor so one cycle's pool always drains before the
    call returns. When ``stop_event`` is set, items that have not started yet are
    skipped; items already running finish normally.
    """

    def __init__(self, width: int = 5, name: str = "worker") -> None:
        if width < 1:
            raise ValueError("worker pool width must be >= 1")
        self.width = width
        self.name = name
        self.logger = component_logger("worker_pool").bind(pool=name)

    def map(
        self,
        items: Iterable[T],
        fn: Callable[[T], R],
        *,
        key: Callable[[T], str] = str,
        stop_event: Event | None = None,
    ) -> PoolOutcome[R]:
        outcome: PoolOutcome[R] = PoolOutcome(results=[], failures=[])
        pending = list(items)
        if not pending:
            return outcome

        def _guarded(item: T) -> tuple[bool, R | None]:
            if stop_event is not None and stop_event.is_set():
                return False, None
            return True, fn(item)

        with ThreadPoolExecutor(
            max_workers=min(self.width, len(pending)), thread_name_prefix=self.name
        ) as executor:
            futures: dict[Future[tuple[bool, R | None]], T] = {
                executor.submit(_guarded, item): item for item in pending
            }
            for future in as_completed(futures):
                item = futures[future]
                try:
                    started, result = future.result()
                except Exception as exc:  # noqa: BLE001
                    self.logger.error("pool_item_failed", item=key(item), error=str(exc))
                    outcome.failures.append(ItemFailure(key=key(item), error=exc))
                    continue
                if not started:
                    outcome.skipped += 1
                    continue
                outcome.results.append(result)  # type: ignore[arg-type]
        if outcome.skipped:
            self.logger.info("pool_items_skipped", skipped=outcome.skipped)
        return outcome


__all__ = ["CycleError", "ItemFailure", "PoolOutcome", "WorkerPool"]
