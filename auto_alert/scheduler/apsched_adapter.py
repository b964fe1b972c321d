"""APScheduler wrapper running supervised periodic jobs."""

from __future__ import annotations

import functools
from typing import Any, Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..logging_conf import component_logger


def supervised(name: str, fn: Callable[[], Any]) -> Callable[[], Any]:
    """Wrap a job body so any exception is logged instead of escaping the scheduler."""

    logger = component_logger("scheduler").bind(job=name)

    @functools.wraps(fn)
    def _runner() -> Any:
        logger.info("job_started")
        try:
            result = fn()
        except Exception as exc:  # noqa: BLE001
            logger.exception("job_failed", error=str(exc))
            return None
        logger.info("job_completed")
        return result

    return _runner


class APSchedulerAdapter:
    """Manage interval jobs; a job never overlaps with its own previous run."""

    def __init__(self, scheduler: BackgroundScheduler | None = None) -> None:
        self.scheduler = scheduler or BackgroundScheduler()
        self.logger = component_logger("scheduler")
        self.started = False

    def start(self) -> None:
        if not self.started:
            self.scheduler.start()
            self.started = True
            self.logger.info("apscheduler_started")

    def shutdown(self, wait: bool = True) -> None:
        if self.started:
            self.scheduler.shutdown(wait=wait)
            self.started = False
            self.logger.info("apscheduler_stopped")

    def schedule_interval(self, name: str, fn: Callable[[], Any], seconds: float) -> None:
        trigger = IntervalTrigger(seconds=float(seconds))
        self.scheduler.add_job(
            supervised(name, fn),
            trigger=trigger,
            id=f"job::{name}",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=None,
        )
        self.logger.info("job_scheduled", job=name, interval_seconds=float(seconds))

    def remove(self, name: str) -> None:
        job_id = f"job::{name}"
        if self.scheduler.get_job(job_id) is None:
            self.logger.warning("job_remove_missing", job=name)
            return
        self.scheduler.remove_job(job_id)

    def list_jobs(self) -> list[dict]:
        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append(
                {
                    "id": job.id,
                    "next_run_time": getattr(job, "next_run_time", None),
                    "trigger": str(job.trigger),
                }
            )
        return jobs


__all__ = ["APSchedulerAdapter", "supervised"]
