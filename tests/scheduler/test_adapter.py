from __future__ import annotations

from apscheduler.triggers.interval import IntervalTrigger

from auto_alert.scheduler import APSchedulerAdapter, supervised


class RecordingScheduler:
    def __init__(self) -> None:
        self.jobs: dict[str, dict] = {}
        self.running = False

    def add_job(self, func, **kwargs) -> None:
        self.jobs[kwargs["id"]] = {"func": func, **kwargs}

    def get_job(self, job_id: str):
        return self.jobs.get(job_id)

    def remove_job(self, job_id: str) -> None:
        del self.jobs[job_id]

    def start(self) -> None:
        self.running = True

    def shutdown(self, wait: bool = True) -> None:
        self.running = False


def test_supervised_swallows_and_returns_none() -> None:
    def explode() -> None:
        raise RuntimeError("boom")

    assert supervised("explode", explode)() is None
    assert supervised("answer", lambda: 42)() == 42


def test_schedule_interval_prevents_overlap() -> None:
    scheduler = RecordingScheduler()
    adapter = APSchedulerAdapter(scheduler)  # type: ignore[arg-type]
    calls: list[str] = []

    adapter.schedule_interval("scrape", lambda: calls.append("run"), 600)

    job = scheduler.jobs["job::scrape"]
    assert job["max_instances"] == 1
    assert job["coalesce"] is True
    assert job["replace_existing"] is True
    assert isinstance(job["trigger"], IntervalTrigger)
    assert job["trigger"].interval.total_seconds() == 600
    job["func"]()
    assert calls == ["run"]


def test_adapter_lifecycle_and_removal() -> None:
    scheduler = RecordingScheduler()
    adapter = APSchedulerAdapter(scheduler)  # type: ignore[arg-type]
    adapter.schedule_interval("dispatch", lambda: None, 60)

    adapter.start()
    assert scheduler.running
    adapter.remove("dispatch")
    adapter.remove("dispatch")
    assert scheduler.jobs == {}
    adapter.shutdown()
    assert not scheduler.running
    adapter.shutdown()


def test_real_scheduler_lists_jobs() -> None:
    adapter = APSchedulerAdapter()
    adapter.schedule_interval("taxonomy", lambda: None, 3600)
    jobs = adapter.list_jobs()
    assert [job["id"] for job in jobs] == ["job::taxonomy"]
