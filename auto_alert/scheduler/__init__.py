"""Scheduling helpers."""

from .apsched_adapter import APSchedulerAdapter, supervised

__all__ = ["APSchedulerAdapter", "supervised"]
