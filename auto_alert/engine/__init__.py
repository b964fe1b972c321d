"""Engine components: marketplace fetch → parse → diff, plus the worker pool."""

from .diff import ChangeDetectionEngine, DiffResult
from .fetcher import (
    MarketplaceClient,
    MarketplaceError,
    MarketplaceParseError,
    MarketplaceUnreachable,
    UnexpectedStatus,
)
from .parser import ListingParser, ParseFailure
from .thread_pool import CycleError, ItemFailure, PoolOutcome, WorkerPool

__all__ = [
    "ChangeDetectionEngine",
    "CycleError",
    "DiffResult",
    "ItemFailure",
    "ListingParser",
    "MarketplaceClient",
    "MarketplaceError",
    "MarketplaceParseError",
    "MarketplaceUnreachable",
    "ParseFailure",
    "PoolOutcome",
    "UnexpectedStatus",
    "WorkerPool",
]
