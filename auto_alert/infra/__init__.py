"""Infra layer utilities (storage, caches, UA pool)."""

from .base import NotFoundError, Repository, RepositoryError
from .cache import ListingCache
from .storage import SQLiteRepository
from .ua_pool import UserAgentPool

__all__ = [
    "ListingCache",
    "NotFoundError",
    "Repository",
    "RepositoryError",
    "SQLiteRepository",
    "UserAgentPool",
]
