"""Copy-on-write lookup cache for small marketplace taxonomies."""

from __future__ import annotations

from threading import Lock
from types import MappingProxyType
from typing import Generic, Iterable, Mapping, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class ListingCache(Generic[K, V]):
    """Thread-safe mapping that is replaced wholesale rather than mutated.

    Readers grab the current read-only mapping reference without locking; writers
    build a new mapping and swap the reference under ``_lock``. A reader therefore
    always sees either the old map or the new one, never a mix.
    """

    def __init__(self, initial: Mapping[K, V] | None = None) -> None:
        self._lock = Lock()
        self._data: Mapping[K, V] = MappingProxyType(dict(initial or {}))

    def get(self, key: K, default: V | None = None) -> V | None:
        return self._data.get(key, default)

    def get_many(self, keys: Iterable[K]) -> list[V]:
        """Resolve ``keys`` in order, silently dropping unknown ones."""

        data = self._data
        return [data[key] for key in keys if key in data]

    def replace(self, mapping: Mapping[K, V]) -> None:
        fresh = MappingProxyType(dict(mapping))
        with self._lock:
            self._data = fresh

    def set_batch(self, mapping: Mapping[K, V]) -> None:
        with self._lock:
            merged = dict(self._data)
            merged.update(mapping)
            self._data = MappingProxyType(merged)

    def snapshot(self) -> Mapping[K, V]:
        return self._data

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


__all__ = ["ListingCache"]
