"""Load marketplace taxonomies (chassis, regions, cars) and refresh lookup caches."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, Protocol

from .infra import ListingCache
from .logging_conf import component_logger

TAXONOMY_NAMES = ("chassis", "regions", "cars")
PACKAGED_DATA_DIR = Path(__file__).resolve().parent / "data"


class TaxonomyError(Exception):
    """A taxonomy could not be loaded."""


class TaxonomySource(Protocol):
    def fetch_chassis(self) -> dict[str, str]: ...

    def fetch_regions(self) -> dict[str, str]: ...


class TaxonomyLoader:
    """Read taxonomy JSON files, preferring the data directory over packaged defaults."""

    def __init__(self, data_dir: Path | None = None) -> None:
        self.data_dir = data_dir

    def path_for(self, name: str) -> Path:
        if name not in TAXONOMY_NAMES:
            raise TaxonomyError(f"unknown taxonomy: {name}")
        if self.data_dir is not None:
            candidate = self.data_dir / f"{name}.json"
            if candidate.exists():
                return candidate
        return PACKAGED_DATA_DIR / f"{name}.json"

    def load(self, name: str) -> dict[str, Any]:
        path = self.path_for(name)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise TaxonomyError(f"failed to load {name} taxonomy from {path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise TaxonomyError(f"{name} taxonomy must be a JSON object: {path}")
        return payload

    def save(self, name: str, payload: dict[str, Any]) -> Path:
        if self.data_dir is None:
            raise TaxonomyError("no writable taxonomy directory configured")
        self.data_dir.mkdir(parents=True, exist_ok=True)
        path = self.data_dir / f"{name}.json"
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        return path


class TaxonomyService:
    """Own the chassis, region and car model caches and keep them fresh."""

    def __init__(
        self,
        loader: TaxonomyLoader,
        chassis: ListingCache[str, str] | None = None,
        regions: ListingCache[str, str] | None = None,
        source: TaxonomySource | None = None,
        cars: ListingCache[str, tuple[str, ...]] | None = None,
    ) -> None:
        self.loader = loader
        self.chassis: ListingCache[str, str] = chassis if chassis is not None else ListingCache()
        self.regions: ListingCache[str, str] = regions if regions is not None else ListingCache()
        self.cars: ListingCache[str, tuple[str, ...]] = cars if cars is not None else ListingCache()
        self.source = source
        self.logger = component_logger("taxonomy")

    def load_initial(self) -> None:
        """Populate every cache from disk; failure here is fatal for startup."""

        self.chassis.replace(self._string_map(self.loader.load("chassis")))
        self.regions.replace(self._string_map(self.loader.load("regions")))
        self.cars.replace(self._models_map(self.loader.load("cars")))
        self.logger.info(
            "taxonomy_loaded",
            chassis=len(self.chassis),
            regions=len(self.regions),
            brands=len(self.cars),
        )

    def refresh(self) -> bool:
        """Reload caches, pulling from the marketplace first when a source is set.

        On any failure the previous maps stay in place.
        """

        try:
            if self.source is not None:
                self._pull_from_source(self.source)
            chassis = self._string_map(self.loader.load("chassis"))
            regions = self._string_map(self.loader.load("regions"))
            cars = self._models_map(self.loader.load("cars"))
        except Exception as exc:  # noqa: BLE001
            self.logger.error("taxonomy_refresh_failed", error=str(exc))
            return False
        self.chassis.replace(chassis)
        self.regions.replace(regions)
        self.cars.replace(cars)
        self.logger.info(
            "taxonomy_refreshed", chassis=len(chassis), regions=len(regions), brands=len(cars)
        )
        return True

    def check_selection(self, brand: str, models: Iterable[str] = ()) -> None:
        """Raise :class:`TaxonomyError` unless ``brand`` and every model are known."""

        known = self.cars.get(brand.lower())
        if known is None:
            raise TaxonomyError(f"unknown brand: {brand}")
        unknown = [model for model in models if model.lower() not in known]
        if unknown:
            raise TaxonomyError(f"unknown {brand} model(s): {', '.join(unknown)}")

    def _pull_from_source(self, source: TaxonomySource) -> None:
        chassis = source.fetch_chassis()
        if chassis:
            self.loader.save("chassis", chassis)
        regions = source.fetch_regions()
        if regions:
            self.loader.save("regions", regions)

    @staticmethod
    def _string_map(payload: dict[str, Any]) -> dict[str, str]:
        return {str(key): str(value) for key, value in payload.items()}

    @staticmethod
    def _models_map(payload: dict[str, Any]) -> dict[str, tuple[str, ...]]:
        models: dict[str, tuple[str, ...]] = {}
        for brand, names in payload.items():
            if not isinstance(names, list):
                raise TaxonomyError(f"models for brand {brand} must be a list")
            models[str(brand).lower()] = tuple(str(name).lower() for name in names)
        return models


__all__ = ["TaxonomyError", "TaxonomyLoader", "TaxonomyService", "TaxonomySource", "TAXONOMY_NAMES"]
