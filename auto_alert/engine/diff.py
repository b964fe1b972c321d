"""Change detection between freshly fetched listings and persisted state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from ..models import ChangeKind, Listing, RawListing, UpsertOp


@dataclass(slots=True)
class DiffResult:
    ops: list[UpsertOp]
    unchanged: int

    @property
    def to_notify(self) -> list[UpsertOp]:
        return [op for op in self.ops if op.needs_send]

    def __len__(self) -> int:
        return len(self.ops)


class ChangeDetectionEngine:
    """Classify fetched listings as baseline, new, price-changed or unchanged.

    The engine is pure: it never touches storage, so the same inputs always
    yield the same operations.
    """

    def diff(
        self,
        subscription_id: str,
        existing: Sequence[Listing],
        fetched: Iterable[RawListing],
    ) -> DiffResult:
        known_prices = {listing.listing_id: self._last_known_price(listing) for listing in existing}
        stored_prices = {listing.listing_id: listing.price for listing in existing}
        first_sync = not existing

        ops: list[UpsertOp] = []
        unchanged = 0
        for raw in self._latest_by_id(fetched):
            if first_sync:
                ops.append(
                    UpsertOp(
                        Listing.from_raw(raw, subscription_id, needs_send=False),
                        ChangeKind.BASELINE,
                    )
                )
                continue
            if raw.id not in known_prices:
                ops.append(
                    UpsertOp(
                        Listing.from_raw(raw, subscription_id, needs_send=True),
                        ChangeKind.NEW,
                    )
                )
                continue
            if raw.price == known_prices[raw.id]:
                unchanged += 1
                continue
            ops.append(
                UpsertOp(
                    Listing.from_raw(
                        raw,
                        subscription_id,
                        price=stored_prices[raw.id],
                        new_price=raw.price,
                        needs_send=True,
                    ),
                    ChangeKind.PRICE_CHANGED,
                )
            )
        return DiffResult(ops=ops, unchanged=unchanged)

    @staticmethod
    def _last_known_price(listing: Listing) -> str:
        # a pending price change is the most recent price seen on the marketplace
        return listing.new_price if listing.new_price else listing.price

    @staticmethod
    def _latest_by_id(fetched: Iterable[RawListing]) -> list[RawListing]:
        latest: dict[str, RawListing] = {}
        for raw in fetched:
            latest.pop(raw.id, None)
            latest[raw.id] = raw
        return list(latest.values())


__all__ = ["ChangeDetectionEngine", "DiffResult"]
