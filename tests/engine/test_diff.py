from __future__ import annotations

from auto_alert.engine import ChangeDetectionEngine
from auto_alert.models import ChangeKind, Listing


def _stored(raw, subscription_id: str = "sub-1", **overrides) -> Listing:
    return Listing.from_raw(raw, subscription_id, **overrides)


def test_first_sync_is_baseline_without_notifications(sample_raw_listing) -> None:
    fetched = [sample_raw_listing("1"), sample_raw_listing("2")]
    result = ChangeDetectionEngine().diff("sub-1", [], fetched)

    assert [op.kind for op in result.ops] == [ChangeKind.BASELINE, ChangeKind.BASELINE]
    assert result.to_notify == []
    assert all(op.listing.subscription_id == "sub-1" for op in result.ops)


def test_unknown_listing_is_new_and_pending(sample_raw_listing) -> None:
    existing = [_stored(sample_raw_listing("1"))]
    fetched = [sample_raw_listing("1"), sample_raw_listing("2", price="7.500 €")]

    result = ChangeDetectionEngine().diff("sub-1", existing, fetched)

    assert len(result) == 1
    op = result.ops[0]
    assert op.kind is ChangeKind.NEW
    assert op.listing.listing_id == "2"
    assert op.listing.price == "7.500 €"
    assert op.listing.new_price is None
    assert op.needs_send
    assert result.unchanged == 1


def test_price_change_keeps_stored_price_and_records_new_price(sample_raw_listing) -> None:
    existing = [_stored(sample_raw_listing("1", price="10.000 €"))]
    fetched = [sample_raw_listing("1", price="9.500 €")]

    result = ChangeDetectionEngine().diff("sub-1", existing, fetched)

    assert [op.kind for op in result.ops] == [ChangeKind.PRICE_CHANGED]
    listing = result.ops[0].listing
    assert listing.price == "10.000 €"
    assert listing.new_price == "9.500 €"
    assert listing.needs_send
    assert listing.has_price_change


def test_diff_is_idempotent_after_applying_ops(sample_raw_listing) -> None:
    engine = ChangeDetectionEngine()
    existing = [_stored(sample_raw_listing("1", price="10.000 €"))]
    fetched = [sample_raw_listing("1", price="9.500 €"), sample_raw_listing("2")]

    first = engine.diff("sub-1", existing, fetched)
    applied = {listing.listing_id: listing for listing in existing}
    applied.update({op.listing.listing_id: op.listing for op in first.ops})
    second = engine.diff("sub-1", list(applied.values()), fetched)

    assert len(first) == 2
    assert second.ops == []
    assert second.unchanged == 2


def test_pending_price_change_is_compared_against_latest_price(sample_raw_listing) -> None:
    pending = _stored(
        sample_raw_listing("1", price="10.000 €"), new_price="9.500 €", needs_send=True
    )
    result = ChangeDetectionEngine().diff(
        "sub-1", [pending], [sample_raw_listing("1", price="9.000 €")]
    )

    listing = result.ops[0].listing
    assert listing.price == "10.000 €"
    assert listing.new_price == "9.000 €"


def test_duplicate_ids_in_one_fetch_keep_last_occurrence(sample_raw_listing) -> None:
    existing = [_stored(sample_raw_listing("9"))]
    fetched = [sample_raw_listing("1", price="1 €"), sample_raw_listing("1", price="2 €")]

    result = ChangeDetectionEngine().diff("sub-1", existing, fetched)

    assert len(result) == 1
    assert result.ops[0].listing.price == "2 €"


def test_empty_fetch_produces_nothing(sample_raw_listing) -> None:
    existing = [_stored(sample_raw_listing("1"))]
    result = ChangeDetectionEngine().diff("sub-1", existing, [])
    assert result.ops == []
    assert result.unchanged == 0


def test_same_inputs_give_same_ops(sample_raw_listing) -> None:
    engine = ChangeDetectionEngine()
    existing = [_stored(sample_raw_listing("1", price="100"))]
    fetched = [sample_raw_listing("1", price="150"), sample_raw_listing("2", price="200")]

    assert engine.diff("sub-1", existing, fetched) == engine.diff("sub-1", existing, fetched)
