from __future__ import annotations

import pytest

from auto_alert.infra import NotFoundError, RepositoryError, SQLiteRepository, UserAgentPool
from auto_alert.models import Listing, NotificationRecord, NotificationStatus


def test_subscription_roundtrip(repository: SQLiteRepository, sample_subscription) -> None:
    created = repository.create_subscription(
        sample_subscription(id="", chassis=["Limuzina"], regions=["Beograd", "Niš"])
    )

    assert created.id
    loaded = repository.get_subscription_by_id(created.id)
    assert loaded.models == ["a4"]
    assert loaded.regions == ["Beograd", "Niš"]
    assert loaded.created_at is not None
    assert [sub.id for sub in repository.get_subscriptions_by_user(1001)] == [created.id]


def test_missing_subscription_raises_not_found(repository: SQLiteRepository) -> None:
    with pytest.raises(NotFoundError):
        repository.get_subscription_by_id("nope")


def test_upsert_keeps_one_row_per_listing_and_subscription(
    repository: SQLiteRepository, sample_subscription, sample_raw_listing
) -> None:
    repository.create_subscription(sample_subscription())
    raw = sample_raw_listing("1", price="10 €")
    repository.upsert_listing(Listing.from_raw(raw, "sub-1"))
    repository.upsert_listing(
        Listing.from_raw(raw, "sub-1", price="10 €", new_price="9 €", needs_send=True)
    )

    listings = repository.get_listings_for_subscription("sub-1")
    assert len(listings) == 1
    assert listings[0].new_price == "9 €"
    assert listings[0].needs_send
    assert [listing.key for listing in repository.get_pending_listings()] == [("1", "sub-1")]


def test_same_listing_may_belong_to_two_subscriptions(
    repository: SQLiteRepository, sample_subscription, sample_raw_listing
) -> None:
    repository.create_subscription(sample_subscription(id="sub-1"))
    repository.create_subscription(sample_subscription(id="sub-2"))
    raw = sample_raw_listing("1")
    repository.upsert_listing(Listing.from_raw(raw, "sub-1"))
    repository.upsert_listing(Listing.from_raw(raw, "sub-2"))

    assert len(repository.get_listings_for_subscription("sub-1")) == 1
    assert len(repository.get_listings_for_subscription("sub-2")) == 1


def test_listing_for_unknown_subscription_is_rejected(
    repository: SQLiteRepository, sample_raw_listing
) -> None:
    with pytest.raises(RepositoryError):
        repository.upsert_listing(Listing.from_raw(sample_raw_listing("1"), "ghost"))


def test_delete_user_removes_subscriptions_and_listings(
    repository: SQLiteRepository, sample_subscription, sample_raw_listing
) -> None:
    repository.create_subscription(sample_subscription(id="sub-1", user_id=7))
    repository.create_subscription(sample_subscription(id="sub-2", user_id=7))
    repository.create_subscription(sample_subscription(id="sub-3", user_id=8))
    for sub_id in ("sub-1", "sub-2", "sub-3"):
        repository.upsert_listing(Listing.from_raw(sample_raw_listing("1"), sub_id, needs_send=True))

    assert repository.delete_subscriptions_and_listings_for_user(7) == 2
    assert repository.delete_subscriptions_and_listings_for_user(7) == 0
    assert [sub.id for sub in repository.list_subscriptions()] == ["sub-3"]
    assert repository.get_listings_for_subscription("sub-1") == []
    assert [listing.subscription_id for listing in repository.get_pending_listings()] == ["sub-3"]


def test_delete_subscription_cascades(
    repository: SQLiteRepository, sample_subscription, sample_raw_listing
) -> None:
    repository.create_subscription(sample_subscription())
    repository.upsert_listing(Listing.from_raw(sample_raw_listing("1"), "sub-1"))

    assert repository.delete_subscription("sub-1") is True
    assert repository.delete_subscription("sub-1") is False
    assert repository.get_listings_for_subscription("sub-1") == []


def test_notifications_are_append_only(repository: SQLiteRepository) -> None:
    first = repository.record_notification(
        NotificationRecord("sub-1", "1", NotificationStatus.FAILED, reason="timeout")
    )
    second = repository.record_notification(NotificationRecord("sub-1", "1", NotificationStatus.SENT))

    assert first.id and second.id and first.id != second.id
    records = repository.list_notifications("1")
    assert [record.status for record in records] == [
        NotificationStatus.FAILED,
        NotificationStatus.SENT,
    ]
    assert records[0].reason == "timeout"


def test_in_memory_repository(sample_subscription) -> None:
    repo = SQLiteRepository(":memory:")
    repo.create_subscription(sample_subscription())
    assert len(repo.list_subscriptions()) == 1
    repo.close()


def test_user_agent_pool_falls_back_to_defaults(tmp_path) -> None:
    agents = tmp_path / "agents.txt"
    agents.write_text("agent-a\n\nagent-b\n", encoding="utf-8")
    assert UserAgentPool(file_path=agents).get() in {"agent-a", "agent-b"}

    pool = UserAgentPool(["only"])
    assert pool.get() == "only"
    pool.refresh([" "])
    assert pool.get() != "only"
