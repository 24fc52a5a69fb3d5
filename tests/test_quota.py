from datetime import timedelta

import pytest
from sqlalchemy.dialects import postgresql

from core.base_classes import utc_now
from core.errors import QuotaExceededError
from models.enums import ListingKind, ListingStatus
from models.orm_listing import BlogPostEntity, PlaceEntity
from services import listing_service, listing_store, quota_service, subscription_service
from services.quota_service import UsageCounter, can_create, ensure_can_create, percentage


@pytest.mark.parametrize("current", [0, 1, 5, 10_000])
def test_unlimited_always_allows(current):
    assert can_create(UsageCounter(current, -1)) is True
    assert can_create(UsageCounter(current, -1), requested=500) is True


@pytest.mark.parametrize(
    "current,maximum,expected",
    [
        (0, 3, True),
        (2, 3, True),
        (3, 3, False),
        (4, 3, False),
        (0, 0, False),
        (0, None, False),
    ],
)
def test_can_create_bounded(current, maximum, expected):
    assert can_create(UsageCounter(current, maximum)) is expected


def test_can_create_counts_requested_amount():
    assert can_create(UsageCounter(10, 15), requested=5) is True
    assert can_create(UsageCounter(10, 15), requested=6) is False


@pytest.mark.parametrize("current", [0, 3, 99, 10_000])
def test_percentage_unlimited_is_zero(current):
    assert percentage(current, -1) == 0


def test_percentage_rounds_and_clamps():
    assert percentage(10, 5) == 100
    assert percentage(1, 3) == 33
    assert percentage(2, 3) == 67
    assert percentage(1, 8) == 13
    assert percentage(0, 5) == 0
    assert percentage(0, 0) == 100


def test_ensure_can_create_reports_counts():
    with pytest.raises(QuotaExceededError) as exc:
        ensure_can_create("places", UsageCounter(3, 3))

    err = exc.value
    assert err.kind == "QUOTA_EXCEEDED"
    assert err.http_status == 403
    assert err.details == {"resource": "places", "current": 3, "max": 3, "requested": 1}


def _place(owner_id, slug, status=ListingStatus.ACTIVE, images=("a.jpg",)):
    return PlaceEntity(
        owner_id=owner_id,
        title=f"Place {slug}",
        slug=slug,
        body="A quiet guesthouse near the old harbour.",
        images=list(images),
        status=status.value,
    )


def test_usage_counts_exclude_archived(db_session, owner, subscribe):
    subscribe(owner, "basic-monthly")
    db_session.add_all(
        [
            _place(owner.id, "p1", images=("1.jpg", "2.jpg")),
            _place(owner.id, "p2", ListingStatus.DRAFT),
            _place(owner.id, "p3", ListingStatus.ARCHIVED, images=("x.jpg", "y.jpg", "z.jpg")),
            BlogPostEntity(owner_id=owner.id, title="Blog", slug="b1", body="Ten chars+", images=["c.jpg"]),
        ]
    )
    db_session.commit()

    usage = quota_service.get_usage(db_session, owner.id)

    assert usage.places == UsageCounter(2, 3)
    assert usage.blogs == UsageCounter(1, 5)
    assert usage.photos == UsageCounter(4, 15)


def test_usage_is_per_owner(db_session, owner, other_owner, subscribe):
    subscribe(owner, "basic-monthly")
    db_session.add_all([_place(other_owner.id, "theirs-1"), _place(other_owner.id, "theirs-2")])
    db_session.commit()

    assert quota_service.get_usage(db_session, owner.id).places.current == 0


def test_no_subscription_means_no_quota(db_session, owner):
    usage = quota_service.get_usage(db_session, owner.id)

    assert usage.places.max == 0
    assert can_create(usage.places) is False


def test_cancelled_subscription_keeps_limits_until_period_end(db_session, owner, subscribe):
    sub = subscribe(owner, "standard-monthly")
    subscription_service.cancel(db_session, sub.id, "moving away")

    limits = quota_service.get_effective_limits(db_session, owner.id)
    assert limits.max_places == 10

    after_end = sub.current_period_end + timedelta(seconds=1)
    assert quota_service.get_effective_limits(db_session, owner.id, now=after_end).max_places == 0


def test_unlimited_plan_usage_report(db_session, owner, subscribe):
    subscribe(owner, "pro-monthly")
    db_session.add(_place(owner.id, "pro-1"))
    db_session.commit()

    report = quota_service.usage_report(quota_service.get_usage(db_session, owner.id))

    assert report["places"] == {"current": 1, "max": -1, "percentage": 0, "can_create": True}


def test_usage_rereads_on_every_call(db_session, owner, subscribe):
    subscribe(owner, "basic-monthly")
    first = quota_service.get_usage(db_session, owner.id)

    db_session.add(_place(owner.id, "later"))
    db_session.commit()

    assert first.places.current == 0
    assert quota_service.get_usage(db_session, owner.id).places.current == 1


def test_suspended_subscription_has_no_quota(db_session, owner, subscribe):
    sub = subscribe(owner, "basic-monthly")
    subscription_service.suspend(db_session, sub.id)

    assert quota_service.get_effective_limits(db_session, owner.id, now=utc_now()).max_places == 0


def test_locking_query_selects_for_update(db_session, owner):
    query = quota_service.subscription_query(db_session, owner.id, for_update=True)

    sql = str(query.statement.compile(dialect=postgresql.dialect()))

    assert "FOR UPDATE" in sql


def test_create_locks_subscription_before_counting(db_session, owner, subscribe, monkeypatch):
    subscribe(owner, "basic-monthly")
    db_session.add_all([_place(owner.id, "first"), _place(owner.id, "second")])
    db_session.commit()

    calls = []
    get_subscription = quota_service.get_subscription
    count_listings = listing_store.count_listings_by_owner

    def _get_subscription(db, user_id, for_update=False):
        calls.append(("subscription", for_update))
        return get_subscription(db, user_id, for_update)

    def _count_listings(db, owner_id, kind, *args, **kwargs):
        calls.append(("count", ListingKind(kind).value))
        return count_listings(db, owner_id, kind, *args, **kwargs)

    monkeypatch.setattr(quota_service, "get_subscription", _get_subscription)
    monkeypatch.setattr(listing_store, "count_listings_by_owner", _count_listings)

    listing_service.create_listing(db_session, owner.id, ListingKind.PLACE, {"title": "Third tab"})

    assert calls[0] == ("subscription", True)
    assert ("count", "place") in calls[1:]

    # A second tab arriving after the first committed sees the new row.
    with pytest.raises(QuotaExceededError) as exc:
        listing_service.create_listing(db_session, owner.id, ListingKind.PLACE, {"title": "Fourth tab"})

    assert exc.value.current == 3
    assert db_session.query(PlaceEntity).filter(PlaceEntity.owner_id == owner.id).count() == 3
