from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from core.errors import InvalidStateError, NotFoundError, QuotaExceededError, ValidationError
from models.enums import ListingKind, ListingStatus
from models.orm_listing import PlaceEntity
from models.orm_payment import PaymentEntity
from services import listing_service, quota_service, subscription_service

NOW = datetime(2026, 10, 1, 12, 0, 0)


def test_subscribe_starts_paid_period(db_session, owner, plans):
    sub = subscription_service.subscribe(db_session, owner.id, "basic-quarterly", now=NOW)

    assert sub.status == "active"
    assert sub.current_period_start == NOW
    assert sub.current_period_end == NOW + timedelta(days=90)
    assert sub.next_billing_date == sub.current_period_end
    assert sub.price == Decimal("1500")

    payment = db_session.query(PaymentEntity).one()
    assert payment.amount == Decimal("1500")
    assert payment.status == "success"
    assert payment.method == "manual"


def test_trial_only_for_first_subscription(db_session, owner, plans):
    sub = subscription_service.subscribe(db_session, owner.id, "standard-monthly", trial=True, now=NOW)

    assert sub.status == "trial"
    assert sub.trial_ends_at == NOW + timedelta(days=14)
    assert db_session.query(PaymentEntity).count() == 0

    later = sub.current_period_end + timedelta(days=1)
    subscription_service.expire_overdue(db_session, later)
    with pytest.raises(ValidationError):
        subscription_service.subscribe(db_session, owner.id, "standard-monthly", trial=True, now=later)


def test_cannot_subscribe_twice(db_session, owner, plans):
    subscription_service.subscribe(db_session, owner.id, "basic-monthly", now=NOW)

    with pytest.raises(InvalidStateError):
        subscription_service.subscribe(db_session, owner.id, "pro-monthly", now=NOW + timedelta(days=1))


def test_unknown_plan(db_session, owner, plans):
    with pytest.raises(NotFoundError):
        subscription_service.subscribe(db_session, owner.id, "platinum-monthly", now=NOW)


def test_cancel_keeps_access_until_period_end(db_session, owner, plans):
    sub = subscription_service.subscribe(db_session, owner.id, "basic-monthly", now=NOW)
    period_end = sub.current_period_end

    sub = subscription_service.cancel(db_session, sub.id, "Sezon bitti", now=NOW + timedelta(days=3))

    assert sub.status == "cancelled"
    assert sub.cancelled_at == NOW + timedelta(days=3)
    assert sub.cancel_reason == "Sezon bitti"
    assert sub.auto_renew is False
    assert sub.next_billing_date is None
    assert sub.current_period_end == period_end

    before_end = period_end - timedelta(minutes=1)
    assert quota_service.get_effective_limits(db_session, owner.id, before_end).max_places == 3
    assert quota_service.get_effective_limits(db_session, owner.id, period_end).max_places == 0


def test_cancel_twice_is_invalid(db_session, owner, plans):
    sub = subscription_service.subscribe(db_session, owner.id, "basic-monthly", now=NOW)
    subscription_service.cancel(db_session, sub.id, now=NOW)

    with pytest.raises(InvalidStateError):
        subscription_service.cancel(db_session, sub.id, now=NOW)


def test_reactivate_starts_fresh_period_and_charges(db_session, owner, plans):
    sub = subscription_service.subscribe(db_session, owner.id, "basic-monthly", now=NOW)
    subscription_service.cancel(db_session, sub.id, "pahalı", now=NOW)

    later = NOW + timedelta(days=10)
    sub = subscription_service.reactivate(db_session, sub.id, now=later)

    assert sub.status == "active"
    assert sub.cancelled_at is None
    assert sub.cancel_reason is None
    assert sub.current_period_start == later
    assert sub.current_period_end == later + timedelta(days=30)
    assert db_session.query(PaymentEntity).count() == 2


def test_reactivate_requires_cancelled_or_expired(db_session, owner, plans):
    sub = subscription_service.subscribe(db_session, owner.id, "basic-monthly", now=NOW)

    with pytest.raises(InvalidStateError):
        subscription_service.reactivate(db_session, sub.id, now=NOW)


def test_extend_trial(db_session, owner, plans):
    sub = subscription_service.subscribe(db_session, owner.id, "basic-monthly", trial=True, now=NOW)
    end = sub.current_period_end

    sub = subscription_service.extend_trial(db_session, sub.id, now=NOW)

    assert sub.current_period_end == end + timedelta(days=7)
    assert sub.trial_ends_at == end + timedelta(days=7)

    with pytest.raises(ValidationError):
        subscription_service.extend_trial(db_session, sub.id, days=0)


def test_extend_trial_only_for_trials(db_session, owner, plans):
    sub = subscription_service.subscribe(db_session, owner.id, "basic-monthly", now=NOW)

    with pytest.raises(InvalidStateError):
        subscription_service.extend_trial(db_session, sub.id, days=3)


def test_downgrade_keeps_listings_but_blocks_creation(db_session, owner, plans):
    sub = subscription_service.subscribe(db_session, owner.id, "standard-monthly")
    for i in range(5):
        db_session.add(
            PlaceEntity(
                owner_id=owner.id,
                title=f"Pansiyon {i}",
                slug=f"pansiyon-{i}",
                body="Denize sıfır, bahçeli ve sessiz bir pansiyon.",
                images=["a.jpg"],
                status=ListingStatus.ACTIVE.value,
            )
        )
    db_session.commit()

    sub = subscription_service.change_plan(db_session, sub.id, "basic-monthly")

    assert sub.plan.code == "basic-monthly"
    active = db_session.query(PlaceEntity).filter(PlaceEntity.status == ListingStatus.ACTIVE.value).count()
    assert active == 5
    with pytest.raises(QuotaExceededError):
        listing_service.create_listing(db_session, owner.id, ListingKind.PLACE, {"title": "Altıncı"})


def test_upgrade_records_price_difference(db_session, owner, plans):
    sub = subscription_service.subscribe(db_session, owner.id, "basic-monthly", now=NOW)

    sub = subscription_service.change_plan(db_session, sub.id, "pro-monthly", now=NOW)

    assert sub.price == Decimal("2500")
    amounts = sorted(p.amount for p in db_session.query(PaymentEntity).all())
    assert amounts == [Decimal("500"), Decimal("2000")]


def test_change_to_same_plan_is_rejected(db_session, owner, plans):
    sub = subscription_service.subscribe(db_session, owner.id, "basic-monthly", now=NOW)

    with pytest.raises(ValidationError):
        subscription_service.change_plan(db_session, sub.id, "basic-monthly", now=NOW)


def test_expire_overdue(db_session, owner, other_owner, plans):
    ending = subscription_service.subscribe(db_session, owner.id, "basic-monthly", now=NOW)
    running = subscription_service.subscribe(db_session, other_owner.id, "basic-monthly", now=NOW + timedelta(days=20))

    expired = subscription_service.expire_overdue(db_session, NOW + timedelta(days=31))

    assert expired == 1
    db_session.refresh(ending)
    db_session.refresh(running)
    assert ending.status == "expired"
    assert running.status == "active"


def test_suspend_and_unsuspend(db_session, owner, plans):
    sub = subscription_service.subscribe(db_session, owner.id, "basic-monthly", now=NOW)

    sub = subscription_service.suspend(db_session, sub.id)
    assert sub.status == "suspended"
    with pytest.raises(InvalidStateError):
        subscription_service.subscribe(db_session, owner.id, "basic-monthly", now=NOW)

    sub = subscription_service.unsuspend(db_session, sub.id)
    assert sub.status == "active"


def test_owner_subscription_endpoints(client, login_as, owner, plans):
    login_as(owner)

    plans_out = client.get("/api/subscriptions/plans").json()
    assert [p["code"] for p in plans_out][:2] == ["basic-monthly", "basic-quarterly"]
    assert plans_out[-1]["limits"]["maxPlaces"] == -1

    assert client.get("/api/subscriptions/current").json() is None

    r = client.post("/api/subscriptions", json={"plan_code": "standard-monthly", "trial": True})
    assert r.status_code == 201, r.text
    assert r.json()["status"] == "trial"

    r = client.post("/api/subscriptions/cancel", json={"reason": "deneme bitti"})
    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"

    r = client.post("/api/subscriptions/change-plan", json={"plan_code": "pro-monthly"})
    assert r.status_code == 409
    assert r.json()["kind"] == "INVALID_STATE"


def test_admin_subscription_endpoints(client, login_as, admin, owner, plans):
    login_as(admin)

    r = client.post("/api/admin/subscriptions", json={"user_id": owner.id, "plan_code": "pro-monthly"})
    assert r.status_code == 201, r.text
    sub_id = r.json()["id"]

    assert client.put(f"/api/admin/subscriptions/{sub_id}/suspend").json()["status"] == "suspended"
    assert client.put(f"/api/admin/subscriptions/{sub_id}/unsuspend").json()["status"] == "active"

    r = client.put(f"/api/admin/subscriptions/{sub_id}/extend-trial", json={"days": 3})
    assert r.status_code == 409

    listed = client.get("/api/admin/subscriptions", params={"status": "active"}).json()
    assert [s["id"] for s in listed] == [sub_id]

    assert client.get("/api/admin/payments").json() == []


def test_admin_manages_plans(client, login_as, admin, plans):
    login_as(admin)

    r = client.post(
        "/api/admin/plans",
        json={
            "code": "seasonal-monthly",
            "name": "Seasonal",
            "price": 250,
            "limits": {"max_places": 1, "max_blogs": 2, "max_photos": 5},
        },
    )
    assert r.status_code == 201, r.text
    plan = r.json()
    assert plan["limits"]["maxPhotos"] == 5

    r = client.put(f"/api/admin/plans/{plan['id']}", json={"active": False})
    assert r.json()["active"] is False

    public_codes = [p["code"] for p in client.get("/api/subscriptions/plans").json()]
    assert "seasonal-monthly" not in public_codes

    r = client.post("/api/admin/plans", json={"code": "basic-monthly", "name": "Dup", "price": 1})
    assert r.status_code == 400
