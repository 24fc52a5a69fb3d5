from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from core.errors import ValidationError
from models.orm_coupon import CouponRedemptionEntity
from models.orm_payment import PaymentEntity
from services import coupon_service, plan_service, subscription_service
from services.coupon_service import calculate_discount

NOW = datetime(2026, 10, 1, 12, 0, 0)


def _coupon(db, **overrides):
    data = {
        "code": "yaz25",
        "discount_type": "percent",
        "discount_value": 25,
        "scope": "all_plans",
        "max_redemptions_per_user": 1,
    }
    data.update(overrides)
    return coupon_service.create_coupon(db, data)


@pytest.mark.parametrize(
    "base,kind,value,expected",
    [
        ("500", "percent", "25", "125.00"),
        ("1000", "percent", "12.5", "125.00"),
        ("333.33", "percent", "10", "33.33"),
        ("500", "fixed", "200", "200.00"),
        ("500", "fixed", "900", "500.00"),
    ],
)
def test_calculate_discount(base, kind, value, expected):
    assert calculate_discount(Decimal(base), kind, Decimal(value)) == Decimal(expected)


def test_codes_are_normalized(plans):
    coupon = _coupon(plans, code="  yaz25 ")

    assert coupon.code == "YAZ25"
    with pytest.raises(ValidationError) as exc:
        _coupon(plans, code="Yaz25")
    assert exc.value.details["field"] == "code"


def test_percent_over_hundred_is_refused(plans):
    with pytest.raises(ValidationError) as exc:
        _coupon(plans, discount_value=120)

    assert exc.value.details["field"] == "discount_value"


def test_specific_scope_needs_plans(plans):
    with pytest.raises(ValidationError) as exc:
        _coupon(plans, scope="specific_plans", plan_ids=[])

    assert exc.value.details["field"] == "plan_ids"


def test_subscribe_with_coupon_charges_discounted_price(db_session, owner, plans):
    _coupon(db_session)

    sub = subscription_service.subscribe(db_session, owner.id, "basic-monthly", now=NOW, coupon_code="yaz25")

    assert sub.price == Decimal("500")
    assert sub.coupon_code == "YAZ25"
    assert sub.discount_amount == Decimal("125")
    payment = db_session.query(PaymentEntity).one()
    assert payment.amount == Decimal("375")
    assert payment.method == "manual"
    redemption = db_session.query(CouponRedemptionEntity).one()
    assert redemption.final_amount == Decimal("375")
    assert redemption.subscription_id == sub.id


def test_full_discount_leaves_a_coupon_receipt(db_session, owner, plans):
    _coupon(db_session, code="bedava", discount_type="fixed", discount_value=5000)

    subscription_service.subscribe(db_session, owner.id, "basic-monthly", now=NOW, coupon_code="BEDAVA")

    payment = db_session.query(PaymentEntity).one()
    assert payment.amount == Decimal("0")
    assert payment.method == "coupon"


def test_coupon_is_single_use_per_user(db_session, owner, plans):
    _coupon(db_session)
    sub = subscription_service.subscribe(db_session, owner.id, "basic-monthly", now=NOW, coupon_code="YAZ25")
    subscription_service.expire_overdue(db_session, sub.current_period_end)

    with pytest.raises(ValidationError) as exc:
        subscription_service.subscribe(
            db_session, owner.id, "basic-monthly", now=sub.current_period_end, coupon_code="YAZ25"
        )

    assert exc.value.details["field"] == "coupon_code"


def test_total_redemption_limit(db_session, owner, other_owner, plans):
    _coupon(db_session, max_redemptions=1)
    subscription_service.subscribe(db_session, owner.id, "basic-monthly", now=NOW, coupon_code="YAZ25")

    with pytest.raises(ValidationError):
        subscription_service.subscribe(db_session, other_owner.id, "basic-monthly", now=NOW, coupon_code="YAZ25")

    assert subscription_service.get_current(db_session, other_owner.id) is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"active": False},
        {"starts_at": NOW + timedelta(days=1)},
        {"ends_at": NOW - timedelta(days=1)},
    ],
)
def test_coupon_outside_its_window_is_invalid(db_session, owner, plans, overrides):
    _coupon(db_session, **overrides)
    plan = plan_service.get_plan_by_code(db_session, "basic-monthly")

    with pytest.raises(ValidationError):
        coupon_service.validate_coupon(db_session, "YAZ25", plan, owner.id, NOW)


def test_plan_scoped_coupon(db_session, owner, plans):
    pro = plan_service.get_plan_by_code(db_session, "pro-monthly")
    basic = plan_service.get_plan_by_code(db_session, "basic-monthly")
    _coupon(db_session, scope="specific_plans", plan_ids=[pro.id])

    assert coupon_service.validate_coupon(db_session, "YAZ25", pro, owner.id, NOW).final_price == Decimal("1875.00")
    with pytest.raises(ValidationError):
        coupon_service.validate_coupon(db_session, "YAZ25", basic, owner.id, NOW)


def test_trial_does_not_take_coupons(db_session, owner, plans):
    _coupon(db_session)

    with pytest.raises(ValidationError) as exc:
        subscription_service.subscribe(db_session, owner.id, "basic-monthly", trial=True, coupon_code="YAZ25")

    assert exc.value.details["field"] == "coupon_code"


def test_coupon_endpoints(client, login_as, admin, owner, plans):
    login_as(admin)
    r = client.post(
        "/api/admin/coupons",
        json={"code": "kis10", "discount_type": "fixed", "discount_value": 100, "max_redemptions": 5},
    )
    assert r.status_code == 201, r.text
    coupon = r.json()
    assert coupon["code"] == "KIS10"
    assert coupon["usage_count"] == 0

    login_as(owner)
    r = client.post("/api/subscriptions/coupons/validate", json={"plan_code": "standard-monthly", "code": "kis10"})
    assert r.status_code == 200, r.text
    assert r.json()["final_price"] == 900
    assert r.json()["discount_amount"] == 100

    r = client.post("/api/subscriptions", json={"plan_code": "standard-monthly", "coupon_code": "kis10"})
    assert r.status_code == 201, r.text
    assert r.json()["coupon_code"] == "KIS10"
    assert r.json()["discount_amount"] == 100

    r = client.post("/api/subscriptions/coupons/validate", json={"plan_code": "standard-monthly", "code": "yok"})
    assert r.status_code == 400
    assert r.json()["details"] == {"field": "coupon_code", "code": "YOK"}

    login_as(admin)
    assert client.get(f"/api/admin/coupons/{coupon['id']}").json()["usage_count"] == 1
    r = client.put(f"/api/admin/coupons/{coupon['id']}", json={"discount_value": 150})
    assert r.json()["discount_value"] == 150
    r = client.delete(f"/api/admin/coupons/{coupon['id']}")
    assert r.json()["active"] is False
    assert client.get("/api/admin/coupons", params={"active": "true"}).json() == []
