"""Discount coupons: admin catalogue, per-user validation and redemption.

A coupon discounts the first charge of a subscription. Codes are stored
upper-case; lookups normalize the input the same way.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.base_classes import utc_now
from core.errors import NotFoundError, ValidationError
from core.logging import get_logger
from models.enums import CouponScope, DiscountType
from models.orm_coupon import CouponEntity, CouponRedemptionEntity
from models.orm_plan import PlanEntity
from models.orm_subscription import SubscriptionEntity

log = get_logger("coupons")

CENT = Decimal("0.01")


@dataclass(frozen=True)
class CouponQuote:
    coupon: CouponEntity
    base_price: Decimal
    discount_amount: Decimal
    final_price: Decimal
    currency: str

    @property
    def code(self) -> str:
        return self.coupon.code


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def calculate_discount(base_price: Decimal, discount_type: str, discount_value: Decimal) -> Decimal:
    base_price = Decimal(base_price)
    discount_value = Decimal(discount_value)
    if DiscountType(discount_type) == DiscountType.PERCENT:
        amount = base_price * discount_value / 100
    else:
        amount = min(base_price, discount_value)
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def _invalid(message: str, code: str) -> ValidationError:
    return ValidationError(message, field="coupon_code", details={"code": code})


def _redemption_count(db: Session, coupon_id: int, user_id: int | None = None) -> int:
    query = db.query(func.count(CouponRedemptionEntity.id)).filter(CouponRedemptionEntity.coupon_id == coupon_id)
    if user_id is not None:
        query = query.filter(CouponRedemptionEntity.user_id == user_id)
    return query.scalar() or 0


def validate_coupon(
    db: Session,
    code: str,
    plan: PlanEntity,
    user_id: int,
    now: datetime | None = None,
    for_update: bool = False,
) -> CouponQuote:
    """Price ``plan`` for ``user_id`` with the coupon applied.

    Raises ``ValidationError`` (field ``coupon_code``) when the coupon is
    unknown, inactive, outside its window, not valid for the plan or used up.
    """
    now = now or utc_now()
    normalized = normalize_code(code)
    query = db.query(CouponEntity).filter(CouponEntity.code == normalized)
    if for_update:
        query = query.with_for_update()
    coupon = query.first()

    if coupon is None or not coupon.active:
        raise _invalid("Invalid coupon code", normalized)
    if coupon.starts_at and now < coupon.starts_at:
        raise _invalid("Coupon is not active yet", normalized)
    if coupon.ends_at and now > coupon.ends_at:
        raise _invalid("Coupon has expired", normalized)
    if coupon.scope == CouponScope.SPECIFIC_PLANS.value and plan.id not in (coupon.plan_ids or []):
        raise _invalid("Coupon is not valid for this plan", normalized)
    if coupon.max_redemptions is not None and _redemption_count(db, coupon.id) >= coupon.max_redemptions:
        raise _invalid("Coupon redemption limit reached", normalized)
    if _redemption_count(db, coupon.id, user_id) >= coupon.max_redemptions_per_user:
        raise _invalid("You have already used this coupon", normalized)

    base_price = Decimal(plan.price)
    discount = calculate_discount(base_price, coupon.discount_type, coupon.discount_value)
    final_price = max(Decimal("0"), base_price - discount).quantize(CENT, rounding=ROUND_HALF_UP)
    return CouponQuote(coupon, base_price, discount, final_price, plan.currency)


def redeem(db: Session, quote: CouponQuote, sub: SubscriptionEntity) -> CouponRedemptionEntity:
    """Record the use of a validated coupon. The caller commits."""
    redemption = CouponRedemptionEntity(
        coupon_id=quote.coupon.id,
        user_id=sub.user_id,
        subscription_id=sub.id,
        plan_id=sub.plan_id,
        discount_amount=quote.discount_amount,
        final_amount=quote.final_price,
        currency=quote.currency,
    )
    db.add(redemption)
    return redemption


def list_coupons(db: Session, active: bool | None = None) -> list[CouponEntity]:
    query = db.query(CouponEntity)
    if active is not None:
        query = query.filter(CouponEntity.active.is_(active))
    return query.order_by(CouponEntity.id.desc()).all()


def get_coupon(db: Session, coupon_id: int) -> CouponEntity:
    coupon = db.query(CouponEntity).filter(CouponEntity.id == coupon_id).first()
    if not coupon:
        raise NotFoundError("Coupon not found", {"coupon_id": coupon_id})
    return coupon


def _check_rules(db: Session, values: dict[str, Any], coupon_id: int | None = None) -> None:
    if values["discount_type"] == DiscountType.PERCENT.value and Decimal(values["discount_value"]) > 100:
        raise ValidationError("Percent discount cannot exceed 100", field="discount_value")
    if values["scope"] == CouponScope.SPECIFIC_PLANS.value:
        plan_ids = values.get("plan_ids") or []
        if not plan_ids:
            raise ValidationError("At least one plan must be selected for this coupon", field="plan_ids")
        found = db.query(func.count(PlanEntity.id)).filter(PlanEntity.id.in_(plan_ids)).scalar()
        if found != len(plan_ids):
            raise ValidationError("Unknown plan in coupon scope", field="plan_ids")
    if values.get("starts_at") and values.get("ends_at") and values["ends_at"] <= values["starts_at"]:
        raise ValidationError("Coupon must end after it starts", field="ends_at")

    query = db.query(CouponEntity.id).filter(CouponEntity.code == values["code"])
    if coupon_id is not None:
        query = query.filter(CouponEntity.id != coupon_id)
    if query.first():
        raise ValidationError("Coupon code already exists", field="code")


def _clean(data: dict[str, Any]) -> dict[str, Any]:
    values = dict(data)
    if "code" in values:
        values["code"] = normalize_code(values["code"])
    if "plan_ids" in values:
        values["plan_ids"] = sorted(set(values["plan_ids"] or []))
    if values.get("scope") == CouponScope.ALL_PLANS.value:
        values["plan_ids"] = []
    return values


def create_coupon(db: Session, data: dict[str, Any]) -> CouponEntity:
    values = _clean(data)
    values.setdefault("scope", CouponScope.ALL_PLANS.value)
    _check_rules(db, values)

    coupon = CouponEntity(**values)
    db.add(coupon)
    db.commit()
    db.refresh(coupon)
    log.info("coupon_created", coupon_id=coupon.id, code=coupon.code)
    return coupon


def update_coupon(db: Session, coupon_id: int, data: dict[str, Any]) -> CouponEntity:
    coupon = get_coupon(db, coupon_id)
    values = _clean(data)

    merged = {
        key: values.get(key, getattr(coupon, key))
        for key in ("code", "discount_type", "discount_value", "scope", "plan_ids", "starts_at", "ends_at")
    }
    _check_rules(db, merged, coupon.id)

    for key, value in values.items():
        setattr(coupon, key, value)
    db.commit()
    db.refresh(coupon)
    log.info("coupon_updated", coupon_id=coupon.id, fields=sorted(values))
    return coupon


def deactivate_coupon(db: Session, coupon_id: int) -> CouponEntity:
    """Soft delete; redemption history is kept."""
    coupon = get_coupon(db, coupon_id)
    coupon.active = False
    db.commit()
    db.refresh(coupon)
    log.info("coupon_deactivated", coupon_id=coupon.id, code=coupon.code)
    return coupon
