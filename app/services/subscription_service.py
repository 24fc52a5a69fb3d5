"""Subscription lifecycle: selection, cancellation with grace period,
reactivation, trials, plan changes and the admin controls on top.

A user has at most one subscription row; renewals and plan changes rewrite
it in place. Limits are resolved by ``quota_service`` from the row's status
and ``current_period_end``.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from core.base_classes import utc_now
from core.errors import InvalidStateError, NotFoundError, ValidationError
from core.logging import get_logger
from core.settings import settings
from models.enums import BillingCycle, PaymentStatus, SubscriptionStatus
from models.orm_payment import PaymentEntity
from models.orm_plan import PlanEntity
from models.orm_subscription import SubscriptionEntity
from services import coupon_service, plan_service

log = get_logger("subscriptions")

PERIOD_DAYS = {
    BillingCycle.MONTHLY.value: 30,
    BillingCycle.QUARTERLY.value: 90,
    BillingCycle.YEARLY.value: 365,
}

RUNNING_STATUSES = (SubscriptionStatus.ACTIVE.value, SubscriptionStatus.TRIAL.value)
RENEWABLE_STATUSES = (SubscriptionStatus.CANCELLED.value, SubscriptionStatus.EXPIRED.value)
EXPIRABLE_STATUSES = RUNNING_STATUSES + (SubscriptionStatus.CANCELLED.value,)

COUPON_METHOD = "coupon"


def period_length(billing_cycle: str) -> timedelta:
    return timedelta(days=PERIOD_DAYS.get(billing_cycle, PERIOD_DAYS[BillingCycle.MONTHLY.value]))


def get_current(db: Session, user_id: int) -> SubscriptionEntity | None:
    return db.query(SubscriptionEntity).filter(SubscriptionEntity.user_id == user_id).first()


def load_subscription(db: Session, subscription_id: int) -> SubscriptionEntity:
    sub = db.query(SubscriptionEntity).filter(SubscriptionEntity.id == subscription_id).first()
    if not sub:
        raise NotFoundError("Subscription not found", {"subscription_id": subscription_id})
    return sub


def load_for_user(db: Session, user_id: int) -> SubscriptionEntity:
    sub = get_current(db, user_id)
    if not sub:
        raise NotFoundError("You have no subscription yet", {"user_id": user_id})
    return sub


def list_subscriptions(
    db: Session,
    status: SubscriptionStatus | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[SubscriptionEntity]:
    query = db.query(SubscriptionEntity)
    if status:
        query = query.filter(SubscriptionEntity.status == SubscriptionStatus(status).value)
    return query.order_by(SubscriptionEntity.id.desc()).offset(offset).limit(limit).all()


def list_payments(db: Session, user_id: int | None = None, limit: int = 50, offset: int = 0) -> list[PaymentEntity]:
    query = db.query(PaymentEntity)
    if user_id is not None:
        query = query.filter(PaymentEntity.user_id == user_id)
    return query.order_by(PaymentEntity.id.desc()).offset(offset).limit(limit).all()


def _require_status(sub: SubscriptionEntity, allowed: tuple[str, ...], action: str) -> None:
    if sub.status not in allowed:
        raise InvalidStateError(
            f"Cannot {action} a subscription in status '{sub.status}'",
            {"subscription_id": sub.id, "status": sub.status, "allowed_statuses": list(allowed)},
        )


def _record_payment(
    db: Session,
    sub: SubscriptionEntity,
    amount: Decimal,
    description: str,
    now: datetime,
    method: str = "manual",
) -> PaymentEntity | None:
    amount = Decimal(amount or 0)
    # A coupon covering the whole price still leaves a zero-amount receipt.
    if amount < 0 or (amount == 0 and method != COUPON_METHOD):
        return None
    payment = PaymentEntity(
        subscription_id=sub.id,
        user_id=sub.user_id,
        amount=amount,
        currency=sub.currency,
        status=PaymentStatus.SUCCESS.value,
        method=method,
        description=description,
        paid_at=now,
    )
    db.add(payment)
    return payment


def _apply_plan(sub: SubscriptionEntity, plan: PlanEntity) -> None:
    sub.plan_id = plan.id
    sub.plan = plan
    sub.price = plan.price
    sub.currency = plan.currency
    sub.billing_cycle = plan.billing_cycle


def _start_period(sub: SubscriptionEntity, now: datetime, length: timedelta) -> None:
    sub.current_period_start = now
    sub.current_period_end = now + length
    sub.next_billing_date = sub.current_period_end
    sub.updated_at = now


def _commit(db: Session, sub: SubscriptionEntity) -> SubscriptionEntity:
    db.commit()
    db.refresh(sub)
    return sub


def subscribe(
    db: Session,
    user_id: int,
    plan_code: str,
    trial: bool = False,
    now: datetime | None = None,
    coupon_code: str | None = None,
) -> SubscriptionEntity:
    """First plan selection, or a renewal once the previous one has lapsed.

    A coupon discounts the first charge only; later renewals bill the plan
    price.
    """
    now = now or utc_now()
    plan = plan_service.get_plan_by_code(db, plan_code)
    if trial and coupon_code:
        raise ValidationError("Coupons apply to paid subscriptions only", field="coupon_code")
    sub = get_current(db, user_id)

    if sub is not None:
        if sub.status == SubscriptionStatus.SUSPENDED.value:
            raise InvalidStateError(
                "Your subscription is suspended; contact support",
                {"subscription_id": sub.id, "status": sub.status},
            )
        if sub.status in RUNNING_STATUSES and sub.current_period_end > now:
            raise InvalidStateError(
                "You already have a running subscription; change plan instead",
                {"subscription_id": sub.id, "status": sub.status},
            )
        if trial:
            raise ValidationError("A trial is only available for a first subscription", field="trial")

    quote = None
    if coupon_code:
        # Locks the coupon row so its redemption limits hold under concurrent use.
        try:
            quote = coupon_service.validate_coupon(db, coupon_code, plan, user_id, now, for_update=True)
        except ValidationError:
            db.rollback()
            raise

    if sub is None:
        sub = SubscriptionEntity(user_id=user_id)
        db.add(sub)

    _apply_plan(sub, plan)
    sub.cancelled_at = None
    sub.cancel_reason = None
    sub.auto_renew = True
    sub.coupon_code = quote.code if quote else None
    sub.discount_amount = quote.discount_amount if quote else Decimal("0")

    if trial:
        _start_period(sub, now, timedelta(days=settings.trial_days))
        sub.status = SubscriptionStatus.TRIAL.value
        sub.trial_ends_at = sub.current_period_end
    else:
        _start_period(sub, now, period_length(plan.billing_cycle))
        sub.status = SubscriptionStatus.ACTIVE.value
        sub.trial_ends_at = None

    db.flush()
    description = f"Subscription: {plan.name} ({plan.billing_cycle})"
    if quote:
        coupon_service.redeem(db, quote, sub)
        method = COUPON_METHOD if quote.final_price == 0 else "manual"
        _record_payment(db, sub, quote.final_price, f"{description}, coupon {quote.code}", now, method)
    elif not trial:
        _record_payment(db, sub, plan.price, description, now)

    _commit(db, sub)
    log.info(
        "subscription_started",
        subscription_id=sub.id,
        user_id=user_id,
        plan=plan.code,
        trial=trial,
        coupon=sub.coupon_code,
    )
    return sub


def cancel(
    db: Session,
    subscription_id: int,
    reason: str | None = None,
    now: datetime | None = None,
) -> SubscriptionEntity:
    """Stop renewal. Limits stay in force until ``current_period_end``."""
    now = now or utc_now()
    sub = load_subscription(db, subscription_id)
    _require_status(sub, RUNNING_STATUSES, "cancel")

    sub.status = SubscriptionStatus.CANCELLED.value
    sub.cancelled_at = now
    sub.cancel_reason = (reason or "").strip() or None
    sub.auto_renew = False
    sub.next_billing_date = None
    sub.updated_at = now

    _commit(db, sub)
    log.info(
        "subscription_cancelled",
        subscription_id=sub.id,
        user_id=sub.user_id,
        access_until=sub.current_period_end.isoformat(),
    )
    return sub


def reactivate(db: Session, subscription_id: int, now: datetime | None = None) -> SubscriptionEntity:
    now = now or utc_now()
    sub = load_subscription(db, subscription_id)
    _require_status(sub, RENEWABLE_STATUSES, "reactivate")

    sub.status = SubscriptionStatus.ACTIVE.value
    sub.cancelled_at = None
    sub.cancel_reason = None
    sub.auto_renew = True
    sub.trial_ends_at = None
    _start_period(sub, now, period_length(sub.billing_cycle))
    _record_payment(db, sub, sub.price, f"Reactivation ({sub.billing_cycle})", now)

    _commit(db, sub)
    log.info("subscription_reactivated", subscription_id=sub.id, user_id=sub.user_id)
    return sub


def extend_trial(
    db: Session,
    subscription_id: int,
    days: int | None = None,
    now: datetime | None = None,
) -> SubscriptionEntity:
    days = settings.trial_extension_days if days is None else days
    if days < 1:
        raise ValidationError("Trial can only be extended by at least one day", field="days")

    sub = load_subscription(db, subscription_id)
    _require_status(sub, (SubscriptionStatus.TRIAL.value,), "extend the trial of")

    delta = timedelta(days=days)
    sub.trial_ends_at = (sub.trial_ends_at or sub.current_period_end) + delta
    sub.current_period_end = sub.current_period_end + delta
    sub.next_billing_date = sub.current_period_end
    sub.updated_at = now or utc_now()

    _commit(db, sub)
    log.info("subscription_trial_extended", subscription_id=sub.id, days=days)
    return sub


def change_plan(
    db: Session,
    subscription_id: int,
    new_plan_code: str,
    now: datetime | None = None,
) -> SubscriptionEntity:
    """Swap the plan keeping the current period.

    Listings above the new limits stay published; creating more is blocked
    until usage drops under the limit.
    """
    now = now or utc_now()
    sub = load_subscription(db, subscription_id)
    _require_status(sub, RUNNING_STATUSES, "change the plan of")

    plan = plan_service.get_plan_by_code(db, new_plan_code)
    if plan.id == sub.plan_id:
        raise ValidationError("You are already on this plan", field="plan_code")

    old_code = sub.plan.code if sub.plan else None
    old_price = Decimal(sub.price or 0)
    _apply_plan(sub, plan)
    sub.updated_at = now

    # Upgrades on a paid subscription are charged the price difference.
    if sub.status == SubscriptionStatus.ACTIVE.value:
        _record_payment(db, sub, Decimal(plan.price) - old_price, f"Plan upgrade: {old_code} -> {plan.code}", now)

    _commit(db, sub)
    log.info("subscription_plan_changed", subscription_id=sub.id, old_plan=old_code, new_plan=plan.code)
    return sub


def suspend(db: Session, subscription_id: int, now: datetime | None = None) -> SubscriptionEntity:
    sub = load_subscription(db, subscription_id)
    _require_status(sub, EXPIRABLE_STATUSES, "suspend")

    sub.status = SubscriptionStatus.SUSPENDED.value
    sub.auto_renew = False
    sub.updated_at = now or utc_now()

    _commit(db, sub)
    log.info("subscription_suspended", subscription_id=sub.id, user_id=sub.user_id)
    return sub


def unsuspend(db: Session, subscription_id: int, now: datetime | None = None) -> SubscriptionEntity:
    sub = load_subscription(db, subscription_id)
    _require_status(sub, (SubscriptionStatus.SUSPENDED.value,), "unsuspend")

    sub.status = SubscriptionStatus.ACTIVE.value
    sub.auto_renew = True
    sub.updated_at = now or utc_now()

    _commit(db, sub)
    log.info("subscription_unsuspended", subscription_id=sub.id, user_id=sub.user_id)
    return sub


def assign(db: Session, user_id: int, plan_code: str, now: datetime | None = None) -> SubscriptionEntity:
    """Grant a plan by hand, overwriting whatever the user had. No charge."""
    now = now or utc_now()
    plan = plan_service.get_plan_by_code(db, plan_code, active_only=False)
    sub = get_current(db, user_id)
    if sub is None:
        sub = SubscriptionEntity(user_id=user_id)
        db.add(sub)

    _apply_plan(sub, plan)
    sub.status = SubscriptionStatus.ACTIVE.value
    sub.cancelled_at = None
    sub.cancel_reason = None
    sub.trial_ends_at = None
    sub.coupon_code = None
    sub.discount_amount = Decimal("0")
    sub.auto_renew = True
    _start_period(sub, now, period_length(plan.billing_cycle))

    _commit(db, sub)
    log.info("subscription_assigned", subscription_id=sub.id, user_id=user_id, plan=plan.code)
    return sub


def expire_overdue(db: Session, now: datetime | None = None) -> int:
    now = now or utc_now()
    expired = (
        db.query(SubscriptionEntity)
        .filter(
            SubscriptionEntity.status.in_(EXPIRABLE_STATUSES),
            SubscriptionEntity.current_period_end <= now,
        )
        .update(
            {
                "status": SubscriptionStatus.EXPIRED.value,
                "next_billing_date": None,
                "updated_at": now,
            },
            synchronize_session=False,
        )
    )
    db.commit()
    if expired:
        log.info("subscriptions_expired", count=expired)
    return expired
