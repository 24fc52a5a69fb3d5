from __future__ import annotations

from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from core.errors import NotFoundError, ValidationError
from core.logging import get_logger
from models.enums import BillingCycle, Currency
from models.orm_plan import PlanEntity
from schemas.nested import PlanLimits

log = get_logger("plans")

QUARTERLY_MULTIPLIER = 3

_TIERS = (
    {
        "code": "basic",
        "name": "Basic",
        "description": "For a single venue getting started.",
        "price": Decimal("500"),
        "features": ["3 places", "5 blog posts", "15 photos"],
        "limits": PlanLimits(max_places=3, max_blogs=5, max_photos=15),
    },
    {
        "code": "standard",
        "name": "Standard",
        "description": "For growing businesses with several venues.",
        "price": Decimal("1000"),
        "features": ["10 places", "20 blog posts", "50 photos", "Featured listings", "Priority support"],
        "limits": PlanLimits(
            max_places=10,
            max_blogs=20,
            max_photos=50,
            featured_listing=True,
            priority_support=True,
        ),
    },
    {
        "code": "pro",
        "name": "Professional",
        "description": "Unlimited listings for chains and agencies.",
        "price": Decimal("2500"),
        "features": ["Unlimited places", "Unlimited blog posts", "Unlimited photos", "Analytics"],
        "limits": PlanLimits(
            max_places=-1,
            max_blogs=-1,
            max_photos=-1,
            featured_listing=True,
            analytics_access=True,
            priority_support=True,
        ),
    },
)


def _default_plans() -> list[dict[str, Any]]:
    plans = []
    for order, tier in enumerate(_TIERS):
        for cycle, multiplier in ((BillingCycle.MONTHLY, 1), (BillingCycle.QUARTERLY, QUARTERLY_MULTIPLIER)):
            plans.append(
                {
                    **tier,
                    "code": f"{tier['code']}-{cycle.value}",
                    "price": tier["price"] * multiplier,
                    "currency": Currency.TRY.value,
                    "billing_cycle": cycle.value,
                    "sort_order": order * 10 + (0 if multiplier == 1 else 1),
                }
            )
    return plans


DEFAULT_PLANS = _default_plans()


def seed_default_plans(db: Session) -> int:
    """Insert any missing default plans. Existing rows are left untouched."""
    existing = {code for (code,) in db.query(PlanEntity.code).all()}
    added = 0
    for data in DEFAULT_PLANS:
        if data["code"] in existing:
            continue
        db.add(PlanEntity(**data))
        added += 1
    if added:
        db.commit()
        log.info("plans_seeded", added=added)
    return added


def list_plans(db: Session, active_only: bool = True) -> list[PlanEntity]:
    query = db.query(PlanEntity)
    if active_only:
        query = query.filter(PlanEntity.active.is_(True))
    return query.order_by(PlanEntity.sort_order.asc(), PlanEntity.id.asc()).all()


def get_plan(db: Session, plan_id: int) -> PlanEntity:
    plan = db.query(PlanEntity).filter(PlanEntity.id == plan_id).first()
    if not plan:
        raise NotFoundError("Plan not found", {"plan_id": plan_id})
    return plan


def get_plan_by_code(db: Session, code: str, active_only: bool = True) -> PlanEntity:
    query = db.query(PlanEntity).filter(PlanEntity.code == code)
    if active_only:
        query = query.filter(PlanEntity.active.is_(True))
    plan = query.first()
    if not plan:
        raise NotFoundError("Plan not found", {"plan_code": code})
    return plan


def create_plan(db: Session, data: dict[str, Any]) -> PlanEntity:
    if db.query(PlanEntity.id).filter(PlanEntity.code == data["code"]).first():
        raise ValidationError("A plan with this code already exists", field="code")
    plan = PlanEntity(**data)
    db.add(plan)
    db.commit()
    db.refresh(plan)
    log.info("plan_created", plan_id=plan.id, code=plan.code)
    return plan


def update_plan(db: Session, plan_id: int, data: dict[str, Any]) -> PlanEntity:
    plan = get_plan(db, plan_id)
    code = data.get("code")
    if code and code != plan.code:
        if db.query(PlanEntity.id).filter(PlanEntity.code == code).first():
            raise ValidationError("A plan with this code already exists", field="code")
    for key, value in data.items():
        setattr(plan, key, value)
    db.commit()
    db.refresh(plan)
    log.info("plan_updated", plan_id=plan.id, fields=sorted(data))
    return plan
