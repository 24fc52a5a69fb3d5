from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.deps import get_db, get_current_user, require_owner
from models.orm_user import UserEntity
from schemas.subscriptions import (
    CancelIn,
    ChangePlanIn,
    CouponQuoteOut,
    CouponValidateIn,
    PlanOut,
    SubscribeIn,
    SubscriptionOut,
    UsageOut,
)
from services import coupon_service, plan_service, quota_service, subscription_service


router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


@router.get("/plans", response_model=List[PlanOut])
def plans(db: Session = Depends(get_db), _: UserEntity = Depends(get_current_user)):
    return plan_service.list_plans(db)


@router.get("/current", response_model=Optional[SubscriptionOut])
def current(db: Session = Depends(get_db), user: UserEntity = Depends(require_owner)):
    return subscription_service.get_current(db, user.id)


@router.get("/usage", response_model=UsageOut)
def usage(db: Session = Depends(get_db), user: UserEntity = Depends(require_owner)):
    return quota_service.usage_report(quota_service.get_usage(db, user.id))


@router.post("", status_code=201, response_model=SubscriptionOut)
def select_plan(data: SubscribeIn, db: Session = Depends(get_db), user: UserEntity = Depends(require_owner)):
    return subscription_service.subscribe(db, user.id, data.plan_code, trial=data.trial, coupon_code=data.coupon_code)


@router.post("/coupons/validate", response_model=CouponQuoteOut)
def validate_coupon(data: CouponValidateIn, db: Session = Depends(get_db), user: UserEntity = Depends(require_owner)):
    plan = plan_service.get_plan_by_code(db, data.plan_code)
    quote = coupon_service.validate_coupon(db, data.code, plan, user.id)
    return CouponQuoteOut(
        code=quote.code,
        discount_type=quote.coupon.discount_type,
        discount_value=quote.coupon.discount_value,
        base_price=quote.base_price,
        discount_amount=quote.discount_amount,
        final_price=quote.final_price,
        currency=quote.currency,
    )


@router.post("/cancel", response_model=SubscriptionOut)
def cancel(
    data: Optional[CancelIn] = None,
    db: Session = Depends(get_db),
    user: UserEntity = Depends(require_owner),
):
    sub = subscription_service.load_for_user(db, user.id)
    return subscription_service.cancel(db, sub.id, data.reason if data else None)


@router.post("/reactivate", response_model=SubscriptionOut)
def reactivate(db: Session = Depends(get_db), user: UserEntity = Depends(require_owner)):
    sub = subscription_service.load_for_user(db, user.id)
    return subscription_service.reactivate(db, sub.id)


@router.post("/change-plan", response_model=SubscriptionOut)
def change_plan(data: ChangePlanIn, db: Session = Depends(get_db), user: UserEntity = Depends(require_owner)):
    sub = subscription_service.load_for_user(db, user.id)
    return subscription_service.change_plan(db, sub.id, data.plan_code)
