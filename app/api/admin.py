from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.deps import get_db, require_admin
from core.settings import settings
from models.enums import SubscriptionStatus
from models.orm_user import UserEntity
from schemas.subscriptions import (
    AssignIn,
    CancelIn,
    ChangePlanIn,
    CouponIn,
    CouponOut,
    CouponUpdate,
    ExtendTrialIn,
    PaymentOut,
    PlanIn,
    PlanOut,
    PlanUpdate,
    SubscriptionOut,
)
from services import coupon_service, notifier, plan_service, subscription_service


router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/subscriptions", response_model=List[SubscriptionOut])
def list_subscriptions(
    status: Optional[SubscriptionStatus] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    _: UserEntity = Depends(require_admin),
):
    return subscription_service.list_subscriptions(db, status, limit, offset)


@router.post("/subscriptions", status_code=201, response_model=SubscriptionOut)
def assign_subscription(data: AssignIn, db: Session = Depends(get_db), _: UserEntity = Depends(require_admin)):
    return subscription_service.assign(db, data.user_id, data.plan_code)


@router.put("/subscriptions/{subscription_id}/cancel", response_model=SubscriptionOut)
def cancel_subscription(
    subscription_id: int,
    data: Optional[CancelIn] = None,
    db: Session = Depends(get_db),
    _: UserEntity = Depends(require_admin),
):
    return subscription_service.cancel(db, subscription_id, data.reason if data else None)


@router.put("/subscriptions/{subscription_id}/reactivate", response_model=SubscriptionOut)
def reactivate_subscription(subscription_id: int, db: Session = Depends(get_db), _: UserEntity = Depends(require_admin)):
    return subscription_service.reactivate(db, subscription_id)


@router.put("/subscriptions/{subscription_id}/extend-trial", response_model=SubscriptionOut)
def extend_trial(
    subscription_id: int,
    data: Optional[ExtendTrialIn] = None,
    db: Session = Depends(get_db),
    _: UserEntity = Depends(require_admin),
):
    days = data.days if data and data.days is not None else settings.trial_extension_days
    return subscription_service.extend_trial(db, subscription_id, days)


@router.put("/subscriptions/{subscription_id}/change-plan", response_model=SubscriptionOut)
def change_subscription_plan(
    subscription_id: int,
    data: ChangePlanIn,
    db: Session = Depends(get_db),
    _: UserEntity = Depends(require_admin),
):
    return subscription_service.change_plan(db, subscription_id, data.plan_code)


@router.put("/subscriptions/{subscription_id}/suspend", response_model=SubscriptionOut)
def suspend_subscription(subscription_id: int, db: Session = Depends(get_db), _: UserEntity = Depends(require_admin)):
    return subscription_service.suspend(db, subscription_id)


@router.put("/subscriptions/{subscription_id}/unsuspend", response_model=SubscriptionOut)
def unsuspend_subscription(subscription_id: int, db: Session = Depends(get_db), _: UserEntity = Depends(require_admin)):
    return subscription_service.unsuspend(db, subscription_id)


@router.get("/plans", response_model=List[PlanOut])
def list_plans(db: Session = Depends(get_db), _: UserEntity = Depends(require_admin)):
    return plan_service.list_plans(db, active_only=False)


@router.post("/plans", status_code=201, response_model=PlanOut)
def create_plan(data: PlanIn, db: Session = Depends(get_db), _: UserEntity = Depends(require_admin)):
    return plan_service.create_plan(db, data.model_dump(mode="json"))


@router.put("/plans/{plan_id}", response_model=PlanOut)
def update_plan(plan_id: int, data: PlanUpdate, db: Session = Depends(get_db), _: UserEntity = Depends(require_admin)):
    return plan_service.update_plan(db, plan_id, data.model_dump(mode="json", exclude_unset=True))


@router.get("/coupons", response_model=List[CouponOut])
def list_coupons(
    active: Optional[bool] = None,
    db: Session = Depends(get_db),
    _: UserEntity = Depends(require_admin),
):
    return coupon_service.list_coupons(db, active)


@router.get("/coupons/{coupon_id}", response_model=CouponOut)
def get_coupon(coupon_id: int, db: Session = Depends(get_db), _: UserEntity = Depends(require_admin)):
    return coupon_service.get_coupon(db, coupon_id)


@router.post("/coupons", status_code=201, response_model=CouponOut)
def create_coupon(data: CouponIn, db: Session = Depends(get_db), _: UserEntity = Depends(require_admin)):
    return coupon_service.create_coupon(db, data.model_dump())


@router.put("/coupons/{coupon_id}", response_model=CouponOut)
def update_coupon(
    coupon_id: int,
    data: CouponUpdate,
    db: Session = Depends(get_db),
    _: UserEntity = Depends(require_admin),
):
    return coupon_service.update_coupon(db, coupon_id, data.model_dump(exclude_unset=True))


@router.delete("/coupons/{coupon_id}", response_model=CouponOut)
def delete_coupon(coupon_id: int, db: Session = Depends(get_db), _: UserEntity = Depends(require_admin)):
    return coupon_service.deactivate_coupon(db, coupon_id)


@router.get("/payments", response_model=List[PaymentOut])
def list_payments(
    user_id: Optional[int] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    _: UserEntity = Depends(require_admin),
):
    return subscription_service.list_payments(db, user_id, limit, offset)


@router.post("/events/dispatch")
def dispatch_events(db: Session = Depends(get_db), _: UserEntity = Depends(require_admin)):
    delivered = notifier.dispatch_pending_events(db, settings.relay_batch_size)
    return {"delivered": delivered}
