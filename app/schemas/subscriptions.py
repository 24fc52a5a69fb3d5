from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.enums import BillingCycle, CouponScope, Currency, DiscountType
from schemas.nested import PlanLimits


class PlanOut(BaseModel):
    id: int
    code: str
    name: str
    description: Optional[str] = None
    price: float
    currency: str
    billing_cycle: str
    features: List[str] = Field(default_factory=list)
    limits: PlanLimits
    active: bool
    sort_order: int

    class Config:
        from_attributes = True


class PlanIn(BaseModel):
    code: str = Field(min_length=2, max_length=64, pattern=r"^[a-z0-9-]+$")
    name: str = Field(min_length=2, max_length=120)
    description: Optional[str] = Field(default=None, max_length=500)
    price: float = Field(ge=0)
    currency: Currency = Currency.TRY
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    features: List[str] = Field(default_factory=list)
    limits: PlanLimits = Field(default_factory=PlanLimits)
    active: bool = True
    sort_order: int = 0


class PlanUpdate(BaseModel):
    code: Optional[str] = Field(default=None, min_length=2, max_length=64, pattern=r"^[a-z0-9-]+$")
    name: Optional[str] = Field(default=None, min_length=2, max_length=120)
    description: Optional[str] = Field(default=None, max_length=500)
    price: Optional[float] = Field(default=None, ge=0)
    currency: Optional[Currency] = None
    billing_cycle: Optional[BillingCycle] = None
    features: Optional[List[str]] = None
    limits: Optional[PlanLimits] = None
    active: Optional[bool] = None
    sort_order: Optional[int] = None


class SubscriptionOut(BaseModel):
    id: int
    user_id: int
    status: str
    plan: PlanOut
    price: float
    currency: str
    billing_cycle: str
    current_period_start: datetime
    current_period_end: datetime
    next_billing_date: Optional[datetime] = None
    trial_ends_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    coupon_code: Optional[str] = None
    discount_amount: float = 0
    auto_renew: bool

    class Config:
        from_attributes = True


class UsageCounterOut(BaseModel):
    current: int
    max: Optional[int]
    percentage: int
    can_create: bool


class UsageOut(BaseModel):
    places: UsageCounterOut
    blogs: UsageCounterOut
    photos: UsageCounterOut


class SubscribeIn(BaseModel):
    plan_code: str
    trial: bool = False
    coupon_code: Optional[str] = Field(default=None, min_length=1, max_length=64)


class CancelIn(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class ChangePlanIn(BaseModel):
    plan_code: str


class ExtendTrialIn(BaseModel):
    days: Optional[int] = None


class AssignIn(BaseModel):
    user_id: int
    plan_code: str


class PaymentOut(BaseModel):
    id: int
    subscription_id: Optional[int] = None
    user_id: int
    amount: float
    currency: str
    status: str
    method: str
    description: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CouponIn(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    code: str = Field(min_length=3, max_length=64)
    description: Optional[str] = Field(default=None, max_length=500)
    discount_type: DiscountType
    discount_value: float = Field(gt=0)
    scope: CouponScope = Field(default=CouponScope.ALL_PLANS, validate_default=True)
    plan_ids: List[int] = Field(default_factory=list)
    max_redemptions: Optional[int] = Field(default=None, gt=0)
    max_redemptions_per_user: int = Field(default=1, gt=0)
    active: bool = True
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None


class CouponUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    code: Optional[str] = Field(default=None, min_length=3, max_length=64)
    description: Optional[str] = Field(default=None, max_length=500)
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[float] = Field(default=None, gt=0)
    scope: Optional[CouponScope] = None
    plan_ids: Optional[List[int]] = None
    max_redemptions: Optional[int] = Field(default=None, gt=0)
    max_redemptions_per_user: Optional[int] = Field(default=None, gt=0)
    active: Optional[bool] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None


class CouponOut(BaseModel):
    id: int
    code: str
    description: Optional[str] = None
    discount_type: str
    discount_value: float
    scope: str
    plan_ids: List[int] = Field(default_factory=list)
    max_redemptions: Optional[int] = None
    max_redemptions_per_user: int
    active: bool
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    usage_count: int
    created_at: datetime

    class Config:
        from_attributes = True


class CouponValidateIn(BaseModel):
    plan_code: str
    code: str = Field(min_length=1, max_length=64)


class CouponQuoteOut(BaseModel):
    code: str
    discount_type: str
    discount_value: float
    base_price: float
    discount_amount: float
    final_price: float
    currency: str
