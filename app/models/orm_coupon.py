from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from db.base import Base
from db.types import TypedJSON
from core.base_classes import BaseEntity, TimestampedEntity
from models.enums import CouponScope, DiscountType
from schemas.nested import IntList


class CouponEntity(Base, TimestampedEntity):
    __tablename__ = "coupons"

    code = Column(String(64), unique=True, nullable=False, index=True)
    description = Column(String(500), nullable=True)
    discount_type = Column(String(16), nullable=False, default=DiscountType.PERCENT.value)
    discount_value = Column(Numeric(10, 2), nullable=False)
    scope = Column(String(16), nullable=False, default=CouponScope.ALL_PLANS.value)
    plan_ids = Column(TypedJSON(IntList, list), nullable=False, default=list)

    max_redemptions = Column(Integer, nullable=True)
    max_redemptions_per_user = Column(Integer, nullable=False, default=1)
    active = Column(Boolean, nullable=False, default=True)
    starts_at = Column(DateTime, nullable=True)
    ends_at = Column(DateTime, nullable=True)

    redemptions = relationship("CouponRedemptionEntity", back_populates="coupon")

    __table_args__ = (
        CheckConstraint("discount_value > 0", name="ck_coupons_discount_positive"),
    )

    @property
    def usage_count(self) -> int:
        return len(self.redemptions)


class CouponRedemptionEntity(Base, BaseEntity):
    __tablename__ = "coupon_redemptions"

    coupon_id = Column(
        Integer,
        ForeignKey("coupons.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subscription_id = Column(
        Integer,
        ForeignKey("subscriptions.id", ondelete="SET NULL"),
        nullable=True,
    )
    plan_id = Column(Integer, ForeignKey("plans.id", ondelete="SET NULL"), nullable=True)

    discount_amount = Column(Numeric(10, 2), nullable=False)
    final_amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False)

    coupon = relationship("CouponEntity", back_populates="redemptions")
