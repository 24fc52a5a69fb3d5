from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship

from db.base import Base
from core.base_classes import TimestampedEntity
from models.enums import SubscriptionStatus


class SubscriptionEntity(Base, TimestampedEntity):
    __tablename__ = "subscriptions"

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    plan_id = Column(
        Integer,
        ForeignKey("plans.id", ondelete="RESTRICT"),
        nullable=False,
    )

    status = Column(String(16), nullable=False, default=SubscriptionStatus.ACTIVE.value)
    price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    billing_cycle = Column(String(16), nullable=False)

    current_period_start = Column(DateTime, nullable=False)
    current_period_end = Column(DateTime, nullable=False)
    next_billing_date = Column(DateTime, nullable=True)
    trial_ends_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancel_reason = Column(String(500), nullable=True)
    coupon_code = Column(String(64), nullable=True)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0)

    auto_renew = Column(Boolean, nullable=False, default=True)

    user = relationship("UserEntity", back_populates="subscription")
    plan = relationship("PlanEntity", back_populates="subscriptions")
    payments = relationship("PaymentEntity", back_populates="subscription")

    __table_args__ = (
        UniqueConstraint("user_id", name="uq_subscriptions_user_id"),
        CheckConstraint("current_period_end >= current_period_start", name="ck_subscriptions_period"),
        Index("ix_subscriptions_status", "status"),
    )
