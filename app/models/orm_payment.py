from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from db.base import Base
from core.base_classes import BaseEntity
from models.enums import PaymentStatus


class PaymentEntity(Base, BaseEntity):
    __tablename__ = "payments"

    subscription_id = Column(
        Integer,
        ForeignKey("subscriptions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    status = Column(String(16), nullable=False, default=PaymentStatus.PENDING.value)
    method = Column(String(32), nullable=False, default="manual")
    description = Column(String, nullable=True)
    paid_at = Column(DateTime, nullable=True)

    user = relationship("UserEntity", back_populates="payments")
    subscription = relationship("SubscriptionEntity", back_populates="payments")
