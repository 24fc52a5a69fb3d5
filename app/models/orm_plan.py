from sqlalchemy import Boolean, Column, Integer, Numeric, String
from sqlalchemy.orm import relationship

from db.base import Base
from db.types import TypedJSON
from core.base_classes import TimestampedEntity
from models.enums import Currency
from schemas.nested import PlanLimits, StringList


class PlanEntity(Base, TimestampedEntity):
    __tablename__ = "plans"

    code = Column(String(64), unique=True, nullable=False, index=True)
    name = Column(String(120), nullable=False)
    description = Column(String(500), nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default=Currency.TRY.value)
    billing_cycle = Column(String(16), nullable=False)
    features = Column(TypedJSON(StringList, list), nullable=False, default=list)
    limits = Column(TypedJSON(PlanLimits, PlanLimits), nullable=False, default=PlanLimits)
    active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)

    subscriptions = relationship("SubscriptionEntity", back_populates="plan")
