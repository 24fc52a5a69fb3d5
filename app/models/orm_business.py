from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from db.base import Base
from db.types import TypedJSON
from core.base_classes import TimestampedEntity
from models.enums import RegistrationStatus
from schemas.nested import StringList


class BusinessRegistrationEntity(Base, TimestampedEntity):
    """A user's application to become a business owner. One per user."""

    __tablename__ = "business_registrations"

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    company_name = Column(String(200), nullable=False)
    tax_id = Column(String(20), nullable=False)
    business_address = Column(String(500), nullable=True)
    contact_phone = Column(String(32), nullable=False)
    contact_email = Column(String(254), nullable=False)
    business_type = Column(String(100), nullable=False)
    documents = Column(TypedJSON(StringList, list), nullable=True)

    status = Column(String(16), nullable=False, default=RegistrationStatus.PENDING.value)
    rejection_reason = Column(String(1000), nullable=True)
    reviewed_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)

    user = relationship("UserEntity", foreign_keys=[user_id], back_populates="business_registration")

    __table_args__ = (
        Index("ix_business_registrations_status", "status"),
    )
