from sqlalchemy import Boolean, Column, String
from sqlalchemy.orm import relationship

from db.base import Base
from core.base_classes import BaseEntity
from models.enums import UserRole


class UserEntity(Base, BaseEntity):
    __tablename__ = "users"

    username = Column(String, unique=True, nullable=False, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)

    role = Column(String, nullable=False, default=UserRole.TRAVELER.value)
    is_active = Column(Boolean, default=True, nullable=False)

    listings = relationship(
        "ListingEntity",
        back_populates="owner",
        cascade="all, delete-orphan",
        foreign_keys="ListingEntity.owner_id",
    )

    subscription = relationship(
        "SubscriptionEntity",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    payments = relationship(
        "PaymentEntity",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    business_registration = relationship(
        "BusinessRegistrationEntity",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        foreign_keys="BusinessRegistrationEntity.user_id",
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def is_owner(self) -> bool:
        return self.role == UserRole.OWNER.value
