"""Business registration: the admin gate in front of the owner role.

A user applies once; an administrator approves (the user becomes an owner)
or rejects with a reason. A rejected applicant may apply again, which puts
the same registration back into ``pending``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.base_classes import utc_now
from core.errors import ForbiddenError, InvalidStateError, NotFoundError
from core.logging import get_logger
from models.enums import RegistrationStatus, UserRole
from models.orm_business import BusinessRegistrationEntity
from models.orm_user import UserEntity
from services.listing_state import Actor

log = get_logger("business")

APPLICATION_FIELDS = (
    "company_name",
    "tax_id",
    "business_address",
    "contact_phone",
    "contact_email",
    "business_type",
    "documents",
)


def get_for_user(db: Session, user_id: int) -> BusinessRegistrationEntity | None:
    return db.query(BusinessRegistrationEntity).filter(BusinessRegistrationEntity.user_id == user_id).first()


def load_registration(db: Session, registration_id: int) -> BusinessRegistrationEntity:
    registration = (
        db.query(BusinessRegistrationEntity).filter(BusinessRegistrationEntity.id == registration_id).first()
    )
    if not registration:
        raise NotFoundError("Business registration not found", {"registration_id": registration_id})
    return registration


def apply(db: Session, user: UserEntity, data: dict[str, Any], now: datetime | None = None) -> BusinessRegistrationEntity:
    now = now or utc_now()
    if user.is_admin:
        raise ForbiddenError("Administrators cannot apply for a business account")

    registration = get_for_user(db, user.id)
    if registration is not None and registration.status != RegistrationStatus.REJECTED.value:
        message = (
            "Your business is already approved"
            if registration.status == RegistrationStatus.APPROVED.value
            else "You already have a pending business registration"
        )
        raise InvalidStateError(message, {"registration_id": registration.id, "status": registration.status})

    if registration is None:
        registration = BusinessRegistrationEntity(user_id=user.id)
        db.add(registration)

    for key in APPLICATION_FIELDS:
        setattr(registration, key, data.get(key))
    registration.status = RegistrationStatus.PENDING.value
    registration.rejection_reason = None
    registration.reviewed_by_id = None
    registration.reviewed_at = None
    registration.updated_at = now

    db.commit()
    db.refresh(registration)
    log.info("business_registration_submitted", registration_id=registration.id, user_id=user.id)
    return registration


def list_registrations(
    db: Session,
    status: RegistrationStatus | None = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[BusinessRegistrationEntity], int]:
    query = db.query(BusinessRegistrationEntity)
    count = db.query(func.count(BusinessRegistrationEntity.id))
    if status:
        query = query.filter(BusinessRegistrationEntity.status == RegistrationStatus(status).value)
        count = count.filter(BusinessRegistrationEntity.status == RegistrationStatus(status).value)
    rows = (
        query.order_by(BusinessRegistrationEntity.created_at.desc(), BusinessRegistrationEntity.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return rows, count.scalar() or 0


def _decide(
    db: Session,
    registration_id: int,
    admin: Actor,
    target: RegistrationStatus,
    values: dict[str, Any],
    now: datetime | None,
) -> BusinessRegistrationEntity:
    if not admin.is_admin:
        raise ForbiddenError("Admin privileges required")
    now = now or utc_now()
    registration = load_registration(db, registration_id)

    values = {
        **values,
        "status": target.value,
        "reviewed_by_id": admin.user_id,
        "reviewed_at": now,
        "updated_at": now,
    }
    # Only the reviewer whose update still sees ``pending`` wins.
    swapped = (
        db.query(BusinessRegistrationEntity)
        .filter(
            BusinessRegistrationEntity.id == registration.id,
            BusinessRegistrationEntity.status == RegistrationStatus.PENDING.value,
        )
        .update(values, synchronize_session=False)
    )
    if not swapped:
        db.rollback()
        db.refresh(registration)
        raise InvalidStateError(
            "Only pending registrations can be reviewed",
            {"registration_id": registration.id, "status": registration.status},
        )

    if target == RegistrationStatus.APPROVED:
        db.query(UserEntity).filter(UserEntity.id == registration.user_id).update(
            {"role": UserRole.OWNER.value}, synchronize_session=False
        )

    db.commit()
    db.refresh(registration)
    log.info(
        "business_registration_reviewed",
        registration_id=registration.id,
        user_id=registration.user_id,
        status=target.value,
        admin_id=admin.user_id,
    )
    return registration


def approve(db: Session, registration_id: int, admin: Actor, now: datetime | None = None) -> BusinessRegistrationEntity:
    """Approve a pending registration and grant the applicant the owner role."""
    return _decide(db, registration_id, admin, RegistrationStatus.APPROVED, {"rejection_reason": None}, now)


def reject(
    db: Session,
    registration_id: int,
    admin: Actor,
    reason: str | None = None,
    now: datetime | None = None,
) -> BusinessRegistrationEntity:
    reason = (reason or "").strip() or None
    return _decide(db, registration_id, admin, RegistrationStatus.REJECTED, {"rejection_reason": reason}, now)
