from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.deps import get_db, get_current_user, require_admin
from models.enums import RegistrationStatus
from models.orm_user import UserEntity
from schemas.business import (
    BusinessRegistrationIn,
    BusinessRegistrationOut,
    BusinessStatusOut,
    RegistrationPageOut,
    RegistrationRejectIn,
)
from services import business_service
from services.listing_state import Actor


router = APIRouter(prefix="/business", tags=["Business"])
admin_router = APIRouter(prefix="/admin/business-registrations", tags=["Approvals"])


@router.post("/register", status_code=201, response_model=BusinessRegistrationOut)
def register_business(
    data: BusinessRegistrationIn,
    db: Session = Depends(get_db),
    user: UserEntity = Depends(get_current_user),
):
    return business_service.apply(db, user, data.model_dump())


@router.get("/status", response_model=BusinessStatusOut)
def registration_status(db: Session = Depends(get_db), user: UserEntity = Depends(get_current_user)):
    registration = business_service.get_for_user(db, user.id)
    return BusinessStatusOut(
        has_registration=registration is not None,
        status=registration.status if registration else None,
        rejection_reason=registration.rejection_reason if registration else None,
        role=user.role,
    )


@admin_router.get("", response_model=RegistrationPageOut)
def list_registrations(
    status: Optional[RegistrationStatus] = None,
    limit: int = Query(20, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    _: UserEntity = Depends(require_admin),
):
    items, total = business_service.list_registrations(db, status, limit, offset)
    return RegistrationPageOut(total=total, items=items)


@admin_router.put("/{registration_id}/approve", response_model=BusinessRegistrationOut)
def approve(registration_id: int, db: Session = Depends(get_db), admin: UserEntity = Depends(require_admin)):
    return business_service.approve(db, registration_id, Actor.from_user(admin))


@admin_router.put("/{registration_id}/reject", response_model=BusinessRegistrationOut)
def reject(
    registration_id: int,
    data: Optional[RegistrationRejectIn] = None,
    db: Session = Depends(get_db),
    admin: UserEntity = Depends(require_admin),
):
    return business_service.reject(db, registration_id, Actor.from_user(admin), data.reason if data else None)
