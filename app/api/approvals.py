from typing import Annotated, Literal, Optional, Union

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy.orm import Session

from api.deps import get_db, require_admin
from models.enums import ListingKind
from models.orm_user import UserEntity
from schemas.listings import BlogOut, PlaceOut, QueueOut, RejectIn, SuspendIn
from services import approval_service
from services.listing_state import Actor


router = APIRouter(prefix="/admin/approvals", tags=["Approvals"])

ListingDetailOut = Annotated[Union[PlaceOut, BlogOut], Field(discriminator="kind")]


def _detail(listing):
    schema = PlaceOut if listing.kind == ListingKind.PLACE.value else BlogOut
    return schema.model_validate(listing)


@router.get("", response_model=QueueOut)
def queue(
    status: Literal["pending", "all"] = "pending",
    kind: Optional[ListingKind] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    _: UserEntity = Depends(require_admin),
):
    items, total = approval_service.list_queue(db, status, kind, limit, offset)
    return QueueOut(total=total, items=items)


@router.get("/{listing_id}", response_model=ListingDetailOut)
def detail(listing_id: int, db: Session = Depends(get_db), _: UserEntity = Depends(require_admin)):
    return _detail(approval_service.get_listing(db, listing_id))


@router.put("/{listing_id}/approve", response_model=ListingDetailOut)
def approve(listing_id: int, db: Session = Depends(get_db), admin: UserEntity = Depends(require_admin)):
    return _detail(approval_service.approve(db, listing_id, Actor.from_user(admin)))


@router.put("/{listing_id}/reject", response_model=ListingDetailOut)
def reject(
    listing_id: int,
    data: RejectIn,
    db: Session = Depends(get_db),
    admin: UserEntity = Depends(require_admin),
):
    return _detail(approval_service.reject(db, listing_id, Actor.from_user(admin), data.reason))


@router.put("/{listing_id}/suspend", response_model=ListingDetailOut)
def suspend(
    listing_id: int,
    data: Optional[SuspendIn] = None,
    db: Session = Depends(get_db),
    admin: UserEntity = Depends(require_admin),
):
    reason = data.reason if data else None
    return _detail(approval_service.suspend(db, listing_id, Actor.from_user(admin), reason))


@router.put("/{listing_id}/reactivate", response_model=ListingDetailOut)
def reactivate(listing_id: int, db: Session = Depends(get_db), admin: UserEntity = Depends(require_admin)):
    return _detail(approval_service.reactivate(db, listing_id, Actor.from_user(admin)))
