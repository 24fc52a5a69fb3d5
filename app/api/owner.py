from typing import List, Optional, Type

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from api.deps import get_db, require_owner
from models.enums import ListingKind, ListingStatus
from models.orm_user import UserEntity
from schemas.listings import BlogIn, BlogOut, BlogUpdate, PlaceIn, PlaceOut, PlaceUpdate
from services import listing_service
from services.listing_state import Actor


def _listing_router(
    kind: ListingKind,
    path: str,
    in_schema: Type[BaseModel],
    update_schema: Type[BaseModel],
    out_schema: Type[BaseModel],
    tag: str,
) -> APIRouter:
    router = APIRouter(prefix=f"/owner/{path}", tags=[tag])

    @router.get("", response_model=List[out_schema])
    def list_mine(
        status: Optional[ListingStatus] = None,
        limit: int = Query(50, ge=1, le=200),
        offset: int = Query(0, ge=0),
        db: Session = Depends(get_db),
        user: UserEntity = Depends(require_owner),
    ):
        return listing_service.list_owner_listings(db, user.id, kind, status, limit, offset)

    @router.post("", status_code=201, response_model=out_schema)
    def create(data: in_schema, db: Session = Depends(get_db), user: UserEntity = Depends(require_owner)):
        return listing_service.create_listing(db, user.id, kind, data.model_dump(mode="json"))

    @router.get("/{listing_id}", response_model=out_schema)
    def get_one(listing_id: int, db: Session = Depends(get_db), user: UserEntity = Depends(require_owner)):
        return listing_service.get_owned_listing(db, user.id, listing_id, kind)

    @router.put("/{listing_id}", response_model=out_schema)
    def update(
        listing_id: int,
        data: update_schema,
        db: Session = Depends(get_db),
        user: UserEntity = Depends(require_owner),
    ):
        payload = data.model_dump(mode="json", exclude_unset=True)
        return listing_service.update_listing(db, Actor.from_user(user), listing_id, kind, payload)

    @router.delete("/{listing_id}", status_code=204)
    def delete(listing_id: int, db: Session = Depends(get_db), user: UserEntity = Depends(require_owner)):
        listing_service.delete_listing(db, Actor.from_user(user), listing_id, kind)

    @router.post("/{listing_id}/submit", response_model=out_schema)
    def submit(listing_id: int, db: Session = Depends(get_db), user: UserEntity = Depends(require_owner)):
        return listing_service.submit_listing(db, Actor.from_user(user), listing_id, kind)

    @router.post("/{listing_id}/archive", response_model=out_schema)
    def archive(listing_id: int, db: Session = Depends(get_db), user: UserEntity = Depends(require_owner)):
        return listing_service.archive_listing(db, Actor.from_user(user), listing_id, kind)

    return router


places_router = _listing_router(ListingKind.PLACE, "places", PlaceIn, PlaceUpdate, PlaceOut, "Owner places")
blogs_router = _listing_router(ListingKind.BLOG, "blogs", BlogIn, BlogUpdate, BlogOut, "Owner blogs")
