"""Data-store operations for listings.

Status writes go through ``compare_and_swap_status`` only: the UPDATE is
conditioned on the status the caller read, so two concurrent writers cannot
both succeed.
"""

from __future__ import annotations

from typing import Any, Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.errors import NotFoundError
from models.enums import ListingKind, ListingStatus
from models.orm_listing import BlogPostEntity, ListingEntity, PlaceEntity

ENTITY_BY_KIND = {
    ListingKind.PLACE: PlaceEntity,
    ListingKind.BLOG: BlogPostEntity,
}

# Archived listings no longer count toward plan usage.
DEFAULT_EXCLUDED_STATUSES = (ListingStatus.ARCHIVED,)


def entity_for(kind: ListingKind):
    return ENTITY_BY_KIND[ListingKind(kind)]


def find_listing(db: Session, listing_id: int, kind: ListingKind | None = None) -> ListingEntity | None:
    entity = entity_for(kind) if kind else ListingEntity
    return db.query(entity).filter(entity.id == listing_id).first()


def load_listing(db: Session, listing_id: int, kind: ListingKind | None = None) -> ListingEntity:
    listing = find_listing(db, listing_id, kind)
    if listing is None:
        noun = ListingKind(kind).value.capitalize() if kind else "Listing"
        raise NotFoundError(f"{noun} not found", {"listing_id": listing_id})
    return listing


def compare_and_swap_status(
    db: Session,
    listing_id: int,
    expected_status: ListingStatus,
    new_status: ListingStatus,
    extra: dict[str, Any] | None = None,
) -> bool:
    values: dict[str, Any] = dict(extra or {})
    values["status"] = ListingStatus(new_status).value
    updated = (
        db.query(ListingEntity)
        .filter(
            ListingEntity.id == listing_id,
            ListingEntity.status == ListingStatus(expected_status).value,
        )
        .update(values, synchronize_session=False)
    )
    return updated == 1


def _owner_query(db: Session, entity, owner_id: int, exclude_statuses: Iterable[ListingStatus]):
    excluded = [ListingStatus(s).value for s in exclude_statuses]
    query = db.query(entity).filter(entity.owner_id == owner_id)
    if excluded:
        query = query.filter(entity.status.notin_(excluded))
    return query


def count_listings_by_owner(
    db: Session,
    owner_id: int,
    kind: ListingKind,
    exclude_statuses: Iterable[ListingStatus] = DEFAULT_EXCLUDED_STATUSES,
) -> int:
    entity = entity_for(kind)
    query = _owner_query(db, entity, owner_id, exclude_statuses).filter(entity.kind == ListingKind(kind).value)
    return query.with_entities(func.count(entity.id)).scalar() or 0


def count_photos_by_owner(
    db: Session,
    owner_id: int,
    exclude_statuses: Iterable[ListingStatus] = DEFAULT_EXCLUDED_STATUSES,
    exclude_listing_id: int | None = None,
) -> int:
    query = _owner_query(db, ListingEntity, owner_id, exclude_statuses)
    if exclude_listing_id is not None:
        query = query.filter(ListingEntity.id != exclude_listing_id)
    return sum(len(images or []) for (images,) in query.with_entities(ListingEntity.images).all())


def list_by_owner(
    db: Session,
    owner_id: int,
    kind: ListingKind,
    status: ListingStatus | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[ListingEntity]:
    entity = entity_for(kind)
    query = db.query(entity).filter(entity.owner_id == owner_id)
    if status:
        query = query.filter(entity.status == ListingStatus(status).value)
    return query.order_by(entity.id.desc()).offset(offset).limit(limit).all()


def slug_exists(db: Session, slug: str) -> bool:
    return db.query(ListingEntity.id).filter(ListingEntity.slug == slug).first() is not None
