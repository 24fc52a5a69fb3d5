from __future__ import annotations

from datetime import datetime
from typing import Literal

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.errors import ValidationError
from models.enums import ListingEvent, ListingKind, ListingStatus
from models.orm_listing import ListingEntity
from services import listing_store
from services.listing_service import execute_transition
from services.listing_state import Actor
from services.notifier import publish_listing_event

QueueFilter = Literal["pending", "all"]


def _queue_query(db: Session, status_filter: QueueFilter, kind: ListingKind | None):
    entity = listing_store.entity_for(kind) if kind else ListingEntity
    query = db.query(entity)
    if status_filter == "pending":
        query = query.filter(entity.status == ListingStatus.PENDING.value)
    elif status_filter != "all":
        raise ValidationError("Filter must be 'pending' or 'all'", field="status")
    return entity, query


def list_queue(
    db: Session,
    status_filter: QueueFilter = "pending",
    kind: ListingKind | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[ListingEntity], int]:
    """Oldest submission first; listings never submitted come last."""
    entity, query = _queue_query(db, status_filter, kind)
    total = query.with_entities(func.count(entity.id)).scalar() or 0
    rows = (
        query.order_by(
            entity.submitted_at.is_(None),
            entity.submitted_at.asc(),
            entity.id.asc(),
        )
        .offset(offset)
        .limit(limit)
        .all()
    )
    return rows, total


def get_listing(db: Session, listing_id: int) -> ListingEntity:
    return listing_store.load_listing(db, listing_id)


def _decide(
    db: Session,
    listing_id: int,
    event: ListingEvent,
    admin: Actor,
    reason: str | None = None,
    now: datetime | None = None,
) -> ListingEntity:
    listing = listing_store.load_listing(db, listing_id)
    listing, outbox = execute_transition(db, listing, event, admin, reason=reason, now=now, notify=True)
    if outbox is not None:
        publish_listing_event(db, outbox.id)
    return listing


def approve(db: Session, listing_id: int, admin: Actor, now: datetime | None = None) -> ListingEntity:
    return _decide(db, listing_id, ListingEvent.APPROVE, admin, now=now)


def reject(db: Session, listing_id: int, admin: Actor, reason: str, now: datetime | None = None) -> ListingEntity:
    if not (reason or "").strip():
        raise ValidationError("A rejection reason is required", field="reason")
    return _decide(db, listing_id, ListingEvent.REJECT, admin, reason=reason, now=now)


def suspend(db: Session, listing_id: int, admin: Actor, reason: str | None = None, now: datetime | None = None) -> ListingEntity:
    return _decide(db, listing_id, ListingEvent.SUSPEND, admin, reason=reason, now=now)


def reactivate(db: Session, listing_id: int, admin: Actor, now: datetime | None = None) -> ListingEntity:
    return _decide(db, listing_id, ListingEvent.REACTIVATE, admin, now=now)
