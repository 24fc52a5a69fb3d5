"""Listing lifecycle state machine.

Every status change of a place or blog post is decided here, from one
transition table. ``plan_transition`` is pure: it checks the actor, the
table and the guards, and returns the column values to write. Persisting
them (with a compare-and-swap on the source status) is the caller's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable

from core.base_classes import utc_now
from core.errors import ForbiddenError, InvalidStateError, ValidationError
from core.settings import settings
from models.enums import ListingEvent, ListingKind, ListingStatus

S = ListingStatus
E = ListingEvent

TRANSITIONS: dict[tuple[ListingStatus, ListingEvent], ListingStatus] = {
    (S.DRAFT, E.SUBMIT): S.PENDING,
    (S.PENDING, E.APPROVE): S.ACTIVE,
    (S.PENDING, E.REJECT): S.REJECTED,
    (S.ACTIVE, E.EDIT): S.PENDING,
    (S.DRAFT, E.EDIT): S.DRAFT,
    (S.PENDING, E.EDIT): S.PENDING,
    (S.ACTIVE, E.SUSPEND): S.SUSPENDED,
    (S.REJECTED, E.RESUBMIT): S.PENDING,
    (S.SUSPENDED, E.REACTIVATE): S.ACTIVE,
    (S.DRAFT, E.ARCHIVE): S.ARCHIVED,
    (S.PENDING, E.ARCHIVE): S.ARCHIVED,
    (S.ACTIVE, E.ARCHIVE): S.ARCHIVED,
    (S.REJECTED, E.ARCHIVE): S.ARCHIVED,
    (S.SUSPENDED, E.ARCHIVE): S.ARCHIVED,
}

ADMIN_EVENTS = frozenset({E.APPROVE, E.REJECT, E.SUSPEND, E.REACTIVATE})


@dataclass(frozen=True)
class Actor:
    user_id: int
    is_admin: bool = False

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(user_id=user.id, is_admin=bool(user.is_admin))


@dataclass(frozen=True)
class TransitionPlan:
    listing_id: int
    event: ListingEvent
    source: ListingStatus
    target: ListingStatus
    values: dict[str, Any] = field(default_factory=dict)
    reason: str | None = None


def allowed_events(status: ListingStatus) -> list[ListingEvent]:
    status = ListingStatus(status)
    return [event for (source, event) in TRANSITIONS if source == status]


def resolve_submit_event(status: ListingStatus) -> ListingEvent:
    """An owner "submit" on a rejected listing is a resubmission."""
    if ListingStatus(status) == S.REJECTED:
        return E.RESUBMIT
    return E.SUBMIT


def _check_actor(listing, event: ListingEvent, actor: Actor) -> None:
    if event in ADMIN_EVENTS:
        if not actor.is_admin:
            raise ForbiddenError(
                f"Only an administrator can {event.value} a listing",
                {"listing_id": listing.id, "event": event.value},
            )
        return
    if actor.user_id != listing.owner_id:
        raise ForbiddenError(
            f"Only the owner can {event.value} this listing",
            {"listing_id": listing.id, "event": event.value},
        )


def _min_body_length(kind: ListingKind) -> int:
    if kind == ListingKind.PLACE:
        return settings.place_min_body_length
    return settings.blog_min_body_length


def validate_for_review(listing) -> None:
    """Minimum content a listing needs before it can enter the review queue."""
    title = (listing.title or "").strip()
    if len(title) < settings.listing_min_title_length:
        raise ValidationError(
            f"Title must be at least {settings.listing_min_title_length} characters",
            field="title",
        )

    kind = ListingKind(listing.kind)
    min_body = _min_body_length(kind)
    body = (listing.body or "").strip()
    if len(body) < min_body:
        raise ValidationError(f"Content must be at least {min_body} characters", field="body")

    if kind == ListingKind.PLACE and not listing.images:
        raise ValidationError("At least one image is required", field="images")


def plan_transition(
    listing,
    event: ListingEvent,
    actor: Actor,
    *,
    reason: str | None = None,
    changed_fields: Iterable[str] = (),
    now: datetime | None = None,
) -> TransitionPlan:
    event = ListingEvent(event)
    source = ListingStatus(listing.status)

    _check_actor(listing, event, actor)

    target = TRANSITIONS.get((source, event))
    if target is None:
        raise InvalidStateError(
            f"Cannot {event.value} a listing in status '{source.value}'",
            {
                "listing_id": listing.id,
                "status": source.value,
                "event": event.value,
                "allowed_events": [e.value for e in allowed_events(source)],
            },
        )

    clean_reason = (reason or "").strip() or None
    if event == E.REJECT and clean_reason is None:
        raise ValidationError("A rejection reason is required", field="reason")

    if event == E.RESUBMIT and not list(changed_fields):
        raise ValidationError(
            "Edit at least one field before resubmitting a rejected listing",
            field="changes",
        )

    if target == S.PENDING:
        validate_for_review(listing)

    now = now or utc_now()
    values: dict[str, Any] = {"updated_at": now}

    if target == S.PENDING:
        values["rejection_reason"] = None
        if source != S.PENDING:
            values["submitted_at"] = now
    if target == S.ACTIVE:
        values["published_at"] = now
        values["suspension_reason"] = None
    if event == E.APPROVE:
        values["verified"] = True
    if event == E.REJECT:
        values["rejection_reason"] = clean_reason
    if event == E.SUSPEND:
        values["suspension_reason"] = clean_reason
    if event in ADMIN_EVENTS:
        values["reviewed_at"] = now
        values["reviewed_by_id"] = actor.user_id

    return TransitionPlan(
        listing_id=listing.id,
        event=event,
        source=source,
        target=target,
        values=values,
        reason=clean_reason if event in (E.REJECT, E.SUSPEND) else None,
    )
