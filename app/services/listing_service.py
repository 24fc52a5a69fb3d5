"""Owner-side listing workflow: quota-gated create, edit, submit, archive."""

from __future__ import annotations

import math
import re
import secrets
import unicodedata
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from core.errors import DomainError, InvalidStateError, NotFoundError, QuotaExceededError, ValidationError
from core.logging import get_logger
from core.settings import settings
from models.enums import ListingEvent, ListingKind, ListingStatus
from models.orm_listing import ListingEntity
from models.orm_listing_event import ListingEventEntity
from services import listing_store, quota_service
from services.listing_state import Actor, plan_transition, resolve_submit_event
from services.notifier import record_listing_event

log = get_logger("listings")

WORDS_PER_MINUTE = 200

# Fields an owner may set; anything else in a payload is ignored.
COMMON_FIELDS = ("title", "summary", "body", "category", "images")
PLACE_FIELDS = COMMON_FIELDS + (
    "address",
    "city",
    "district",
    "location",
    "contact_info",
    "features",
    "price_level",
    "nightly_price",
    "opening_hours",
)
BLOG_FIELDS = COMMON_FIELDS + ("tags", "language", "seo_title", "seo_description")

EDITABLE_FIELDS = {
    ListingKind.PLACE: PLACE_FIELDS,
    ListingKind.BLOG: BLOG_FIELDS,
}

_TR_MAP = str.maketrans({"ı": "i", "İ": "i", "ş": "s", "Ş": "s", "ğ": "g", "Ğ": "g"})


def slugify(text: str) -> str:
    value = (text or "").translate(_TR_MAP)
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^a-zA-Z0-9]+", "-", value).strip("-").lower()
    return value[:200] or "listing"


def unique_slug(db: Session, title: str) -> str:
    base = slugify(title)
    slug = base
    while listing_store.slug_exists(db, slug):
        slug = f"{base}-{secrets.token_hex(3)}"
    return slug


def estimate_read_time(body: str | None) -> int:
    words = len((body or "").split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def _normalize(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    if isinstance(value, dict):
        return {k: _normalize(v) for k, v in value.items()}
    if value is not None and not isinstance(value, (str, int, float, bool)):
        return str(value)
    return value


def _same(current: Any, incoming: Any) -> bool:
    current, incoming = _normalize(current), _normalize(incoming)
    if isinstance(current, (int, float)) or isinstance(incoming, (int, float)):
        try:
            return current is not None and incoming is not None and float(current) == float(incoming)
        except (TypeError, ValueError):
            return False
    if isinstance(current, str) and not isinstance(incoming, str) and incoming is not None:
        return current == str(incoming)
    return current == incoming


def _filter_fields(kind: ListingKind, data: dict[str, Any]) -> dict[str, Any]:
    allowed = EDITABLE_FIELDS[kind]
    return {k: v for k, v in data.items() if k in allowed}


def _check_images(images: list | None) -> None:
    if images is not None and len(images) > settings.max_images_per_listing:
        raise ValidationError(
            f"A listing can hold at most {settings.max_images_per_listing} images",
            field="images",
        )


def execute_transition(
    db: Session,
    listing: ListingEntity,
    event: ListingEvent,
    actor: Actor,
    *,
    reason: str | None = None,
    changed_fields: tuple[str, ...] = (),
    now: datetime | None = None,
    notify: bool = False,
) -> tuple[ListingEntity, ListingEventEntity | None]:
    """Validate, compare-and-swap and commit one lifecycle transition.

    Any edits already applied to ``listing`` are committed together with the
    status change, or discarded if the transition fails.
    """
    try:
        plan = plan_transition(listing, event, actor, reason=reason, changed_fields=changed_fields, now=now)
        db.flush()
        swapped = listing_store.compare_and_swap_status(db, listing.id, plan.source, plan.target, plan.values)
    except DomainError:
        db.rollback()
        raise

    if not swapped:
        db.rollback()
        log.warning(
            "listing_cas_conflict",
            listing_id=plan.listing_id,
            expected=plan.source.value,
            transition=plan.event.value,
            actor_id=actor.user_id,
        )
        raise InvalidStateError(
            "Listing status changed concurrently; reload it and try again",
            {"listing_id": plan.listing_id, "expected_status": plan.source.value, "event": plan.event.value},
        )

    outbox = None
    if notify:
        outbox = record_listing_event(db, listing, plan.target.value, plan.reason)
    db.commit()
    db.refresh(listing)

    log.info(
        "listing_transition",
        listing_id=listing.id,
        kind=listing.kind,
        transition=plan.event.value,
        source=plan.source.value,
        target=plan.target.value,
        actor_id=actor.user_id,
    )
    return listing, outbox


def create_listing(
    db: Session,
    owner_id: int,
    kind: ListingKind,
    data: dict[str, Any],
    now: datetime | None = None,
) -> ListingEntity:
    kind = ListingKind(kind)
    fields = _filter_fields(kind, data)
    images = list(fields.get("images") or [])
    _check_images(images)

    resource = quota_service.RESOURCE_BY_KIND[kind]
    # The subscription row stays locked until the insert below commits.
    usage = quota_service.get_usage(db, owner_id, now, for_update=True)
    try:
        quota_service.ensure_can_create(resource, usage.for_resource(resource))
        if images:
            quota_service.ensure_can_create(quota_service.RESOURCE_PHOTOS, usage.photos, len(images))
    except QuotaExceededError:
        db.rollback()
        raise

    entity = listing_store.entity_for(kind)
    listing = entity(
        owner_id=owner_id,
        status=ListingStatus.DRAFT.value,
        slug=unique_slug(db, fields.get("title") or ""),
        **fields,
    )
    if kind == ListingKind.BLOG:
        listing.read_time = estimate_read_time(listing.body)

    db.add(listing)
    db.commit()
    db.refresh(listing)
    log.info("listing_created", listing_id=listing.id, kind=kind.value, owner_id=owner_id)
    return listing


def get_owned_listing(db: Session, owner_id: int, listing_id: int, kind: ListingKind) -> ListingEntity:
    listing = listing_store.load_listing(db, listing_id, kind)
    if listing.owner_id != owner_id:
        # Other owners' listings are reported as missing.
        raise NotFoundError(f"{ListingKind(kind).value.capitalize()} not found", {"listing_id": listing_id})
    return listing


def update_listing(
    db: Session,
    actor: Actor,
    listing_id: int,
    kind: ListingKind,
    data: dict[str, Any],
    now: datetime | None = None,
) -> ListingEntity:
    """Apply owner edits.

    Editing an active listing sends it back to review; editing a rejected
    listing resubmits it. Drafts and pending listings keep their status.
    """
    kind = ListingKind(kind)
    listing = get_owned_listing(db, actor.user_id, listing_id, kind)

    fields = _filter_fields(kind, data)
    changed = tuple(k for k, v in fields.items() if not _same(getattr(listing, k), v))

    status = ListingStatus(listing.status)
    if status in (ListingStatus.SUSPENDED, ListingStatus.ARCHIVED):
        raise InvalidStateError(
            f"A {status.value} listing cannot be edited",
            {"listing_id": listing.id, "status": status.value},
        )

    if "images" in changed:
        images = list(fields["images"] or [])
        _check_images(images)
        added = len(images) - len(listing.images or [])
        if added > 0:
            usage = quota_service.get_usage(db, actor.user_id, now, for_update=True)
            try:
                quota_service.ensure_can_create(quota_service.RESOURCE_PHOTOS, usage.photos, added)
            except QuotaExceededError:
                db.rollback()
                raise

    if status == ListingStatus.REJECTED:
        event = ListingEvent.RESUBMIT
    else:
        event = ListingEvent.EDIT

    if not changed and event == ListingEvent.EDIT:
        return listing

    for key in changed:
        setattr(listing, key, fields[key])
    if "title" in changed and status == ListingStatus.DRAFT:
        listing.slug = unique_slug(db, listing.title)
    if kind == ListingKind.BLOG and "body" in changed:
        listing.read_time = estimate_read_time(listing.body)

    listing, _ = execute_transition(db, listing, event, actor, changed_fields=changed, now=now)
    return listing


def submit_listing(db: Session, actor: Actor, listing_id: int, kind: ListingKind, now: datetime | None = None) -> ListingEntity:
    listing = get_owned_listing(db, actor.user_id, listing_id, kind)
    event = resolve_submit_event(ListingStatus(listing.status))
    listing, _ = execute_transition(db, listing, event, actor, now=now)
    return listing


def archive_listing(db: Session, actor: Actor, listing_id: int, kind: ListingKind, now: datetime | None = None) -> ListingEntity:
    listing = get_owned_listing(db, actor.user_id, listing_id, kind)
    listing, _ = execute_transition(db, listing, ListingEvent.ARCHIVE, actor, now=now)
    return listing


def delete_listing(db: Session, actor: Actor, listing_id: int, kind: ListingKind) -> None:
    listing = get_owned_listing(db, actor.user_id, listing_id, kind)
    db.delete(listing)
    db.commit()
    log.info("listing_deleted", listing_id=listing_id, kind=ListingKind(kind).value, owner_id=actor.user_id)


def list_owner_listings(
    db: Session,
    owner_id: int,
    kind: ListingKind,
    status: ListingStatus | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[ListingEntity]:
    return listing_store.list_by_owner(db, owner_id, kind, status, limit, offset)


def list_public(db: Session, kind: ListingKind, limit: int = 50, offset: int = 0) -> list[ListingEntity]:
    entity = listing_store.entity_for(kind)
    return (
        db.query(entity)
        .filter(entity.status == ListingStatus.ACTIVE.value)
        .order_by(entity.featured.desc(), entity.published_at.desc(), entity.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def get_public(db: Session, kind: ListingKind, slug: str) -> ListingEntity:
    entity = listing_store.entity_for(kind)
    listing = (
        db.query(entity)
        .filter(entity.slug == slug, entity.status == ListingStatus.ACTIVE.value)
        .first()
    )
    if listing is None:
        raise NotFoundError(f"{ListingKind(kind).value.capitalize()} not found", {"slug": slug})
    return listing
