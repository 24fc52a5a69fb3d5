"""Plan quota accounting.

``can_create`` and ``percentage`` are pure. ``get_usage`` re-reads counts and
the effective plan from the database on every call; callers must not reuse a
previously fetched ``Usage`` for a later decision.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from core.base_classes import utc_now
from core.errors import QuotaExceededError
from core.logging import get_logger
from models.enums import ListingKind, SubscriptionStatus
from models.orm_subscription import SubscriptionEntity
from schemas.nested import NO_ACCESS_LIMITS, PlanLimits
from services import listing_store

log = get_logger("quota")

UNLIMITED = -1

# Statuses that keep the plan's limits until current_period_end.
ENTITLED_STATUSES = {
    SubscriptionStatus.ACTIVE.value,
    SubscriptionStatus.TRIAL.value,
    SubscriptionStatus.CANCELLED.value,
}

RESOURCE_PLACES = "places"
RESOURCE_BLOGS = "blogs"
RESOURCE_PHOTOS = "photos"

RESOURCE_BY_KIND = {
    ListingKind.PLACE: RESOURCE_PLACES,
    ListingKind.BLOG: RESOURCE_BLOGS,
}


@dataclass(frozen=True)
class UsageCounter:
    current: int
    max: int | None

    @property
    def unlimited(self) -> bool:
        return self.max == UNLIMITED


@dataclass(frozen=True)
class Usage:
    places: UsageCounter
    blogs: UsageCounter
    photos: UsageCounter

    def for_resource(self, resource: str) -> UsageCounter:
        return getattr(self, resource)


def can_create(usage: UsageCounter, requested: int = 1) -> bool:
    if usage.max == UNLIMITED:
        return True
    if not usage.max or usage.max < 0:
        return False
    return usage.current + requested <= usage.max


def percentage(current: int, maximum: int | None) -> int:
    if maximum == UNLIMITED:
        return 0
    if not maximum or maximum < 0:
        return 100
    value = math.floor(current / maximum * 100 + 0.5)
    return max(0, min(100, value))


def ensure_can_create(resource: str, usage: UsageCounter, requested: int = 1) -> None:
    if not can_create(usage, requested):
        log.info("quota_exceeded", resource=resource, current=usage.current, max=usage.max, requested=requested)
        raise QuotaExceededError(resource, usage.current, usage.max, requested)


def subscription_query(db: Session, user_id: int, for_update: bool = False):
    query = db.query(SubscriptionEntity).filter(SubscriptionEntity.user_id == user_id)
    if for_update:
        query = query.with_for_update()
    return query


def get_subscription(db: Session, user_id: int, for_update: bool = False) -> SubscriptionEntity | None:
    return subscription_query(db, user_id, for_update).first()


def is_entitled(sub: SubscriptionEntity | None, now: datetime | None = None) -> bool:
    if sub is None:
        return False
    now = now or utc_now()
    return sub.status in ENTITLED_STATUSES and sub.current_period_end > now


def get_effective_limits(
    db: Session,
    user_id: int,
    now: datetime | None = None,
    for_update: bool = False,
) -> PlanLimits:
    sub = get_subscription(db, user_id, for_update)
    if not is_entitled(sub, now) or sub.plan is None:
        return NO_ACCESS_LIMITS
    return sub.plan.limits or NO_ACCESS_LIMITS


def get_usage(db: Session, owner_id: int, now: datetime | None = None, for_update: bool = False) -> Usage:
    """Current usage against the effective limits.

    With ``for_update`` the owner's subscription row is locked first, so
    concurrent quota-gated writes for the same owner run one after another
    until the caller commits or rolls back.
    """
    limits = get_effective_limits(db, owner_id, now, for_update)
    places = listing_store.count_listings_by_owner(db, owner_id, ListingKind.PLACE)
    blogs = listing_store.count_listings_by_owner(db, owner_id, ListingKind.BLOG)
    photos = listing_store.count_photos_by_owner(db, owner_id)
    return Usage(
        places=UsageCounter(places, limits.max_places),
        blogs=UsageCounter(blogs, limits.max_blogs),
        photos=UsageCounter(photos, limits.max_photos),
    )


def usage_report(usage: Usage) -> dict:
    out = {}
    for resource in (RESOURCE_PLACES, RESOURCE_BLOGS, RESOURCE_PHOTOS):
        counter = usage.for_resource(resource)
        out[resource] = {
            "current": counter.current,
            "max": counter.max,
            "percentage": percentage(counter.current, counter.max),
            "can_create": can_create(counter),
        }
    return out
