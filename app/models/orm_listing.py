from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from db.base import Base
from db.types import TypedJSON
from core.base_classes import TimestampedEntity
from models.enums import ListingKind, ListingStatus
from schemas.nested import ContactInfo, GeoPoint, StringList, StringMap


class ListingEntity(Base, TimestampedEntity):
    """Places and blog posts share one table and one moderation lifecycle."""

    __tablename__ = "listings"

    kind = Column(String(16), nullable=False)
    owner_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title = Column(String(200), nullable=False)
    slug = Column(String(240), nullable=False, unique=True)
    summary = Column(String(500), nullable=True)
    body = Column(Text, nullable=True)
    category = Column(String(80), nullable=True)
    images = Column(TypedJSON(StringList, list), nullable=False, default=list)

    status = Column(String(16), nullable=False, default=ListingStatus.DRAFT.value)
    rejection_reason = Column(String(1000), nullable=True)
    suspension_reason = Column(String(1000), nullable=True)

    submitted_at = Column(DateTime, nullable=True)
    published_at = Column(DateTime, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    reviewed_by_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    featured = Column(Boolean, nullable=False, default=False)
    verified = Column(Boolean, nullable=False, default=False)

    owner = relationship("UserEntity", back_populates="listings", foreign_keys=[owner_id])
    reviewed_by = relationship("UserEntity", foreign_keys=[reviewed_by_id])

    __mapper_args__ = {
        "polymorphic_on": kind,
        "polymorphic_identity": "listing",
    }

    __table_args__ = (
        Index("ix_listings_status_submitted_at", "status", "submitted_at"),
        Index("ix_listings_owner_kind", "owner_id", "kind"),
    )

    @property
    def listing_kind(self) -> ListingKind:
        return ListingKind(self.kind)

    @property
    def listing_status(self) -> ListingStatus:
        return ListingStatus(self.status)


class PlaceEntity(ListingEntity):
    address = Column(String(500), nullable=True)
    city = Column(String(120), nullable=True)
    district = Column(String(120), nullable=True)
    location = Column(TypedJSON(Optional[GeoPoint]), nullable=True)
    contact_info = Column(TypedJSON(ContactInfo, ContactInfo), nullable=True)
    features = Column(TypedJSON(StringList, list), nullable=True)
    price_level = Column(String(16), nullable=True)
    nightly_price = Column(Numeric(10, 2), nullable=True)
    opening_hours = Column(TypedJSON(StringMap, dict), nullable=True)

    __mapper_args__ = {"polymorphic_identity": ListingKind.PLACE.value}


class BlogPostEntity(ListingEntity):
    tags = Column(TypedJSON(StringList, list), nullable=True)
    language = Column(String(4), nullable=True)
    read_time = Column(Integer, nullable=True)
    seo_title = Column(String(100), nullable=True)
    seo_description = Column(String(300), nullable=True)

    __mapper_args__ = {"polymorphic_identity": ListingKind.BLOG.value}
