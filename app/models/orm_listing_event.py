from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String

from db.base import Base
from core.base_classes import BaseEntity


class ListingEventEntity(Base, BaseEntity):
    """Outbox row for the owner notifier, written with the status change."""

    __tablename__ = "listing_events"

    listing_id = Column(
        Integer,
        ForeignKey("listings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    owner_id = Column(Integer, nullable=False)
    kind = Column(String(16), nullable=False)
    new_status = Column(String(16), nullable=False)
    reason = Column(String(1000), nullable=True)

    delivered = Column(Boolean, nullable=False, default=False)
    delivered_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_listing_events_delivered", "delivered"),
    )

    def to_message(self) -> dict:
        message = {
            "event_id": self.id,
            "listing_id": self.listing_id,
            "owner_id": self.owner_id,
            "kind": self.kind,
            "new_status": self.new_status,
        }
        if self.reason:
            message["reason"] = self.reason
        return message
