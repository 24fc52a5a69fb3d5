from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer
from sqlalchemy.orm import declared_attr


def utc_now() -> datetime:
    # Naive UTC, matching the DateTime columns below.
    return datetime.now(timezone.utc).replace(tzinfo=None)


class BaseEntity:
    __abstract__ = True

    @declared_attr
    def id(cls):
        return Column(Integer, primary_key=True, index=True)

    @declared_attr
    def created_at(cls):
        return Column(DateTime, default=utc_now, nullable=False)


class TimestampedEntity(BaseEntity):
    __abstract__ = True

    @declared_attr
    def updated_at(cls):
        return Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)
