"""Owner notifications for admin decisions on listings.

Events are written to the ``listing_events`` outbox inside the transaction
that changes the listing status, then published to RabbitMQ after commit.
Rows that could not be published stay undelivered for the relay worker.
"""

from __future__ import annotations

import json

import pika
from pika.exceptions import AMQPError
from sqlalchemy.orm import Session

from core.base_classes import utc_now
from core.logging import get_logger
from core.settings import settings
from models.orm_listing import ListingEntity
from models.orm_listing_event import ListingEventEntity

log = get_logger("notifier")


def record_listing_event(db: Session, listing: ListingEntity, new_status: str, reason: str | None = None) -> ListingEventEntity:
    event = ListingEventEntity(
        listing_id=listing.id,
        owner_id=listing.owner_id,
        kind=listing.kind,
        new_status=new_status,
        reason=reason,
        delivered=False,
    )
    db.add(event)
    return event


def open_channel(connection):
    ch = connection.channel()
    ch.queue_declare(queue=settings.listing_events_queue, durable=True)
    return ch


def _publish(ch, message: dict) -> None:
    ch.basic_publish(
        exchange="",
        routing_key=settings.listing_events_queue,
        body=json.dumps(message, ensure_ascii=False).encode("utf-8"),
        properties=pika.BasicProperties(delivery_mode=2, content_type="application/json"),
    )


def send_messages(messages: list[dict], channel=None) -> None:
    if not messages:
        return
    if settings.notifier_backend == "log":
        for message in messages:
            log.info("listing_event", **message)
        return

    if channel is not None:
        for message in messages:
            _publish(channel, message)
        return

    conn = pika.BlockingConnection(pika.URLParameters(settings.rabbitmq_url))
    try:
        ch = open_channel(conn)
        for message in messages:
            _publish(ch, message)
    finally:
        conn.close()


def _mark_delivered(db: Session, events: list[ListingEventEntity]) -> None:
    now = utc_now()
    for event in events:
        event.delivered = True
        event.delivered_at = now
    db.commit()


def publish_listing_event(db: Session, event_id: int) -> bool:
    """Publish one committed outbox row. Returns False if it stays queued."""
    event = db.get(ListingEventEntity, event_id)
    if event is None or event.delivered:
        return event is not None

    try:
        send_messages([event.to_message()])
    except (AMQPError, OSError) as e:
        log.warning("listing_event_publish_failed", event_id=event_id, error=str(e))
        return False

    _mark_delivered(db, [event])
    log.info("listing_event_published", event_id=event_id, listing_id=event.listing_id, new_status=event.new_status)
    return True


def pending_events(db: Session, limit: int | None = None) -> list[ListingEventEntity]:
    return (
        db.query(ListingEventEntity)
        .filter(ListingEventEntity.delivered.is_(False))
        .order_by(ListingEventEntity.id.asc())
        .limit(limit or settings.relay_batch_size)
        .all()
    )


def dispatch_pending_events(db: Session, limit: int | None = None, channel=None) -> int:
    events = pending_events(db, limit)
    if not events:
        return 0

    try:
        send_messages([e.to_message() for e in events], channel)
    except (AMQPError, OSError) as e:
        log.warning("listing_events_dispatch_failed", count=len(events), error=str(e))
        return 0

    _mark_delivered(db, events)
    log.info("listing_events_dispatched", count=len(events))
    return len(events)
