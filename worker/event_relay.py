"""Outbox relay and subscription housekeeping.

Publishes listing events that could not be delivered right after commit and
expires subscriptions whose period has ended. Runs forever; one pass every
``RELAY_INTERVAL_SEC`` seconds.
"""

import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

import pika
from pika.exceptions import AMQPConnectionError, AMQPError

sys.path.append(str(Path(__file__).resolve().parents[1] / "app"))

from core.logging import configure_logging, get_logger
from core.settings import settings
from db.session import SessionLocal
from services.notifier import dispatch_pending_events, open_channel
from services.subscription_service import expire_overdue

log = get_logger("event_relay")


def connect_with_retry(params: pika.URLParameters, retries: int = 10, delay: int = 5) -> pika.BlockingConnection:
    for attempt in range(1, retries + 1):
        try:
            log.info("rabbitmq_connecting", attempt=attempt, retries=retries)
            return pika.BlockingConnection(params)
        except AMQPConnectionError as e:
            log.warning("rabbitmq_connect_failed", attempt=attempt, error=str(e), retry_in=delay)
            time.sleep(delay)
    raise RuntimeError("Failed to connect to RabbitMQ after multiple retries.")


def run_once(session_factory=SessionLocal, channel=None, now: Optional[datetime] = None) -> Tuple[int, int]:
    db = session_factory()
    try:
        delivered = dispatch_pending_events(db, settings.relay_batch_size, channel)
        expired = expire_overdue(db, now)
    finally:
        db.close()
    return delivered, expired


def main():
    configure_logging()
    log.info("event_relay_started", interval_sec=settings.relay_interval_sec, backend=settings.notifier_backend)

    use_broker = settings.notifier_backend == "rabbitmq"
    connection = None
    while True:
        channel = None
        if use_broker:
            if connection is None or connection.is_closed:
                connection = connect_with_retry(pika.URLParameters(settings.rabbitmq_url))
            try:
                channel = open_channel(connection)
            except AMQPError as e:
                log.warning("rabbitmq_channel_failed", error=str(e))
                connection = None
                time.sleep(settings.relay_interval_sec)
                continue

        delivered, expired = run_once(channel=channel)
        if delivered or expired:
            log.info("event_relay_pass", delivered=delivered, expired=expired)

        if channel is not None and channel.is_open:
            channel.close()
        if connection is not None and connection.is_open:
            connection.sleep(settings.relay_interval_sec)
        else:
            time.sleep(settings.relay_interval_sec)


if __name__ == "__main__":
    main()
