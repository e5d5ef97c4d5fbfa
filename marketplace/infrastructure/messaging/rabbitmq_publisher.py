"""
RabbitMQ event publisher.

pika is blocking, so every publish runs in the default thread-pool executor.
All events produced by one coordinator operation share a single connection.
"""
import asyncio
import json
from dataclasses import asdict
from datetime import datetime
from functools import partial
from typing import Any

import pika
import structlog

from marketplace.application.interfaces.event_publisher import EventPublisher
from marketplace.config import settings
from marketplace.domain.events.domain_events import (
    DomainEvent,
    TransactionRequestedEvent,
    TransactionStatusChangedEvent,
)

logger = structlog.get_logger(__name__)

EXCHANGE_NAME = "marketplace.events"


def routing_key_for(event: DomainEvent) -> str:
    if isinstance(event, TransactionStatusChangedEvent):
        return f"transaction.status.{event.to_status.value.lower()}"
    if isinstance(event, TransactionRequestedEvent):
        return "transaction.requested"
    return "event.unknown"


def _json_default(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _serialise_event(event: DomainEvent) -> str:
    payload: dict[str, Any] = {"event_type": routing_key_for(event), **asdict(event)}
    return json.dumps(payload, default=_json_default)


def _blocking_publish_batch(rabbitmq_url: str, messages: list[tuple[str, str]]) -> None:
    connection = pika.BlockingConnection(pika.URLParameters(rabbitmq_url))
    try:
        channel = connection.channel()
        channel.exchange_declare(exchange=EXCHANGE_NAME, exchange_type="topic", durable=True)
        for routing_key, body in messages:
            channel.basic_publish(
                exchange=EXCHANGE_NAME,
                routing_key=routing_key,
                body=body.encode(),
                properties=pika.BasicProperties(
                    delivery_mode=pika.DeliveryMode.Persistent,
                    content_type="application/json",
                ),
            )
    finally:
        connection.close()


class RabbitMQPublisher(EventPublisher):
    """Publishes transaction events to the ``marketplace.events`` topic exchange."""

    def __init__(self, rabbitmq_url: str = settings.rabbitmq_url) -> None:
        self._url = rabbitmq_url

    async def publish(self, event: DomainEvent) -> None:
        await self.publish_many([event])

    async def publish_many(self, events: list[DomainEvent]) -> None:
        if not events:
            return
        messages = [(routing_key_for(e), _serialise_event(e)) for e in events]
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None, partial(_blocking_publish_batch, self._url, messages)
            )
        except Exception as exc:
            # A broker outage must not fail an already-committed transition
            logger.error(
                "failed_to_publish_events",
                routing_keys=[key for key, _ in messages],
                error=str(exc),
            )
            return
        logger.debug("events_published", routing_keys=[key for key, _ in messages])
