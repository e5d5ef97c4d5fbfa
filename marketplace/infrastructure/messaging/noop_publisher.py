import structlog

from marketplace.application.interfaces.event_publisher import EventPublisher
from marketplace.domain.events.domain_events import DomainEvent
from marketplace.infrastructure.messaging.rabbitmq_publisher import routing_key_for

logger = structlog.get_logger(__name__)


class NoOpEventPublisher(EventPublisher):
    """Stands in for RabbitMQ when ``event_publishing_enabled`` is off."""

    async def publish(self, event: DomainEvent) -> None:
        logger.debug(
            "event_not_published",
            routing_key=routing_key_for(event),
            event_id=str(event.event_id),
        )
