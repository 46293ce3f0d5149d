"""
Adapter publishing ticket status updates to Kafka.
"""

from src.utils.kafka_client import KafkaClient, KafkaPublishError

from .deadline import Deadline
from .exceptions import PublishError
from .models import TicketStatusUpdate


class EventPublisher:
    """
    Publishes TicketStatusUpdate events to one topic

    Adds no retries, batching or ordering beyond what the Kafka client does.
    """

    def __init__(self, client: KafkaClient, topic: str):
        """
        Args:
            client: Kafka client used for delivery
            topic: Destination topic
        """
        self.client = client
        self.topic = topic

    def publish(self, event: TicketStatusUpdate, deadline: Deadline) -> None:
        """
        Publish an event and wait for delivery

        Args:
            event: Event to publish
            deadline: Cycle deadline bounding the wait

        Raises:
            CycleTimeoutError: If the deadline already passed
            PublishError: If delivery failed
        """
        remaining = deadline.check("publishing to Kafka")

        try:
            self.client.produce_sync_json(
                self.topic,
                event.to_dict(),
                timeout=remaining,
                key=event.key,
            )
        except KafkaPublishError as e:
            raise PublishError(str(e)) from e
