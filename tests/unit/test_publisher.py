"""
Unit tests for the Kafka event publisher
"""

from unittest.mock import Mock

import pytest

from src.category_update.deadline import Deadline
from src.category_update.exceptions import CycleTimeoutError, PublishError
from src.category_update.models import TicketStatusUpdate
from src.category_update.publisher import EventPublisher
from src.utils.kafka_client import KafkaPublishError

EVENT = TicketStatusUpdate(guild_id=1, ticket_id=5, channel_id=100, new_category_id=200)


class TestEventPublisher:
    """Test EventPublisher.publish"""

    def test_publish_sends_event_to_topic(self, clock):
        """Test the event is produced as JSON with the ticket key"""
        client = Mock()
        deadline = Deadline(300.0, clock=clock)
        clock.advance(60.0)

        EventPublisher(client, "tickets.status-updates").publish(EVENT, deadline)

        client.produce_sync_json.assert_called_once_with(
            "tickets.status-updates",
            EVENT.to_dict(),
            timeout=240.0,
            key="1:5",
        )

    def test_publish_failure_raises_publish_error(self, clock):
        client = Mock()
        client.produce_sync_json.side_effect = KafkaPublishError("Delivery failed: broker down")

        with pytest.raises(PublishError, match="broker down"):
            EventPublisher(client, "topic").publish(EVENT, Deadline(300.0, clock=clock))

    def test_expired_deadline_does_not_publish(self, clock):
        client = Mock()
        deadline = Deadline(10.0, clock=clock)
        clock.advance(11.0)

        with pytest.raises(CycleTimeoutError):
            EventPublisher(client, "topic").publish(EVENT, deadline)

        client.produce_sync_json.assert_not_called()
