"""
Unit tests for the synchronous Kafka client

All tests use a mocked confluent_kafka Producer.
"""

import json
from unittest.mock import Mock, patch

import pytest
from confluent_kafka import KafkaException

from src.utils.kafka_client import KafkaClient, KafkaPublishError


def delivering_producer(error=None, undelivered=0, deliver=True):
    """Producer mock that fires the delivery callback on flush."""
    producer = Mock()
    callbacks = []

    def produce(topic, value=None, key=None, on_delivery=None):
        callbacks.append(on_delivery)

    def flush(timeout):
        if deliver:
            for callback in callbacks:
                callback(error, Mock())
        return undelivered

    producer.produce.side_effect = produce
    producer.flush.side_effect = flush
    return producer


# ============================================================================
# Test Initialization
# ============================================================================

class TestKafkaClientInit:
    """Test producer configuration"""

    @patch('src.utils.kafka_client.Producer')
    def test_producer_configured_from_brokers(self, mock_producer_class):
        KafkaClient(["kafka-1:9092", "kafka-2:9092"])

        conf = mock_producer_class.call_args.args[0]
        assert conf["bootstrap.servers"] == "kafka-1:9092,kafka-2:9092"
        assert conf["client.id"] == "category-update-producer"
        assert conf["acks"] == "all"
        assert conf["enable.idempotence"] is True

    def test_verify_connection_lists_topics(self):
        producer = Mock()
        producer.list_topics.return_value = Mock(brokers={1: Mock()})

        KafkaClient(["kafka:9092"], producer=producer).verify_connection(timeout=5.0)

        producer.list_topics.assert_called_once_with(timeout=5.0)

    def test_verify_connection_propagates_failure(self):
        producer = Mock()
        producer.list_topics.side_effect = KafkaException("Failed to get metadata")

        with pytest.raises(KafkaException):
            KafkaClient(["kafka:9092"], producer=producer).verify_connection()


# ============================================================================
# Test produce_sync_json
# ============================================================================

class TestProduceSyncJson:
    """Test synchronous publishing"""

    def test_produce_serialises_and_flushes(self):
        """Test the value is sent as compact JSON and flushed with the timeout"""
        producer = delivering_producer()
        client = KafkaClient(["kafka:9092"], producer=producer)

        client.produce_sync_json("tickets", {"ticket": {"guild_id": 1, "id": 5}}, timeout=12.5, key="1:5")

        call = producer.produce.call_args
        assert call.args == ("tickets",)
        assert json.loads(call.kwargs["value"]) == {"ticket": {"guild_id": 1, "id": 5}}
        assert call.kwargs["value"] == b'{"ticket":{"guild_id":1,"id":5}}'
        assert call.kwargs["key"] == b"1:5"
        producer.flush.assert_called_once_with(12.5)

    def test_produce_without_key(self):
        producer = delivering_producer()

        KafkaClient(["kafka:9092"], producer=producer).produce_sync_json("tickets", {}, timeout=1.0)

        assert producer.produce.call_args.kwargs["key"] is None

    def test_delivery_error_raises(self):
        producer = delivering_producer(error="Broker: Not enough in-sync replicas")

        with pytest.raises(KafkaPublishError, match="in-sync replicas"):
            KafkaClient(["kafka:9092"], producer=producer).produce_sync_json("tickets", {}, timeout=1.0)

    def test_unconfirmed_delivery_raises(self):
        """Test a flush timing out with messages outstanding is a failure"""
        producer = delivering_producer(undelivered=1, deliver=False)

        with pytest.raises(KafkaPublishError, match="not confirmed"):
            KafkaClient(["kafka:9092"], producer=producer).produce_sync_json("tickets", {}, timeout=1.0)

    def test_full_queue_raises(self):
        producer = Mock()
        producer.produce.side_effect = BufferError("Local: Queue full")

        with pytest.raises(KafkaPublishError, match="Queue full"):
            KafkaClient(["kafka:9092"], producer=producer).produce_sync_json("tickets", {}, timeout=1.0)

        producer.flush.assert_not_called()


# ============================================================================
# Test close
# ============================================================================

class TestClose:
    """Test shutdown flush"""

    @patch('src.utils.kafka_client.logger')
    def test_close_warns_about_undelivered_messages(self, mock_logger):
        producer = Mock()
        producer.flush.return_value = 2

        KafkaClient(["kafka:9092"], producer=producer).close(timeout=3.0)

        producer.flush.assert_called_once_with(3.0)
        mock_logger.warning.assert_called_once()

    @patch('src.utils.kafka_client.logger')
    def test_close_when_everything_delivered(self, mock_logger):
        producer = Mock()
        producer.flush.return_value = 0

        KafkaClient(["kafka:9092"], producer=producer).close()

        mock_logger.warning.assert_not_called()
