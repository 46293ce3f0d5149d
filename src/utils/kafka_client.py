"""
Kafka producer client

Thin synchronous wrapper over confluent_kafka.Producer: each publish is
produced and flushed before returning, so callers learn about delivery
failures immediately. Transport-level retries are left to librdkafka.

Usage:
    from src.utils.kafka_client import KafkaClient

    client = KafkaClient(["localhost:9092"])
    client.verify_connection()
    client.produce_sync_json("tickets.status", {"id": 1}, timeout=10.0)
"""

import json
import logging
from typing import Any

from confluent_kafka import KafkaException, Producer
from opentelemetry import trace

from src.utils.tracing import trace_function, trace_operation

logger = logging.getLogger(__name__)


class KafkaPublishError(Exception):
    """Raised when a message could not be delivered."""

    pass


class KafkaClient:
    """
    Synchronous JSON producer
    """

    def __init__(
        self,
        brokers: list[str],
        client_id: str = "category-update-producer",
        message_timeout_ms: int = 30000,
        producer: Any = None,
    ):
        """
        Initialize the Kafka client

        Args:
            brokers: Bootstrap broker addresses
            client_id: Client identifier reported to the brokers
            message_timeout_ms: librdkafka delivery timeout per message
            producer: Pre-built producer (tests)
        """
        self.brokers = list(brokers)
        self.client_id = client_id
        self._producer = producer or Producer({
            "bootstrap.servers": ",".join(self.brokers),
            "client.id": client_id,
            "acks": "all",
            "enable.idempotence": True,
            "message.timeout.ms": message_timeout_ms,
            "retries": 3,
        })

    @trace_function("kafka.verify_connection")
    def verify_connection(self, timeout: float = 15.0) -> None:
        """
        Check that the cluster is reachable

        Args:
            timeout: Seconds to wait for cluster metadata

        Raises:
            KafkaException: If no broker answers in time
        """
        metadata = self._producer.list_topics(timeout=timeout)
        logger.info(f"Connected to Kafka cluster with {len(metadata.brokers)} broker(s)")

    def produce_sync_json(
        self,
        topic: str,
        value: Any,
        timeout: float,
        key: str | None = None,
    ) -> None:
        """
        Serialise a value to JSON and publish it, waiting for delivery

        Args:
            topic: Destination topic
            value: JSON-serialisable value
            timeout: Seconds to wait for the delivery report
            key: Optional message key

        Raises:
            KafkaPublishError: If delivery failed or was not confirmed in time
        """
        payload = json.dumps(value, separators=(",", ":")).encode("utf-8")
        delivery: dict[str, Any] = {"error": None, "delivered": False}

        def on_delivery(err, msg) -> None:
            if err is not None:
                delivery["error"] = err
            else:
                delivery["delivered"] = True

        with trace_operation(
            "kafka.produce",
            kind=trace.SpanKind.PRODUCER,
            **{"messaging.system": "kafka", "messaging.destination": topic},
        ):
            try:
                self._producer.produce(
                    topic,
                    value=payload,
                    key=key.encode("utf-8") if key is not None else None,
                    on_delivery=on_delivery,
                )
            except (BufferError, KafkaException) as e:
                raise KafkaPublishError(f"Failed to enqueue message for {topic}: {e}") from e

            remaining = self._producer.flush(timeout)

        if delivery["error"] is not None:
            raise KafkaPublishError(f"Delivery to {topic} failed: {delivery['error']}")
        if remaining > 0 or not delivery["delivered"]:
            raise KafkaPublishError(
                f"Delivery to {topic} not confirmed within {timeout:.2f}s"
            )

    def close(self, timeout: float = 10.0) -> None:
        """
        Flush outstanding messages

        Args:
            timeout: Seconds to wait for outstanding deliveries
        """
        remaining = self._producer.flush(timeout)
        if remaining:
            logger.warning(f"{remaining} Kafka message(s) undelivered at shutdown")
        logger.info("Kafka client closed")
