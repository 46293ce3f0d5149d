"""
Utility modules for the category update producer

Provides:
- db_pool: PostgreSQL connection pooling
- kafka_client: Synchronous Kafka producer
- logging: Structured logging
- metrics: Prometheus metrics publishing
- retry: Exponential backoff for startup connectivity
- tracing: OpenTelemetry tracing
"""

__version__ = "1.0.0"
__all__ = ["db_pool", "kafka_client", "logging", "metrics", "retry", "tracing"]
