"""
Distributed tracing using OpenTelemetry.

Instruments:
- Reconciliation cycles
- Database queries
- Kafka publishes

Tracing is a no-op until initialize_tracing() is called with an exporter.
"""

from .context import add_span_attributes, trace_operation
from .database import trace_database_query
from .decorators import trace_function
from .tracer import get_tracer, initialize_tracing, shutdown_tracing

__all__ = [
    "initialize_tracing",
    "get_tracer",
    "shutdown_tracing",
    "trace_operation",
    "trace_function",
    "add_span_attributes",
    "trace_database_query",
]
