"""
Database query tracing.
"""

from opentelemetry import trace

from .context import trace_operation


def trace_database_query(query_type: str, table: str, database: str = "postgresql"):
    """
    Context manager for tracing database queries.

    Args:
        query_type: Type of query (SELECT, INSERT, ...)
        table: Table name
        database: Database system

    Example:
        >>> with trace_database_query("SELECT", "panels"):
        ...     cursor.execute(query, (panel_id,))
    """
    return trace_operation(
        f"db.{query_type.lower()}",
        kind=trace.SpanKind.CLIENT,
        **{
            "db.operation": query_type,
            "db.sql.table": table,
            "db.system": database,
        }
    )
