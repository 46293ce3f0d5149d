"""
Category update producer for ticket support channels

Periodically scans the category update queue, resolves the Discord category
each ticket's channel should move to, and publishes one status update event
per eligible ticket to Kafka.

Components:
- config: Environment-based configuration
- models: Queue entries, panels and outbound events
- resolver: Status to category mapping
- repository: PostgreSQL access for the queue and panels
- publisher: Kafka event publishing
- daemon: The reconciliation cycle
- scheduler: Interval scheduling and graceful shutdown
- cli: Process entry point

Usage:
    from src.category_update.daemon import CategoryUpdateDaemon
    from src.category_update.scheduler import CategoryUpdateScheduler
"""

__version__ = "1.0.0"
__all__ = [
    "config",
    "models",
    "resolver",
    "repository",
    "publisher",
    "daemon",
    "scheduler",
    "cli",
]
