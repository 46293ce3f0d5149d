"""
Prometheus metrics for the category update producer

Usage:
    from src.utils.metrics import initialize_metrics

    metrics = initialize_metrics(port=9091)
    metrics["category_update"].record_published()
"""

import logging
from typing import Any

from prometheus_client import CollectorRegistry

from .category_update import CategoryUpdateMetrics
from .publisher import ApplicationInfo, MetricsPublisher

logger = logging.getLogger(__name__)


def initialize_metrics(
    port: int = 9091,
    registry: CollectorRegistry | None = None,
    version: str = "1.0.0",
) -> dict[str, Any]:
    """
    Create the application metrics and start the exporter

    Args:
        port: Port to expose metrics on (default: 9091)
        registry: Custom Prometheus registry (default: global REGISTRY)
        version: Application version reported by ApplicationInfo

    Returns:
        Dictionary with publisher, category_update and app_info entries
    """
    logger.info(f"Initializing metrics on port {port}")

    publisher = MetricsPublisher(port=port, registry=registry)
    publisher.start()

    return {
        "publisher": publisher,
        "category_update": CategoryUpdateMetrics(registry=registry),
        "app_info": ApplicationInfo(version=version, registry=registry),
    }


__all__ = [
    "MetricsPublisher",
    "CategoryUpdateMetrics",
    "ApplicationInfo",
    "initialize_metrics",
]
