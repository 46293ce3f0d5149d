"""
CLI command implementations.

- run: schedule cycles until SIGINT/SIGTERM
- once: run a single cycle
"""

import logging
import signal
from dataclasses import dataclass
from typing import Optional

from src.utils.db_pool import PostgresConnectionPool, connect_database
from src.utils.kafka_client import KafkaClient
from src.utils.metrics import CategoryUpdateMetrics, initialize_metrics
from src.utils.tracing import initialize_tracing

from .. import __version__
from ..config import Config
from ..daemon import CategoryUpdateDaemon
from ..publisher import EventPublisher
from ..repository import CategoryUpdateQueueRepository, PanelRepository
from ..scheduler import CategoryUpdateScheduler

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_CYCLE_ABORTED = 2


@dataclass
class Runtime:
    """Connected collaborators for one process."""

    pool: PostgresConnectionPool
    kafka: KafkaClient
    daemon: CategoryUpdateDaemon

    def close(self) -> None:
        try:
            self.kafka.close()
        finally:
            self.pool.close()


def bootstrap(config: Config) -> Optional[Runtime]:
    """
    Start observability and connect to the database and Kafka

    Args:
        config: Process configuration

    Returns:
        Runtime, or None if a collaborator could not be reached
    """
    metrics: Optional[CategoryUpdateMetrics] = None
    if config.metrics_port:
        metrics = initialize_metrics(port=config.metrics_port, version=__version__)["category_update"]

    if config.otlp_endpoint:
        initialize_tracing(otlp_endpoint=config.otlp_endpoint)

    logger.info("Connecting to database...")
    try:
        pool = connect_database(config.database_uri, max_size=config.database_pool_size)
    except Exception as e:
        logger.critical(f"Failed to connect to database: {e}")
        return None
    logger.info("Database connected.")

    logger.info("Starting Kafka client")
    try:
        kafka = KafkaClient(config.kafka_brokers)
        kafka.verify_connection()
    except Exception as e:
        logger.critical(f"Failed to start Kafka client: {e}")
        pool.close()
        return None
    logger.info("Kafka client started")

    daemon = CategoryUpdateDaemon(
        config,
        CategoryUpdateQueueRepository(pool),
        PanelRepository(pool),
        EventPublisher(kafka, config.kafka_topic),
        metrics=metrics,
    )
    return Runtime(pool=pool, kafka=kafka, daemon=daemon)


def install_signal_handlers(scheduler: CategoryUpdateScheduler) -> None:
    """Request scheduler shutdown on SIGINT and SIGTERM."""

    def handle(signum, frame) -> None:
        logger.info(f"Received {signal.Signals(signum).name}")
        scheduler.request_shutdown()

    signal.signal(signal.SIGINT, handle)
    signal.signal(signal.SIGTERM, handle)


def cmd_run(config: Config) -> int:
    """
    Run cycles every RUN_FREQUENCY until terminated

    Args:
        config: Process configuration

    Returns:
        Process exit code
    """
    runtime = bootstrap(config)
    if runtime is None:
        return EXIT_FATAL

    try:
        scheduler = CategoryUpdateScheduler(runtime.daemon.run_once, config.run_frequency)
        install_signal_handlers(scheduler)
        scheduler.start()
        logger.info("Shutting down")
    finally:
        runtime.close()

    return EXIT_OK


def cmd_once(config: Config) -> int:
    """
    Run exactly one cycle

    Args:
        config: Process configuration

    Returns:
        Process exit code (EXIT_CYCLE_ABORTED if the ready set could not be fetched)
    """
    runtime = bootstrap(config)
    if runtime is None:
        return EXIT_FATAL

    try:
        result = runtime.daemon.run_once()
    finally:
        runtime.close()

    logger.info(
        f"Cycle finished: fetched={result.fetched}, published={result.published}, "
        f"skipped={result.skipped_total}, duration={result.duration:.2f}s"
    )
    return EXIT_CYCLE_ABORTED if result.aborted else EXIT_OK
