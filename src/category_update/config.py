"""
Environment configuration for the category update producer.

Environment variables:
    EXECUTION_TIMEOUT: Per-cycle deadline (default: 5m)
    RUN_FREQUENCY: Interval between cycle starts (default: 10m)
    MOVE_CATEGORY_AFTER: Age a queue entry needs before it is ready (default: 10m)
    DATABASE_URI: PostgreSQL connection URI (required)
    DATABASE_POOL_SIZE: Maximum pooled connections (default: 2)
    KAFKA_BROKERS: Comma-separated broker addresses (required)
    KAFKA_TOPIC: Topic receiving ticket status updates (required)
    LOG_LEVEL: Log level (default: INFO)
    JSON_LOGS: Emit JSON logs (default: false)
    LOG_FILE: Optional rotating log file
    METRICS_PORT: Prometheus exporter port, 0 disables (default: 0)
    OTLP_ENDPOINT: OpenTelemetry collector endpoint (default: unset)
"""

import math
import os
import re
from dataclasses import dataclass
from typing import Mapping

from .exceptions import ConfigError

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_TRUE_VALUES = ("true", "1", "yes")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def parse_duration(value: str) -> float:
    """
    Parse a duration string into seconds

    Accepts Go-style durations ("5m", "1h30m", "250ms") and bare numbers,
    which are read as seconds.

    Args:
        value: Duration string

    Returns:
        Duration in seconds

    Raises:
        ValueError: If the string is not a valid duration
    """
    text = value.strip()
    if not text:
        raise ValueError("empty duration")

    try:
        seconds = float(text)
    except ValueError:
        pass
    else:
        if not math.isfinite(seconds):
            raise ValueError(f"invalid duration {value!r}")
        return seconds

    position = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        position = match.end()

    if position != len(text) or position == 0:
        raise ValueError(f"invalid duration {value!r}")

    return total


@dataclass(frozen=True)
class Config:
    """Process configuration"""

    database_uri: str
    kafka_brokers: list[str]
    kafka_topic: str
    execution_timeout: float = 300.0
    run_frequency: float = 600.0
    move_category_after: float = 600.0
    database_pool_size: int = 2
    log_level: str = "INFO"
    json_logs: bool = False
    log_file: str | None = None
    metrics_port: int = 0
    otlp_endpoint: str | None = None


def load_config(environ: Mapping[str, str] | None = None) -> Config:
    """
    Load configuration from environment variables

    All problems are collected and reported together.

    Args:
        environ: Mapping to read from (default: os.environ)

    Returns:
        Config instance

    Raises:
        ConfigError: If required variables are missing or values are invalid
    """
    env = os.environ if environ is None else environ
    problems: list[str] = []

    def required(key: str) -> str:
        value = env.get(key, "").strip()
        if not value:
            problems.append(f"{key} is required")
        return value

    def duration(key: str, default: str, positive: bool = False) -> float:
        raw = env.get(key, default)
        try:
            seconds = parse_duration(raw)
        except ValueError:
            problems.append(f"{key} must be a duration, got {raw!r}")
            return 0.0
        if seconds < 0:
            problems.append(f"{key} must not be negative")
        elif positive and seconds == 0:
            problems.append(f"{key} must be greater than zero")
        return seconds

    def integer(key: str, default: int) -> int:
        raw = env.get(key)
        if raw is None or not raw.strip():
            return default
        try:
            return int(raw)
        except ValueError:
            problems.append(f"{key} must be an integer, got {raw!r}")
            return default

    database_uri = required("DATABASE_URI")
    brokers_raw = required("KAFKA_BROKERS")
    kafka_brokers = [b.strip() for b in brokers_raw.split(",") if b.strip()]
    if brokers_raw and not kafka_brokers:
        problems.append("KAFKA_BROKERS must list at least one broker")
    kafka_topic = required("KAFKA_TOPIC")

    execution_timeout = duration("EXECUTION_TIMEOUT", "5m", positive=True)
    run_frequency = duration("RUN_FREQUENCY", "10m", positive=True)
    move_category_after = duration("MOVE_CATEGORY_AFTER", "10m")

    database_pool_size = integer("DATABASE_POOL_SIZE", 2)
    if database_pool_size < 1:
        problems.append("DATABASE_POOL_SIZE must be at least 1")

    metrics_port = integer("METRICS_PORT", 0)
    if not 0 <= metrics_port <= 65535:
        problems.append("METRICS_PORT must be between 0 and 65535")

    log_level = env.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"
    if log_level not in _LOG_LEVELS:
        problems.append(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}")

    if problems:
        raise ConfigError(problems)

    return Config(
        database_uri=database_uri,
        kafka_brokers=kafka_brokers,
        kafka_topic=kafka_topic,
        execution_timeout=execution_timeout,
        run_frequency=run_frequency,
        move_category_after=move_category_after,
        database_pool_size=database_pool_size,
        log_level=log_level,
        json_logs=env.get("JSON_LOGS", "false").lower() in _TRUE_VALUES,
        log_file=env.get("LOG_FILE") or None,
        metrics_port=metrics_port,
        otlp_endpoint=env.get("OTLP_ENDPOINT") or None,
    )
