"""
Command-line interface for the category update producer.

Available commands:
- run: Schedule reconciliation cycles until terminated
- once: Run a single reconciliation cycle
"""

import logging
import sys

from src.utils.logging import setup_logging, shutdown_logging
from src.utils.tracing import shutdown_tracing

from ..config import load_config
from ..exceptions import ConfigError
from .commands import EXIT_FATAL, cmd_once, cmd_run
from .parser import create_parser

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """
    Entry point for the category-update-producer command

    Args:
        argv: Arguments (default: sys.argv[1:])

    Returns:
        Process exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config()
    except ConfigError as e:
        setup_logging(level=args.log_level or "INFO")
        for problem in e.problems:
            logger.critical(f"Configuration error: {problem}")
        return EXIT_FATAL

    setup_logging(
        level=args.log_level or config.log_level,
        log_file=config.log_file,
        json_format=config.json_logs,
    )

    try:
        if args.command == 'once':
            return cmd_once(config)
        return cmd_run(config)
    finally:
        shutdown_tracing()
        shutdown_logging()


def run() -> None:
    """Console script wrapper."""
    sys.exit(main())


__all__ = [
    'main',
    'run',
    'cmd_run',
    'cmd_once',
    'create_parser',
]
