"""
Command-line argument parser for the category update producer.
"""

import argparse


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="category-update-producer",
        description="Publish ticket channel category updates from the category update queue",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Configuration is read from the environment (DATABASE_URI, KAFKA_BROKERS,
KAFKA_TOPIC, EXECUTION_TIMEOUT, RUN_FREQUENCY, MOVE_CATEGORY_AFTER, ...).

Examples:
  # Run the daemon until SIGINT/SIGTERM
  category-update-producer run

  # Run a single cycle and exit
  category-update-producer --log-level DEBUG once
        """
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=None,
        help='Logging level (default: LOG_LEVEL from the environment)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')
    subparsers.add_parser('run', help='Run cycles on a schedule until terminated (default)')
    subparsers.add_parser('once', help='Run a single cycle and exit')
    parser.set_defaults(command='run')

    return parser
