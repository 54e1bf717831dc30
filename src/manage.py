"""Vitrine database management CLI.

Creates and drops the database schema for the marketplace domain when it
is configured with a SQL provider (``PROTEAN_ENV=production``).

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys

from marketplace.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def setup_database():
    from marketplace.domain import marketplace
    from marketplace.utils.db import setup_db

    marketplace.init()
    logger.info("creating_schema", domain=marketplace.name)
    setup_db(marketplace)
    logger.info("schema_ready", domain=marketplace.name)


def drop_database():
    from marketplace.domain import marketplace
    from marketplace.utils.db import drop_db

    marketplace.init()
    logger.info("dropping_schema", domain=marketplace.name)
    drop_db(marketplace)
    logger.info("schema_dropped", domain=marketplace.name)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Vitrine database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args(argv)
    configure_logging()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
