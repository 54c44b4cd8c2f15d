"""Create (or recreate) the development database tables.

Production databases are managed with Alembic; see ``migrate.py``.
"""
from __future__ import annotations

import argparse
import logging

from civic_report.core.settings import settings
from civic_report.db.session import create_tables, drop_tables

logger = logging.getLogger(__name__)


def init_db(*, reset: bool = False) -> None:
    """Create every table registered on the declarative base."""
    if reset:
        logger.warning("Dropping all tables in %s", settings.effective_database_url)
        drop_tables()
    create_tables()
    logger.info("Database initialised at %s", settings.effective_database_url)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--reset", action="store_true", help="drop existing tables first")
    args = parser.parse_args(argv)
    logging.basicConfig(level=settings.log_level.upper())
    init_db(reset=args.reset)


if __name__ == "__main__":
    main()
