#!/usr/bin/env python3
"""Database bootstrap: run Alembic migrations (production-safe).

- Wait for the database to accept connections.
- Always run `alembic upgrade head` on startup.
- If migrations fail, fail fast (don't start with an unknown schema).
"""

import logging
import os
import sys
import time
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger("run_migrations")


def check_db_ready():
    """Check if database is ready"""
    from core.database import check_db_connection

    return check_db_connection()


def _get_alembic_config():
    """Load Alembic config for programmatic migrations."""
    from alembic.config import Config

    here = os.path.dirname(os.path.abspath(__file__))
    cfg = Config(os.path.join(here, "alembic.ini"))
    cfg.set_main_option("script_location", os.path.join(here, "alembic"))
    cfg.attributes["configure_logger"] = False
    return cfg


def alembic_upgrade_head() -> None:
    """Apply all pending migrations."""
    from alembic import command

    command.upgrade(_get_alembic_config(), "head")


def main():
    from core.logging import setup_logging

    setup_logging()
    logger.info("Waiting for database to be ready...")
    max_retries = 30
    retry_count = 0

    while retry_count < max_retries:
        if check_db_ready():
            logger.info("Database is ready")
            break
        retry_count += 1
        logger.warning(
            "Database is unavailable, retrying",
            extra={"extra_fields": {"attempt": retry_count, "max_retries": max_retries}},
        )
        time.sleep(1)
    else:
        logger.error(f"Database is not ready after {max_retries} attempts")
        sys.exit(1)

    try:
        alembic_upgrade_head()
    except Exception as e:
        logger.error(f"Alembic upgrade failed: {e}", exc_info=True)
        sys.exit(1)
    logger.info("Migrations completed")


if __name__ == '__main__':
    main()
