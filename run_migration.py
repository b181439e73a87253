#!/usr/bin/env python3
"""
Migration runner for deployment.
Runs Alembic migrations to upgrade database schema.
"""
import logging
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config

logger = logging.getLogger("run_migration")


def run_migrations(revision: str = "head") -> int:
    """Upgrade the database to ``revision`` using alembic.ini next to this file."""
    config = Config(str(Path(__file__).parent / "alembic.ini"))

    logger.info(f"Running database migrations (target: {revision})")
    try:
        command.upgrade(config, revision)
    except Exception:
        logger.error("Migration failed", exc_info=True)
        return 1

    logger.info("Migrations completed successfully")
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    sys.exit(run_migrations(*sys.argv[1:2]))
