"""Create the launcher's tables on the configured database."""

import logging

from zcorp_launcher.db.session import create_tables, engine

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Initialize the database by creating all tables."""
    create_tables()
    logger.info("Database initialization complete (%s)", engine.url.render_as_string())


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
