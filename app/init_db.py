"""Create every table on the configured database: `python -m app.init_db`."""

import logging

from app.database import Base, engine
import app.models  # noqa: F401  every model must be imported to register on Base.metadata

logger = logging.getLogger(__name__)


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
    logger.info("Tables created successfully")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
