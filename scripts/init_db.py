import logging
import time

from sqlalchemy.exc import OperationalError

from services.directory_service.app.config.settings import get_settings
from services.directory_service.app.core.logging import configure_logging
from services.directory_service.app.models.database import build_store

logger = logging.getLogger("init_db")


def connect_to_db(store, retries: int = 5, delay: float = 5):
    while retries > 0:
        try:
            store.ping()
            logger.info("Database connection successful")
            return
        except OperationalError:
            logger.warning("Database not ready, retrying...")
            retries -= 1
            time.sleep(delay)
    raise RuntimeError("Could not connect to the database")


if __name__ == "__main__":
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    if not settings.DATABASE_URL:
        raise ValueError("DATABASE_URL environment variable is not set")

    store = build_store(settings.DATABASE_URL)
    connect_to_db(store)
    store.create_all()
    logger.info("Database initialized.")
