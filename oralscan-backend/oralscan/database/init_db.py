# oralscan/database/init_db.py
import logging

from oralscan.core.config import Config
from oralscan.core.logging_config import configure_logging
from oralscan.database.db import Base, make_engine
from oralscan.models.analysis_history import AnalysisHistory  # noqa: F401  (register tabel)

logger = logging.getLogger(__name__)


def main():
    configure_logging(Config.LOG_LEVEL)
    url = Config.database_url()
    if not url:
        logger.error("Database not configured: set DATABASE_URL or DB_HOST")
        return 1

    logger.info("Creating tables...")
    Base.metadata.create_all(bind=make_engine(url))
    logger.info("Done.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
