"""Initialize or upgrade database tables."""
import logging

from .database import engine
from .migrations import reconcile_schema

logger = logging.getLogger(__name__)


def init_db() -> int:
    """Bring the submissions table up to the latest schema version."""
    logger.info("Reconciling database schema...")
    version = reconcile_schema(engine)
    logger.info("Database schema is at version %s", version)
    return version


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
