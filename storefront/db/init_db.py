"""
Database initialization - creates the category and closure tables with their indexes.
All schema is defined in the SQLAlchemy models in storefront/models/.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from storefront.db.base import Base

# Import models so they are registered with Base.metadata
from storefront.models import Category, CategoryClosure  # noqa: F401

logger = logging.getLogger(__name__)


async def init_database(engine: AsyncEngine):
    """
    Create all tables and indexes that do not exist yet.
    Called on application startup.
    """
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialization completed successfully")
    except OSError:
        # Connection errors - the database server is not running or not accessible
        logger.error(
            "Cannot connect to the database at startup. "
            "Check that DATABASE_URL points to a running server."
        )
        raise
