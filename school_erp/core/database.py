# school_erp/core/database.py
"""Database connection and session management using SQLAlchemy."""
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import logging

from .config import settings
from ..utils.db_url import async_database_url, mask_database_url

logger = logging.getLogger(__name__)


def _engine_options(database_url: str) -> dict:
    """Pool and driver settings; pool sizing only applies to server databases."""
    options = {
        "pool_pre_ping": True,
        "echo": False,
    }
    if database_url.startswith("postgresql"):
        options.update(
            pool_size=10,
            max_overflow=20,
            pool_timeout=60,
            pool_recycle=1800,
            connect_args={
                "command_timeout": 60,
                "server_settings": {
                    "application_name": "school_erp_api",
                    "idle_in_transaction_session_timeout": "60s",
                    "lock_timeout": "30s",
                }
            }
        )
    return options


DATABASE_URL = async_database_url(settings.database_url)

engine = create_async_engine(DATABASE_URL, **_engine_options(DATABASE_URL))
logger.info(f"Database engine created for {mask_database_url(DATABASE_URL)}")

AsyncSessionLocal = async_sessionmaker(
    engine,
    expire_on_commit=False,
    class_=AsyncSession,
    autoflush=False,
)

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session for API requests with proper error handling"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            logger.error(f"Database session error: {e}")
            await session.rollback()
            raise
        finally:
            await session.close()

async def health_check_db(session: AsyncSession):
    """Run SELECT 1 on the given session, returning (ok, error)."""
    try:
        await session.execute(text("SELECT 1"))
        return True, None
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Database health check failed: {e}")
        return False, str(e)

async def close_db_connections():
    """Properly close all database connections"""
    await engine.dispose()
    logger.info("Database connections closed")
