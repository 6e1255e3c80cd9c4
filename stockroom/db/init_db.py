import asyncio
import logging
from stockroom.core.database import engine, async_session_maker
from stockroom.models.base import Base
from stockroom.models import *  # Import all models
from stockroom.db.seeds.initial_data import create_initial_data

logger = logging.getLogger(__name__)

async def create_tables():
    """Create all database tables"""
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error creating tables: {str(e)}")
        raise

async def init_db():
    """Initialize the database for local development"""
    await create_tables()
    async with async_session_maker() as session:
        await create_initial_data(session)

if __name__ == "__main__":
    from stockroom.core.logging_config import setup_logging
    setup_logging()
    asyncio.run(init_db())
