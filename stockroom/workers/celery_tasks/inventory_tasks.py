"""
Periodic inventory jobs.

Each run gets its own event loop and its own engine: asyncpg connections are
bound to the loop that opened them, so nothing is shared between runs.
"""
import asyncio
import logging
from sqlalchemy.ext.asyncio import async_sessionmaker, AsyncSession
from stockroom.core.celery_app import celery_app
from stockroom.core.config import settings
from stockroom.core.database import build_engine
from stockroom.services.inventory.low_stock_alert_service import LowStockAlertService

logger = logging.getLogger("celery")

def run_async_in_celery(coro):
    """Run a coroutine to completion on a fresh event loop"""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        pending = asyncio.all_tasks(loop)
        for task in pending:
            task.cancel()
        if pending:
            loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        loop.close()
        asyncio.set_event_loop(None)

async def _check_low_stock_alerts(database_url: str) -> int:
    engine = build_engine(database_url)
    session_maker = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with session_maker() as db:
            alerts = await LowStockAlertService(db).process_low_stock_checking()
            return len(alerts)
    finally:
        await engine.dispose()

@celery_app.task(bind=True)
def check_low_stock_alerts(self):
    """Periodic task: raise alerts for weekly plans that are short of stock"""
    try:
        created = run_async_in_celery(_check_low_stock_alerts(settings.DATABASE_URL))
    except Exception as e:
        logger.error(f"Low stock check failed: {str(e)}")
        raise
    logger.info(f"Low stock check completed, {created} new alerts")
    return created
