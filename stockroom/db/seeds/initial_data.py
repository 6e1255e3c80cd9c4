import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from stockroom.models.auth.user import User
from stockroom.models.shared.enums import UserRole

logger = logging.getLogger(__name__)

async def create_initial_data(session: AsyncSession):
    """Create the records a fresh installation needs"""
    try:
        await create_super_admin_user(session)
        await session.commit()
        logger.info("Initial data created successfully")
        return True
    except Exception as e:
        logger.error(f"Error creating initial data: {str(e)}")
        await session.rollback()
        raise

async def create_super_admin_user(session: AsyncSession):
    """Create the initial super admin account"""
    result = await session.execute(select(User).where(User.username == "super_admin"))
    if result.scalar_one_or_none():
        logger.info("Super admin user already exists")
        return

    session.add(User(
        username="super_admin",
        first_name="System",
        last_name="Administrator",
        role=UserRole.SUPER_ADMIN,
        is_active=True,
    ))
    logger.info("Super admin user created")
