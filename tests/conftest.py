import pytest
from decimal import Decimal
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from stockroom.core.database import build_engine
from stockroom.models.base import Base
from stockroom.models import *  # Import all models
from stockroom.models.shared.enums import UserRole
from stockroom.schemas.inventory.product import ProductCreate
from stockroom.services.auth.user_service import UserService
from stockroom.services.inventory.product_service import ProductService

@pytest.fixture
async def test_engine(tmp_path):
    """A fresh SQLite database file per test"""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()

@pytest.fixture
def session_maker(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

@pytest.fixture
async def db(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session

@pytest.fixture
async def admin_user(db):
    return await UserService(db).create_user("super_admin", UserRole.SUPER_ADMIN)

@pytest.fixture
async def rice(db):
    """Rice with opening and current stock of 100.00 KG"""
    return await ProductService(db).create_product(
        ProductCreate(name="Rice", unit="KG", opening_stock=Decimal("100.00"))
    )
