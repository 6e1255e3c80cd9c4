import pytest
from typing import AsyncGenerator
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from main import app
from stockroom.core.database import get_async_session
from stockroom.core.security import create_access_token
from stockroom.models.shared.enums import UserRole
from stockroom.services.auth.user_service import UserService

@pytest.fixture
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    """Test client bound to the per-test database"""
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()

def bearer(user) -> dict:
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def admin_headers(admin_user) -> dict:
    return bearer(admin_user)

@pytest.fixture
async def master_headers(db) -> dict:
    user = await UserService(db).create_user("master", UserRole.MASTER_INVENTORY_HANDLER)
    return bearer(user)

@pytest.fixture
async def stock_in_headers(db) -> dict:
    user = await UserService(db).create_user("receiving", UserRole.STOCK_IN_MANAGER)
    return bearer(user)

@pytest.fixture
async def stock_out_headers(db) -> dict:
    user = await UserService(db).create_user("dispatch", UserRole.STOCK_OUT_MANAGER)
    return bearer(user)

@pytest.fixture
async def attendance_headers(db) -> dict:
    user = await UserService(db).create_user("attendance", UserRole.ATTENDANCE_MANAGER)
    return bearer(user)
