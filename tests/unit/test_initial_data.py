import pytest
from stockroom.db.seeds.initial_data import create_initial_data
from stockroom.models.shared.enums import UserRole
from stockroom.services.auth.user_service import UserService

@pytest.mark.asyncio
async def test_initial_data_is_idempotent(db):
    await create_initial_data(db)
    await create_initial_data(db)

    user = await UserService(db).get_user_by_username("super_admin")
    assert user is not None
    assert user.role == UserRole.SUPER_ADMIN
