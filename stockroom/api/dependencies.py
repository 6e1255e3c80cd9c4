from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from stockroom.core.database import get_async_session
from stockroom.auth.jwt_handler import decode_access_token
from stockroom.models.auth.user import User
from stockroom.models.shared.enums import UserRole
from stockroom.services.auth.user_service import UserService
import logging

security = HTTPBearer()
logger = logging.getLogger(__name__)

# Role allow-lists shared by the routers
ADMIN_ROLES = (UserRole.SUPER_ADMIN, UserRole.MASTER_INVENTORY_HANDLER)
STOCK_IN_ROLES = ADMIN_ROLES + (UserRole.STOCK_IN_MANAGER,)
STOCK_OUT_ROLES = ADMIN_ROLES + (UserRole.STOCK_OUT_MANAGER,)

def _credentials_exception(detail: str = "Invalid authentication credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    session: AsyncSession = Depends(get_async_session)
) -> User:
    """Get current authenticated user"""
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise _credentials_exception()

    # Get user ID from token
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _credentials_exception()

    user_service = UserService(session)
    user = await user_service.get_user(user_id)

    if user is None or not user.is_active:
        raise _credentials_exception("User not found or inactive")

    request.state.current_user = user
    return user

def require_roles(*allowed_roles: UserRole):
    """Dependency factory: allow the request only for the listed roles"""
    async def role_dependency(current_user: User = Depends(get_current_user)) -> User:
        if allowed_roles and current_user.role not in allowed_roles:
            logger.warning(
                f"User {current_user.id} ({current_user.role.value}) denied, "
                f"requires one of: {', '.join(role.value for role in allowed_roles)}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions"
            )
        return current_user
    return role_dependency
