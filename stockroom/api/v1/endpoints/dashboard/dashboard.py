from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from datetime import datetime, timezone
from stockroom.api.dependencies import require_roles, ADMIN_ROLES
from stockroom.core.database import get_async_session
from stockroom.services.dashboard.dashboard_service import DashboardService
from stockroom.schemas.dashboard.dashboard_schema import DashboardStats, MonthlyMovement
from stockroom.models.auth.user import User

router = APIRouter()

@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES))
):
    service = DashboardService(db)
    return await service.get_stats()

@router.get("/monthly-movement", response_model=MonthlyMovement)
async def get_monthly_movement(
    year: Optional[int] = Query(None, ge=2000, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES))
):
    """Stock in, stock out and net movement for a month (defaults to the current one)"""
    today = datetime.now(timezone.utc).date()
    service = DashboardService(db)
    return await service.get_monthly_movement(year or today.year, month or today.month)
