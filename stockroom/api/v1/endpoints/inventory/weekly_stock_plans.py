from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from datetime import date
from stockroom.api.dependencies import require_roles, ADMIN_ROLES, STOCK_IN_ROLES
from stockroom.core.database import get_async_session
from stockroom.services.inventory.weekly_stock_plan_service import WeeklyStockPlanService
from stockroom.schemas.inventory.weekly_stock_plan import (
    WeeklyStockPlanCreate, WeeklyStockPlanUpdate, WeeklyStockPlanResponse
)
from stockroom.models.auth.user import User

router = APIRouter()

@router.get("/", response_model=List[WeeklyStockPlanResponse])
async def get_weekly_stock_plans(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES))
):
    """Get active weekly plans, optionally only those inside a date window"""
    service = WeeklyStockPlanService(db)
    if start_date and end_date:
        return await service.get_plans_in_range(start_date, end_date)
    return await service.get_plans()

@router.get("/current", response_model=List[WeeklyStockPlanResponse])
async def get_current_week_plans(
    as_of: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*STOCK_IN_ROLES))
):
    """Get the plans whose week contains today"""
    service = WeeklyStockPlanService(db)
    return await service.current_week_plans(as_of)

@router.get("/{plan_id}", response_model=WeeklyStockPlanResponse)
async def get_weekly_stock_plan(
    plan_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES))
):
    service = WeeklyStockPlanService(db)
    return await service.get_plan_by_id(plan_id)

@router.post("/", response_model=WeeklyStockPlanResponse, status_code=status.HTTP_201_CREATED)
async def create_weekly_stock_plan(
    plan_data: WeeklyStockPlanCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES))
):
    service = WeeklyStockPlanService(db)
    return await service.create_plan(plan_data, current_user.id)

@router.put("/{plan_id}", response_model=WeeklyStockPlanResponse)
async def update_weekly_stock_plan(
    plan_id: int,
    plan_data: WeeklyStockPlanUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES))
):
    service = WeeklyStockPlanService(db)
    return await service.update_plan(plan_id, plan_data)

@router.delete("/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_weekly_stock_plan(
    plan_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES))
):
    """Deactivate a weekly plan"""
    service = WeeklyStockPlanService(db)
    await service.delete_plan(plan_id)
