from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from stockroom.api.dependencies import require_roles, ADMIN_ROLES, STOCK_IN_ROLES
from stockroom.core.database import get_async_session
from stockroom.services.inventory.low_stock_alert_service import LowStockAlertService
from stockroom.schemas.inventory.low_stock_alert import LowStockAlertResponse, LowStockCheckResponse
from stockroom.models.auth.user import User

router = APIRouter()

@router.get("/low-stock", response_model=List[LowStockAlertResponse])
async def get_low_stock_alerts(
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*STOCK_IN_ROLES))
):
    """Get unresolved low stock alerts, newest first"""
    service = LowStockAlertService(db)
    return await service.get_unresolved_alerts()

@router.post("/check-low-stock", response_model=LowStockCheckResponse)
async def check_low_stock(
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES))
):
    """Compare current stock with this week's plans and raise missing alerts"""
    service = LowStockAlertService(db)
    alerts = await service.process_low_stock_checking()
    return {
        "message": f"Low stock check completed. {len(alerts)} new alerts created.",
        "new_alerts": len(alerts),
        "alerts": alerts
    }

@router.put("/low-stock/{alert_id}/resolve", response_model=LowStockAlertResponse)
async def resolve_low_stock_alert(
    alert_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*STOCK_IN_ROLES))
):
    service = LowStockAlertService(db)
    return await service.resolve(alert_id)
