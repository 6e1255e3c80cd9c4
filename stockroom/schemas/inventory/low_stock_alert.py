from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from stockroom.models.shared.enums import AlertLevel
from stockroom.schemas.inventory.product import ProductResponse
from stockroom.schemas.inventory.weekly_stock_plan import WeeklyStockPlanInDB

class LowStockAlertInDB(BaseModel):
    id: int
    product_id: int
    weekly_plan_id: int
    current_stock: Decimal
    planned_quantity: Decimal
    alert_level: AlertLevel
    is_resolved: bool
    alert_date: datetime
    resolved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class LowStockAlertResponse(LowStockAlertInDB):
    product: Optional[ProductResponse] = None
    weekly_plan: Optional[WeeklyStockPlanInDB] = None

class LowStockCheckResponse(BaseModel):
    message: str
    new_alerts: int
    alerts: List[LowStockAlertInDB]
