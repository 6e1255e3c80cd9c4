from pydantic import BaseModel, ConfigDict, validator
from typing import Optional
from datetime import datetime, date
from decimal import Decimal
from stockroom.schemas.inventory.product import ProductResponse
from stockroom.schemas.inventory.stock_transaction import UserRef

class WeeklyStockPlanBase(BaseModel):
    product_id: int
    planned_quantity: Decimal
    unit: str
    week_start_date: date
    week_end_date: date
    notes: Optional[str] = None

    @validator('planned_quantity')
    def validate_positive_quantity(cls, v):
        if v <= 0:
            raise ValueError('Planned quantity must be positive')
        return v

class WeeklyStockPlanCreate(WeeklyStockPlanBase):
    pass

class WeeklyStockPlanUpdate(BaseModel):
    planned_quantity: Optional[Decimal] = None
    unit: Optional[str] = None
    week_start_date: Optional[date] = None
    week_end_date: Optional[date] = None
    notes: Optional[str] = None

    @validator('planned_quantity')
    def validate_positive_quantity(cls, v):
        if v is not None and v <= 0:
            raise ValueError('Planned quantity must be positive')
        return v

class WeeklyStockPlanInDB(WeeklyStockPlanBase):
    id: int
    user_id: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class WeeklyStockPlanResponse(WeeklyStockPlanInDB):
    product: Optional[ProductResponse] = None
    user: Optional[UserRef] = None
