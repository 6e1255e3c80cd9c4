from pydantic import BaseModel
from decimal import Decimal

class DashboardStats(BaseModel):
    total_products: int
    active_products: int
    total_stock: Decimal
    today_stock_in: Decimal
    today_stock_out: Decimal
    low_stock_products: int

class MonthlyMovement(BaseModel):
    year: int
    month: int
    stock_in: Decimal
    stock_out: Decimal
    net_movement: Decimal
