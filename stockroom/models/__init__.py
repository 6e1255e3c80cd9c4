from stockroom.models.auth.user import User
from stockroom.models.inventory.product import Product
from stockroom.models.inventory.stock_transaction import StockTransaction
from stockroom.models.inventory.weekly_stock_plan import WeeklyStockPlan
from stockroom.models.inventory.low_stock_alert import LowStockAlert


__all__ = [
    "User",
    "Product",
    "StockTransaction",
    "WeeklyStockPlan",
    "LowStockAlert",
]
