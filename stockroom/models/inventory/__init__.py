# stockroom/models/inventory/__init__.py

# Import models in dependency order
from .product import Product
from .stock_transaction import StockTransaction
from .weekly_stock_plan import WeeklyStockPlan
from .low_stock_alert import LowStockAlert
