from fastapi import APIRouter
from stockroom.api.v1.endpoints.inventory import low_stock_alerts, products, stock_transactions, weekly_stock_plans
from stockroom.api.v1.endpoints.dashboard import dashboard

api_router = APIRouter()

# Inventory routes
api_router.include_router(products.router, prefix="/inventory/product", tags=["Inventory"])
api_router.include_router(stock_transactions.router, prefix="/inventory/stock-transaction", tags=["Inventory"])
api_router.include_router(weekly_stock_plans.router, prefix="/inventory/weekly-stock-plan", tags=["Inventory"])
api_router.include_router(low_stock_alerts.router, prefix="/inventory/alert", tags=["Inventory"])

# Dashboard routes
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
