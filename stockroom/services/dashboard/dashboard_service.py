import logging
from typing import Optional
from datetime import date, datetime, timezone
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_
from stockroom.models.inventory.product import Product
from stockroom.models.inventory.stock_transaction import StockTransaction
from stockroom.models.shared.enums import TransactionType
from stockroom.services.inventory.stock_transaction_service import day_bounds
from stockroom.schemas.dashboard.dashboard_schema import DashboardStats, MonthlyMovement
from stockroom.core.config import settings
from stockroom.core.exceptions import ValidationError
from stockroom.utils.units import QUANTITY_STEP

logger = logging.getLogger(__name__)

def _to_decimal(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(QUANTITY_STEP)

class DashboardService:
    """Read-only aggregates for the dashboard"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_stats(self, today: Optional[date] = None) -> DashboardStats:
        today = today or datetime.now(timezone.utc).date()
        day_start, day_end = day_bounds(today)

        total_products = (await self.session.execute(select(func.count(Product.id)))).scalar()

        active_products = (await self.session.execute(
            select(func.count(Product.id)).where(Product.is_active == True)
        )).scalar()

        total_stock = (await self.session.execute(
            select(func.coalesce(func.sum(Product.current_stock), 0)).where(Product.is_active == True)
        )).scalar()

        today_stock_in = await self._sum_movements(TransactionType.STOCK_IN, day_start, day_end)
        today_stock_out = await self._sum_movements(TransactionType.STOCK_OUT, day_start, day_end)

        # Fixed dashboard threshold, unrelated to weekly plan quantities
        low_stock_products = (await self.session.execute(
            select(func.count(Product.id)).where(and_(
                Product.is_active == True,
                Product.current_stock < settings.DASHBOARD_LOW_STOCK_THRESHOLD
            ))
        )).scalar()

        return DashboardStats(
            total_products=total_products,
            active_products=active_products,
            total_stock=_to_decimal(total_stock),
            today_stock_in=today_stock_in,
            today_stock_out=today_stock_out,
            low_stock_products=low_stock_products,
        )

    async def get_monthly_movement(self, year: int, month: int) -> MonthlyMovement:
        if not 1 <= month <= 12:
            raise ValidationError("Month must be between 1 and 12")

        month_start, _ = day_bounds(date(year, month, 1))
        next_month = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
        month_end, _ = day_bounds(next_month)

        stock_in = await self._sum_movements(TransactionType.STOCK_IN, month_start, month_end)
        stock_out = await self._sum_movements(TransactionType.STOCK_OUT, month_start, month_end)

        return MonthlyMovement(
            year=year,
            month=month,
            stock_in=stock_in,
            stock_out=stock_out,
            net_movement=stock_in - stock_out,
        )

    async def _sum_movements(self, movement_type: TransactionType, start: datetime, end: datetime) -> Decimal:
        result = await self.session.execute(
            select(func.coalesce(func.sum(StockTransaction.quantity), 0)).where(and_(
                StockTransaction.type == movement_type,
                StockTransaction.transaction_date >= start,
                StockTransaction.transaction_date < end
            ))
        )
        return _to_decimal(result.scalar())
