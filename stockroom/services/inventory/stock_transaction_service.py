from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from sqlalchemy import and_, desc, func
from stockroom.models.inventory.product import Product
from stockroom.models.inventory.stock_transaction import StockTransaction
from stockroom.models.shared.enums import TransactionType
from stockroom.core.exceptions import NotFoundError, ValidationError


@dataclass
class StockTransactionEntry:
    """Values for one stock movement row, computed by the mutation engine"""
    product_id: int
    user_id: int
    type: TransactionType
    quantity: Decimal
    previous_stock: Decimal
    new_stock: Decimal
    transaction_date: datetime
    original_quantity: Optional[Decimal] = None
    original_unit: Optional[str] = None
    po_number: Optional[str] = None
    so_number: Optional[str] = None
    remarks: Optional[str] = None


@dataclass
class TransactionFilter:
    product_id: Optional[int] = None
    type: Optional[TransactionType] = None
    user_id: Optional[int] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None


def day_bounds(day: date):
    """Start (inclusive) and end (exclusive) of a calendar day in UTC"""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


class StockTransactionService:
    """Append-only store of stock movements"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record(self, entry: StockTransactionEntry) -> StockTransaction:
        """
        Add a movement row inside the caller's unit of work.

        The row is flushed so its id is available, but never committed here:
        the mutation engine commits it together with the stock update.
        """
        if entry.quantity <= 0:
            raise ValidationError("Quantity must be greater than zero")
        if entry.new_stock < 0:
            raise ValidationError("Stock cannot become negative")

        transaction = StockTransaction(
            product_id=entry.product_id,
            user_id=entry.user_id,
            type=entry.type,
            quantity=entry.quantity,
            original_quantity=entry.original_quantity,
            original_unit=entry.original_unit,
            previous_stock=entry.previous_stock,
            new_stock=entry.new_stock,
            transaction_date=entry.transaction_date,
            po_number=entry.po_number if entry.type == TransactionType.STOCK_IN else None,
            so_number=entry.so_number if entry.type == TransactionType.STOCK_OUT else None,
            remarks=entry.remarks,
        )
        self.db.add(transaction)
        await self.db.flush()
        return transaction

    def _filter_conditions(self, filters: TransactionFilter) -> list:
        conditions = []

        if filters.product_id:
            conditions.append(StockTransaction.product_id == filters.product_id)

        if filters.type:
            conditions.append(StockTransaction.type == filters.type)

        if filters.user_id:
            conditions.append(StockTransaction.user_id == filters.user_id)

        if filters.from_date:
            start, _ = day_bounds(filters.from_date)
            conditions.append(StockTransaction.transaction_date >= start)

        if filters.to_date:
            _, end = day_bounds(filters.to_date)
            conditions.append(StockTransaction.transaction_date < end)

        return conditions

    def _listing_query(self, conditions: list):
        query = select(StockTransaction).options(
            selectinload(StockTransaction.product),
            selectinload(StockTransaction.user)
        )
        if conditions:
            query = query.where(and_(*conditions))
        return query.order_by(desc(StockTransaction.transaction_date), desc(StockTransaction.id))

    async def get_transactions(
        self,
        filters: Optional[TransactionFilter] = None,
        page_index: int = 1,
        page_size: int = 100
    ) -> Dict[str, Any]:
        """Get transactions matching the filter, newest first"""
        filters = filters or TransactionFilter()
        if filters.from_date and filters.to_date and filters.from_date > filters.to_date:
            raise ValidationError("from_date must not be after to_date")

        conditions = self._filter_conditions(filters)

        count_query = select(func.count(StockTransaction.id))
        if conditions:
            count_query = count_query.where(and_(*conditions))

        total_count = (await self.db.execute(count_query)).scalar()

        query = self._listing_query(conditions).offset((page_index - 1) * page_size).limit(page_size)
        result = await self.db.execute(query)

        return {
            "page_index": page_index,
            "page_size": page_size,
            "count": total_count,
            "data": result.scalars().all()
        }

    async def get_transaction_by_id(self, transaction_id: int) -> StockTransaction:
        result = await self.db.execute(
            select(StockTransaction)
            .options(selectinload(StockTransaction.product), selectinload(StockTransaction.user))
            .where(StockTransaction.id == transaction_id)
        )
        transaction = result.scalar_one_or_none()
        if not transaction:
            raise NotFoundError("Transaction not found")
        return transaction

    async def get_product_history(self, product_id: int) -> List[StockTransaction]:
        """Get every movement of one product in the order it was applied"""
        product = await self.db.execute(select(Product.id).where(Product.id == product_id))
        if product.scalar_one_or_none() is None:
            raise NotFoundError("Product not found")

        result = await self.db.execute(
            select(StockTransaction)
            .options(selectinload(StockTransaction.product), selectinload(StockTransaction.user))
            .where(StockTransaction.product_id == product_id)
            .order_by(StockTransaction.id)
        )
        return result.scalars().all()

    async def get_today_transactions(self, today: Optional[date] = None) -> List[StockTransaction]:
        """Every movement dated today (UTC), newest first"""
        today = today or datetime.now(timezone.utc).date()
        return await self._list(TransactionFilter(from_date=today, to_date=today))

    async def get_recent_transactions(self, days: int = 7, today: Optional[date] = None) -> List[StockTransaction]:
        """Every movement from `days` days before today up to today, newest first"""
        if days < 0:
            raise ValidationError("days must not be negative")
        today = today or datetime.now(timezone.utc).date()
        return await self._list(TransactionFilter(from_date=today - timedelta(days=days), to_date=today))

    async def _list(self, filters: TransactionFilter) -> List[StockTransaction]:
        result = await self.db.execute(self._listing_query(self._filter_conditions(filters)))
        return result.scalars().all()
