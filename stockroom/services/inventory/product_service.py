import logging
from typing import List, Optional
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import and_, func
from stockroom.models.inventory.product import Product
from stockroom.models.inventory.stock_transaction import StockTransaction
from stockroom.models.inventory.weekly_stock_plan import WeeklyStockPlan
from stockroom.schemas.inventory.product import ProductCreate, ProductUpdate
from stockroom.core.config import settings
from stockroom.core.exceptions import NotFoundError, ValidationError
from stockroom.utils.units import parse_quantity

logger = logging.getLogger(__name__)

class ProductService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_product_by_id(self, product_id: int) -> Product:
        result = await self.db.execute(select(Product).where(Product.id == product_id))
        product = result.scalar_one_or_none()
        if not product:
            raise NotFoundError("Product not found")
        return product

    async def get_products(self, active_only: bool = True) -> List[Product]:
        query = select(Product)
        if active_only:
            query = query.where(Product.is_active == True)
        result = await self.db.execute(query.order_by(Product.name))
        return result.scalars().all()

    async def search_products(self, query: str, limit: int = 20) -> List[Product]:
        """Case-insensitive name search over active products"""
        term = (query or "").strip()
        if not term:
            return []

        result = await self.db.execute(
            select(Product)
            .where(and_(
                Product.is_active == True,
                func.lower(Product.name).like(f"%{term.lower()}%")
            ))
            .order_by(Product.name)
            .limit(limit)
        )
        return result.scalars().all()

    async def create_product(self, product_data: ProductCreate) -> Product:
        opening_stock = parse_quantity(product_data.opening_stock, field="Opening stock")
        if opening_stock < 0:
            raise ValidationError("Opening stock cannot be negative")

        product = Product(
            name=product_data.name,
            unit=product_data.unit,
            opening_stock=opening_stock,
            current_stock=opening_stock,
            is_active=True,
        )

        self.db.add(product)
        await self.db.commit()
        await self.db.refresh(product)

        logger.info(f"Product created: {product.name} (ID: {product.id}, opening stock {opening_stock})")
        return product

    async def update_product(self, product_id: int, product_data: ProductUpdate) -> Product:
        product = await self.get_product_by_id(product_id)

        update_data = product_data.model_dump(exclude_unset=True)
        if "opening_stock" in update_data and update_data["opening_stock"] is not None:
            opening_stock = parse_quantity(update_data["opening_stock"], field="Opening stock")
            if opening_stock < 0:
                raise ValidationError("Opening stock cannot be negative")
            update_data["opening_stock"] = opening_stock

        for field, value in update_data.items():
            if value is None:
                continue
            if isinstance(value, str):
                value = value.strip()
                if not value:
                    raise ValidationError(f"{field} cannot be blank")
            setattr(product, field, value)

        await self.db.commit()
        await self.db.refresh(product)
        return product

    async def delete_product(self, product_id: int) -> bool:
        """Soft delete: the product stays referenced by its history"""
        product = await self.get_product_by_id(product_id)
        product.is_active = False
        await self.db.commit()
        logger.info(f"Product deactivated: {product.name} (ID: {product.id})")
        return True

    async def hard_delete_product(self, product_id: int) -> bool:
        product = await self.get_product_by_id(product_id)

        references = await self.db.execute(
            select(func.count(StockTransaction.id)).where(StockTransaction.product_id == product_id)
        )
        if references.scalar() > 0:
            raise ValidationError("Product has stock transactions and cannot be deleted")

        plans = await self.db.execute(
            select(func.count(WeeklyStockPlan.id)).where(WeeklyStockPlan.product_id == product_id)
        )
        if plans.scalar() > 0:
            raise ValidationError("Product has weekly stock plans and cannot be deleted")

        await self.db.delete(product)
        await self.db.commit()
        logger.info(f"Product deleted: {product.name} (ID: {product_id})")
        return True

    async def get_low_stock_products(self, threshold: Optional[Decimal] = None) -> List[Product]:
        """Active products whose stock is below the dashboard threshold"""
        if threshold is None:
            threshold = settings.DASHBOARD_LOW_STOCK_THRESHOLD

        result = await self.db.execute(
            select(Product)
            .where(and_(Product.is_active == True, Product.current_stock < threshold))
            .order_by(Product.current_stock)
        )
        return result.scalars().all()

    async def _lock_product(self, product_id: int) -> Optional[Product]:
        """Read a product row for update inside the caller's transaction"""
        # populate_existing so an already loaded instance gets the locked values
        result = await self.db.execute(
            select(Product)
            .where(Product.id == product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    def _set_current_stock(self, product: Product, new_stock: Decimal) -> None:
        # Only the mutation engine calls this; it owns flush and commit
        if new_stock < 0:
            raise ValidationError("Stock cannot become negative")
        product.current_stock = new_stock
