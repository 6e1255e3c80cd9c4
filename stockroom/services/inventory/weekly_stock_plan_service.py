import logging
from dataclasses import dataclass
from typing import List, Optional
from datetime import date, datetime, timezone
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from sqlalchemy import and_, desc
from stockroom.models.inventory.product import Product
from stockroom.models.inventory.weekly_stock_plan import WeeklyStockPlan
from stockroom.schemas.inventory.weekly_stock_plan import WeeklyStockPlanCreate, WeeklyStockPlanUpdate
from stockroom.core.exceptions import NotFoundError, ValidationError
from stockroom.utils.units import parse_quantity

logger = logging.getLogger(__name__)


@dataclass
class Shortfall:
    product_id: int
    product_name: str
    current_stock: Decimal
    planned_quantity: Decimal
    weekly_plan_id: int
    unit: str


class WeeklyStockPlanService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_plan(self, plan_data: WeeklyStockPlanCreate, current_user_id: int) -> WeeklyStockPlan:
        product = await self.db.execute(select(Product).where(Product.id == plan_data.product_id))
        product = product.scalar_one_or_none()
        if not product:
            raise NotFoundError("Product not found")
        if not product.is_active:
            raise ValidationError("Product is inactive")

        planned_quantity = self._validate_quantity(plan_data.planned_quantity)
        self._validate_date_range(plan_data.week_start_date, plan_data.week_end_date)

        plan = WeeklyStockPlan(
            product_id=plan_data.product_id,
            user_id=current_user_id,
            planned_quantity=planned_quantity,
            unit=plan_data.unit,
            week_start_date=plan_data.week_start_date,
            week_end_date=plan_data.week_end_date,
            notes=plan_data.notes,
            is_active=True,
        )

        self.db.add(plan)
        await self.db.commit()
        await self.db.refresh(plan)

        logger.info(
            f"Weekly plan {plan.id} created for product {plan.product_id}: "
            f"{planned_quantity} {plan.unit} ({plan.week_start_date} - {plan.week_end_date})"
        )
        return await self.get_plan_by_id(plan.id)

    async def get_plan_by_id(self, plan_id: int) -> WeeklyStockPlan:
        result = await self.db.execute(
            select(WeeklyStockPlan)
            .options(selectinload(WeeklyStockPlan.product), selectinload(WeeklyStockPlan.user))
            .where(WeeklyStockPlan.id == plan_id)
        )
        plan = result.scalar_one_or_none()
        if not plan:
            raise NotFoundError("Weekly stock plan not found")
        return plan

    async def get_plans(self, active_only: bool = True) -> List[WeeklyStockPlan]:
        query = select(WeeklyStockPlan).options(
            selectinload(WeeklyStockPlan.product),
            selectinload(WeeklyStockPlan.user)
        )
        if active_only:
            query = query.where(WeeklyStockPlan.is_active == True)

        result = await self.db.execute(
            query.order_by(desc(WeeklyStockPlan.week_start_date), desc(WeeklyStockPlan.id))
        )
        return result.scalars().all()

    async def get_plans_in_range(self, start_date: date, end_date: date) -> List[WeeklyStockPlan]:
        """Active plans whose whole week falls inside [start_date, end_date]"""
        self._validate_date_range(start_date, end_date)

        result = await self.db.execute(
            select(WeeklyStockPlan)
            .options(selectinload(WeeklyStockPlan.product), selectinload(WeeklyStockPlan.user))
            .where(and_(
                WeeklyStockPlan.is_active == True,
                WeeklyStockPlan.week_start_date >= start_date,
                WeeklyStockPlan.week_end_date <= end_date
            ))
            .order_by(WeeklyStockPlan.week_start_date, WeeklyStockPlan.id)
        )
        return result.scalars().all()

    async def update_plan(self, plan_id: int, plan_data: WeeklyStockPlanUpdate) -> WeeklyStockPlan:
        plan = await self.get_plan_by_id(plan_id)
        if not plan.is_active:
            raise ValidationError("Weekly stock plan is inactive")

        update_data = plan_data.model_dump(exclude_unset=True)
        if update_data.get("planned_quantity") is not None:
            update_data["planned_quantity"] = self._validate_quantity(update_data["planned_quantity"])

        week_start = update_data.get("week_start_date") or plan.week_start_date
        week_end = update_data.get("week_end_date") or plan.week_end_date
        self._validate_date_range(week_start, week_end)

        for field, value in update_data.items():
            if value is not None or field == "notes":
                setattr(plan, field, value)

        await self.db.commit()
        await self.db.refresh(plan)
        return await self.get_plan_by_id(plan_id)

    async def delete_plan(self, plan_id: int) -> bool:
        """Soft delete: alerts keep pointing at the plan"""
        plan = await self.get_plan_by_id(plan_id)
        plan.is_active = False
        await self.db.commit()
        logger.info(f"Weekly plan {plan_id} deactivated")
        return True

    async def current_week_plans(self, as_of: Optional[date] = None) -> List[WeeklyStockPlan]:
        """Active plans whose week contains as_of, with their product loaded"""
        as_of = as_of or datetime.now(timezone.utc).date()

        result = await self.db.execute(
            select(WeeklyStockPlan)
            .options(selectinload(WeeklyStockPlan.product), selectinload(WeeklyStockPlan.user))
            .where(and_(
                WeeklyStockPlan.is_active == True,
                WeeklyStockPlan.week_start_date <= as_of,
                WeeklyStockPlan.week_end_date >= as_of
            ))
            .order_by(WeeklyStockPlan.id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().all()

    async def shortfalls(self, as_of: Optional[date] = None) -> List[Shortfall]:
        """Current plans whose product stock is strictly below the planned quantity"""
        shortfalls = []
        for plan in await self.current_week_plans(as_of):
            product = plan.product
            if product is None or not product.is_active:
                continue
            current_stock = Decimal(product.current_stock)
            planned_quantity = Decimal(plan.planned_quantity)
            if current_stock < planned_quantity:
                shortfalls.append(Shortfall(
                    product_id=product.id,
                    product_name=product.name,
                    current_stock=current_stock,
                    planned_quantity=planned_quantity,
                    weekly_plan_id=plan.id,
                    unit=plan.unit,
                ))
        return shortfalls

    def _validate_quantity(self, value) -> Decimal:
        quantity = parse_quantity(value, field="Planned quantity")
        if quantity <= 0:
            raise ValidationError("Planned quantity must be greater than zero")
        return quantity

    def _validate_date_range(self, start_date: date, end_date: date) -> None:
        if start_date > end_date:
            raise ValidationError("Week start date must not be after week end date")
