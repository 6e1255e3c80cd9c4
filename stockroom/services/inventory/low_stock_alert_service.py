import logging
from typing import List, Optional
from datetime import date, datetime, timezone
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from sqlalchemy import and_, desc
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from stockroom.models.inventory.low_stock_alert import LowStockAlert
from stockroom.models.shared.enums import AlertLevel
from stockroom.services.inventory.weekly_stock_plan_service import Shortfall, WeeklyStockPlanService
from stockroom.core.config import settings
from stockroom.core.exceptions import NotFoundError, StorageUnavailableError

logger = logging.getLogger(__name__)


def alert_level_for(current_stock: Decimal, planned_quantity: Decimal) -> AlertLevel:
    """Critical at or below the configured share of the plan, low otherwise"""
    if current_stock <= planned_quantity * settings.CRITICAL_ALERT_RATIO:
        return AlertLevel.CRITICAL
    return AlertLevel.LOW


class LowStockAlertService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.plan_service = WeeklyStockPlanService(db)

    async def process_low_stock_checking(self, as_of: Optional[date] = None) -> List[LowStockAlert]:
        """
        Raise an alert for every current weekly plan that is short of stock.

        A (product, plan) pair that already has an unresolved alert is
        skipped, so running the check repeatedly creates nothing new until
        the alert is resolved. Returns only the alerts created by this run.
        """
        try:
            shortfalls = await self.plan_service.shortfalls(as_of)
        except (OperationalError, InterfaceError) as e:
            logger.error(f"Low stock check could not read weekly plans: {str(e)}")
            raise StorageUnavailableError()

        created = []
        for shortfall in shortfalls:
            alert = await self._create_alert(shortfall)
            if alert is not None:
                created.append(alert)

        # A rollback on a skipped duplicate expires everything loaded so far
        for alert in created:
            await self.db.refresh(alert)

        logger.info(f"Low stock check: {len(shortfalls)} shortfalls, {len(created)} new alerts")
        return created

    async def _create_alert(self, shortfall: Shortfall) -> Optional[LowStockAlert]:
        existing = await self.db.execute(
            select(LowStockAlert.id).where(and_(
                LowStockAlert.product_id == shortfall.product_id,
                LowStockAlert.weekly_plan_id == shortfall.weekly_plan_id,
                LowStockAlert.is_resolved == False
            ))
        )
        if existing.first() is not None:
            return None

        alert = LowStockAlert(
            product_id=shortfall.product_id,
            weekly_plan_id=shortfall.weekly_plan_id,
            current_stock=shortfall.current_stock,
            planned_quantity=shortfall.planned_quantity,
            alert_level=alert_level_for(shortfall.current_stock, shortfall.planned_quantity),
            is_resolved=False,
            alert_date=datetime.now(timezone.utc),
        )
        self.db.add(alert)

        try:
            await self.db.commit()
        except IntegrityError:
            # Another run inserted the open alert between our check and insert
            await self.db.rollback()
            logger.info(
                f"Open alert already exists for product {shortfall.product_id} "
                f"and plan {shortfall.weekly_plan_id}, skipping"
            )
            return None
        except (OperationalError, InterfaceError) as e:
            await self.db.rollback()
            logger.error(f"Failed to store low stock alert for product {shortfall.product_id}: {str(e)}")
            raise StorageUnavailableError()

        logger.warning(
            f"Low stock alert ({alert.alert_level.value}) for {shortfall.product_name}: "
            f"{shortfall.current_stock} {shortfall.unit} against planned {shortfall.planned_quantity}"
        )
        return alert

    async def get_alert_by_id(self, alert_id: int) -> LowStockAlert:
        result = await self.db.execute(
            select(LowStockAlert)
            .options(selectinload(LowStockAlert.product), selectinload(LowStockAlert.weekly_plan))
            .where(LowStockAlert.id == alert_id)
        )
        alert = result.scalar_one_or_none()
        if not alert:
            raise NotFoundError("Alert not found")
        return alert

    async def resolve(self, alert_id: int) -> LowStockAlert:
        """Mark an alert resolved; resolving a resolved alert changes nothing"""
        alert = await self.get_alert_by_id(alert_id)
        if alert.is_resolved:
            return alert

        alert.is_resolved = True
        alert.resolved_at = datetime.now(timezone.utc)
        await self.db.commit()
        await self.db.refresh(alert)

        logger.info(f"Low stock alert {alert_id} resolved")
        return await self.get_alert_by_id(alert_id)

    async def get_unresolved_alerts(self) -> List[LowStockAlert]:
        result = await self.db.execute(
            select(LowStockAlert)
            .options(selectinload(LowStockAlert.product), selectinload(LowStockAlert.weekly_plan))
            .where(LowStockAlert.is_resolved == False)
            .order_by(desc(LowStockAlert.alert_date), desc(LowStockAlert.id))
        )
        return result.scalars().all()
