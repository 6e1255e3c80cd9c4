import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from stockroom.schemas.inventory.weekly_stock_plan import WeeklyStockPlanCreate
from stockroom.services.inventory.low_stock_alert_service import LowStockAlertService
from stockroom.services.inventory.weekly_stock_plan_service import WeeklyStockPlanService
from stockroom.workers.celery_tasks.inventory_tasks import _check_low_stock_alerts

@pytest.mark.asyncio
class TestLowStockTask:
    """Test the periodic low stock job against its own engine"""

    async def test_job_creates_alerts(self, tmp_path, db, rice, admin_user):
        today = datetime.now(timezone.utc).date()
        await WeeklyStockPlanService(db).create_plan(
            WeeklyStockPlanCreate(
                product_id=rice.id,
                planned_quantity=Decimal("150"),
                unit="KG",
                week_start_date=today - timedelta(days=1),
                week_end_date=today + timedelta(days=1),
            ),
            admin_user.id,
        )

        database_url = f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
        assert await _check_low_stock_alerts(database_url) == 1
        assert await _check_low_stock_alerts(database_url) == 0

        alerts = await LowStockAlertService(db).get_unresolved_alerts()
        assert [a.planned_quantity for a in alerts] == [Decimal("150")]
