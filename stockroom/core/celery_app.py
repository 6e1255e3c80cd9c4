from celery import Celery
from stockroom.core.config import settings
import sys

celery_app = Celery(
    "stockroom",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "stockroom.workers.celery_tasks.inventory_tasks",
    ]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    result_expires=3600,
)

# Windows-specific configuration
if sys.platform == 'win32':
    celery_app.conf.update(
        worker_pool='threads',
        worker_concurrency=4
    )

celery_app.conf.beat_schedule = {
    'check-low-stock-alerts': {
        'task': 'stockroom.workers.celery_tasks.inventory_tasks.check_low_stock_alerts',
        'schedule': settings.LOW_STOCK_CHECK_INTERVAL_SECONDS,
    },
}
