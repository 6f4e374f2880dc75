"""Background refresh of the dashboard's medicine collection.

``create_background_scheduler()`` returns a ``BackgroundScheduler`` that the
dashboard server starts in its ``lifespan`` handler.
"""

from datetime import datetime

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .services.inventory_service import InventoryService
from .utils.config import get_config
from .utils.exceptions import BaseAppException
from .utils.logger import get_inventory_logger, get_scheduler_logger

REFRESH_JOB_ID = "inventory_refresh"


def make_refresh_job(service: InventoryService):
    """Create the refresh-job callable for ``service``."""
    logger = get_inventory_logger()

    def refresh_job():
        logger.info(f"Scheduled refresh started at {datetime.now()}")
        try:
            count = service.refresh()
        except BaseAppException as e:
            logger.error(f"Scheduled refresh failed: {e.message}")
            return

        alerts = service.alerts()
        logger.info(
            f"Refresh complete: {count} medicines, "
            f"{len(alerts['expiring_soon'])} expiring soon, "
            f"{len(alerts['low_stock'])} low stock"
        )

    return refresh_job


def create_background_scheduler(service: InventoryService) -> BackgroundScheduler:
    """Create a ``BackgroundScheduler`` that periodically refreshes ``service``.

    The scheduler is returned **not started**.
    """
    config = get_config()
    logger = get_inventory_logger()
    get_scheduler_logger()
    interval = config.env.refresh_interval_minutes

    scheduler = BackgroundScheduler(timezone=config.scheduler.timezone)
    scheduler.add_job(
        func=make_refresh_job(service),
        trigger=IntervalTrigger(minutes=interval),
        id=REFRESH_JOB_ID,
        name="Medicine inventory refresh",
        max_instances=config.scheduler.max_instances,
        coalesce=config.scheduler.coalesce,
        misfire_grace_time=config.scheduler.misfire_grace_time,
        replace_existing=True
    )

    logger.info(f"Background scheduler configured: refresh every {interval} min")
    return scheduler
