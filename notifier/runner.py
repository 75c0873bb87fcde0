"""Process-level helpers for running the scheduler outside the HTTP app."""

import asyncio
import logging
from datetime import timedelta

from notifier.config import Settings, get_settings
from notifier.context import NotificationContext
from notifier.models.notification import NotificationType, ScheduledNotification
from notifier.models.stats import NotificationStats

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    """Configure logging for scheduler processes.

    Args:
        level: Logging level (default: INFO)
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logging.getLogger("notifier").setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def run_scheduler(
    settings: Settings | None = None,
    duration_seconds: float | None = None,
    test_after_seconds: float | None = None,
) -> NotificationStats:
    """Run a scheduler until cancelled or duration_seconds elapse.

    Args:
        settings: Environment settings (defaults to get_settings())
        duration_seconds: Stop after this long; None runs until cancelled
        test_after_seconds: Schedule a test notification this far in the future

    Returns:
        Stats at shutdown
    """
    settings = settings or get_settings()
    context = NotificationContext.build(settings)
    await context.start()

    try:
        if test_after_seconds is not None:
            scheduler = context.scheduler
            accepted = await scheduler.schedule(
                ScheduledNotification(
                    title="Test notification",
                    body="The notification scheduler is running",
                    scheduled_time=scheduler.clock() + timedelta(seconds=test_after_seconds),
                    type=NotificationType.GENERAL,
                )
            )
            logger.info(f"Test notification {'accepted' if accepted else 'rejected'}")

        if duration_seconds is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(duration_seconds)
    finally:
        stats = context.scheduler.get_stats()
        await context.stop()

    return stats
