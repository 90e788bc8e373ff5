"""
APScheduler job that drains the offline mutation log.

Every sync_interval_seconds the client re-probes the server and, if it is
reachable, flushes pending edits. Runs inside the client agent process
(wired in tos.__main__).
"""
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from tos.config import get_settings

logger = logging.getLogger(__name__)


def build_scheduler(manager) -> AsyncIOScheduler:
    """
    Create and configure the APScheduler.

    Args:
        manager: OfflineTosManager whose queue the job flushes.

    Returns:
        Configured AsyncIOScheduler (not yet started).
    """
    settings = get_settings()
    scheduler = AsyncIOScheduler()

    scheduler.add_job(
        _periodic_sync,
        trigger="interval",
        seconds=settings.sync_interval_seconds,
        id="pending_sync",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        kwargs={"manager": manager},
    )

    return scheduler


async def _periodic_sync(manager) -> None:
    """Interval job: refresh the online hint and flush pending edits."""
    try:
        if not await manager.refresh_connectivity():
            pending = manager.pending_count()
            if pending:
                logger.info("Offline; %d edits pending", pending)
            return
        result = await manager.sync()
        if result is not None and (result.synced or result.failed):
            logger.info(
                "Periodic sync: %d synced, %d failed", result.synced, result.failed
            )
    except Exception as exc:
        logger.error("Periodic sync failed: %s", exc)
