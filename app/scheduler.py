"""
Scheduler Module

Background job scheduler that keeps workshop snapshots warm.
Uses APScheduler to force-refresh the snapshot cache on a configurable
interval so dashboard requests rarely wait on the record store.
"""

import os
import logging
from typing import List

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.services.record_store import get_record_store, get_workshop_snapshot

logger = logging.getLogger(__name__)

# Create scheduler
scheduler = AsyncIOScheduler()


def refresh_enabled() -> bool:
    return os.getenv("SNAPSHOT_REFRESH_ENABLED", "true").lower() == "true"


def refresh_interval_minutes() -> int:
    return int(os.getenv("SNAPSHOT_REFRESH_MINUTES", "10"))


def configured_workshop_ids() -> List[str]:
    """Workshops to keep warm (ANALYTICS_WORKSHOP_IDS, comma-separated)"""
    raw = os.getenv("ANALYTICS_WORKSHOP_IDS", "")
    return [w.strip() for w in raw.split(",") if w.strip()]


async def scheduled_snapshot_refresh():
    """Refresh cached snapshots for every configured workshop"""
    workshop_ids = configured_workshop_ids()
    logger.info(f"[Scheduler] Refreshing snapshots for {len(workshop_ids)} workshop(s)")

    for workshop_id in workshop_ids:
        try:
            snapshot = await get_workshop_snapshot(get_record_store(), workshop_id, force_refresh=True)
            logger.info(f"[Scheduler] Workshop {workshop_id} refreshed: jobs={len(snapshot.jobs)}, "
                        f"invoices={len(snapshot.invoices)}")
        except Exception as e:
            logger.error(f"[Scheduler] Snapshot refresh failed for workshop {workshop_id}: {e}")


def start_scheduler():
    """Start the background scheduler"""
    if not refresh_enabled():
        logger.info("[Scheduler] Snapshot refresh disabled via SNAPSHOT_REFRESH_ENABLED env var")
        return

    workshop_ids = configured_workshop_ids()
    if not workshop_ids:
        logger.info("[Scheduler] No ANALYTICS_WORKSHOP_IDS configured, scheduler not started")
        return

    interval = refresh_interval_minutes()
    logger.info("[Scheduler] Starting scheduler with:")
    logger.info(f"  - Snapshot refresh: every {interval} minutes")
    logger.info(f"  - Workshops: {', '.join(workshop_ids)}")

    scheduler.add_job(
        scheduled_snapshot_refresh,
        IntervalTrigger(minutes=interval),
        id="snapshot_refresh",
        name="Workshop Snapshot Refresh",
        replace_existing=True
    )

    scheduler.start()
    logger.info("[Scheduler] Scheduler started successfully")


def stop_scheduler():
    """Stop the scheduler"""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("[Scheduler] Scheduler stopped")
