"""
Background scheduling of rank cache refreshes.

Two interval jobs on an APScheduler BackgroundScheduler:
- active establishments every `active_minutes`
- everything else every `idle_minutes`
max_instances=1 per job keeps a single writer per scope.
"""
from __future__ import annotations

from apscheduler.schedulers.background import BackgroundScheduler

from models.establishment_store import EstablishmentStore
from services.rank_updater import RankCacheUpdater
from utils.logger import get_logger

logger = get_logger(__name__)

ACTIVE_JOB_ID = "rank-refresh-active"
IDLE_JOB_ID = "rank-refresh-idle"


def run_refresh(storage, active):
    """Job body: a thread-local session from storage, released afterwards."""
    try:
        updater = RankCacheUpdater(EstablishmentStore(storage.get_session()))
        return updater.run(active=active)
    finally:
        storage.close()


def build_scheduler(storage, active_minutes: int = 15, idle_minutes: int = 60) -> BackgroundScheduler:
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        run_refresh, "interval", minutes=active_minutes, args=[storage, True],
        id=ACTIVE_JOB_ID, max_instances=1, coalesce=True, replace_existing=True,
    )
    scheduler.add_job(
        run_refresh, "interval", minutes=idle_minutes, args=[storage, False],
        id=IDLE_JOB_ID, max_instances=1, coalesce=True, replace_existing=True,
    )
    return scheduler


def start_scheduler(storage, active_minutes: int = 15, idle_minutes: int = 60) -> BackgroundScheduler:
    scheduler = build_scheduler(storage, active_minutes, idle_minutes)
    scheduler.start()
    logger.info("Rank scheduler started (active every %d min, idle every %d min)", active_minutes, idle_minutes)
    return scheduler
