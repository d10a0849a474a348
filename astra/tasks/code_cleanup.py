"""
Migration Code Cleanup Scheduler

APScheduler job that deletes expired migration codes every
CODE_CLEANUP_INTERVAL_MINUTES. Cleanup only: whether a code is expired is
always computed from expires_at, so a late run never makes a dead code live.
"""
from typing import Optional

from loguru import logger
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config.config import CODE_CLEANUP_INTERVAL_MINUTES
from astra.database.engine import get_session_maker
from astra.services.migration_service import MigrationCodeService


async def purge_expired_codes(session_maker=None) -> int:
    """Delete expired migration codes, returns how many"""
    session_maker = session_maker or get_session_maker()
    async with session_maker() as session:
        return await MigrationCodeService(session).purge_expired()


class CodeCleanupScheduler:
    """
    APScheduler для очистки просроченных migration codes.

    Jobs:
    - migration_code_cleanup: каждые CODE_CLEANUP_INTERVAL_MINUTES
    """

    def __init__(self, interval_minutes: int = CODE_CLEANUP_INTERVAL_MINUTES):
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.interval_minutes = interval_minutes
        self._running = False

    def start(self):
        """Запустить scheduler."""
        if self._running:
            logger.warning("Code cleanup scheduler already running")
            return

        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self._job_cleanup,
            IntervalTrigger(minutes=self.interval_minutes),
            id="migration_code_cleanup",
            name="Migration Code Cleanup",
            replace_existing=True,
            max_instances=1,
        )
        self.scheduler.start()
        self._running = True

        logger.info(f"Code cleanup scheduler started: every {self.interval_minutes} min")

    def stop(self):
        """Остановить scheduler."""
        if self.scheduler:
            self.scheduler.shutdown()
            self._running = False
            logger.info("Code cleanup scheduler stopped")

    async def _job_cleanup(self):
        try:
            await purge_expired_codes()
        except Exception as e:
            logger.exception(f"Migration code cleanup failed: {e}")
