"""
APScheduler v4 integration for TenderWatch.
"""

from __future__ import annotations

from pathlib import Path

from apscheduler import AsyncScheduler, ConflictPolicy
from apscheduler.triggers.cron import CronTrigger

from tenderwatch.core.config.loader import load_app_config
from tenderwatch.core.config.models import AppConfig
from tenderwatch.core.logging import get_logger
from tenderwatch.core.orchestrator.runner import ScanResult, build_runner

from .trigger import ScanTrigger

logger = get_logger("scheduler")

SCHEDULE_ID = "tenderwatch-scan"


async def execute_scheduled_scan(config_path: str | None) -> ScanResult | None:
    """Execute one batch scan from a fresh config load."""
    config = load_app_config(Path(config_path) if config_path else None)
    sources = config.enabled_sources()
    if not sources:
        logger.warning("No sources enabled, skipping scheduled scan")
        return None

    runner = build_runner(config, mode=config.scheduler.mode)
    trigger = ScanTrigger(runner, sources)
    try:
        ack = trigger.trigger()
        if not ack.accepted:
            logger.info("Scheduled scan skipped: %s", ack.message)
            return None
        return await trigger.wait()
    finally:
        await runner.close()


class SchedulerService:
    """APScheduler v4 integration for TenderWatch."""

    def __init__(self, config: AppConfig, config_path: Path | None = None) -> None:
        self.config = config
        self.config_path = str(config_path) if config_path else None
        self._scheduler: AsyncScheduler | None = None

    def build_trigger(self) -> CronTrigger:
        """Convert scheduler config to an APScheduler trigger."""
        cron = self.config.scheduler.cron.strip()
        if not cron:
            raise ValueError("Missing cron expression for scheduled scan")
        return CronTrigger.from_crontab(cron, timezone=self.config.scheduler.timezone)

    async def start(self) -> None:
        """Start scheduler in foreground mode (blocking)."""
        if not self.config.scheduler.enabled:
            logger.warning("Scheduler is disabled in configuration")
            return

        trigger = self.build_trigger()
        async with AsyncScheduler() as scheduler:
            self._scheduler = scheduler
            await scheduler.add_schedule(
                execute_scheduled_scan,
                trigger,
                id=SCHEDULE_ID,
                args=[self.config_path],
                conflict_policy=ConflictPolicy.replace,
            )
            logger.info(
                "Scheduled scan '%s' (%s %s)",
                SCHEDULE_ID,
                self.config.scheduler.cron,
                self.config.scheduler.timezone,
            )
            await scheduler.run_until_stopped()

    async def trigger_now(self) -> ScanResult | None:
        """Run the scheduled scan once, immediately, and wait for it."""
        logger.info("Manual trigger of '%s'", SCHEDULE_ID)
        return await execute_scheduled_scan(self.config_path)
