"""
"Start scan now" entry point.

Manual actions and the cron service both go through ``ScanTrigger``. The
call returns at once; the scan itself runs as a background task.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime

from tenderwatch.core.logging import get_logger
from tenderwatch.core.models import Source
from tenderwatch.core.orchestrator.runner import ScanResult, ScanRunner

logger = get_logger("scheduler.trigger")


@dataclass(frozen=True)
class TriggerAck:
    """Acknowledgment returned to the trigger caller."""

    accepted: bool
    message: str
    started_at: datetime | None = field(default=None)


class ScanTrigger:
    """Idempotent scan starter bound to one runner."""

    def __init__(self, runner: ScanRunner, sources: list[Source]) -> None:
        self.runner = runner
        self.sources = list(sources)
        self._task: asyncio.Task[ScanResult] | None = None

    @property
    def in_flight(self) -> bool:
        return self.runner.is_scanning or (self._task is not None and not self._task.done())

    def trigger(self) -> TriggerAck:
        """Start a scan in the background.

        Must be called from within a running event loop.
        """
        if self.in_flight:
            logger.info("Scan already in progress, trigger ignored")
            return TriggerAck(accepted=False, message="Scan already in progress")

        started_at = datetime.utcnow()
        self._task = asyncio.create_task(self.runner.run(self.sources))
        self._task.add_done_callback(self._on_done)
        logger.info("Scan triggered for %d sources", len(self.sources))
        return TriggerAck(accepted=True, message="Scan started", started_at=started_at)

    async def wait(self) -> ScanResult | None:
        """Wait for the current background scan, if any."""
        if self._task is None:
            return None
        return await self._task

    @staticmethod
    def _on_done(task: asyncio.Task[ScanResult]) -> None:
        if task.cancelled():
            logger.warning("Triggered scan was cancelled")
            return
        error = task.exception()
        if error is not None:
            logger.error("Triggered scan failed: %s", error)
            return
        result = task.result()
        logger.info(
            "Triggered scan finished: %s (%d tenders)",
            result.status.phase.value,
            len(result.tenders),
        )
