"""Scheduler service - scan trigger and APScheduler integration."""

from .service import SchedulerService, execute_scheduled_scan
from .trigger import ScanTrigger, TriggerAck

__all__ = [
    "ScanTrigger",
    "TriggerAck",
    "SchedulerService",
    "execute_scheduled_scan",
]
