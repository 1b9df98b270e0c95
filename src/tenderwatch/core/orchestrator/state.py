"""
Observable scan state.

The runner is the single writer; UIs and loggers read through
``subscribe`` (push) or ``snapshot`` (poll). Observers are called after
each discrete update.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Literal

from tenderwatch.core.models import LogEntry, LogLevel, ScanPhase, ScanStatus, Tender


logger = logging.getLogger("tenderwatch.scan")

_LOG_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass(frozen=True)
class ScanEvent:
    """One published update."""

    kind: Literal["status", "log", "tenders"]
    status: ScanStatus
    entry: LogEntry | None = None
    tenders: tuple[Tender, ...] = ()


Subscriber = Callable[[ScanEvent], None]


class ScanState:
    """Status, running log, and live result list for one scanner."""

    def __init__(self) -> None:
        self._status = ScanStatus()
        self._log: list[LogEntry] = []
        self._tenders: list[Tender] = []
        self._subscribers: list[Subscriber] = []

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def status(self) -> ScanStatus:
        return self._status

    @property
    def log(self) -> tuple[LogEntry, ...]:
        return tuple(self._log)

    @property
    def tenders(self) -> tuple[Tender, ...]:
        return tuple(self._tenders)

    def snapshot(self) -> ScanStatus:
        return self._status

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register an observer. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self, event: ScanEvent) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception("Scan state subscriber failed")

    # ------------------------------------------------------------------
    # Write side (runner only)
    # ------------------------------------------------------------------

    def _set_status(self, status: ScanStatus) -> None:
        self._status = status
        self._publish(ScanEvent(kind="status", status=status))

    def begin(self, task: str = "Initializing Scan...") -> None:
        """Enter Scanning at progress 0 and clear the previous run's results."""
        self._tenders.clear()
        self._set_status(ScanStatus(phase=ScanPhase.SCANNING, progress=0.0, current_task=task))

    def advance(self, progress: float, task: str) -> None:
        """Move progress forward. Progress never decreases while scanning."""
        if self._status.phase != ScanPhase.SCANNING:
            raise RuntimeError("Cannot advance a scan that is not running")
        progress = min(max(progress, self._status.progress), 100.0)
        self._set_status(self._status.evolve(progress=progress, current_task=task))

    def complete(self, message: str | None = None) -> None:
        self._set_status(
            ScanStatus(
                phase=ScanPhase.COMPLETE,
                progress=100.0,
                current_task="Scan Complete",
                message=message,
            )
        )

    def fail(self, message: str) -> None:
        self._set_status(
            ScanStatus(phase=ScanPhase.ERROR, progress=0.0, current_task="Error", message=message)
        )

    def add_log(self, message: str, level: LogLevel = "info", source: str | None = None) -> LogEntry:
        entry = LogEntry(message=message, level=level, source=source)
        self._log.append(entry)
        extra = {"source": source} if source else None
        logger.log(_LOG_LEVELS[level], message, extra=extra)
        self._publish(ScanEvent(kind="log", status=self._status, entry=entry))
        return entry

    def add_tenders(self, tenders: list[Tender]) -> None:
        if not tenders:
            return
        self._tenders.extend(tenders)
        self._publish(ScanEvent(kind="tenders", status=self._status, tenders=tuple(tenders)))
