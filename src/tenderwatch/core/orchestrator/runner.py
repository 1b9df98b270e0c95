"""
Scan runner orchestrator.

Coordinates the scan workflow: fetch → analyze → stamp → notify.

One runner serves both the interactive scan (sources one at a time) and
the scheduled batch scan (sources concurrently); only the fan-out policy
differs. A source that cannot be fetched or analyzed contributes nothing
and the scan moves on. Any other exception is critical: the scan stops,
status goes to Error, and tenders already collected are kept.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable

import httpx
from pydantic import ValidationError

from tenderwatch.core.analyze.base import AnalyzerError, ContentAnalyzer
from tenderwatch.core.config.models import AppConfig, ExecutionMode
from tenderwatch.core.fetch.fetcher import FallbackFetcher
from tenderwatch.core.logging import get_contextual_logger
from tenderwatch.core.models import (
    CandidateTender,
    NotificationOutcome,
    ScanStatus,
    Source,
    Tender,
)
from tenderwatch.core.notify.dispatcher import NotificationDispatcher

from .state import ScanState


logger = logging.getLogger(__name__)

# Analyzer failures that count as "zero results" for the source.
ANALYZER_ERRORS = (AnalyzerError, httpx.HTTPError, ValidationError, ValueError)

START_PROGRESS = 5.0
SPAN_PROGRESS = 90.0


@dataclass
class ScanResult:
    """Outcome of one run."""

    tenders: list[Tender]
    status: ScanStatus
    notification: NotificationOutcome | None = None
    failed_sources: list[str] = field(default_factory=list)
    skipped: bool = False

    started_at: datetime = field(default_factory=datetime.utcnow)
    finished_at: datetime | None = None

    @property
    def duration_seconds(self) -> float | None:
        """Get run duration in seconds."""
        if self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None


class ScanRunner:
    """Runs scans across sources and owns the scan state.

    Coordinates:
    - Re-entrancy guard (a scan request while scanning is a no-op)
    - Per-source acquisition and analysis with failure isolation
    - Progress and log publication through ``ScanState``
    - One notification per run over the full aggregate
    """

    def __init__(
        self,
        fetcher: FallbackFetcher,
        analyzer: ContentAnalyzer,
        dispatcher: NotificationDispatcher | None = None,
        *,
        state: ScanState | None = None,
        mode: ExecutionMode = ExecutionMode.SEQUENTIAL,
        max_concurrency: int = 4,
        today: Callable[[], date] = date.today,
    ) -> None:
        """Initialize the scan runner.

        Args:
            fetcher: Fallback fetcher for page acquisition
            analyzer: Content analyzer
            dispatcher: Notification dispatcher (None disables notification)
            state: Shared scan state (created if not provided)
            mode: Sequential or concurrent fan-out
            max_concurrency: Parallel sources in concurrent mode
            today: Clock for ``date_found`` stamps
        """
        self.fetcher = fetcher
        self.analyzer = analyzer
        self.dispatcher = dispatcher
        self.state = state or ScanState()
        self.mode = mode
        self.max_concurrency = max_concurrency
        self._today = today

        self._aggregate: list[Tender] = []
        self._failed: list[str] = []

    @property
    def is_scanning(self) -> bool:
        return self.state.status.is_scanning

    async def run(self, sources: list[Source]) -> ScanResult:
        """Execute a complete scan.

        Returns:
            ScanResult with collected tenders and the terminal status
        """
        if self.is_scanning:
            logger.debug("Scan already in progress, ignoring request")
            return ScanResult(
                tenders=list(self.state.tenders),
                status=self.state.status,
                skipped=True,
            )

        # Guard is set before the first await
        self.state.begin()
        self._aggregate = []
        self._failed = []
        started_at = datetime.utcnow()

        self.state.add_log(
            f"Starting filtered tender scan ({len(sources)} sources, {self.mode.value})...",
        )

        try:
            if self.mode == ExecutionMode.CONCURRENT:
                await self._run_concurrent(sources)
            else:
                await self._run_sequential(sources)
        except Exception as e:
            logger.exception("Scan aborted by critical error")
            message = f"Critical System Error: {e}"
            self.state.add_log(message, "error")
            self.state.fail(message)
            return ScanResult(
                tenders=list(self._aggregate),
                status=self.state.status,
                failed_sources=list(self._failed),
                started_at=started_at,
                finished_at=datetime.utcnow(),
            )

        total = len(self._aggregate)
        self.state.complete(f"{total} tenders found" if total else "zero found")

        notification = None
        if total:
            self.state.add_log(f"Scan complete. Total tenders found: {total}", "success")
            notification = await self._notify()
        else:
            self.state.add_log("Scan complete. No recent tenders found.", "warning")

        return ScanResult(
            tenders=list(self._aggregate),
            status=self.state.status,
            notification=notification,
            failed_sources=list(self._failed),
            started_at=started_at,
            finished_at=datetime.utcnow(),
        )

    # ------------------------------------------------------------------
    # Fan-out policies
    # ------------------------------------------------------------------

    async def _run_sequential(self, sources: list[Source]) -> None:
        total = len(sources)
        for i, source in enumerate(sources):
            self.state.advance(
                START_PROGRESS + i * (SPAN_PROGRESS / total),
                f"Scanning {source.name}...",
            )
            tenders = await self._scan_source(source)
            self._collect(tenders)

    async def _run_concurrent(self, sources: list[Source]) -> None:
        total = len(sources)
        if not total:
            return

        self.state.advance(START_PROGRESS, f"Scanning {total} sources...")
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(source: Source) -> tuple[Source, list[Tender]]:
            async with semaphore:
                return source, await self._scan_source(source)

        tasks = [asyncio.create_task(bounded(s)) for s in sources]
        pending: set[asyncio.Task] = set(tasks)
        done = 0
        try:
            while pending:
                finished, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                failure: BaseException | None = None
                # Sources that finished alongside a failing one still count.
                for task in sorted(finished, key=tasks.index):
                    if task.exception() is not None:
                        failure = failure or task.exception()
                        continue
                    source, tenders = task.result()
                    done += 1
                    self._collect(tenders)
                    self.state.advance(
                        START_PROGRESS + done * (SPAN_PROGRESS / total),
                        f"Scanned {source.name}",
                    )
                if failure is not None:
                    raise failure
        finally:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

    # ------------------------------------------------------------------
    # Per-source step
    # ------------------------------------------------------------------

    async def _scan_source(self, source: Source) -> list[Tender]:
        """Fetch and analyze one source. Expected failures yield []."""
        log = get_contextual_logger("scan", source=source.name, scan_mode=self.mode.value)
        self.state.add_log(f"Fetching content from {source.name}...", source=source.name)

        result = await self.fetcher.acquire(source.url)
        if not result.ok:
            self._failed.append(source.name)
            self.state.add_log(
                f"Failed to scan {source.name}: {result.message}",
                "error",
                source=source.name,
            )
            return []

        self.state.add_log(
            f"Content received via {result.strategy_used}. Analyzing...",
            source=source.name,
        )
        candidates = await self._analyze(result.content, source, log)

        if not candidates:
            self.state.add_log(
                f"No matching recent tenders found on {source.name}.",
                source=source.name,
            )
            return []

        found_on = self._today()
        tenders = [Tender.from_candidate(c, source, found_on) for c in candidates]
        self.state.add_log(
            f"Found {len(tenders)} relevant tenders on {source.name}!",
            "success",
            source=source.name,
        )
        return tenders

    async def _analyze(self, content: str, source: Source, log: Any) -> list[CandidateTender]:
        try:
            raw = await self.analyzer.analyze(content, source.url, source.name)
        except ANALYZER_ERRORS as e:
            log.warning("Analyzer failed: %s", e)
            self.state.add_log(f"Analysis failed for {source.name}: {e}", "error", source=source.name)
            return []

        if not isinstance(raw, list):
            log.warning("Analyzer returned %s, expected list", type(raw).__name__)
            self.state.add_log(
                f"Analyzer returned malformed output for {source.name}",
                "warning",
                source=source.name,
            )
            return []

        candidates = [c for c in raw if isinstance(c, CandidateTender)]
        if len(candidates) != len(raw):
            log.warning("Dropped %d malformed candidates", len(raw) - len(candidates))
        return candidates

    def _collect(self, tenders: list[Tender]) -> None:
        if tenders:
            self._aggregate.extend(tenders)
            self.state.add_tenders(tenders)

    # ------------------------------------------------------------------
    # Notification
    # ------------------------------------------------------------------

    async def _notify(self) -> NotificationOutcome | None:
        if self.dispatcher is None:
            return None

        self.state.add_log("Initiating email notification...")
        outcome = await self.dispatcher.dispatch(list(self._aggregate))

        if outcome.method == "primary" and outcome.delivered:
            self.state.add_log("Email successfully sent to recipients via relay.", "success")
        elif outcome.method == "fallback" and outcome.delivered:
            self.state.add_log(
                "Automated email failed. Opened default mail client with draft.",
                "warning",
            )
        else:
            self.state.add_log(f"Failed to send email: {outcome.error}", "error")
        return outcome

    async def close(self) -> None:
        """Release fetcher, analyzer and dispatcher resources."""
        await self.fetcher.close()
        await self.analyzer.close()
        if self.dispatcher:
            await self.dispatcher.close()


def build_runner(
    config: AppConfig,
    *,
    mode: ExecutionMode | None = None,
    notify: bool = True,
    state: ScanState | None = None,
) -> ScanRunner:
    """Wire a runner from application configuration."""
    from tenderwatch.core.analyze.gemini import GeminiAnalyzer

    return ScanRunner(
        fetcher=FallbackFetcher.from_config(config.transport),
        analyzer=GeminiAnalyzer(config.analyzer, config.keywords),
        dispatcher=NotificationDispatcher.from_config(config.notification) if notify else None,
        state=state,
        mode=mode or config.scan.mode,
        max_concurrency=config.scan.max_concurrency,
    )


async def run_scan(
    config: AppConfig,
    *,
    mode: ExecutionMode | None = None,
    notify: bool = True,
) -> ScanResult:
    """Convenience function: build a runner, scan enabled sources, clean up."""
    runner = build_runner(config, mode=mode, notify=notify)
    try:
        return await runner.run(config.enabled_sources())
    finally:
        await runner.close()
