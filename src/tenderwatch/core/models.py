"""
Runtime data model for TenderWatch.

Configuration objects live in ``tenderwatch.core.config``; this module holds
the records that flow through a scan: sources, candidate and accepted
tenders, scan status and log entries, and notification outcomes.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Sources
# =============================================================================


@dataclass(frozen=True)
class Source:
    """One monitored external site. Identity is ``id``."""

    id: str
    name: str = field(compare=False)
    url: str = field(compare=False)


# =============================================================================
# Tenders
# =============================================================================


class CandidateTender(BaseModel):
    """Unvalidated extraction output from the content analyzer.

    Field aliases follow the camelCase keys the LLM is asked to emit.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    title: str = Field(..., description="The title of the tender in English.")
    url: str = Field(..., description="The full absolute URL to the tender details or PDF file.")
    snippet: str = Field(
        ...,
        description="A brief summary or context where the keyword appeared, translated to English.",
    )
    keywords_found: frozenset[str] = Field(
        ...,
        alias="keywordsFound",
        description="List of keywords from the target list found in this tender.",
    )
    original_language: str | None = Field(
        None,
        alias="originalLanguage",
        description="The language detected (e.g., Dhivehi, English).",
    )
    date_string: str | None = Field(
        None,
        alias="dateString",
        description="The date of the tender announcement found on page (e.g. 2024-05-20).",
    )


@dataclass(frozen=True)
class Tender:
    """A candidate accepted into a scan's results, stamped with its source."""

    title: str
    url: str
    snippet: str
    keywords_found: frozenset[str]
    source: str
    date_found: date
    original_language: str | None = None
    date_string: str | None = None

    @classmethod
    def from_candidate(cls, candidate: CandidateTender, source: Source, found_on: date) -> Tender:
        return cls(
            title=candidate.title,
            url=candidate.url,
            snippet=candidate.snippet,
            keywords_found=frozenset(candidate.keywords_found),
            source=source.name,
            date_found=found_on,
            original_language=candidate.original_language,
            date_string=candidate.date_string,
        )


# =============================================================================
# Scan status
# =============================================================================


class ScanPhase(str, Enum):
    """States of the scan state machine."""

    IDLE = "idle"
    SCANNING = "scanning"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ScanPhase.COMPLETE, ScanPhase.ERROR)


@dataclass(frozen=True)
class ScanStatus:
    """Immutable snapshot of the scan state machine."""

    phase: ScanPhase = ScanPhase.IDLE
    progress: float = 0.0
    current_task: str = "Idle"
    message: str | None = None

    @property
    def is_scanning(self) -> bool:
        return self.phase == ScanPhase.SCANNING

    def evolve(self, **changes: Any) -> ScanStatus:
        return replace(self, **changes)


LogLevel = Literal["info", "success", "warning", "error"]


@dataclass(frozen=True)
class LogEntry:
    """One line of the running scan log."""

    message: str
    level: LogLevel = "info"
    source: str | None = None
    timestamp: datetime = field(default_factory=datetime.now)


# =============================================================================
# Notification
# =============================================================================


@dataclass(frozen=True)
class NotificationOutcome:
    """Result of a dispatch.

    For ``method="fallback"``, ``delivered`` means the draft was handed to the
    user, not that recipients received it.
    """

    method: Literal["primary", "fallback"]
    delivered: bool
    delivery_id: str | None = None
    error: str | None = None
