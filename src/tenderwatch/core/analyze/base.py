"""
Content analyzer interface and candidate post-processing.

An analyzer takes acquired page content plus source metadata and returns
candidate tenders. Implementations return an empty list on their own
failures; the orchestrator still guards the call.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any
from urllib.parse import urljoin

import dateparser
from pydantic import ValidationError

from tenderwatch.core.models import CandidateTender


logger = logging.getLogger(__name__)


class AnalyzerError(Exception):
    """The analyzer could not produce a candidate list."""
    pass


class ContentAnalyzer(ABC):
    """Turns raw page content into candidate tenders."""

    @abstractmethod
    async def analyze(
        self,
        content: str,
        base_url: str,
        source_name: str,
    ) -> list[CandidateTender]:
        """Extract candidates from ``content``.

        Args:
            content: Acquired page content (HTML or markdown)
            base_url: Source URL, for resolving relative links
            source_name: Human-readable source name, used in the prompt

        Returns:
            Candidate tenders; empty on any internal failure
        """

    async def close(self) -> None:
        pass


def parse_candidates(raw: Any, base_url: str | None = None) -> list[CandidateTender]:
    """Validate analyzer output item by item.

    Invalid items are dropped individually. Relative URLs are resolved
    against ``base_url``.

    Raises:
        AnalyzerError: If ``raw`` is not a list
    """
    if isinstance(raw, dict):
        # Some models wrap the array in an object
        for key in ("tenders", "items", "results"):
            if isinstance(raw.get(key), list):
                raw = raw[key]
                break

    if not isinstance(raw, list):
        raise AnalyzerError(f"Expected a JSON array, got {type(raw).__name__}")

    candidates: list[CandidateTender] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            logger.debug("Dropping candidate %d: not an object", index)
            continue
        if base_url and isinstance(item.get("url"), str):
            item = {**item, "url": resolve_url(item["url"], base_url)}
        try:
            candidates.append(CandidateTender.model_validate(item))
        except ValidationError as e:
            logger.debug("Dropping candidate %d: %s", index, e.errors()[0]["msg"])

    return candidates


def resolve_url(url: str, base_url: str) -> str:
    """Convert a relative tender URL to absolute."""
    url = url.strip()
    if url.startswith(("http://", "https://")):
        return url
    return urljoin(base_url, url)


def within_window(
    candidate: CandidateTender,
    window_days: int,
    now: datetime | None = None,
) -> bool:
    """True unless the candidate's date parses to before the window start.

    Missing or unparseable dates are kept.
    """
    if not candidate.date_string:
        return True

    posted = dateparser.parse(
        candidate.date_string,
        settings={"RETURN_AS_TIMEZONE_AWARE": False},
    )
    if posted is None:
        return True

    now = now or datetime.now()
    cutoff = (now - timedelta(days=window_days)).date()
    return posted.date() >= cutoff


def filter_window(
    candidates: list[CandidateTender],
    window_days: int,
    now: datetime | None = None,
) -> list[CandidateTender]:
    """Drop candidates dated before the rolling window."""
    kept = [c for c in candidates if within_window(c, window_days, now)]
    dropped = len(candidates) - len(kept)
    if dropped:
        logger.debug("Dropped %d candidates older than %d days", dropped, window_days)
    return kept
