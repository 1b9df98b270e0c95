"""Shared fixtures for TenderWatch tests."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import httpx
import pytest

from tenderwatch.core.analyze.base import ContentAnalyzer
from tenderwatch.core.backends.http_backend import HttpBackend
from tenderwatch.core.fetch.fetcher import AcquisitionFailure, AcquisitionSuccess
from tenderwatch.core.models import CandidateTender, NotificationOutcome, Source


PAGE = "<html><body>" + "Tender notice for Autodesk Revit licences. " * 5 + "</body></html>"


def make_candidate(title: str = "Revit licences", **overrides: Any) -> CandidateTender:
    data = {
        "title": title,
        "url": f"https://example.gov/{title.lower().replace(' ', '-')}",
        "snippet": "Supply of design software",
        "keywordsFound": ["Revit"],
        "dateString": None,
    }
    data.update(overrides)
    return CandidateTender.model_validate(data)


def mock_backend(handler: Callable[[httpx.Request], httpx.Response]) -> HttpBackend:
    """HttpBackend whose requests are answered by ``handler``."""
    return HttpBackend(timeout=5, transport=httpx.MockTransport(handler))


class FakeFetcher:
    """Fetcher stand-in keyed by source URL.

    Values are page content (success), an Exception instance (raised), or
    None (all strategies failed). A URL listed in ``gates`` waits for its
    event before answering.
    """

    def __init__(
        self,
        pages: dict[str, Any],
        delays: dict[str, float] | None = None,
        gates: dict[str, asyncio.Event] | None = None,
    ):
        self.pages = pages
        self.delays = delays or {}
        self.gates = gates or {}
        self.calls: list[str] = []
        self.closed = False

    async def acquire(self, url: str):
        self.calls.append(url)
        if url in self.delays:
            await asyncio.sleep(self.delays[url])
        if url in self.gates:
            await self.gates[url].wait()
        page = self.pages.get(url)
        if isinstance(page, BaseException):
            raise page
        if page is None:
            return AcquisitionFailure(attempted_errors=(("Local Proxy", "HTTP 502"),))
        return AcquisitionSuccess(content=page, strategy_used="Local Proxy")

    async def close(self) -> None:
        self.closed = True


class FakeAnalyzer(ContentAnalyzer):
    """Analyzer stand-in keyed by source name."""

    def __init__(self, results: dict[str, Any]):
        self.results = results
        self.calls: list[str] = []

    async def analyze(self, content: str, base_url: str, source_name: str):
        self.calls.append(source_name)
        result = self.results.get(source_name, [])
        if isinstance(result, BaseException):
            raise result
        return result


class FakeDispatcher:
    def __init__(self, outcome: NotificationOutcome | None = None):
        self.outcome = outcome or NotificationOutcome(method="primary", delivered=True, delivery_id="e-1")
        self.calls: list[list] = []

    async def dispatch(self, tenders):
        self.calls.append(list(tenders))
        return self.outcome

    async def close(self) -> None:
        pass


@pytest.fixture
def sources() -> list[Source]:
    return [
        Source(id="a", name="Site A", url="https://a.example/tenders"),
        Source(id="b", name="Site B", url="https://b.example/tenders"),
        Source(id="c", name="Site C", url="https://c.example/tenders"),
    ]


@pytest.fixture
def page() -> str:
    return PAGE
