"""Tests for report rendering, notification channels and the dispatcher."""

from __future__ import annotations

import json
from datetime import date
from io import StringIO
from urllib.parse import unquote

import httpx
import pytest
from rich.console import Console

from tenderwatch.core.config.models import NotificationConfig
from tenderwatch.core.models import Source, Tender
from tenderwatch.core.notify import (
    MailComposerChannel,
    NotificationDispatcher,
    NotificationError,
    RelayEmailChannel,
    build_report,
    render_html,
    render_text,
)

from .conftest import make_candidate, mock_backend


SOURCE = Source(id="promise", name="Sri Lanka Promise", url="https://promise.lk/")
FOUND_ON = date(2026, 10, 19)


def _tenders(*titles: str) -> list[Tender]:
    return [Tender.from_candidate(make_candidate(t), SOURCE, FOUND_ON) for t in titles]


def _config(**overrides) -> NotificationConfig:
    data = {
        "recipients": ["ops@example.com", "sales@example.com"],
        "api_key": "re_test",
        "relay_url": "https://relay.example/emails",
    }
    data.update(overrides)
    return NotificationConfig(**data)


class FakeLauncher:
    def __init__(self, returncode: int = 0):
        self.returncode = returncode
        self.links: list[str] = []

    def __call__(self, link: str) -> int:
        self.links.append(link)
        return self.returncode


def _composer(launcher: FakeLauncher, open_client: bool = True) -> tuple[MailComposerChannel, StringIO]:
    out = StringIO()
    channel = MailComposerChannel(
        open_client=open_client,
        launcher=launcher,
        console=Console(file=out, width=10_000),
    )
    return channel, out


class TestReport:
    def test_subject_and_recipients(self):
        report = build_report(_tenders("A", "B"), ["x@example.com"], subject_prefix="[TW]")
        assert report.subject == "[TW] 2 New Opportunities Found"
        assert report.recipients == ("x@example.com",)

    def test_empty_list_is_rejected(self):
        with pytest.raises(ValueError):
            build_report([], ["x@example.com"])

    def test_html_escapes_content(self):
        tender = Tender.from_candidate(
            make_candidate("<b>Revit</b> & AutoCAD", url="https://x.example/?a=1&b=2"),
            SOURCE,
            FOUND_ON,
        )
        html = render_html([tender], window_days=30)
        assert "&lt;b&gt;Revit&lt;/b&gt; &amp; AutoCAD" in html
        assert 'href="https://x.example/?a=1&amp;b=2"' in html
        assert "(Last 30 Days)" in html
        assert "Date: 2026-10-19" in html

    def test_plain_text_blocks(self):
        text = render_text(_tenders("One", "Two"))
        first, second = text.split("\n\n-------------------\n\n")
        assert first.splitlines() == [
            "One",
            "Source: Sri Lanka Promise",
            "Link: https://example.gov/one",
            "Keywords: Revit",
        ]
        assert second.startswith("Two\n")

    def test_mailto_link(self):
        report = build_report(_tenders("One"), ["a@example.com", "b@example.com"])
        link = report.mailto_link()
        assert link.startswith("mailto:a@example.com,b@example.com?subject=")
        subject = link.split("subject=")[1].split("&body=")[0]
        assert unquote(subject) == report.subject
        assert unquote(link.split("&body=")[1]) == report.text


class TestRelayChannel:
    @pytest.mark.asyncio
    async def test_delivers_on_json_ack(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"id": "email_123"})

        channel = RelayEmailChannel(_config(), backend=mock_backend(handler))
        report = build_report(_tenders("One"), ["ops@example.com"])
        outcome = await channel.deliver(report)

        assert outcome.method == "primary"
        assert outcome.delivered
        assert outcome.delivery_id == "email_123"

        (request,) = requests
        assert request.headers["authorization"] == "Bearer re_test"
        payload = json.loads(request.content)
        assert payload["to"] == ["ops@example.com"]
        assert payload["subject"] == report.subject
        assert payload["html"] == report.html

    @pytest.mark.asyncio
    async def test_html_response_is_failure(self):
        backend = mock_backend(
            lambda r: httpx.Response(200, text="<html>index</html>", headers={"content-type": "text/html"})
        )
        channel = RelayEmailChannel(_config(), backend=backend)

        with pytest.raises(NotificationError, match="Backend Error: 200"):
            await channel.deliver(build_report(_tenders("One"), ["ops@example.com"]))

    @pytest.mark.asyncio
    async def test_missing_key_is_failure(self):
        channel = RelayEmailChannel(_config(api_key=None), backend=mock_backend(lambda r: httpx.Response(200)))

        with pytest.raises(NotificationError):
            await channel.deliver(build_report(_tenders("One"), ["ops@example.com"]))


class TestMailComposer:
    @pytest.mark.asyncio
    async def test_opens_client(self):
        launcher = FakeLauncher()
        channel, out = _composer(launcher)
        report = build_report(_tenders("One"), ["ops@example.com"])

        outcome = await channel.deliver(report)

        assert outcome.method == "fallback"
        assert outcome.delivered
        assert launcher.links == [report.mailto_link()]
        assert out.getvalue() == ""

    @pytest.mark.asyncio
    async def test_prints_link_when_client_unavailable(self):
        launcher = FakeLauncher(returncode=1)
        channel, out = _composer(launcher)
        report = build_report(_tenders("One"), ["ops@example.com"])

        outcome = await channel.deliver(report)

        assert outcome.delivered
        assert report.mailto_link() in out.getvalue()

    @pytest.mark.asyncio
    async def test_headless_never_launches(self):
        launcher = FakeLauncher()
        channel, out = _composer(launcher, open_client=False)

        outcome = await channel.deliver(build_report(_tenders("One"), ["ops@example.com"]))

        assert outcome.delivered
        assert launcher.links == []
        assert "mailto:" in out.getvalue()


class TestDispatcher:
    def _dispatcher(self, handler, launcher: FakeLauncher) -> NotificationDispatcher:
        config = _config()
        composer, _ = _composer(launcher)
        return NotificationDispatcher(
            channels=[RelayEmailChannel(config, backend=mock_backend(handler)), composer],
            recipients=config.recipients,
        )

    @pytest.mark.asyncio
    async def test_primary_success_skips_fallback(self):
        launcher = FakeLauncher()
        dispatcher = self._dispatcher(lambda r: httpx.Response(200, json={"id": "abc"}), launcher)

        outcome = await dispatcher.dispatch(_tenders("One", "Two"))

        assert outcome.method == "primary"
        assert outcome.delivery_id == "abc"
        assert launcher.links == []

    @pytest.mark.asyncio
    async def test_non_2xx_falls_back(self):
        launcher = FakeLauncher()
        dispatcher = self._dispatcher(lambda r: httpx.Response(500, json={"message": "down"}), launcher)

        outcome = await dispatcher.dispatch(_tenders("One"))

        assert outcome.method == "fallback"
        assert outcome.delivered
        assert len(launcher.links) == 1
        assert launcher.links[0].startswith("mailto:ops@example.com,sales@example.com?")

    @pytest.mark.asyncio
    async def test_wrong_content_type_falls_back(self):
        launcher = FakeLauncher()
        dispatcher = self._dispatcher(
            lambda r: httpx.Response(200, text="<!DOCTYPE html>", headers={"content-type": "text/html"}),
            launcher,
        )

        outcome = await dispatcher.dispatch(_tenders("One"))

        assert outcome.method == "fallback"
        assert outcome.delivered

    @pytest.mark.asyncio
    async def test_unreachable_relay_falls_back(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        launcher = FakeLauncher()
        outcome = await self._dispatcher(handler, launcher).dispatch(_tenders("One"))

        assert outcome.method == "fallback"
        assert outcome.delivered

    def test_requires_a_channel(self):
        with pytest.raises(ValueError):
            NotificationDispatcher(channels=[], recipients=["a@example.com"])

    def test_from_config_chain(self):
        dispatcher = NotificationDispatcher.from_config(_config())
        assert [c.method for c in dispatcher.channels] == ["primary", "fallback"]
