"""Tests for candidate parsing, date filtering and the Gemini analyzer."""

from __future__ import annotations

import json
from datetime import datetime

import httpx
import pytest

from tenderwatch.core.analyze import (
    AnalyzerError,
    GeminiAnalyzer,
    build_prompt,
    clean_content,
    filter_window,
    parse_candidates,
    resolve_url,
)
from tenderwatch.core.config.models import AnalyzerConfig
from tenderwatch.core.fetch.retries import RetryableError, RetryConfig, retry_async

from .conftest import PAGE, make_candidate, mock_backend


NOW = datetime(2026, 10, 19, 12, 0)


class TestParseCandidates:
    def test_valid_items(self):
        raw = [
            {
                "title": "Supply of AutoCAD licences",
                "url": "https://promise.lk/t/1",
                "snippet": "AutoCAD LT x 20",
                "keywordsFound": ["AutoCAD"],
                "originalLanguage": "English",
                "dateString": "2026-10-10",
            }
        ]
        (candidate,) = parse_candidates(raw)
        assert candidate.title == "Supply of AutoCAD licences"
        assert candidate.keywords_found == frozenset({"AutoCAD"})
        assert candidate.original_language == "English"

    def test_invalid_items_are_dropped(self):
        raw = [
            {"title": "missing fields"},
            "not an object",
            {"title": "ok", "url": "https://x/1", "snippet": "s", "keywordsFound": ["Azure"]},
        ]
        candidates = parse_candidates(raw)
        assert [c.title for c in candidates] == ["ok"]

    def test_wrapped_array_is_unwrapped(self):
        raw = {"tenders": [{"title": "t", "url": "https://x/1", "snippet": "s", "keywordsFound": []}]}
        assert len(parse_candidates(raw)) == 1

    def test_non_list_raises(self):
        with pytest.raises(AnalyzerError):
            parse_candidates("nothing here")

    def test_relative_urls_are_resolved(self):
        raw = [{"title": "t", "url": "/iulaan/123", "snippet": "s", "keywordsFound": ["Adobe"]}]
        (candidate,) = parse_candidates(raw, base_url="https://www.gazette.gov.mv/iulaan")
        assert candidate.url == "https://www.gazette.gov.mv/iulaan/123"

    def test_resolve_url_keeps_absolute(self):
        assert resolve_url(" https://a.example/x ", "https://b.example/") == "https://a.example/x"


class TestWindowFilter:
    def test_drops_old_keeps_recent_and_undated(self):
        candidates = [
            make_candidate("recent", dateString="2026-10-01"),
            make_candidate("old", dateString="2026-08-01"),
            make_candidate("undated"),
            make_candidate("garbled", dateString="qwerty"),
        ]
        kept = filter_window(candidates, window_days=30, now=NOW)
        assert [c.title for c in kept] == ["recent", "undated", "garbled"]


class TestCleaning:
    def test_strips_scripts_styles_and_comments(self):
        raw = "<html><script>var x = 1;</script><style>p{}</style><!-- hi --><p>Tender   notice</p></html>"
        out = clean_content(raw)

        assert "<p>Tender notice</p>" in out
        assert "var x" not in out
        assert "p{}" not in out
        assert "<!--" not in out

    def test_strips_scripts_with_attributes_and_loose_end_tags(self):
        raw = '<p>Revit tender</p><script type="text/javascript">var secret = "JS";</script >tail'
        out = clean_content(raw)

        assert "secret" not in out
        assert "Revit tender" in out
        assert "tail" in out

    def test_reader_markdown_passes_through(self):
        raw = "# Tenders\n\n[Revit  licences](https://promise.lk/t/1) closing 2026-10-30"
        assert clean_content(raw) == "# Tenders [Revit licences](https://promise.lk/t/1) closing 2026-10-30"

    def test_prompt_mentions_window_and_keywords(self):
        prompt = build_prompt("content", "https://promise.lk/", "Sri Lanka Promise", ["Revit", "Azure"], 30, today=NOW)
        assert "Cutoff Date: 2026-09-19" in prompt
        assert "Revit, Azure" in prompt
        assert '"Sri Lanka Promise"' in prompt


def _gemini_body(items) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": json.dumps(items)}]}}]}


class TestGeminiAnalyzer:
    @pytest.mark.asyncio
    async def test_missing_key_returns_empty(self):
        called = []
        backend = mock_backend(lambda r: called.append(r) or httpx.Response(200))
        analyzer = GeminiAnalyzer(AnalyzerConfig(api_key=""), ["Revit"], backend=backend)

        assert await analyzer.analyze(PAGE, "https://promise.lk/", "Promise") == []
        assert called == []

    @pytest.mark.asyncio
    async def test_successful_extraction(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=_gemini_body([
                {"title": "Revit", "url": "/t/1", "snippet": "s", "keywordsFound": ["Revit"]},
                {"title": "Ancient", "url": "/t/2", "snippet": "s", "keywordsFound": ["Revit"], "dateString": "2001-01-01"},
            ]))

        config = AnalyzerConfig(api_key="secret", model="gemini-test")
        analyzer = GeminiAnalyzer(config, ["Revit"], backend=mock_backend(handler))
        candidates = await analyzer.analyze(PAGE, "https://promise.lk/", "Promise")
        await analyzer.close()

        assert [c.title for c in candidates] == ["Revit"]
        assert candidates[0].url == "https://promise.lk/t/1"

        (request,) = requests
        assert request.method == "POST"
        assert request.url.path.endswith("/gemini-test:generateContent")
        assert request.url.params["key"] == "secret"
        payload = json.loads(request.content)
        assert payload["generationConfig"]["responseMimeType"] == "application/json"
        assert "Filter strictly for: Revit" in payload["contents"][0]["parts"][0]["text"]

    @pytest.mark.asyncio
    async def test_http_error_returns_empty(self):
        backend = mock_backend(lambda r: httpx.Response(400, json={"error": {"message": "bad"}}))
        analyzer = GeminiAnalyzer(AnalyzerConfig(api_key="k"), ["Revit"], backend=backend)

        assert await analyzer.analyze(PAGE, "https://promise.lk/", "Promise") == []

    @pytest.mark.asyncio
    async def test_exhausted_retries_return_empty(self):
        backend = mock_backend(lambda r: httpx.Response(429, text="quota"))
        analyzer = GeminiAnalyzer(AnalyzerConfig(api_key="k", max_attempts=1), ["Revit"], backend=backend)

        assert await analyzer.analyze(PAGE, "https://promise.lk/", "Promise") == []

    @pytest.mark.asyncio
    async def test_non_json_text_returns_empty(self):
        body = {"candidates": [{"content": {"parts": [{"text": "I could not find any tenders."}]}}]}
        backend = mock_backend(lambda r: httpx.Response(200, json=body))
        analyzer = GeminiAnalyzer(AnalyzerConfig(api_key="k"), ["Revit"], backend=backend)

        assert await analyzer.analyze(PAGE, "https://promise.lk/", "Promise") == []


class TestRetryAsync:
    @pytest.mark.asyncio
    async def test_retries_retryable_then_succeeds(self):
        attempts = []

        async def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise RetryableError("503", 503)
            return "ok"

        config = RetryConfig(max_attempts=3, min_wait=0, max_wait=0)
        assert await retry_async(flaky, config=config) == "ok"
        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_other_errors_are_not_retried(self):
        attempts = []

        async def broken():
            attempts.append(1)
            raise AnalyzerError("bad request")

        with pytest.raises(AnalyzerError):
            await retry_async(broken, config=RetryConfig(max_attempts=3, min_wait=0, max_wait=0))
        assert len(attempts) == 1
