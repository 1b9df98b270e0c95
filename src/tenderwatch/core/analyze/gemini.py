"""
Gemini-backed content analyzer.

Calls the Gemini ``generateContent`` REST endpoint with a JSON response
schema, then validates and date-filters the returned candidates. Every
expected failure (missing key, HTTP error, bad JSON) yields an empty list.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta
from typing import Any

import httpx

from tenderwatch.core.backends.base import Backend, BackendError, RequestSpec
from tenderwatch.core.backends.http_backend import HttpBackend
from tenderwatch.core.config.models import AnalyzerConfig
from tenderwatch.core.fetch.retries import RetryableError, RetryConfig, retry_async
from tenderwatch.core.models import CandidateTender

from .base import AnalyzerError, ContentAnalyzer, filter_window, parse_candidates
from .cleaning import clean_content, truncate


logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 503}

# Gemini OpenAPI-subset schema for the expected output
TENDER_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "title": {"type": "STRING", "description": "The title of the tender in English."},
            "originalLanguage": {
                "type": "STRING",
                "description": "The language detected (e.g., Dhivehi, English).",
            },
            "url": {
                "type": "STRING",
                "description": "The full absolute URL to the tender details or PDF file.",
            },
            "dateString": {
                "type": "STRING",
                "description": "The date of the tender announcement found on page (e.g. 2024-05-20).",
            },
            "keywordsFound": {
                "type": "ARRAY",
                "items": {"type": "STRING"},
                "description": "List of keywords from the target list found in this tender.",
            },
            "snippet": {
                "type": "STRING",
                "description": "A brief summary or context where the keyword appeared, translated to English.",
            },
        },
        "required": ["title", "url", "keywordsFound", "snippet"],
    },
}


def build_prompt(
    content: str,
    base_url: str,
    source_name: str,
    keywords: list[str],
    window_days: int,
    today: datetime | None = None,
) -> str:
    """Render the extraction prompt."""
    today = today or datetime.now()
    cutoff = today - timedelta(days=window_days)
    today_str = today.strftime("%Y-%m-%d")
    cutoff_str = cutoff.strftime("%Y-%m-%d")

    return f"""
You are an intelligent tender scraping bot.

1. Analyze the provided content from the website "{source_name}".
2. Base URL: {base_url}.
3. DATE FILTERING RULE:
   - Current Date: {today_str}
   - Cutoff Date: {cutoff_str} ({window_days} days ago)
   - Look for dates associated with the tender announcements.
   - STRICTLY EXCLUDE any tenders dated before {cutoff_str}.
   - If a tender has NO detected date, INCLUDE it (safety margin).
   - If the content lists "expired" or "closed" tenders, ignore them.

4. KEYWORD FILTERING:
   - Filter strictly for: {", ".join(keywords)}.

5. TRANSLATION:
   - Translate Dhivehi/Sinhala content to English.

6. OUTPUT:
   - Return a JSON array of matching, up-to-date tenders.

Content Snippet:
{content}
"""


class GeminiAnalyzer(ContentAnalyzer):
    """Content analyzer using the Gemini REST API."""

    def __init__(
        self,
        config: AnalyzerConfig,
        keywords: list[str],
        backend: Backend | None = None,
    ) -> None:
        self.config = config
        self.keywords = list(keywords)
        self.backend = backend or HttpBackend(timeout=config.timeout_seconds)
        self.retry_config = RetryConfig(max_attempts=config.max_attempts)

    def _request(self, prompt: str) -> RequestSpec:
        url = f"{self.config.endpoint.rstrip('/')}/{self.config.model}:generateContent"
        return RequestSpec(
            url=url,
            method="POST",
            headers={"Content-Type": "application/json"},
            params={"key": self.config.api_key or ""},
            json_data={
                "contents": [{"parts": [{"text": prompt}]}],
                "generationConfig": {
                    "responseMimeType": "application/json",
                    "responseSchema": TENDER_RESPONSE_SCHEMA,
                    "temperature": self.config.temperature,
                },
            },
            timeout=self.config.timeout_seconds,
        )

    async def _generate(self, prompt: str) -> str | None:
        """One generateContent call; returns the model's text part."""
        response = await self.backend.fetch(self._request(prompt))

        if response.status_code in RETRYABLE_STATUS_CODES:
            raise RetryableError(f"Gemini returned {response.status_code}", response.status_code)
        if not response.ok:
            raise AnalyzerError(f"Gemini returned {response.status_code}: {response.text[:200]}")

        body = json.loads(response.text)
        try:
            return body["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            return None

    async def analyze(
        self,
        content: str,
        base_url: str,
        source_name: str,
    ) -> list[CandidateTender]:
        if not self.config.api_key:
            logger.error("Missing API Key for Gemini Analysis", extra={"source": source_name})
            return []

        page = truncate(clean_content(content), self.config.max_content_chars)
        prompt = build_prompt(
            page,
            base_url,
            source_name,
            self.keywords,
            self.config.window_days,
        )

        try:
            text = await retry_async(self._generate, prompt, config=self.retry_config)
            if not text:
                return []
            candidates = parse_candidates(json.loads(text), base_url=base_url)
        except (AnalyzerError, BackendError, RetryableError, httpx.HTTPError, ValueError) as e:
            logger.error("Gemini Analysis Error: %s", e, extra={"source": source_name})
            return []

        return filter_window(candidates, self.config.window_days)

    async def close(self) -> None:
        await self.backend.close()
