"""Content analysis - turn acquired pages into candidate tenders."""

from .base import (
    AnalyzerError,
    ContentAnalyzer,
    filter_window,
    parse_candidates,
    resolve_url,
    within_window,
)
from .cleaning import clean_content, truncate
from .gemini import GeminiAnalyzer, build_prompt

__all__ = [
    "AnalyzerError",
    "ContentAnalyzer",
    "GeminiAnalyzer",
    "build_prompt",
    "clean_content",
    "truncate",
    "filter_window",
    "parse_candidates",
    "resolve_url",
    "within_window",
]
