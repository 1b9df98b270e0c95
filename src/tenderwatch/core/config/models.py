"""
Pydantic configuration models for TenderWatch.

These models provide type-safe configuration with validation for:
- Monitored sources and keywords
- Transport strategies used to reach the sources
- The content analyzer
- Email notification
- Scan execution, scheduling and logging
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

from tenderwatch.core.models import Source


# =============================================================================
# Enums
# =============================================================================


class StrategyKind(str, Enum):
    """How a transport strategy turns a target URL into a request URL."""

    DIRECT = "direct"  # fetch the target itself
    PREFIX = "prefix"  # endpoint + raw target URL (reader-rendering services)
    QUERY = "query"  # endpoint + percent-encoded target URL
    ENVELOPE = "envelope"  # like QUERY, response is a JSON envelope


class ExecutionMode(str, Enum):
    """Fan-out policy for a scan."""

    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


# =============================================================================
# Defaults
# =============================================================================


DEFAULT_SOURCES: list[dict[str, str]] = [
    {
        "id": "maldives-gazette",
        "name": "Maldives Gazette",
        "url": "https://www.gazette.gov.mv/iulaan",
        "description": "Scans for Dhivehi content, translates, and filters.",
    },
    {
        "id": "srilanka-promise",
        "name": "Sri Lanka Promise",
        "url": "https://promise.lk/",
        "description": "Monitors local Sri Lankan tender announcements.",
    },
    {
        "id": "sl-gazette",
        "name": "Sri Lanka Gov Gazette",
        "url": "http://documents.gov.lk/en/gazette.php",
        "description": "Official Government Gazette archive.",
    },
]

DEFAULT_KEYWORDS: list[str] = [
    "Autodesk", "Revit", "AutoCAD", "AEC Collection", "Civil 3D",
    "Adobe", "Creative Cloud", "Photoshop", "Illustrator",
    "Microsoft", "Office 365", "Azure",
    "Trimble", "SketchUp",
    "D5 Render",
]

DEFAULT_READER_ENDPOINT = "https://r.jina.ai/"
PROXY_ENV_VAR = "TENDERWATCH_PROXY"
DEFAULT_RECIPIENTS: list[str] = ["tenders@example.com"]


# =============================================================================
# Source Configuration
# =============================================================================


class SourceConfig(BaseModel):
    """A monitored site."""

    id: str = Field(..., min_length=1, max_length=100, description="Unique source identifier")
    name: str = Field(..., min_length=1, description="Human-readable source name")
    url: str = Field(..., description="Page to scan")
    description: str | None = Field(default=None, description="Operator notes")
    enabled: bool = Field(default=True, description="Whether this source is scanned")

    @field_validator("url")
    @classmethod
    def url_is_http(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("source url must be http(s)")
        return v

    def to_source(self) -> Source:
        return Source(id=self.id, name=self.name, url=self.url)


# =============================================================================
# Transport Configuration
# =============================================================================


class StrategyConfig(BaseModel):
    """One transport strategy in the fallback chain."""

    name: str = Field(..., min_length=1, description="Strategy name shown in logs")
    kind: StrategyKind = Field(..., description="URL transformation type")
    endpoint: str | None = Field(
        default=None,
        description="Relay endpoint the target URL is appended to",
    )
    envelope_field: str = Field(
        default="contents",
        description="JSON field carrying the page for envelope relays",
    )
    via: str | None = Field(
        default=None,
        description="Reader endpoint applied to the target before this relay",
    )

    @model_validator(mode="after")
    def endpoint_required_for_relays(self) -> StrategyConfig:
        if self.kind != StrategyKind.DIRECT and not self.endpoint:
            raise ValueError(f"strategy '{self.name}' of kind {self.kind.value} needs an endpoint")
        return self


def local_proxy_strategies(endpoint: str) -> list[StrategyConfig]:
    """Self-hosted relay entries, plain and over the reader."""
    return [
        StrategyConfig(name="Local Proxy", kind=StrategyKind.QUERY, endpoint=endpoint),
        StrategyConfig(
            name="Local Proxy via Jina",
            kind=StrategyKind.QUERY,
            endpoint=endpoint,
            via=DEFAULT_READER_ENDPOINT,
        ),
    ]


def _default_strategies() -> list[StrategyConfig]:
    # A self-hosted relay is only tried when one is configured
    proxy = os.environ.get(PROXY_ENV_VAR, "").strip()
    relays = local_proxy_strategies(proxy) if proxy else []
    return relays + [
        StrategyConfig(name="Direct", kind=StrategyKind.DIRECT),
        StrategyConfig(
            name="Jina Reader",
            kind=StrategyKind.PREFIX,
            endpoint=DEFAULT_READER_ENDPOINT,
        ),
        StrategyConfig(
            name="AllOrigins (Public)",
            kind=StrategyKind.ENVELOPE,
            endpoint="https://api.allorigins.win/get?url=",
        ),
    ]


class TransportConfig(BaseModel):
    """Acquisition settings shared by all strategies."""

    timeout_seconds: float = Field(
        default=30.0,
        ge=1.0,
        le=300.0,
        description="Per-attempt request timeout in seconds",
    )
    min_content_length: int = Field(
        default=50,
        ge=1,
        description="Content shorter than this is not a real page",
    )
    app_shell_markers: list[str] = Field(
        default_factory=lambda: ["<!DOCTYPE html>", "TenderWatch AI"],
        description="All markers present means a relay returned our own UI",
    )
    user_agent: str | None = Field(default=None, description="Override User-Agent header")
    strategies: list[StrategyConfig] = Field(
        default_factory=_default_strategies,
        min_length=1,
        description="Ordered fallback chain, most reliable first",
    )


# =============================================================================
# Analyzer Configuration
# =============================================================================


class AnalyzerConfig(BaseModel):
    """LLM content analyzer settings."""

    model: str = Field(default="gemini-2.0-flash", description="Gemini model name")
    api_key: str | None = Field(default=None, description="Gemini API key")
    endpoint: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/models",
        description="Gemini REST base URL",
    )
    window_days: int = Field(
        default=30,
        ge=1,
        le=365,
        description="Rolling window; older tenders are excluded",
    )
    max_content_chars: int = Field(
        default=95000,
        ge=1000,
        description="Page content is truncated to this many characters",
    )
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    timeout_seconds: float = Field(default=120.0, ge=1.0)
    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts on rate-limit / unavailable responses",
    )

    @field_validator("api_key")
    @classmethod
    def blank_key_is_none(cls, v: str | None) -> str | None:
        return v or None


# =============================================================================
# Notification Configuration
# =============================================================================


class NotificationConfig(BaseModel):
    """Email report settings."""

    recipients: list[str] = Field(
        default_factory=lambda: list(DEFAULT_RECIPIENTS),
        min_length=1,
        description="Fixed recipient list",
    )
    relay_url: str = Field(
        default="https://api.resend.com/emails",
        description="Transactional email endpoint",
    )
    api_key: str | None = Field(default=None, description="Bearer token for the relay")
    from_address: str = Field(default="TenderWatch <onboarding@resend.dev>")
    subject_prefix: str = Field(default="[TenderWatch]")
    window_days: int = Field(default=30, ge=1, description="Window mentioned in the report")
    open_mail_client: bool = Field(
        default=True,
        description="Open the local mail composer when the relay fails",
    )
    timeout_seconds: float = Field(default=30.0, ge=1.0)

    @field_validator("api_key")
    @classmethod
    def blank_key_is_none(cls, v: str | None) -> str | None:
        return v or None


# =============================================================================
# Scan / Scheduler / Logging Configuration
# =============================================================================


class ScanConfig(BaseModel):
    """Scan execution settings."""

    mode: ExecutionMode = Field(
        default=ExecutionMode.SEQUENTIAL,
        description="Interactive scans go one source at a time",
    )
    max_concurrency: int = Field(
        default=4,
        ge=1,
        le=32,
        description="Parallel sources in concurrent mode",
    )


class SchedulerConfig(BaseModel):
    """Cron schedule for the batch variant."""

    enabled: bool = Field(default=True)
    cron: str = Field(default="0 10 * * *", description="Crontab expression")
    timezone: str = Field(default="UTC")
    mode: ExecutionMode = Field(
        default=ExecutionMode.CONCURRENT,
        description="Scheduled scans fan out across sources",
    )


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    file: Path | None = Field(
        default=Path("logs/tenderwatch.log"),
        description="Log file path",
    )
    json_format: bool = Field(
        default=True,
        description="Use JSON format for file logs",
    )
    rich_console: bool = Field(
        default=True,
        description="Use Rich for console output",
    )


# =============================================================================
# Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """Root application configuration.

    This is the main configuration object loaded from app.yaml.
    """

    sources: list[SourceConfig] = Field(
        default_factory=lambda: [SourceConfig(**s) for s in DEFAULT_SOURCES],
    )
    keywords: list[str] = Field(default_factory=lambda: list(DEFAULT_KEYWORDS), min_length=1)

    transport: TransportConfig = Field(default_factory=TransportConfig)
    analyzer: AnalyzerConfig = Field(default_factory=AnalyzerConfig)
    notification: NotificationConfig = Field(default_factory=NotificationConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("sources")
    @classmethod
    def unique_source_ids(cls, v: list[SourceConfig]) -> list[SourceConfig]:
        seen: set[str] = set()
        for source in v:
            if source.id in seen:
                raise ValueError(f"duplicate source id: {source.id}")
            seen.add(source.id)
        return v

    def enabled_sources(self) -> list[Source]:
        """Sources to scan, in configured order."""
        return [s.to_source() for s in self.sources if s.enabled]
