"""
Backend base classes and data structures.

Defines the request/response descriptors shared by transport strategies
and the exception taxonomy for acquisition failures.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class RequestSpec:
    """Specification for an HTTP request."""

    url: str
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)
    json_data: dict[str, Any] | None = None
    timeout: float | None = None
    follow_redirects: bool = True

    # Metadata for logging/debugging
    strategy_name: str | None = None
    target_url: str | None = None  # The page we actually want, before relay wrapping


@dataclass
class FetchResult:
    """Result of a fetch operation."""

    url: str
    final_url: str  # After redirects
    status_code: int
    text: str
    headers: dict[str, str]

    # Timing
    elapsed_ms: float
    fetched_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def ok(self) -> bool:
        """Check if request was successful (2xx status)."""
        return 200 <= self.status_code < 300

    @property
    def content_type(self) -> str:
        """Lower-cased Content-Type header, empty if absent."""
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return value.lower()
        return ""


class Backend(ABC):
    """Abstract base class for HTTP backends."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier."""
        pass

    @abstractmethod
    async def fetch(self, request: RequestSpec) -> FetchResult:
        """Issue a request and return the response.

        Non-2xx responses are returned, not raised; callers decide what
        counts as success.

        Raises:
            BackendError: On transport failure
        """
        pass

    async def close(self) -> None:
        """Clean up backend resources."""
        pass


class BackendError(Exception):
    """Base exception for backend errors."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause


class FetchError(BackendError):
    """Error during fetch operation."""
    pass


class BlockedError(FetchError):
    """Request blocked by anti-bot measures."""
    pass


class ContentRejected(FetchError):
    """Response arrived but its content failed validation."""
    pass
