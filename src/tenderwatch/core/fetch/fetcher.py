"""
Fallback fetcher.

Tries an ordered list of transport strategies for one target URL and
returns the first validated result. Each strategy gets exactly one attempt;
moving to the next strategy is the only retry. Nothing is cached between
calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Union
from urllib.parse import urlparse

import httpx

from tenderwatch.core.backends.base import Backend, BackendError
from tenderwatch.core.backends.http_backend import HttpBackend
from tenderwatch.core.config.models import TransportConfig

from .strategies import TransportStrategy, build_strategies
from .validation import ContentValidator


logger = logging.getLogger(__name__)

# Per-strategy failures the fetcher absorbs; anything else propagates.
STRATEGY_ERRORS = (BackendError, httpx.HTTPError, ValueError)


@dataclass(frozen=True)
class AcquisitionSuccess:
    """Validated page content and the strategy that produced it."""

    content: str
    strategy_used: str

    ok = True


@dataclass(frozen=True)
class AcquisitionFailure:
    """Every strategy failed. Errors are kept in attempt order."""

    attempted_errors: tuple[tuple[str, str], ...] = field(default_factory=tuple)

    ok = False

    @property
    def primary_error(self) -> str:
        """The first recorded error, treated as the most diagnostic."""
        if not self.attempted_errors:
            return "No transport strategies configured"
        name, message = self.attempted_errors[0]
        return f"{name}: {message}"

    @property
    def message(self) -> str:
        return f"All strategies failed. {self.primary_error}"


AcquisitionResult = Union[AcquisitionSuccess, AcquisitionFailure]


class FallbackFetcher:
    """Acquire a page through the first transport strategy that works."""

    def __init__(
        self,
        strategies: list[TransportStrategy],
        backend: Backend | None = None,
        validator: ContentValidator | None = None,
        timeout: float | None = None,
    ) -> None:
        self.strategies = list(strategies)
        self.backend = backend or HttpBackend()
        self.validator = validator or ContentValidator()
        self.timeout = timeout

    @classmethod
    def from_config(
        cls,
        config: TransportConfig,
        backend: Backend | None = None,
    ) -> FallbackFetcher:
        """Build a fetcher, its strategy chain and validator from configuration."""
        return cls(
            strategies=build_strategies(config.strategies),
            backend=backend or HttpBackend(
                timeout=config.timeout_seconds,
                user_agent=config.user_agent,
            ),
            validator=ContentValidator(
                min_length=config.min_content_length,
                app_shell_markers=list(config.app_shell_markers),
            ),
            timeout=config.timeout_seconds,
        )

    async def attempt(self, strategy: TransportStrategy, url: str) -> str:
        """Run one strategy once and return validated content.

        Raises:
            BackendError: Transport failure, non-success status, or rejected content
            ValueError: Undecodable envelope
        """
        request = strategy.build_request(url, timeout=self.timeout)
        response = await self.backend.fetch(request)

        if not response.ok:
            raise BackendError(
                f"HTTP {response.status_code}",
                url=request.url,
                status_code=response.status_code,
            )

        content = strategy.unwrap(response)
        return self.validator.validate(content, url=request.url)

    async def acquire(self, url: str) -> AcquisitionResult:
        """Acquire ``url`` through the ordered strategy chain.

        Returns on the first validated success without touching later
        strategies. When all fail, the failure carries every error in order.
        """
        errors: list[tuple[str, str]] = []

        for strategy in self.strategies:
            try:
                content = await self.attempt(strategy, url)
            except STRATEGY_ERRORS as e:
                logger.debug(
                    "Strategy %s failed for %s: %s",
                    strategy.name,
                    url,
                    e,
                    extra={"strategy": strategy.name, "url": url},
                )
                errors.append((strategy.name, str(e) or type(e).__name__))
                continue

            logger.info(
                "Fetched %s via %s",
                urlparse(url).hostname or url,
                strategy.name,
                extra={"strategy": strategy.name, "url": url},
            )
            return AcquisitionSuccess(content=content, strategy_used=strategy.name)

        failure = AcquisitionFailure(attempted_errors=tuple(errors))
        logger.warning("Fetch failed for %s: %s", url, [f"{n}: {m}" for n, m in errors])
        return failure

    async def close(self) -> None:
        await self.backend.close()
