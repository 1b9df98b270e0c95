"""
Transport strategies.

A transport strategy is one named way of reaching a target URL: fetching it
directly, asking a reader-rendering service for it, or routing it through a
relay. Strategies are stateless and share one interface, so the fallback
chain is plain data: reorder or extend the list, not the control flow.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from urllib.parse import quote

from tenderwatch.core.backends.base import FetchError, FetchResult, RequestSpec
from tenderwatch.core.config.models import StrategyConfig, StrategyKind


class TransportStrategy(ABC):
    """One method of fetching a URL."""

    #: True when the payload arrives inside a structured (JSON) envelope
    is_structured_wrapper: bool = False

    def __init__(self, name: str) -> None:
        self.name = name

    @abstractmethod
    def transform_url(self, url: str) -> str:
        """Return the URL to request for ``url``."""

    def build_request(self, url: str, timeout: float | None = None) -> RequestSpec:
        """Build the request descriptor for a target URL."""
        return RequestSpec(
            url=self.transform_url(url),
            timeout=timeout,
            strategy_name=self.name,
            target_url=url,
        )

    def unwrap(self, response: FetchResult) -> str:
        """Extract page content from a response body."""
        return response.text

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class DirectStrategy(TransportStrategy):
    """Fetch the target itself."""

    def transform_url(self, url: str) -> str:
        return url


class PrefixStrategy(TransportStrategy):
    """Append the raw target URL to an endpoint, e.g. ``https://r.jina.ai/<url>``."""

    def __init__(self, name: str, endpoint: str) -> None:
        super().__init__(name)
        self.endpoint = endpoint

    def transform_url(self, url: str) -> str:
        return f"{self.endpoint}{url}"


class QueryRelayStrategy(TransportStrategy):
    """Pass the percent-encoded target as a relay parameter, e.g. ``/proxy?url=<url>``."""

    def __init__(self, name: str, endpoint: str) -> None:
        super().__init__(name)
        self.endpoint = endpoint

    def transform_url(self, url: str) -> str:
        return f"{self.endpoint}{quote(url, safe='')}"


class EnvelopeRelayStrategy(QueryRelayStrategy):
    """Query relay whose response is a JSON object carrying the page in one field."""

    is_structured_wrapper = True

    def __init__(self, name: str, endpoint: str, envelope_field: str = "contents") -> None:
        super().__init__(name, endpoint)
        self.envelope_field = envelope_field

    def unwrap(self, response: FetchResult) -> str:
        data = json.loads(response.text)
        if not isinstance(data, dict):
            raise FetchError(
                f"Envelope is {type(data).__name__}, expected object",
                url=response.url,
                status_code=response.status_code,
            )
        contents = data.get(self.envelope_field)
        if contents is None:
            return ""
        if not isinstance(contents, str):
            raise FetchError(
                f"Envelope field '{self.envelope_field}' is not a string",
                url=response.url,
                status_code=response.status_code,
            )
        return contents


class ComposedStrategy(TransportStrategy):
    """Apply ``inner``'s URL transformation, then route the result through ``outer``.

    "Relay a reader-rendering of the target" is
    ``ComposedStrategy(name, outer=relay, inner=reader)``. Unwrapping is the
    outer strategy's, since the outer relay produced the response.
    """

    def __init__(self, name: str, outer: TransportStrategy, inner: TransportStrategy) -> None:
        super().__init__(name)
        self.outer = outer
        self.inner = inner
        self.is_structured_wrapper = outer.is_structured_wrapper

    def transform_url(self, url: str) -> str:
        return self.outer.transform_url(self.inner.transform_url(url))

    def unwrap(self, response: FetchResult) -> str:
        return self.outer.unwrap(response)


# =============================================================================
# Factory
# =============================================================================


def _base_strategy(config: StrategyConfig) -> TransportStrategy:
    endpoint = config.endpoint or ""
    if config.kind == StrategyKind.DIRECT:
        return DirectStrategy(config.name)
    if config.kind == StrategyKind.PREFIX:
        return PrefixStrategy(config.name, endpoint)
    if config.kind == StrategyKind.QUERY:
        return QueryRelayStrategy(config.name, endpoint)
    if config.kind == StrategyKind.ENVELOPE:
        return EnvelopeRelayStrategy(config.name, endpoint, config.envelope_field)
    raise ValueError(f"Unsupported strategy kind: {config.kind}")


def build_strategy(config: StrategyConfig) -> TransportStrategy:
    """Create a strategy from its configuration."""
    strategy = _base_strategy(config)
    if config.via:
        reader = PrefixStrategy(f"{config.name} (reader)", config.via)
        return ComposedStrategy(config.name, outer=strategy, inner=reader)
    return strategy


def build_strategies(configs: list[StrategyConfig]) -> list[TransportStrategy]:
    """Create the ordered fallback chain."""
    return [build_strategy(c) for c in configs]
