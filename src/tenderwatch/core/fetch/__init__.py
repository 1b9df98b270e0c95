"""Fetch utilities - transport strategies, validation, fallback acquisition, retries."""

from .fetcher import (
    AcquisitionFailure,
    AcquisitionResult,
    AcquisitionSuccess,
    FallbackFetcher,
)
from .retries import RetryableError, RetryConfig, retry_async
from .strategies import (
    ComposedStrategy,
    DirectStrategy,
    EnvelopeRelayStrategy,
    PrefixStrategy,
    QueryRelayStrategy,
    TransportStrategy,
    build_strategies,
    build_strategy,
)
from .validation import ContentValidator

__all__ = [
    # Fetcher
    "FallbackFetcher",
    "AcquisitionResult",
    "AcquisitionSuccess",
    "AcquisitionFailure",
    # Strategies
    "TransportStrategy",
    "DirectStrategy",
    "PrefixStrategy",
    "QueryRelayStrategy",
    "EnvelopeRelayStrategy",
    "ComposedStrategy",
    "build_strategy",
    "build_strategies",
    # Validation
    "ContentValidator",
    # Retries
    "RetryableError",
    "RetryConfig",
    "retry_async",
]
