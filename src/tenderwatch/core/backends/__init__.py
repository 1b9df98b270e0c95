"""Backend implementations for issuing HTTP requests."""

from .base import (
    Backend,
    BackendError,
    BlockedError,
    ContentRejected,
    FetchError,
    FetchResult,
    RequestSpec,
)
from .http_backend import HttpBackend

__all__ = [
    # Base classes
    "Backend",
    "RequestSpec",
    "FetchResult",
    # Errors
    "BackendError",
    "FetchError",
    "BlockedError",
    "ContentRejected",
    # HTTP backend
    "HttpBackend",
]
