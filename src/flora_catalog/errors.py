"""
Error taxonomy for source access.

Source clients raise a ``FetchError`` subclass instead of returning error
values. The retry policy and the aggregator classify on the subclass:

- ``RateLimited``       HTTP 429; never retried, triggers stale-cache fallback
- ``RequestFailed``     any other non-2xx status; retried up to the policy bound
- ``Unreachable``       network-level failure; retried like ``RequestFailed``
- ``MalformedResponse`` payload or record too broken to normalize; dropped

``SourceDisabledError`` is a caller precondition violation (looking up a record
whose source is switched off) and is allowed to abort the operation.
"""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for all catalog errors."""


class FetchError(CatalogError):
    """A single source call failed."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(message)
        self.source = source
        self.message = message


class RateLimited(FetchError):
    """The provider answered 429. ``message`` is meant for end users."""

    def __init__(self, source: str, message: str | None = None) -> None:
        super().__init__(
            source,
            message
            or f"{source} rate limit exceeded. Please wait a few minutes and try again.",
        )


class RequestFailed(FetchError):
    """Non-2xx response other than 429."""

    def __init__(self, source: str, status: int) -> None:
        super().__init__(source, f"{source} request failed: {status}")
        self.status = status


class Unreachable(FetchError):
    """Connection error, timeout, or other network-level failure."""


class MalformedResponse(FetchError):
    """Response body or record is structurally unusable."""


class SourceDisabledError(CatalogError, ValueError):
    """A lookup targeted a source that is disabled in configuration."""

    def __init__(self, source: str) -> None:
        super().__init__(f"Source {source!r} is disabled")
        self.source = source
