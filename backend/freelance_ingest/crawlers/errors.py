"""Error taxonomy for platform crawls.

Transport and protocol errors are fatal to a single adapter call. The
orchestrator isolates them per platform in all-platforms mode. Per-item parse
and enrichment failures never reach this hierarchy; adapters log and skip them.
"""

from __future__ import annotations


class CrawlError(Exception):
    """Base class for every error raised by an adapter or the orchestrator."""

    def __init__(self, message: str, *, platform: str = "") -> None:
        super().__init__(message)
        self.platform = platform


class TransportError(CrawlError):
    """Non-success HTTP status or network failure."""

    def __init__(self, message: str, *, platform: str = "", status_code: int | None = None) -> None:
        super().__init__(message, platform=platform)
        self.status_code = status_code


class ProtocolError(CrawlError):
    """A response is missing a required field or artifact."""


class UnknownPlatformError(CrawlError):
    pass


class PlatformDisabledError(CrawlError):
    pass


__all__ = [
    "CrawlError",
    "PlatformDisabledError",
    "ProtocolError",
    "TransportError",
    "UnknownPlatformError",
]
