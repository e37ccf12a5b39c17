"""Custom exception hierarchy for quote-cache."""

from typing import Any


class QuoteCacheError(Exception):
    """Base exception for all quote-cache errors.

    All exceptions carry an optional `context` dict for structured error
    metadata that can be logged or serialized without parsing the message.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}


class ConfigError(QuoteCacheError):
    """Invalid or missing configuration.

    Raised by load_config() during startup. Should be treated as fatal.

    Context keys:
        field: str — the config field that failed validation
        value: Any — the invalid value
    """


class FeedError(QuoteCacheError):
    """A remote feed could not be fetched or decoded.

    Policy: never escapes a feed adapter. Adapters log it and return an
    empty line sequence so the request proceeds with cached data.

    Context keys:
        ticker: str — the symbol being fetched
        url: str — the URL that was requested
        status_code: int | None — HTTP status if a response arrived
    """


class CacheError(QuoteCacheError):
    """Writing the per-symbol cache or metadata file failed.

    Policy: raise immediately. A cache that cannot be persisted must not be
    reported as refreshed.

    Context keys:
        ticker: str — the symbol whose files were being written
        path: str — the file that failed
    """


class HostError(QuoteCacheError):
    """Invalid call at the host boundary (no database loaded, bad size).

    Context keys:
        ticker: str | None — the requested symbol
    """
