"""quote_cache.core — Foundation types, config, and exceptions."""

from quote_cache.core.config import (
    CacheConfig,
    FeedsConfig,
    IntradayConfig,
    QuoteCacheConfig,
    RefreshConfig,
    load_config,
)
from quote_cache.core.exceptions import (
    CacheError,
    ConfigError,
    FeedError,
    HostError,
    QuoteCacheError,
)
from quote_cache.core.models import (
    DateKey,
    IntradayMode,
    Line,
    Periodicity,
    SyncState,
)

__all__ = [
    # Type aliases
    "DateKey",
    "Line",
    # Enums
    "IntradayMode",
    "Periodicity",
    "SyncState",
    # Config
    "QuoteCacheConfig",
    "CacheConfig",
    "FeedsConfig",
    "RefreshConfig",
    "IntradayConfig",
    "load_config",
    # Exceptions
    "QuoteCacheError",
    "ConfigError",
    "FeedError",
    "CacheError",
    "HostError",
]
