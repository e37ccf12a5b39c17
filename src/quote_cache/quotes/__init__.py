"""Per-ticker quote cache reconciled against remote CSV feeds.

Architecture
------------
A request for a ticker flows through these pieces::

    CacheStore → QuoteSynchronizer ⇄ LineFeed (historical, intraday)
               → merge → CacheStore.save → QuoteLineAdapter → list[QuoteRow]

Key abstractions:

- ``is_valid_line`` / ``date_key``: classify and order raw CSV lines.
- ``merge``: splice downloaded lines onto the cache without duplicates.
- ``CacheStore``: per-ticker CSV file plus ``KEY=VALUE`` metadata.
- ``needs_refresh``: decides whether the historical feed is due.
- ``LineFeed``: anything that returns raw lines for a ticker.
- ``QuoteSynchronizer``: the per-request state machine.
- ``QuoteDataSource``: per-database context and caller entry point.
"""

from quote_cache.quotes.adapter import QuoteLineAdapter, truncate
from quote_cache.quotes.feeds import (
    LineFeed,
    NullFeed,
    StooqHistoricalFeed,
    StooqIntradayFeed,
    build_client,
)
from quote_cache.quotes.lines import FUTURE, INVALID, date_key, is_valid_line, last_date
from quote_cache.quotes.merge import merge
from quote_cache.quotes.metadata import TickerMetadata, add_or_replace, get_value
from quote_cache.quotes.models import QuoteRow, SyncResult
from quote_cache.quotes.refresh import is_weekend, needs_refresh, previous_working_day
from quote_cache.quotes.source import QuoteDataSource
from quote_cache.quotes.store import CacheStore, QuoteStore
from quote_cache.quotes.sync import QuoteSynchronizer

__all__ = [
    # Lines
    "FUTURE",
    "INVALID",
    "date_key",
    "is_valid_line",
    "last_date",
    # Merge
    "merge",
    # Metadata and storage
    "TickerMetadata",
    "get_value",
    "add_or_replace",
    "QuoteStore",
    "CacheStore",
    # Refresh policy
    "needs_refresh",
    "previous_working_day",
    "is_weekend",
    # Feeds
    "LineFeed",
    "NullFeed",
    "StooqHistoricalFeed",
    "StooqIntradayFeed",
    "build_client",
    # Models
    "QuoteRow",
    "SyncResult",
    # Orchestration
    "QuoteLineAdapter",
    "truncate",
    "QuoteSynchronizer",
    "QuoteDataSource",
]
