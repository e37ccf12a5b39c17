"""Data source context: everything needed to serve quotes for one database.

A ``QuoteDataSource`` is built when a database is opened and passed to
every request for that database. It owns the HTTP client, so close it (or
use it as a context manager) when the database is closed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from quote_cache.core.config import QuoteCacheConfig
from quote_cache.core.models import Periodicity
from quote_cache.quotes.adapter import QuoteLineAdapter, truncate
from quote_cache.quotes.feeds import (
    LineFeed,
    NullFeed,
    StooqHistoricalFeed,
    StooqIntradayFeed,
    build_client,
)
from quote_cache.quotes.models import QuoteRow, SyncResult
from quote_cache.quotes.store import CacheStore
from quote_cache.quotes.sync import QuoteSynchronizer

logger = logging.getLogger(__name__)


class QuoteDataSource:
    """Serves reconciled quotes for tickers stored under one database path.

    Parameters
    ----------
    database_path : str | Path | None
        Directory with the per-ticker files. Defaults to
        ``config.cache.database_path``.
    config : QuoteCacheConfig | None
        Full configuration. Defaults are used when omitted.
    historical, intraday : LineFeed | None
        Feed overrides. Stooq feeds sharing one HTTP client are built when
        omitted; the intraday feed is a NullFeed when disabled in config.
    clock : Callable[[], datetime]
        Source of the current local time.
    """

    def __init__(
        self,
        database_path: str | Path | None = None,
        config: QuoteCacheConfig | None = None,
        historical: LineFeed | None = None,
        intraday: LineFeed | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._config = config or QuoteCacheConfig()
        self.database_path = Path(database_path or self._config.cache.database_path)
        self.store = CacheStore(
            self.database_path,
            self._config.cache,
            second_check_default=self._config.refresh.second_check,
        )

        self._client = None
        if historical is None or (intraday is None and self._config.intraday.enabled):
            self._client = build_client(self._config.feeds)

        if historical is None:
            historical = StooqHistoricalFeed(self._client, self._config.feeds)
        if intraday is None:
            intraday = (
                StooqIntradayFeed(self._client, self._config.feeds)
                if self._config.intraday.enabled
                else NullFeed()
            )

        self._synchronizer = QuoteSynchronizer(
            self.store,
            historical,
            intraday,
            intraday_config=self._config.intraday,
            clock=clock,
        )
        self._adapter = QuoteLineAdapter()

    def __enter__(self) -> QuoteDataSource:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client, if one was created."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def sync(self, ticker: str) -> SyncResult:
        """Reconcile ``ticker`` and return the full line sequence."""
        return self._synchronizer.sync(ticker)

    def get_quotes(
        self,
        ticker: str,
        periodicity: Periodicity = Periodicity.DAILY,
        limit: int = 0,
    ) -> list[QuoteRow]:
        """Return at most ``limit`` of the most recent rows, oldest first.

        A ``limit`` of 0 or less returns no rows. Only daily bars are
        cached; other periodicities receive the daily series.
        """
        if periodicity != Periodicity.DAILY:
            logger.info("%s requested at %s, serving daily bars", ticker, periodicity.value)

        result = self.sync(ticker)
        rows = truncate(self._adapter.adapt(result.lines, ticker), limit)
        logger.debug(
            "%s: returning %d rows (refreshed=%s, persisted=%s)",
            ticker,
            len(rows),
            result.refreshed,
            result.persisted,
        )
        return rows
