"""Per-request reconciliation of the local cache with the remote feeds.

One call to ``QuoteSynchronizer.sync`` walks these states::

    LOADED -> REFRESH_CHECKED -> [HISTORICAL_MERGED] -> [PERSISTED]
           -> INTRADAY_MERGED -> DONE

The historical branch runs only when the refresh policy says so, and the
cache file is rewritten only when the merge added lines. The intraday
snapshot is never persisted. Nothing is retried: a failed download is an
empty feed result and the request finishes with the data it already has.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from quote_cache.core.config import IntradayConfig
from quote_cache.core.models import IntradayMode, Line, SyncState
from quote_cache.quotes.feeds import LineFeed
from quote_cache.quotes.lines import is_valid_line
from quote_cache.quotes.merge import merge
from quote_cache.quotes.models import SyncResult
from quote_cache.quotes.refresh import needs_refresh
from quote_cache.quotes.store import QuoteStore

logger = logging.getLogger(__name__)


class QuoteSynchronizer:
    """Loads, refreshes, persists and returns one ticker's quote lines.

    Parameters
    ----------
    store : QuoteStore
        Per-ticker cache and metadata persistence.
    historical : LineFeed
        End-of-day feed, consulted when a refresh is due.
    intraday : LineFeed
        Snapshot feed, consulted on every request.
    intraday_config : IntradayConfig | None
        Separator line and append/merge policy for the snapshot.
    clock : Callable[[], datetime]
        Source of the current local time.
    """

    def __init__(
        self,
        store: QuoteStore,
        historical: LineFeed,
        intraday: LineFeed,
        intraday_config: IntradayConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._historical = historical
        self._intraday = intraday
        self._intraday_config = intraday_config or IntradayConfig()
        self._clock = clock

    def sync(self, ticker: str) -> SyncResult:
        now = self._clock()
        result = SyncResult(ticker=ticker)

        lines = self._store.load(ticker)
        metadata = self._store.load_metadata(ticker)
        result.states.append(SyncState.LOADED)

        refresh = needs_refresh(metadata, now)
        result.states.append(SyncState.REFRESH_CHECKED)
        logger.debug(
            "%s: %d cached lines, last run %s, refresh=%s",
            ticker,
            len(lines),
            metadata.last_download_run,
            refresh,
        )

        if refresh:
            result.refreshed = True
            cached_count = _count_rows(lines)
            lines = merge(lines, self._historical.fetch(ticker, metadata, now))
            result.states.append(SyncState.HISTORICAL_MERGED)

            if _count_rows(lines) > cached_count:
                self._store.save(ticker, lines, metadata, now)
                result.persisted = True
                result.states.append(SyncState.PERSISTED)

        intraday = self._intraday.fetch(ticker, metadata, now)
        lines = self._combine_intraday(lines, intraday)
        result.intraday_lines = sum(1 for line in intraday if is_valid_line(line))
        result.states.append(SyncState.INTRADAY_MERGED)

        result.lines = lines
        result.states.append(SyncState.DONE)
        return result

    def _combine_intraday(self, lines: list[Line], intraday: list[Line]) -> list[Line]:
        """Place the snapshot after the separator line.

        In merge mode a snapshot dated on or before the last cached row
        replaces that row, and the separator moves to sit directly before
        the first snapshot row.
        """
        separator = self._intraday_config.separator
        with_separator = [*lines, separator]
        if self._intraday_config.mode != IntradayMode.MERGE:
            return with_separator + intraday

        merged = merge(with_separator, intraday)
        snapshot = [line for line in intraday if is_valid_line(line)]
        if separator not in merged and snapshot:
            merged.insert(merged.index(snapshot[0]), separator)
        return merged


def _count_rows(lines: list[Line]) -> int:
    # blank lines come and go with merging and do not count as growth
    return sum(1 for line in lines if line)
