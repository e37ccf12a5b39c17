"""Remote quote feeds: Stooq historical and intraday CSV downloads.

Each feed turns a ticker into raw response lines. Transport failures never
reach the caller: they are logged and the feed returns an empty list, and
the synchronizer carries on with whatever is already cached.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol, runtime_checkable

import httpx

from quote_cache.core.config import FeedsConfig
from quote_cache.core.exceptions import FeedError
from quote_cache.core.models import Line
from quote_cache.quotes.lines import INVALID, date_key, is_valid_line, split_lines
from quote_cache.quotes.metadata import TickerMetadata
from quote_cache.quotes.refresh import is_weekend, previous_working_day

logger = logging.getLogger(__name__)

_DATE_PARAM_FORMAT = "%Y%m%d"


@runtime_checkable
class LineFeed(Protocol):
    """Produces raw CSV lines for a ticker.

    Returns
    -------
    list[str]
        Response lines in server order, header included. Empty when the
        feed was skipped or the download failed.
    """

    def fetch(self, ticker: str, metadata: TickerMetadata, now: datetime) -> list[Line]: ...


def build_client(config: FeedsConfig) -> httpx.Client:
    """Create the HTTP client shared by the remote feeds."""
    return httpx.Client(
        headers={"User-Agent": config.user_agent},
        timeout=httpx.Timeout(config.request_timeout),
        follow_redirects=True,
    )


class NullFeed:
    """A feed that never has data. Stands in for a disabled feed."""

    def fetch(self, ticker: str, metadata: TickerMetadata, now: datetime) -> list[Line]:
        return []


class _RemoteFeed:
    def __init__(self, client: httpx.Client, url_template: str) -> None:
        self._client = client
        self._url_template = url_template

    def _download(self, ticker: str, url: str) -> list[Line]:
        try:
            body = self._request(ticker, url)
        except FeedError as e:
            logger.error("%s %s", e, e.context)
            return []
        return split_lines(body)

    def _request(self, ticker: str, url: str) -> str:
        logger.debug("GET %s", url)
        try:
            resp = self._client.get(url)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FeedError(
                f"Feed HTTP error for {ticker}: {e.response.status_code}",
                context={"ticker": ticker, "url": url, "status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            raise FeedError(
                f"Feed request error for {ticker}: {e}",
                context={"ticker": ticker, "url": url, "status_code": None},
            ) from e
        return resp.text


class StooqHistoricalFeed(_RemoteFeed):
    """End-of-day bars from the last cached date through the previous working day.

    Skips the download when the previous working day is already the last
    cached date, and discards responses that hold nothing newer than it.
    """

    def __init__(self, client: httpx.Client, config: FeedsConfig | None = None) -> None:
        super().__init__(client, (config or FeedsConfig()).historical_url)

    def fetch(self, ticker: str, metadata: TickerMetadata, now: datetime) -> list[Line]:
        start = metadata.last_entry_in_file
        end = previous_working_day(now).strftime(_DATE_PARAM_FORMAT)
        if end == start:
            logger.debug("%s already cached through %s, skipping download", ticker, end)
            return []

        url = self._url_template.format(ticker=ticker, start=start, end=end)
        lines = self._download(ticker, url)

        newest = max((date_key(line) for line in lines if is_valid_line(line)), default=INVALID)
        if newest <= date_key(start):
            logger.info("No new historical quotes for %s after %s", ticker, start)
            return []

        logger.info("Downloaded %d historical lines for %s (%s-%s)", len(lines), ticker, start, end)
        return lines


class StooqIntradayFeed(_RemoteFeed):
    """Latest quote snapshot. Not requested on Saturdays and Sundays."""

    def __init__(self, client: httpx.Client, config: FeedsConfig | None = None) -> None:
        super().__init__(client, (config or FeedsConfig()).intraday_url)

    def fetch(self, ticker: str, metadata: TickerMetadata, now: datetime) -> list[Line]:
        if is_weekend(now.date()):
            return []
        return self._download(ticker, self._url_template.format(ticker=ticker))
