"""End-to-end tests: QuoteDataSource against mocked Stooq endpoints."""

from __future__ import annotations

from datetime import date, datetime
from types import SimpleNamespace

import httpx
import pytest
import respx

from conftest import Clock
from quote_cache.core.config import IntradayConfig, QuoteCacheConfig
from quote_cache.core.models import IntradayMode, Periodicity
from quote_cache.quotes.feeds import NullFeed
from quote_cache.quotes.source import QuoteDataSource

EOD_URL = "https://stooq.pl/q/d/l/"
INTRADAY_URL = "https://stooq.pl/q/l/"

EOD_BODY = (
    "Date,Open,High,Low,Close,Volume\r\n"
    "2024-01-08,10.0,11.0,9.5,10.5,1000\r\n"
    "2024-01-09,10.5,11.5,10.0,11.0,1200\r\n"
)
INTRADAY_BODY = "Date,Open,High,Low,Close,Volume\r\n2024-01-10,11.0,12.0,10.5,11.8,500\r\n"


@pytest.fixture
def stooq():
    with respx.mock(assert_all_called=False) as mock:
        yield SimpleNamespace(
            eod=mock.get(url__startswith=EOD_URL).mock(
                return_value=httpx.Response(200, text=EOD_BODY)
            ),
            intraday=mock.get(url__startswith=INTRADAY_URL).mock(
                return_value=httpx.Response(200, text=INTRADAY_BODY)
            ),
        )


@pytest.fixture
def wednesday() -> Clock:
    return Clock(datetime(2024, 1, 10, 9, 0))


def _source(database, clock, config=None) -> QuoteDataSource:
    return QuoteDataSource(database, config, clock=clock)


class TestFirstRequest:
    def test_downloads_caches_and_returns_rows(self, stooq, database, wednesday):
        with _source(database, wednesday) as source:
            rows = source.get_quotes("aapl.us", limit=10)

        assert [r.date for r in rows] == [date(2024, 1, 8), date(2024, 1, 9), date(2024, 1, 10)]
        assert rows[-1].close == 11.8

        request = stooq.eod.calls.last.request
        assert request.url.params["d1"] == "19700101"
        assert request.url.params["d2"] == "20240109"

        cached = (database / "aapl.us.csv").read_text()
        assert "2024-01-09,10.5" in cached
        assert "2024-01-10" not in cached

        config = (database / "aapl.us.config").read_text()
        assert "LAST_DOWNLOAD_RUN=2024-01-10 09:00" in config
        assert "LAST_ENTRY_IN_FILE=20240109" in config

    def test_limit_keeps_most_recent(self, stooq, database, wednesday):
        with _source(database, wednesday) as source:
            rows = source.get_quotes("aapl.us", Periodicity.DAILY, limit=2)
        assert [r.date.day for r in rows] == [9, 10]

    def test_non_daily_serves_daily_rows(self, stooq, database, wednesday):
        with _source(database, wednesday) as source:
            rows = source.get_quotes("aapl.us", Periodicity.WEEKLY, limit=10)
        assert len(rows) == 3


class TestRepeatedRequests:
    def test_same_morning_uses_cache(self, stooq, database, wednesday):
        with _source(database, wednesday) as source:
            first = source.get_quotes("aapl.us", limit=10)
            second = source.get_quotes("aapl.us", limit=10)

        assert second == first
        assert stooq.eod.call_count == 1
        assert stooq.intraday.call_count == 2

    def test_second_check_short_circuits_download(self, stooq, database, wednesday):
        with _source(database, wednesday) as source:
            source.get_quotes("aapl.us", limit=10)
            wednesday.now = datetime(2024, 1, 10, 18, 30)
            result = source.sync("aapl.us")

        # Refresh was due, but the cache already ends on the previous working day.
        assert result.refreshed
        assert not result.persisted
        assert stooq.eod.call_count == 1

    def test_next_day_extends_cache(self, stooq, database, wednesday):
        with _source(database, wednesday) as source:
            source.get_quotes("aapl.us", limit=10)

            stooq.eod.mock(
                return_value=httpx.Response(
                    200,
                    text="Date,Open,High,Low,Close,Volume\r\n2024-01-10,11.0,12.0,10.5,11.9,800\r\n",
                )
            )
            wednesday.now = datetime(2024, 1, 11, 9, 0)
            rows = source.get_quotes("aapl.us", limit=10)

        assert stooq.eod.calls.last.request.url.params["d1"] == "20240109"
        assert [r.date.day for r in rows][:3] == [8, 9, 10]
        cached = (database / "aapl.us.csv").read_text()
        assert "2024-01-10,11.0,12.0,10.5,11.9,800" in cached


class TestFailures:
    def test_historical_outage_leaves_cache_untouched(self, stooq, database, wednesday):
        stooq.eod.mock(return_value=httpx.Response(503))

        with _source(database, wednesday) as source:
            rows = source.get_quotes("aapl.us", limit=10)

        assert [r.date for r in rows] == [date(2024, 1, 10)]
        assert not (database / "aapl.us.csv").exists()

    def test_intraday_outage_returns_cached_rows(self, stooq, database, wednesday):
        stooq.intraday.mock(side_effect=httpx.ConnectError)

        with _source(database, wednesday) as source:
            rows = source.get_quotes("aapl.us", limit=10)

        assert [r.date.day for r in rows] == [8, 9]


class TestConfiguration:
    def test_intraday_disabled(self, stooq, database, wednesday):
        config = QuoteCacheConfig(intraday=IntradayConfig(enabled=False))
        with _source(database, wednesday, config) as source:
            rows = source.get_quotes("aapl.us", limit=10)

        assert [r.date.day for r in rows] == [8, 9]
        assert stooq.intraday.call_count == 0

    def test_intraday_merge_mode(self, stooq, database, wednesday):
        stooq.intraday.mock(
            return_value=httpx.Response(200, text="2024-01-09,10.6,11.6,10.1,11.2,1300\r\n")
        )
        config = QuoteCacheConfig(intraday=IntradayConfig(mode=IntradayMode.MERGE))
        with _source(database, wednesday, config) as source:
            result = source.sync("aapl.us")

        data = [line for line in result.lines if line.startswith("2024")]
        assert data == [
            "2024-01-08,10.0,11.0,9.5,10.5,1000",
            "2024-01-09,10.6,11.6,10.1,11.2,1300",
        ]

    def test_injected_feeds_skip_http_client(self, database, wednesday):
        source = QuoteDataSource(
            database, historical=NullFeed(), intraday=NullFeed(), clock=wednesday
        )
        assert source._client is None
        assert source.get_quotes("aapl.us", limit=5) == []
        source.close()
