"""Tests for the historical refresh policy."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from quote_cache.quotes.metadata import TickerMetadata
from quote_cache.quotes.refresh import is_weekend, needs_refresh, previous_working_day


def _meta(last_run: str | None = None, second_check: str | None = None) -> TickerMetadata:
    values = {}
    if last_run is not None:
        values["LAST_DOWNLOAD_RUN"] = last_run
    if second_check is not None:
        values["SECOND_CHECK_ON_OR_AFTER"] = second_check
    return TickerMetadata("aapl.us", values)


class TestNeedsRefresh:
    def test_new_calendar_day(self):
        meta = _meta("2024-01-09 10:00", "18:00")
        assert needs_refresh(meta, datetime(2024, 1, 10, 9, 0))

    def test_same_day_before_second_check(self):
        meta = _meta("2024-01-10 10:00", "18:00")
        assert not needs_refresh(meta, datetime(2024, 1, 10, 17, 0))

    def test_same_day_after_second_check(self):
        meta = _meta("2024-01-10 10:00", "18:00")
        assert needs_refresh(meta, datetime(2024, 1, 10, 19, 0))

    def test_second_check_exactly_now(self):
        meta = _meta("2024-01-10 10:00", "18:00")
        assert needs_refresh(meta, datetime(2024, 1, 10, 18, 0))

    def test_already_ran_after_second_check(self):
        meta = _meta("2024-01-10 18:30", "18:00")
        assert not needs_refresh(meta, datetime(2024, 1, 10, 21, 0))

    def test_never_downloaded(self):
        assert needs_refresh(_meta(), datetime(2024, 1, 10, 0, 1))

    def test_default_second_check_is_18(self):
        meta = _meta("2024-01-10 10:00")
        assert not needs_refresh(meta, datetime(2024, 1, 10, 17, 59))
        assert needs_refresh(meta, datetime(2024, 1, 10, 18, 1))

    def test_clock_behind_last_run(self):
        meta = _meta("2024-01-11 10:00", "18:00")
        assert not needs_refresh(meta, datetime(2024, 1, 10, 19, 0))

    def test_clock_behind_by_days_ignores_second_check(self):
        meta = _meta("2024-01-15 08:00", "18:00")
        assert not needs_refresh(meta, datetime(2024, 1, 10, 23, 30))


class TestCalendar:
    @pytest.mark.parametrize(
        "day, expected",
        [
            (date(2024, 1, 5), False),
            (date(2024, 1, 6), True),
            (date(2024, 1, 7), True),
            (date(2024, 1, 8), False),
        ],
    )
    def test_is_weekend(self, day, expected):
        assert is_weekend(day) is expected

    @pytest.mark.parametrize(
        "now, expected",
        [
            (datetime(2024, 1, 10, 9, 0), date(2024, 1, 9)),
            (datetime(2024, 1, 8, 9, 0), date(2024, 1, 5)),
            (datetime(2024, 1, 7, 12, 0), date(2024, 1, 5)),
            (datetime(2024, 1, 6, 12, 0), date(2024, 1, 5)),
            (datetime(2024, 1, 9, 0, 0), date(2024, 1, 8)),
        ],
    )
    def test_previous_working_day(self, now, expected):
        assert previous_working_day(now) == expected
