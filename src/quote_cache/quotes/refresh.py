"""When the historical feed is due for another download."""

from __future__ import annotations

from datetime import date, datetime, timedelta

from quote_cache.quotes.metadata import TickerMetadata


def is_weekend(day: date) -> bool:
    """Saturday or Sunday."""
    return day.weekday() >= 5


def previous_working_day(now: datetime) -> date:
    """Return the last weekday strictly before ``now``'s date."""
    day = now.date() - timedelta(days=1)
    while is_weekend(day):
        day -= timedelta(days=1)
    return day


def needs_refresh(metadata: TickerMetadata, now: datetime) -> bool:
    """Decide whether the historical feed should be downloaded this call.

    A refresh is due once per calendar day, and once more on the same day
    when the configured second-check time has passed since the last run.
    Metadata that was never written defaults to 1970-01-01 00:00, so the
    first call for a ticker always refreshes.

    A last run dated after today never triggers the same-day check.
    """
    last_run = metadata.last_download_run
    if now.date() > last_run.date():
        return True
    if now.date() < last_run.date():
        # clock is behind the stored run; wait for it to catch up
        return False
    return last_run.time() <= metadata.second_check <= now.time()
