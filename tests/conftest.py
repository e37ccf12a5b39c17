"""Shared pytest fixtures for quote-cache."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from quote_cache.quotes.metadata import TickerMetadata
from quote_cache.quotes.store import CacheStore

HEADER = "Date,Open,High,Low,Close,Volume"

# 2024-01-05 is a Friday; 2024-01-06/07 the weekend; 2024-01-10 a Wednesday.
WEDNESDAY_MORNING = datetime(2024, 1, 10, 9, 0)


class StubFeed:
    """LineFeed that replays fixed lines and records every call."""

    def __init__(self, lines: list[str] | None = None) -> None:
        self.lines = list(lines or [])
        self.calls: list[tuple[str, datetime]] = []

    def fetch(self, ticker: str, metadata: TickerMetadata, now: datetime) -> list[str]:
        self.calls.append((ticker, now))
        return list(self.lines)


class Clock:
    """Mutable clock for driving the refresh policy across calls."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def database(tmp_path: Path) -> Path:
    return tmp_path / "db"


@pytest.fixture
def store(database: Path) -> CacheStore:
    return CacheStore(database)


@pytest.fixture
def clock() -> Clock:
    return Clock(WEDNESDAY_MORNING)


@pytest.fixture
def eod_response() -> list[str]:
    """Historical feed response as split from a CRLF body."""
    return [
        HEADER,
        "2024-01-03,10.0,11.0,9.5,10.5,1000",
        "2024-01-04,10.5,11.5,10.0,11.0,1200",
        "2024-01-05,11.0,12.0,10.5,11.5,900",
        "",
    ]


def make_metadata(**values: str) -> TickerMetadata:
    return TickerMetadata("aapl.us", dict(values))
