"""Host boundary: packed dates, binary quotation records, entry points.

The charting host exchanges bars as fixed 40-byte records whose first
field is a 64-bit packed date::

    bits 52-63 year | 48-51 month | 43-47 day | 38-42 hour | 32-37 minute
    bits 26-31 second | 16-25 millisecond | 6-15 microsecond | 0 future pad

End-of-day bars carry all-ones time fields. Everything inside the package
works with plain ``datetime.date`` values; packing happens only here.

This module is also the outermost error boundary. Failures are logged with
a traceback and re-raised for the host to surface.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from quote_cache.core.config import QuoteCacheConfig
from quote_cache.core.exceptions import HostError
from quote_cache.core.models import Periodicity
from quote_cache.quotes.models import QuoteRow
from quote_cache.quotes.source import QuoteDataSource

logger = logging.getLogger(__name__)

# date, price (close), open, high, low, volume, open interest, aux1, aux2
QUOTATION_FORMAT = "<Q8f"
QUOTATION_SIZE = struct.calcsize(QUOTATION_FORMAT)

_EOD_HOUR = 31
_EOD_MINUTE = 63
_EOD_SECOND = 63
_EOD_FRACTION = 1023


@dataclass(frozen=True)
class HostDate:
    """Date/time with the fields the host's packed format carries."""

    year: int
    month: int
    day: int
    hour: int = 0
    minute: int = 0
    second: int = 0
    millisecond: int = 0
    microsecond: int = 0
    is_eod: bool = False
    is_future_pad: bool = False

    @classmethod
    def from_date(cls, value: date, eod: bool = True) -> HostDate:
        return cls(value.year, value.month, value.day, is_eod=eod)

    @property
    def date_as_int(self) -> int:
        """``yyyymmdd`` as an integer."""
        return self.year * 10_000 + self.month * 100 + self.day

    def to_date(self) -> date:
        return date(self.year, self.month, self.day)


def pack_date(value: HostDate) -> int:
    """Encode a HostDate into the host's 64-bit layout."""
    if value.is_eod:
        hour, minute, second = _EOD_HOUR, _EOD_MINUTE, _EOD_SECOND
        millisecond = microsecond = _EOD_FRACTION
    else:
        hour, minute, second = value.hour, value.minute, value.second
        millisecond, microsecond = value.millisecond, value.microsecond

    return (
        value.year << 52
        | value.month << 48
        | value.day << 43
        | hour << 38
        | minute << 32
        | second << 26
        | millisecond << 16
        | microsecond << 6
        | int(value.is_future_pad)
    )


def unpack_date(packed: int) -> HostDate:
    """Decode a 64-bit packed date."""
    hour = (packed >> 38) & 31
    minute = (packed >> 32) & 63
    second = (packed >> 26) & 63
    return HostDate(
        year=packed >> 52,
        month=(packed >> 48) & 15,
        day=(packed >> 43) & 31,
        hour=hour,
        minute=minute,
        second=second,
        millisecond=(packed >> 16) & 1023,
        microsecond=(packed >> 6) & 1023,
        is_eod=(hour, minute, second) == (_EOD_HOUR, _EOD_MINUTE, _EOD_SECOND),
        is_future_pad=bool(packed & 1),
    )


def pack_quotation(row: QuoteRow) -> bytes:
    """Serialize a QuoteRow as one host quotation record."""
    return struct.pack(
        QUOTATION_FORMAT,
        pack_date(HostDate.from_date(row.date)),
        row.close,
        row.open,
        row.high,
        row.low,
        row.volume,
        row.open_interest,
        0.0,
        0.0,
    )


def open_database(
    database_path: str | Path, config: QuoteCacheConfig | None = None
) -> QuoteDataSource:
    """Handle a database-load event by building its data source context."""
    logger.info("Opening quote database at %s", database_path)
    return QuoteDataSource(database_path, config)


def get_quotes_ex(
    source: QuoteDataSource | None,
    ticker: str,
    periodicity: Periodicity,
    size: int,
) -> bytes:
    """Return up to ``size`` packed quotation records for ``ticker``."""
    logger.debug(
        "get_quotes_ex(ticker=%s, periodicity=%s, size=%d)", ticker, periodicity, size
    )
    try:
        if source is None:
            raise HostError("No database is loaded", context={"ticker": ticker})
        if size < 0:
            raise HostError(
                f"size must be >= 0, got {size}", context={"ticker": ticker}
            )
        rows = source.get_quotes(ticker, periodicity, size)
        return b"".join(pack_quotation(row) for row in rows)
    except Exception:
        logger.exception("get_quotes_ex failed for %s", ticker)
        raise
