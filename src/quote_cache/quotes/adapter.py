"""Turns reconciled cache lines into QuoteRow records."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from quote_cache.quotes.lines import is_valid_line
from quote_cache.quotes.models import QuoteRow

logger = logging.getLogger(__name__)


class QuoteLineAdapter:
    """Parses ``date,open,high,low,close[,volume]`` lines into QuoteRows.

    Lines rejected by the line validator (headers, separators, blank lines)
    are ignored. Lines that pass the validator but still cannot be parsed
    are skipped with a warning. Input order is preserved.

    Parameters
    ----------
    date_format : str
        strptime format applied to the date field after hyphens are removed.
    """

    def __init__(self, date_format: str = "%Y%m%d") -> None:
        self._date_format = date_format

    def adapt(self, raw_data: Any, ticker: str) -> list[QuoteRow]:
        """Parse an iterable of lines into QuoteRows for ``ticker``."""
        rows: list[QuoteRow] = []
        for line in raw_data:
            if not is_valid_line(line):
                continue
            row = self._parse(line, ticker)
            if row is not None:
                rows.append(row)
        return rows

    def _parse(self, line: str, ticker: str) -> QuoteRow | None:
        fields = line.split(",")
        if len(fields) < 5:
            logger.warning("Skipping %s line with %d fields: %r", ticker, len(fields), line)
            return None
        try:
            return QuoteRow(
                ticker=ticker,
                date=datetime.strptime(fields[0].replace("-", ""), self._date_format).date(),
                open=float(fields[1]),
                high=float(fields[2]),
                low=float(fields[3]),
                close=float(fields[4]),
                # not every feed reports volume
                volume=float(fields[5]) if len(fields) > 5 and fields[5] else 0.0,
            )
        except (ValueError, ValidationError) as e:
            logger.warning("Skipping unparseable %s line %r: %s", ticker, line, e)
            return None


def truncate(rows: Iterable[QuoteRow], limit: int) -> list[QuoteRow]:
    """Keep the most recent ``limit`` rows, oldest first."""
    rows = list(rows)
    if limit <= 0:
        return []
    return rows[-limit:]
