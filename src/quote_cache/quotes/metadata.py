"""Per-ticker sidecar metadata kept in a ``KEY=VALUE`` file.

The metadata records when the historical feed was last downloaded, which
date the cache ends on, and the time of day after which a second download
is attempted on the same day.
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from datetime import datetime, time

from quote_cache.core.config import DEFAULT_SECOND_CHECK

logger = logging.getLogger(__name__)

LAST_DOWNLOAD_RUN = "LAST_DOWNLOAD_RUN"
LAST_ENTRY_IN_FILE = "LAST_ENTRY_IN_FILE"
SECOND_CHECK_ON_OR_AFTER = "SECOND_CHECK_ON_OR_AFTER"

TICKER = "TICKER"
TICKER_FILE = "TICKER_FILE"
TICKER_CONFIG_FILE = "TICKER_CONFIG_FILE"

# Identity keys are derived from the ticker and never written to disk
RESERVED_KEYS = frozenset({TICKER, TICKER_FILE, TICKER_CONFIG_FILE})

DOWNLOAD_RUN_FORMAT = "%Y-%m-%d %H:%M"
SECOND_CHECK_FORMAT = "%H:%M"
DEFAULT_DOWNLOAD_RUN = "1970-01-01 00:00"
DEFAULT_LAST_ENTRY = "19700101"


def get_value(mapping: MutableMapping[str, str], key: str, default: str) -> str:
    """Return ``mapping[key]``, or ``default`` when the key is absent."""
    return mapping.get(key, default)


def add_or_replace(mapping: MutableMapping[str, str], key: str, value: str) -> None:
    """Set ``key`` to ``value``, moving it to the end of the mapping."""
    mapping.pop(key, None)
    mapping[key] = value


def parse_metadata(text: str) -> dict[str, str]:
    """Parse ``KEY=VALUE`` lines; lines without ``=`` are skipped."""
    values: dict[str, str] = {}
    for lineno, raw in enumerate(text.splitlines(), start=1):
        if not raw.strip():
            continue
        key, sep, value = raw.partition("=")
        if not sep:
            logger.warning("Skipping malformed metadata line %d: %r", lineno, raw)
            continue
        add_or_replace(values, key, value)
    return values


def format_metadata(values: MutableMapping[str, str]) -> str:
    """Render metadata for disk, dropping the reserved identity keys."""
    return "".join(
        f"{key}={value}\n" for key, value in values.items() if key not in RESERVED_KEYS
    )


class TickerMetadata:
    """Typed view over one ticker's metadata mapping.

    Parameters
    ----------
    ticker : str
        The symbol the metadata belongs to.
    values : dict[str, str] | None
        Raw key/value pairs as read from disk. Unknown keys are kept and
        written back unchanged.
    second_check_default : str
        ``HH:MM`` used when the file has no ``SECOND_CHECK_ON_OR_AFTER``.
    """

    def __init__(
        self,
        ticker: str,
        values: dict[str, str] | None = None,
        second_check_default: str = DEFAULT_SECOND_CHECK,
    ) -> None:
        self.ticker = ticker
        self.values: dict[str, str] = dict(values or {})
        self._second_check_default = second_check_default

    def identify(self, ticker_file: str, config_file: str) -> None:
        """Record the identity keys for this ticker (memory only)."""
        add_or_replace(self.values, TICKER, self.ticker)
        add_or_replace(self.values, TICKER_FILE, ticker_file)
        add_or_replace(self.values, TICKER_CONFIG_FILE, config_file)

    @property
    def last_download_run(self) -> datetime:
        raw = get_value(self.values, LAST_DOWNLOAD_RUN, DEFAULT_DOWNLOAD_RUN)
        try:
            return datetime.strptime(raw, DOWNLOAD_RUN_FORMAT)
        except ValueError:
            logger.warning(
                "Invalid %s %r for %s, assuming never downloaded",
                LAST_DOWNLOAD_RUN,
                raw,
                self.ticker,
            )
            return datetime.strptime(DEFAULT_DOWNLOAD_RUN, DOWNLOAD_RUN_FORMAT)

    @last_download_run.setter
    def last_download_run(self, value: datetime) -> None:
        add_or_replace(self.values, LAST_DOWNLOAD_RUN, value.strftime(DOWNLOAD_RUN_FORMAT))

    @property
    def last_entry_in_file(self) -> str:
        raw = get_value(self.values, LAST_ENTRY_IN_FILE, DEFAULT_LAST_ENTRY)
        value = raw.strip().replace("-", "")
        if len(value) != 8 or not (value.isascii() and value.isdigit()):
            logger.warning(
                "Invalid %s %r for %s, refetching from %s",
                LAST_ENTRY_IN_FILE,
                raw,
                self.ticker,
                DEFAULT_LAST_ENTRY,
            )
            return DEFAULT_LAST_ENTRY
        return value

    @last_entry_in_file.setter
    def last_entry_in_file(self, value: str) -> None:
        add_or_replace(self.values, LAST_ENTRY_IN_FILE, value.replace("-", ""))

    @property
    def second_check(self) -> time:
        raw = get_value(self.values, SECOND_CHECK_ON_OR_AFTER, self._second_check_default)
        try:
            return datetime.strptime(raw, SECOND_CHECK_FORMAT).time()
        except ValueError:
            logger.warning(
                "Invalid %s %r for %s, using %s",
                SECOND_CHECK_ON_OR_AFTER,
                raw,
                self.ticker,
                self._second_check_default,
            )
            return datetime.strptime(self._second_check_default, SECOND_CHECK_FORMAT).time()

    def __repr__(self) -> str:
        return f"TickerMetadata(ticker={self.ticker!r}, values={self.values!r})"
