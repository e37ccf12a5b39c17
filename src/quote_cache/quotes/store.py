"""File-backed quote cache: one CSV and one metadata file per ticker.

Files live directly under the database directory::

    <database>/<TICKER>.csv      cached lines, oldest first
    <database>/<TICKER>.config   KEY=VALUE metadata

Writes go to a temporary sibling first and are moved into place with an
atomic rename, so a reader never sees a half-written cache.
"""

from __future__ import annotations

import logging
from contextlib import suppress
from datetime import datetime
from pathlib import Path
from typing import Protocol, runtime_checkable

from quote_cache.core.config import CacheConfig, DEFAULT_SECOND_CHECK
from quote_cache.core.exceptions import CacheError
from quote_cache.core.models import Line
from quote_cache.quotes.lines import last_date, split_lines
from quote_cache.quotes.metadata import TickerMetadata, format_metadata, parse_metadata

logger = logging.getLogger(__name__)


@runtime_checkable
class QuoteStore(Protocol):
    """Protocol for per-ticker line caches."""

    def load(self, ticker: str) -> list[Line]:
        """Return cached lines, or an empty list when nothing is cached."""
        ...

    def save(
        self, ticker: str, lines: list[Line], metadata: TickerMetadata, now: datetime
    ) -> None:
        """Replace the cached lines and stamp the metadata."""
        ...

    def load_metadata(self, ticker: str) -> TickerMetadata:
        """Return the ticker's metadata, empty when none is stored."""
        ...

    def save_metadata(self, metadata: TickerMetadata) -> None:
        """Persist metadata, excluding the identity keys."""
        ...


class CacheStore:
    """Filesystem implementation of QuoteStore.

    Parameters
    ----------
    database_path : str | Path
        Directory holding the per-ticker files. Created on first write.
    config : CacheConfig | None
        File suffixes. Defaults are ``.csv`` and ``.config``.
    second_check_default : str
        ``HH:MM`` handed to metadata that has no stored second-check time.
    """

    def __init__(
        self,
        database_path: str | Path,
        config: CacheConfig | None = None,
        second_check_default: str = DEFAULT_SECOND_CHECK,
    ) -> None:
        self._root = Path(database_path)
        self._config = config or CacheConfig()
        self._second_check_default = second_check_default

    @property
    def root(self) -> Path:
        return self._root

    def cache_path(self, ticker: str) -> Path:
        return self._root / f"{ticker}{self._config.cache_suffix}"

    def metadata_path(self, ticker: str) -> Path:
        return self._root / f"{ticker}{self._config.metadata_suffix}"

    def load(self, ticker: str) -> list[Line]:
        path = self.cache_path(ticker)
        if not path.exists():
            return []
        # same tokenization as feed responses, minus the final terminator
        lines = split_lines(path.read_bytes().decode("utf-8"))
        if lines[-1] == "":
            lines.pop()
        return lines

    def save(
        self, ticker: str, lines: list[Line], metadata: TickerMetadata, now: datetime
    ) -> None:
        """Overwrite the cache with exactly ``lines`` and persist metadata.

        The download timestamp becomes ``now`` and the last-entry key is
        taken from the last non-empty line.
        """
        path = self.cache_path(ticker)
        self._write_atomic(path, "".join(f"{line}\n" for line in lines), ticker)

        metadata.last_download_run = now
        metadata.last_entry_in_file = last_date(lines)
        self.save_metadata(metadata)

        logger.info("Saved %d lines for %s to %s", len(lines), ticker, path)

    def load_metadata(self, ticker: str) -> TickerMetadata:
        path = self.metadata_path(ticker)
        values = parse_metadata(path.read_text(encoding="utf-8")) if path.exists() else {}
        metadata = TickerMetadata(
            ticker, values, second_check_default=self._second_check_default
        )
        metadata.identify(str(self.cache_path(ticker)), str(path))
        return metadata

    def save_metadata(self, metadata: TickerMetadata) -> None:
        path = self.metadata_path(metadata.ticker)
        self._write_atomic(path, format_metadata(metadata.values), metadata.ticker)

    def _write_atomic(self, path: Path, content: str, ticker: str) -> None:
        temp_path = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(content, encoding="utf-8")
            temp_path.replace(path)
        except OSError as e:
            with suppress(OSError):
                temp_path.unlink()
            raise CacheError(
                f"Failed to write {path}: {e}",
                context={"ticker": ticker, "path": str(path)},
            ) from e
