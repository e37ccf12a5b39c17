"""Shared enumerations and type aliases."""

from __future__ import annotations

from enum import StrEnum

# --- Type Aliases ---

Line = str
DateKey = int

# --- Enumerations ---


class Periodicity(StrEnum):
    """Bar periodicities a caller may request."""

    DAILY = "1d"
    WEEKLY = "1wk"
    MONTHLY = "1mo"


class IntradayMode(StrEnum):
    """How the intraday snapshot is combined with the historical series."""

    APPEND = "append"
    MERGE = "merge"


class SyncState(StrEnum):
    """Stages a synchronization request passes through."""

    LOADED = "loaded"
    REFRESH_CHECKED = "refresh_checked"
    HISTORICAL_MERGED = "historical_merged"
    PERSISTED = "persisted"
    INTRADAY_MERGED = "intraday_merged"
    DONE = "done"
