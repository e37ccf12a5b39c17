"""Quote data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from pydantic import BaseModel, ConfigDict, field_validator

from quote_cache.core.models import Line, SyncState


class QuoteRow(BaseModel):
    """A single OHLCV bar parsed from a cached or downloaded line."""

    model_config = ConfigDict(frozen=True)

    ticker: str
    date: date
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0
    open_interest: float = 0.0

    @field_validator("volume")
    @classmethod
    def volume_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"volume must be >= 0, got {v}")
        return v


@dataclass
class SyncResult:
    """Outcome of one synchronization request."""

    ticker: str
    lines: list[Line] = field(default_factory=list)
    states: list[SyncState] = field(default_factory=list)
    refreshed: bool = False
    persisted: bool = False
    intraday_lines: int = 0

    @property
    def state(self) -> SyncState | None:
        return self.states[-1] if self.states else None
