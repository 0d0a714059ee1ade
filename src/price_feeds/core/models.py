"""Pydantic data models: the system's type contracts."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, model_validator

# --- Type Aliases ---

Timestamp = int
FixedPrice = int

# --- Enumerations ---


class TieBreakRule(StrEnum):
    """Which sample answers a query landing strictly between two samples."""

    NEXT_SAMPLE = "next_sample"
    PREVIOUS_SAMPLE = "previous_sample"


class PrecisionPolicy(StrEnum):
    """How decimal price strings are scaled into fixed-point integers."""

    TRUNCATE = "truncate"
    ROUND = "round"


class FeedSource(StrEnum):
    """Supported external price sources."""

    TWELVE_DATA = "twelve_data"
    STATISTICS_NETHERLANDS = "statistics_netherlands"


# --- Price Models ---


class PriceSample(BaseModel):
    """A single observation: Unix seconds and a fixed-point scaled price."""

    model_config = ConfigDict(frozen=True)

    timestamp: Timestamp
    price: FixedPrice


class FeedState(BaseModel):
    """Everything a feed knows after its last successful update.

    Replaced as a whole on every update, so readers never observe a
    current price from one fetch paired with a series from another.
    """

    model_config = ConfigDict(frozen=True)

    series: tuple[PriceSample, ...] = ()
    current_price: FixedPrice | None = None
    last_update_time: Timestamp | None = None

    @model_validator(mode="after")
    def series_consistent(self) -> FeedState:
        timestamps = [s.timestamp for s in self.series]
        if timestamps != sorted(timestamps):
            raise ValueError("series must be ordered oldest-to-newest by timestamp")
        if self.series and self.current_price != self.series[-1].price:
            raise ValueError(
                f"current_price ({self.current_price}) must equal the newest "
                f"sample price ({self.series[-1].price})"
            )
        return self

    @property
    def is_initialized(self) -> bool:
        return self.last_update_time is not None
