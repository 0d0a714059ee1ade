"""Point-in-time price resolution over a feed's sample series.

A query for time ``T`` first locates the earliest sample whose timestamp is
strictly greater than ``T``. When no such sample exists the answer is the
feed's current price. Otherwise the feed's tie-break rule decides which
sample answers:

- ``TieBreakRule.NEXT_SAMPLE`` answers with the matched sample itself, the
  nearest future observation (hourly closes).
- ``TieBreakRule.PREVIOUS_SAMPLE`` answers with the sample just before the
  match, the last value in effect at ``T`` (monthly published indices).
  A match at index 0 has no predecessor and falls back to the current price.

The two rules give different answers for the same series and must stay
separate.
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from operator import attrgetter
from typing import Callable, Sequence

from price_feeds.core.exceptions import (
    BeforeLookbackWindowError,
    EmptySeriesError,
    MissingCurrentPriceError,
    UninitializedFeedError,
)
from price_feeds.core.models import FeedState, PriceSample, TieBreakRule

TieBreaker = Callable[[Sequence[PriceSample], int], PriceSample | None]


@dataclass(frozen=True)
class Resolution:
    """Resolved price plus the sample it came from.

    ``sample`` is None when the answer is the feed's current price.
    """

    price: int
    sample: PriceSample | None = None


def next_sample(series: Sequence[PriceSample], index: int) -> PriceSample | None:
    """Answer with the first sample strictly after the query time."""
    return series[index]


def previous_sample(series: Sequence[PriceSample], index: int) -> PriceSample | None:
    """Answer with the last sample at or before the query time."""
    if index == 0:
        return None
    return series[index - 1]


TIE_BREAKERS: dict[TieBreakRule, TieBreaker] = {
    TieBreakRule.NEXT_SAMPLE: next_sample,
    TieBreakRule.PREVIOUS_SAMPLE: previous_sample,
}


def valid_samples(series: Sequence[PriceSample]) -> list[PriceSample]:
    """Drop samples without a usable (positive) timestamp."""
    return [s for s in series if s.timestamp > 0]


def resolve_historical_price(
    state: FeedState,
    time: int,
    rule: TieBreakRule,
    *,
    feed: str = "feed",
) -> Resolution:
    """Resolve the best-known price as of ``time``.

    Raises:
        UninitializedFeedError: the feed never completed an update.
        EmptySeriesError: no sample carries a valid timestamp.
        BeforeLookbackWindowError: ``time`` predates the earliest sample.
        MissingCurrentPriceError: the current price is absent when needed.
    """
    if not state.is_initialized:
        raise UninitializedFeedError(
            f"{feed}: no successful update yet",
            context={"feed": feed, "time": time},
        )

    series = valid_samples(state.series)
    if not series:
        raise EmptySeriesError(
            f"{feed}: no valid price samples",
            context={"feed": feed, "time": time},
        )

    first = series[0]
    if time < first.timestamp:
        raise BeforeLookbackWindowError(
            f"{feed}: time {time} is before the first sample at {first.timestamp}",
            context={"feed": feed, "time": time, "first_timestamp": first.timestamp},
        )

    index = bisect_right(series, time, key=attrgetter("timestamp"))
    match = TIE_BREAKERS[rule](series, index) if index < len(series) else None

    if match is None:
        if state.current_price is None:
            raise MissingCurrentPriceError(
                f"{feed}: current price is missing",
                context={"feed": feed, "time": time},
            )
        return Resolution(price=state.current_price)

    return Resolution(price=match.price, sample=match)
