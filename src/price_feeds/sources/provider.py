"""Price source protocol: the per-source half of a price feed.

Architecture
------------
A feed is one generic engine plus one source:

    Source URL → Networker → raw JSON → PriceSource.parse → list[PriceSample] → HistoricalPriceFeed

The engine owns throttling, state and historical resolution. A source owns
only what differs between upstream APIs:

1. How to encode a lookback window into a request URL.
2. How to turn the JSON response into ordered ``PriceSample`` records.
3. Which tie-break rule answers queries between two samples.
4. Its default minimum time between refreshes.

Adding a new source = writing one class that satisfies ``PriceSource``.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol, runtime_checkable

from price_feeds.core.models import PriceSample, TieBreakRule


@runtime_checkable
class PriceSource(Protocol):
    """Source-specific URL construction, parsing, and tie-break policy.

    ``parse`` returns samples sorted oldest-to-newest. It raises
    ``ValueError``, ``KeyError`` or ``TypeError`` when the payload does not
    have the expected shape; the engine reports those as DataSourceError.
    """

    tie_break: TieBreakRule
    default_min_time_between_updates: int

    @property
    def name(self) -> str: ...

    def build_url(self, start: int, end: int) -> str: ...

    def parse(self, payload: Any, to_fixed: Callable[[str], int]) -> list[PriceSample]: ...
