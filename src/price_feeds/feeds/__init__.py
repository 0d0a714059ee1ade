"""Throttled price feeds with point-in-time historical resolution.

Architecture
------------
    PriceSource + Networker + Clock → HistoricalPriceFeed → Consumer

- ``HistoricalPriceFeed`` owns throttling and the committed ``FeedState``.
- ``resolver`` answers "price as of T" under a source's tie-break rule.
- ``decimals`` scales decimal strings into fixed-point integers.
- ``factory`` builds feeds from ``PriceFeedsConfig``.
"""

from price_feeds.feeds.clock import Clock, SystemClock, VirtualClock
from price_feeds.feeds.decimals import (
    converter_for,
    format_fixed,
    parse_fixed,
    rounding_to_fixed,
    truncating_to_fixed,
)
from price_feeds.feeds.engine import HistoricalPriceFeed
from price_feeds.feeds.factory import create_price_feed, create_price_feeds, create_source
from price_feeds.feeds.resolver import (
    Resolution,
    next_sample,
    previous_sample,
    resolve_historical_price,
)

__all__ = [
    # Engine
    "HistoricalPriceFeed",
    # Clocks
    "Clock",
    "SystemClock",
    "VirtualClock",
    # Resolution
    "Resolution",
    "resolve_historical_price",
    "next_sample",
    "previous_sample",
    # Fixed-point conversion
    "parse_fixed",
    "truncating_to_fixed",
    "rounding_to_fixed",
    "converter_for",
    "format_fixed",
    # Factory
    "create_source",
    "create_price_feed",
    "create_price_feeds",
]
