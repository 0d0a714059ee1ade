"""External price sources and the HTTP transport that reaches them."""

from price_feeds.sources.networker import HttpxNetworker, Networker
from price_feeds.sources.provider import PriceSource
from price_feeds.sources.statistics_netherlands import StatisticsNetherlandsSource
from price_feeds.sources.twelve_data import TwelveDataSource

__all__ = [
    # Protocols
    "Networker",
    "PriceSource",
    # Transport
    "HttpxNetworker",
    # Sources
    "TwelveDataSource",
    "StatisticsNetherlandsSource",
]
