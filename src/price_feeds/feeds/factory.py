"""Build configured price feeds."""

from __future__ import annotations

from price_feeds.core.config import FeedConfig, PriceFeedsConfig
from price_feeds.core.exceptions import ConfigError
from price_feeds.core.models import FeedSource
from price_feeds.feeds.clock import Clock
from price_feeds.feeds.engine import HistoricalPriceFeed
from price_feeds.sources.networker import Networker
from price_feeds.sources.provider import PriceSource
from price_feeds.sources.statistics_netherlands import StatisticsNetherlandsSource
from price_feeds.sources.twelve_data import TwelveDataSource


def create_source(config: FeedConfig) -> PriceSource:
    """Instantiate the source named by the config's ``type``."""
    source_type = getattr(config, "type", None)
    if source_type == FeedSource.TWELVE_DATA:
        return TwelveDataSource(
            symbol=config.symbol,
            api_key=config.api_key,
            interval=config.interval,
            base_url=config.base_url,
        )
    if source_type == FeedSource.STATISTICS_NETHERLANDS:
        return StatisticsNetherlandsSource(table=config.table, base_url=config.base_url)
    raise ConfigError(
        f"Unsupported feed type: {source_type or type(config).__name__}",
        context={"field": "type", "value": source_type},
    )


def create_price_feed(
    config: FeedConfig,
    networker: Networker,
    clock: Clock | None = None,
) -> HistoricalPriceFeed:
    """Wrap the configured source in a throttled historical price feed."""
    return HistoricalPriceFeed(
        create_source(config),
        networker,
        clock,
        lookback=config.lookback,
        price_feed_decimals=config.price_feed_decimals,
        min_time_between_updates=config.min_time_between_updates,
        precision_policy=config.precision_policy,
    )


def create_price_feeds(
    config: PriceFeedsConfig,
    networker: Networker,
    clock: Clock | None = None,
) -> dict[str, HistoricalPriceFeed]:
    """Build every configured feed, keyed by its config name.

    Feeds share the networker and clock but never share state.
    """
    return {
        name: create_price_feed(feed_config, networker, clock)
        for name, feed_config in config.feeds.items()
    }
