"""price_feeds.core: Foundation types, config, and exceptions."""

from price_feeds.core.config import (
    FeedConfig,
    FeedSettings,
    NetworkConfig,
    PriceFeedsConfig,
    StatisticsNetherlandsFeedConfig,
    TwelveDataFeedConfig,
    load_config,
)
from price_feeds.core.exceptions import (
    BeforeLookbackWindowError,
    ConfigError,
    DataSourceError,
    EmptySeriesError,
    MissingCurrentPriceError,
    NetworkError,
    PrecisionTruncationDefect,
    PriceFeedError,
    PriceQueryError,
    UninitializedFeedError,
)
from price_feeds.core.models import (
    FeedSource,
    FeedState,
    FixedPrice,
    PrecisionPolicy,
    PriceSample,
    TieBreakRule,
    Timestamp,
)

__all__ = [
    # Type aliases
    "Timestamp",
    "FixedPrice",
    # Enums
    "TieBreakRule",
    "PrecisionPolicy",
    "FeedSource",
    # Price models
    "PriceSample",
    "FeedState",
    # Config
    "PriceFeedsConfig",
    "NetworkConfig",
    "FeedSettings",
    "FeedConfig",
    "TwelveDataFeedConfig",
    "StatisticsNetherlandsFeedConfig",
    "load_config",
    # Exceptions
    "PriceFeedError",
    "ConfigError",
    "DataSourceError",
    "NetworkError",
    "PriceQueryError",
    "UninitializedFeedError",
    "EmptySeriesError",
    "BeforeLookbackWindowError",
    "MissingCurrentPriceError",
    "PrecisionTruncationDefect",
]
