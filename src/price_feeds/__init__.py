"""price-feeds: throttled HTTP price feeds with historical price resolution."""

__version__ = "0.1.0"
