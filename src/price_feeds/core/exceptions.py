"""Custom exception hierarchy for price-feeds."""

from typing import Any


class PriceFeedError(Exception):
    """Base exception for all price-feeds errors.

    All exceptions carry an optional `context` dict for structured error
    metadata that can be logged or serialized without parsing the message.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}


class ConfigError(PriceFeedError):
    """Invalid or missing configuration.

    Raised by load_config() during startup. Should be treated as fatal.

    Context keys:
        field: str: the config field that failed validation
        value: Any: the invalid value (redacted for secrets)
    """


class DataSourceError(PriceFeedError):
    """Failed to fetch or parse data from an external price source.

    Policy: update() leaves feed state untouched. The caller decides
    whether and when to call update() again.

    Context keys:
        feed: str: the feed that was updating
        url: str: the URL that was being fetched
        response: Any: the raw (possibly truncated) response
    """


class NetworkError(DataSourceError):
    """Transport failure: timeout, connection error, non-2xx or non-JSON body.

    Context keys:
        status_code: int | None: HTTP status code if a response arrived
    """


class PriceQueryError(PriceFeedError):
    """The feed cannot answer a price query in its current state.

    Policy: treat as "no answer available", not as a transient failure.

    Context keys:
        feed: str: the queried feed
        time: int: the requested timestamp
    """


class UninitializedFeedError(PriceQueryError):
    """The feed has never completed a successful update."""


class EmptySeriesError(PriceQueryError):
    """The feed holds no samples with a valid timestamp."""


class BeforeLookbackWindowError(PriceQueryError):
    """The requested time predates all retained history.

    Context keys:
        first_timestamp: int: timestamp of the earliest retained sample
    """


class MissingCurrentPriceError(PriceFeedError):
    """A series exists but the current price is absent.

    Policy: internal invariant violation. Raise immediately, never recover.
    """


class PrecisionTruncationDefect(UserWarning):
    """Known defect: truncating conversion dropped integer digits of a price.

    Emitted through warnings.warn by the truncating decimal converter. The
    corrupted value is still returned unchanged. When warnings are escalated
    to errors (``-W error``) the feed engine reports it as a DataSourceError.
    """
