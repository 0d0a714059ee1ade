"""Throttled, source-agnostic historical price feed."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from pydantic import ValidationError

from price_feeds.core.exceptions import DataSourceError, PrecisionTruncationDefect
from price_feeds.core.models import FeedState, PrecisionPolicy, PriceSample, TieBreakRule
from price_feeds.feeds.clock import Clock, SystemClock
from price_feeds.feeds.decimals import converter_for, format_fixed
from price_feeds.feeds.resolver import resolve_historical_price
from price_feeds.sources.networker import Networker
from price_feeds.sources.provider import PriceSource

logger = logging.getLogger(__name__)

# Raw responses are truncated to this many characters in error context
_MAX_RESPONSE_PREVIEW = 1000


class HistoricalPriceFeed:
    """Holds one source's price series and answers point-in-time queries.

    ``update()`` refreshes the series at most once per
    ``min_time_between_updates`` seconds, measured on the injected clock
    from the last *successful* refresh. Every other method is a synchronous
    read of the last committed ``FeedState``.

    Parameters
    ----------
    source : PriceSource
        URL construction, response parsing and tie-break rule.
    networker : Networker
        Fetches a URL and returns parsed JSON.
    clock : Clock | None
        Time source. Defaults to the wall clock.
    lookback : int
        Seconds of history requested on each refresh.
    price_feed_decimals : int
        Scale of the fixed-point prices. Default: 18.
    min_time_between_updates : int | None
        Throttle window in seconds. Defaults to the source's own default.
    precision_policy : PrecisionPolicy
        How decimal strings are scaled. Default: truncate.
    """

    def __init__(
        self,
        source: PriceSource,
        networker: Networker,
        clock: Clock | None = None,
        *,
        lookback: int,
        price_feed_decimals: int = 18,
        min_time_between_updates: int | None = None,
        precision_policy: PrecisionPolicy = PrecisionPolicy.TRUNCATE,
    ) -> None:
        if min_time_between_updates is None:
            min_time_between_updates = source.default_min_time_between_updates
        if min_time_between_updates < 0:
            raise ValueError("min_time_between_updates must be >= 0")

        self._source = source
        self._networker = networker
        self._clock = clock or SystemClock()
        self._lookback = lookback
        self._decimals = price_feed_decimals
        self._min_time_between_updates = min_time_between_updates
        self._to_fixed = converter_for(precision_policy, price_feed_decimals)
        self._state = FeedState()
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return self._source.name

    @property
    def tie_break(self) -> TieBreakRule:
        return self._source.tie_break

    @property
    def state(self) -> FeedState:
        """Snapshot of the last committed state."""
        return self._state

    # --- Update ---

    async def update(self) -> bool:
        """Refresh the series unless the last refresh is too recent.

        Returns:
            True if a fetch happened and the state was replaced, False if
            the call was skipped by the throttle.

        Raises:
            DataSourceError: fetch failed or the response held no usable
                samples. The previous state is left untouched.
        """
        async with self._lock:
            current_time = self._clock.now()
            last_update = self._state.last_update_time

            if last_update is not None and last_update + self._min_time_between_updates > current_time:
                logger.debug(
                    "%s: update skipped because the last one was too recent "
                    "(current_time=%d, last_update=%d, %ds until next update)",
                    self.name,
                    current_time,
                    last_update,
                    last_update + self._min_time_between_updates - current_time,
                )
                return False

            logger.debug(
                "%s: updating (current_time=%d, last_update=%s)",
                self.name, current_time, last_update,
            )

            url = self._request_url(current_time)
            payload = await self._fetch(url)
            new_state = self._build_state(url, payload, current_time)

            self._state = new_state
            logger.info(
                "%s: loaded %d samples, current price %s",
                self.name,
                len(new_state.series),
                format_fixed(new_state.current_price, self._decimals),
            )
            return True

    def _request_url(self, current_time: int) -> str:
        start = current_time - self._lookback
        try:
            return self._source.build_url(start, current_time)
        except Exception as e:
            raise DataSourceError(
                f"{self.name}: could not build request URL: {e}",
                context={"feed": self.name, "url": None, "response": None},
            ) from e

    async def _fetch(self, url: str) -> Any:
        try:
            return await self._networker.fetch_json(url)
        except DataSourceError as e:
            e.context.setdefault("feed", self.name)
            e.context.setdefault("url", url)
            raise
        except Exception as e:
            # Any other networker failure, e.g. a bad URL or an undecodable body
            raise DataSourceError(
                f"{self.name}: fetch failed for {url}: {e!r}",
                context={"feed": self.name, "url": url, "response": None},
            ) from e

    def _build_state(self, url: str, payload: Any, current_time: int) -> FeedState:
        try:
            samples: list[PriceSample] = self._source.parse(payload, self._to_fixed)
            if not samples:
                raise ValueError("no price samples in response")
            return FeedState(
                series=tuple(samples),
                current_price=samples[-1].price,
                last_update_time=current_time,
            )
        except (ValueError, KeyError, TypeError, ValidationError, PrecisionTruncationDefect) as e:
            # The defect warning arrives here as an exception under ``-W error``
            raise DataSourceError(
                f"{self.name}: could not parse price result from {url}: {e}",
                context={"feed": self.name, "url": url, "response": _preview(payload)},
            ) from e

    # --- Queries ---

    def get_current_price(self) -> int | None:
        """Newest price, or None until the first successful update."""
        return self._state.current_price

    def get_historical_price(self, time: int, verbose: bool = False) -> int:
        """Best-known price as of ``time`` (Unix seconds).

        Raises:
            PriceQueryError: the feed cannot answer for ``time``.
            MissingCurrentPriceError: internal invariant violation.
        """
        resolution = resolve_historical_price(
            self._state, time, self._source.tie_break, feed=self.name
        )
        if verbose:
            readable = format_fixed(resolution.price, self._decimals)
            if resolution.sample is None:
                logger.info(
                    "(%s) No historical sample after %d, using current price: %s",
                    self.name, time, readable,
                )
            else:
                logger.info(
                    "(%s) Historical price @ %d (sample at %d): %s",
                    self.name, time, resolution.sample.timestamp, readable,
                )
        return resolution.price

    def get_last_update_time(self) -> int | None:
        return self._state.last_update_time

    def get_lookback(self) -> int:
        return self._lookback

    def get_price_feed_decimals(self) -> int:
        return self._decimals

    def get_min_time_between_updates(self) -> int:
        return self._min_time_between_updates


def _preview(payload: Any) -> str:
    """Serialize a raw response for error context, truncated."""
    try:
        text = json.dumps(payload, default=str)
    except (TypeError, ValueError):
        text = repr(payload)
    return text[:_MAX_RESPONSE_PREVIEW]
