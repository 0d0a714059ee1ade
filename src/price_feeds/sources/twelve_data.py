"""Twelve Data time-series source (hourly index and ETF closes).

Uses the ``/time_series`` endpoint. Each value is a bar close observed at
its ``datetime``, so a historical query is answered by the first close
after the requested time (``TieBreakRule.NEXT_SAMPLE``).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx

from price_feeds.core.models import PriceSample, TieBreakRule

logger = logging.getLogger(__name__)

_BASE_URL = "https://api.twelvedata.com"
_TIME_SERIES_PATH = "/time_series"

# Intraday bars carry a time of day, daily and coarser bars only a date
_DATETIME_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d")


class TwelveDataSource:
    """Builds Twelve Data requests and parses ``time_series`` responses.

    Parameters
    ----------
    symbol : str
        Instrument symbol, e.g. ``"URTH"``.
    api_key : str
        Twelve Data API key, sent as the ``apikey`` query parameter.
    interval : str
        Bar interval understood by Twelve Data. Default: ``"1h"``.
    base_url : str
        Override base URL (useful for testing).
    """

    tie_break = TieBreakRule.NEXT_SAMPLE
    # 12 hours: the feed is consumed at daily granularity at best
    default_min_time_between_updates = 43200

    def __init__(
        self,
        symbol: str,
        api_key: str,
        interval: str = "1h",
        base_url: str = _BASE_URL,
    ) -> None:
        self._symbol = symbol
        self._api_key = api_key
        self._interval = interval
        self._base_url = base_url.rstrip("/")

    @property
    def name(self) -> str:
        return f"TwelveData-{self._symbol}"

    def build_url(self, start: int, end: int) -> str:
        params = {
            "apikey": self._api_key,
            "interval": self._interval,
            "symbol": self._symbol,
            "start_date": _format_date(start),
            "end_date": _format_date(end),
        }
        return str(httpx.URL(f"{self._base_url}{_TIME_SERIES_PATH}", params=params))

    def parse(self, payload: Any, to_fixed: Callable[[str], int]) -> list[PriceSample]:
        """Parse a ``time_series`` response into samples, oldest first.

        Example response::

            {
              "meta": {"symbol": "URTH", "interval": "1h",
                       "exchange_timezone": "America/New_York", ...},
              "values": [
                {"datetime": "2023-02-10 15:30:00", "close": "116.84000", ...},
                {"datetime": "2023-02-10 14:30:00", "close": "116.64000", ...}
              ],
              "status": "ok"
            }

        Values arrive newest first.
        """
        if not isinstance(payload, dict):
            raise TypeError(f"expected a JSON object, got {type(payload).__name__}")
        if payload.get("status") == "error":
            raise ValueError(
                f"Twelve Data error {payload.get('code')}: {payload.get('message')}"
            )

        values = payload.get("values")
        if not isinstance(values, list):
            raise ValueError("response has no 'values' array")

        tz = _exchange_timezone(payload.get("meta") or {})
        samples = [
            PriceSample(
                timestamp=_parse_datetime(value["datetime"], tz),
                price=to_fixed(value["close"]),
            )
            for value in values
        ]
        return sorted(samples, key=lambda s: s.timestamp)


def _format_date(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d")


def _exchange_timezone(meta: dict) -> ZoneInfo | timezone:
    name = meta.get("exchange_timezone")
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown exchange timezone %r, assuming UTC", name)
        return timezone.utc


def _parse_datetime(raw: str, tz: ZoneInfo | timezone) -> int:
    for fmt in _DATETIME_FORMATS:
        try:
            parsed = datetime.strptime(raw, fmt)
        except ValueError:
            continue
        return int(parsed.replace(tzinfo=tz).timestamp())
    raise ValueError(f"unrecognised datetime: {raw!r}")
