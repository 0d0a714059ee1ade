"""Shared pytest fixtures for price-feeds."""

from __future__ import annotations

import os
from typing import Any, Callable

import pytest

from price_feeds.core.models import PriceSample, TieBreakRule
from price_feeds.feeds.clock import VirtualClock
from price_feeds.feeds.engine import HistoricalPriceFeed


class FakeNetworker:
    """In-memory networker that replays queued responses.

    Each call consumes the next response; the last one is repeated once the
    queue runs dry. Exceptions in the queue are raised instead of returned.
    """

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.urls: list[str] = []

    async def __aenter__(self) -> FakeNetworker:
        return self

    async def __aexit__(self, *exc: object) -> None:
        return None

    @property
    def call_count(self) -> int:
        return len(self.urls)

    async def fetch_json(self, url: str) -> Any:
        self.urls.append(url)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


class StaticSource:
    """Minimal source: payload is ``{"samples": [[timestamp, "price"], ...]}``."""

    default_min_time_between_updates = 600

    def __init__(self, tie_break: TieBreakRule = TieBreakRule.NEXT_SAMPLE) -> None:
        self.tie_break = tie_break

    @property
    def name(self) -> str:
        return f"Static-{self.tie_break}"

    def build_url(self, start: int, end: int) -> str:
        return f"https://prices.test/series?start={start}&end={end}"

    def parse(self, payload: Any, to_fixed: Callable[[str], int]) -> list[PriceSample]:
        samples = [
            PriceSample(timestamp=ts, price=to_fixed(price)) for ts, price in payload["samples"]
        ]
        return sorted(samples, key=lambda s: s.timestamp)


@pytest.fixture(autouse=True)
def _clear_price_feeds_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("PRICE_FEEDS_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock(start=1_000)


@pytest.fixture
def three_sample_payload() -> dict:
    """Samples at t=100, 200, 300 priced 10, 20, 30."""
    return {"samples": [[100, "10"], [200, "20"], [300, "30"]]}


@pytest.fixture
def twelve_data_payload() -> dict:
    """Twelve Data ``time_series`` response, newest value first."""
    return {
        "meta": {
            "symbol": "URTH",
            "interval": "1h",
            "currency": "USD",
            "exchange_timezone": "America/New_York",
            "exchange": "NYSE",
            "mic_code": "ARCX",
            "type": "ETF",
        },
        "values": [
            {
                "datetime": "2023-02-10 15:30:00",
                "open": "116.67000",
                "high": "116.93000",
                "low": "116.67000",
                "close": "116.84000",
                "volume": "19274",
            },
            {
                "datetime": "2023-02-10 14:30:00",
                "open": "116.45500",
                "high": "116.78000",
                "low": "116.45000",
                "close": "116.64000",
                "volume": "145608",
            },
            {
                "datetime": "2023-02-10 13:30:00",
                "open": "116.30000",
                "high": "116.50000",
                "low": "116.20000",
                "close": "116.45500",
                "volume": "98311",
            },
        ],
        "status": "ok",
    }


@pytest.fixture
def cbs_payload() -> dict:
    """CBS ``UntypedDataSet`` response for table 83906ENG."""
    return {
        "odata.metadata": "https://opendata.cbs.nl/ODataApi/OData/83906ENG/$metadata#Cbs.OData.WebAPI.UntypedDataSet",
        "value": [
            {
                "ID": 476,
                "Periods": "2023MM01",
                "PriceIndexOfExistingOwnHomes_1": "   183.3",
                "ChangesComparedToThePreviousPeriod_2": "     1.5",
                "NumberOfSoldDwellings_4": "   13126",
            },
            {
                "ID": 477,
                "Periods": "2023MM02",
                "PriceIndexOfExistingOwnHomes_1": "   180.6",
                "ChangesComparedToThePreviousPeriod_2": "    -1.5",
                "NumberOfSoldDwellings_4": "   11858",
            },
            {
                "ID": 478,
                "Periods": "2023MM03",
                "PriceIndexOfExistingOwnHomes_1": "   179.4",
                "ChangesComparedToThePreviousPeriod_2": "    -0.7",
                "NumberOfSoldDwellings_4": "   13533",
            },
        ],
    }


@pytest.fixture
def networker_factory() -> type[FakeNetworker]:
    return FakeNetworker


@pytest.fixture
def make_feed(clock: VirtualClock):
    """Build a feed over StaticSource that replays ``responses``.

    Returns ``(feed, networker)``.
    """

    def _make(
        *responses: Any,
        rule: TieBreakRule = TieBreakRule.NEXT_SAMPLE,
        lookback: int = 3600,
        **kwargs: Any,
    ) -> tuple[HistoricalPriceFeed, FakeNetworker]:
        networker = FakeNetworker(*responses)
        feed = HistoricalPriceFeed(
            StaticSource(rule), networker, clock, lookback=lookback, **kwargs
        )
        return feed, networker

    return _make
