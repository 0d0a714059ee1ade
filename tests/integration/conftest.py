"""Integration test fixtures: real config, transport and feeds, mocked HTTP."""

from __future__ import annotations

from pathlib import Path

import pytest

from price_feeds.core.config import PriceFeedsConfig, load_config
from price_feeds.feeds.clock import VirtualClock
from price_feeds.sources.networker import HttpxNetworker

TWELVE_DATA_URL = "https://td.test"
CBS_URL = "https://cbs.test/odata"

CONFIG_YAML = f"""\
network:
  timeout: 5
  user_agent: price-feeds-integration/1.0
feeds:
  urth:
    type: twelve_data
    symbol: URTH
    api_key: demo
    lookback: 345600
    base_url: {TWELVE_DATA_URL}
  nlhpi:
    type: statistics_netherlands
    lookback: 7776000
    base_url: {CBS_URL}
"""


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "price-feeds.yml"
    path.write_text(CONFIG_YAML)
    return path


@pytest.fixture
def integration_config(config_path: Path) -> PriceFeedsConfig:
    return load_config(config_path=str(config_path))


@pytest.fixture
async def http_networker(integration_config: PriceFeedsConfig) -> HttpxNetworker:
    async with HttpxNetworker(integration_config.network) as networker:
        yield networker


@pytest.fixture
def market_clock() -> VirtualClock:
    """2023-02-10 23:00 UTC, after the New York close."""
    return VirtualClock(start=1676070000)


@pytest.fixture
def index_clock() -> VirtualClock:
    """2023-03-28 10:40 UTC, after the February index release."""
    return VirtualClock(start=1680000000)
