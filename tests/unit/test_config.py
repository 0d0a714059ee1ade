"""Tests for price_feeds.core.config."""

import pytest
from pydantic import ValidationError

from price_feeds.core.config import (
    NetworkConfig,
    PriceFeedsConfig,
    StatisticsNetherlandsFeedConfig,
    TwelveDataFeedConfig,
    _auto_cast,
    _merge_env_vars,
    load_config,
)
from price_feeds.core.exceptions import ConfigError
from price_feeds.core.models import PrecisionPolicy

_YAML = """\
network:
  timeout: 5
feeds:
  urth:
    type: twelve_data
    symbol: URTH
    api_key: secret
    lookback: 345600
  nlhpi:
    type: statistics_netherlands
    lookback: 7776000
    min_time_between_updates: 3600
"""


class TestNetworkConfig:
    def test_defaults(self):
        c = NetworkConfig()
        assert c.timeout == 10.0
        assert c.user_agent

    def test_timeout_positive(self):
        with pytest.raises(ValidationError, match="timeout must be > 0"):
            NetworkConfig(timeout=0)


class TestTwelveDataFeedConfig:
    def test_valid_construction(self):
        c = TwelveDataFeedConfig(symbol="URTH", api_key="key", lookback=3600)
        assert c.type == "twelve_data"
        assert c.interval == "1h"
        assert c.price_feed_decimals == 18
        assert c.min_time_between_updates is None
        assert c.precision_policy == PrecisionPolicy.TRUNCATE

    def test_symbol_required(self):
        with pytest.raises(ValidationError, match="must not be empty"):
            TwelveDataFeedConfig(symbol="  ", api_key="key", lookback=3600)

    def test_numeric_api_key_coerced_to_str(self):
        c = TwelveDataFeedConfig(symbol="URTH", api_key=12345, lookback=3600)
        assert c.api_key == "12345"

    def test_lookback_positive(self):
        with pytest.raises(ValidationError, match="lookback must be >= 1"):
            TwelveDataFeedConfig(symbol="URTH", api_key="key", lookback=0)

    def test_decimals_range(self):
        with pytest.raises(ValidationError, match="price_feed_decimals must be between"):
            TwelveDataFeedConfig(symbol="URTH", api_key="key", lookback=1, price_feed_decimals=78)

    def test_throttle_non_negative(self):
        with pytest.raises(ValidationError, match="min_time_between_updates must be >= 0"):
            StatisticsNetherlandsFeedConfig(lookback=1, min_time_between_updates=-1)


class TestPriceFeedsConfig:
    def test_discriminates_by_type(self):
        config = PriceFeedsConfig.model_validate(
            {
                "feeds": {
                    "urth": {"type": "twelve_data", "symbol": "URTH", "api_key": "k", "lookback": 60},
                    "nlhpi": {"type": "statistics_netherlands", "lookback": 60},
                }
            }
        )
        assert isinstance(config.feeds["urth"], TwelveDataFeedConfig)
        assert isinstance(config.feeds["nlhpi"], StatisticsNetherlandsFeedConfig)
        assert config.feeds["nlhpi"].table == "83906ENG"

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            PriceFeedsConfig.model_validate({"feeds": {"x": {"type": "nope", "lookback": 60}}})

    def test_empty_by_default(self):
        assert PriceFeedsConfig().feeds == {}


class TestLoadConfig:
    def test_defaults_without_file(self):
        config = load_config()
        assert config.feeds == {}
        assert config.network.timeout == 10.0

    def test_yaml_loading(self, tmp_path):
        yaml_file = tmp_path / "config.yml"
        yaml_file.write_text(_YAML)
        config = load_config(config_path=str(yaml_file))
        assert config.network.timeout == 5
        assert config.feeds["urth"].symbol == "URTH"
        assert config.feeds["nlhpi"].min_time_between_updates == 3600

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        yaml_file = tmp_path / "config.yml"
        yaml_file.write_text(_YAML)
        monkeypatch.setenv("PRICE_FEEDS_FEEDS__URTH__API_KEY", "from-env")
        monkeypatch.setenv("PRICE_FEEDS_FEEDS__URTH__LOOKBACK", "7200")
        config = load_config(config_path=str(yaml_file))
        assert config.feeds["urth"].api_key == "from-env"
        assert config.feeds["urth"].lookback == 7200
        assert config.feeds["urth"].symbol == "URTH"

    def test_config_path_from_env(self, tmp_path, monkeypatch):
        yaml_file = tmp_path / "config.yml"
        yaml_file.write_text(_YAML)
        monkeypatch.setenv("PRICE_FEEDS_CONFIG", str(yaml_file))
        config = load_config()
        assert set(config.feeds) == {"urth", "nlhpi"}

    def test_missing_config_file_raises(self):
        with pytest.raises(ConfigError, match="not found"):
            load_config(config_path="/nonexistent/file.yml")

    def test_non_mapping_yaml_raises(self, tmp_path):
        yaml_file = tmp_path / "config.yml"
        yaml_file.write_text("- just\n- a list\n")
        with pytest.raises(ConfigError, match="must be a mapping"):
            load_config(config_path=str(yaml_file))

    def test_invalid_feed_wrapped_in_config_error(self, tmp_path):
        yaml_file = tmp_path / "config.yml"
        yaml_file.write_text("feeds:\n  urth:\n    type: twelve_data\n    lookback: 60\n")
        with pytest.raises(ConfigError):
            load_config(config_path=str(yaml_file))

    def test_env_override_keeps_yaml_feed_name_casing(self, tmp_path, monkeypatch):
        yaml_file = tmp_path / "config.yml"
        yaml_file.write_text(
            "feeds:\n"
            "  URTH:\n"
            "    type: twelve_data\n"
            "    symbol: URTH\n"
            "    api_key: yaml-key\n"
            "    lookback: 86400\n"
        )
        monkeypatch.setenv("PRICE_FEEDS_FEEDS__URTH__API_KEY", "env-key")
        config = load_config(config_path=str(yaml_file))
        assert set(config.feeds) == {"URTH"}
        assert config.feeds["URTH"].api_key == "env-key"
        assert config.feeds["URTH"].lookback == 86400

    def test_explicit_path_wins_over_env(self, tmp_path, monkeypatch):
        chosen = tmp_path / "chosen.yml"
        chosen.write_text("network:\n  timeout: 3\n")
        monkeypatch.setenv("PRICE_FEEDS_CONFIG", str(tmp_path / "missing.yml"))
        config = load_config(config_path=str(chosen))
        assert config.network.timeout == 3

    def test_missing_env_config_file_raises(self, monkeypatch):
        monkeypatch.setenv("PRICE_FEEDS_CONFIG", "/nonexistent/env.yml")
        with pytest.raises(ConfigError, match="PRICE_FEEDS_CONFIG") as exc_info:
            load_config()
        assert exc_info.value.context["value"] == "/nonexistent/env.yml"

    def test_empty_yaml_uses_defaults(self, tmp_path):
        yaml_file = tmp_path / "config.yml"
        yaml_file.write_text("")
        assert load_config(config_path=str(yaml_file)).feeds == {}

    def test_config_is_frozen(self):
        config = load_config()
        with pytest.raises(ValidationError):
            config.network = None


class TestAutoCast:
    def test_true(self):
        assert _auto_cast("true") is True
        assert _auto_cast("TRUE") is True

    def test_false(self):
        assert _auto_cast("false") is False

    def test_int(self):
        assert _auto_cast("42") == 42

    def test_float(self):
        assert _auto_cast("3.14") == 3.14

    def test_string(self):
        assert _auto_cast("hello") == "hello"

    def test_leading_zeros_stay_string(self):
        assert _auto_cast("0042") == "0042"

    def test_non_canonical_float_stays_string(self):
        assert _auto_cast("1e3") == "1e3"


class TestMergeEnvVars:
    def test_simple_override(self, monkeypatch):
        monkeypatch.setenv("TEST_NETWORK__TIMEOUT", "5")
        result = _merge_env_vars({"network": {"timeout": 10}}, "TEST_")
        assert result["network"]["timeout"] == 5

    def test_creates_nested_structure(self, monkeypatch):
        monkeypatch.setenv("TEST_FEEDS__NLHPI__LOOKBACK", "60")
        result = _merge_env_vars({}, "TEST_")
        assert result["feeds"]["nlhpi"]["lookback"] == 60

    def test_does_not_mutate_base(self, monkeypatch):
        base = {"network": {"timeout": 10}}
        monkeypatch.setenv("TEST_NETWORK__TIMEOUT", "5")
        _merge_env_vars(base, "TEST_")
        assert base["network"]["timeout"] == 10

    def test_skips_config_key(self, monkeypatch):
        monkeypatch.setenv("TEST_CONFIG", "/some/path")
        result = _merge_env_vars({}, "TEST_")
        assert "config" not in result

    def test_matches_existing_key_ignoring_case(self, monkeypatch):
        monkeypatch.setenv("TEST_FEEDS__URTH__API_KEY", "env-key")
        base = {"feeds": {"Urth": {"api_key": "yaml-key", "symbol": "URTH"}}}
        result = _merge_env_vars(base, "TEST_")
        assert list(result["feeds"]) == ["Urth"]
        assert result["feeds"]["Urth"] == {"api_key": "env-key", "symbol": "URTH"}
