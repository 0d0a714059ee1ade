"""Configuration loading, validation, and access."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from price_feeds.core.exceptions import ConfigError
from price_feeds.core.models import PrecisionPolicy

# 10**77 is the largest power of ten below 2**256.
_MAX_DECIMALS = 77


class NetworkConfig(BaseModel):
    """HTTP transport configuration shared by all feeds."""

    model_config = ConfigDict(frozen=True)

    timeout: float = 10.0
    user_agent: str = "price-feeds/0.1"

    @field_validator("timeout")
    @classmethod
    def timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout must be > 0")
        return v


class FeedSettings(BaseModel):
    """Per-feed parameters common to every source."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    lookback: int
    price_feed_decimals: int = 18
    min_time_between_updates: int | None = None
    precision_policy: PrecisionPolicy = PrecisionPolicy.TRUNCATE

    @field_validator("lookback")
    @classmethod
    def lookback_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("lookback must be >= 1 second")
        return v

    @field_validator("price_feed_decimals")
    @classmethod
    def decimals_in_range(cls, v: int) -> int:
        if v < 0 or v > _MAX_DECIMALS:
            raise ValueError(f"price_feed_decimals must be between 0 and {_MAX_DECIMALS}")
        return v

    @field_validator("min_time_between_updates")
    @classmethod
    def throttle_non_negative(cls, v: int | None) -> int | None:
        if v is not None and v < 0:
            raise ValueError("min_time_between_updates must be >= 0")
        return v


class TwelveDataFeedConfig(FeedSettings):
    """Twelve Data time-series feed (hourly index closes)."""

    type: Literal["twelve_data"] = "twelve_data"
    symbol: str
    api_key: str
    interval: str = "1h"
    base_url: str = "https://api.twelvedata.com"

    @field_validator("symbol", "api_key")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class StatisticsNetherlandsFeedConfig(FeedSettings):
    """CBS open-data feed (monthly Dutch house price index)."""

    type: Literal["statistics_netherlands"] = "statistics_netherlands"
    table: str = "83906ENG"
    base_url: str = "https://opendata.cbs.nl/ODataApi/odata"


FeedConfig = Annotated[
    TwelveDataFeedConfig | StatisticsNetherlandsFeedConfig,
    Field(discriminator="type"),
]


class PriceFeedsConfig(BaseModel):
    """Root configuration for the entire price-feeds system."""

    model_config = ConfigDict(frozen=True)

    network: NetworkConfig = NetworkConfig()
    feeds: dict[str, FeedConfig] = {}


_CONFIG_ENV_VAR = "PRICE_FEEDS_CONFIG"
_DEFAULT_CONFIG_FILE = "price-feeds.yml"


def load_config(
    config_path: str | None = None,
    env_prefix: str = "PRICE_FEEDS_",
) -> PriceFeedsConfig:
    """Build the config from a YAML file overlaid with environment variables.

    The file is ``config_path``, else ``$PRICE_FEEDS_CONFIG``, else
    ``./price-feeds.yml`` when present. Without a file only env vars and
    defaults apply.

    Env vars nest with double underscores and match existing keys
    case-insensitively, so with a YAML feed named ``URTH``::

        PRICE_FEEDS_FEEDS__URTH__API_KEY=...   ->  feeds["URTH"].api_key
        PRICE_FEEDS_NETWORK__TIMEOUT=5         ->  network.timeout = 5

    Raises:
        ConfigError: missing or unreadable file, or a failed validation.
    """
    path = _find_config_file(config_path)
    raw = _read_yaml(path) if path is not None else {}
    merged = _merge_env_vars(raw, env_prefix)
    try:
        return PriceFeedsConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid configuration: {e}",
            context={"source": str(path) if path else "environment", "errors": e.errors()},
        ) from e


def _find_config_file(explicit: str | None) -> Path | None:
    """Pick the config file; an explicitly named file must exist."""
    for origin, candidate in (
        ("config_path", explicit),
        (_CONFIG_ENV_VAR, os.environ.get(_CONFIG_ENV_VAR)),
    ):
        if not candidate:
            continue
        path = Path(candidate)
        if not path.is_file():
            raise ConfigError(
                f"Config file not found: {candidate} (from {origin})",
                context={"field": origin, "value": candidate},
            )
        return path

    default = Path(_DEFAULT_CONFIG_FILE)
    return default if default.is_file() else None


def _read_yaml(path: Path) -> dict:
    try:
        data = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(
            f"Failed to read YAML config {path}: {e}",
            context={"field": "config_file", "value": str(path)},
        ) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"YAML config must be a mapping, got {type(data).__name__}",
            context={"field": "config_file", "value": str(path)},
        )
    return data


def _merge_env_vars(base: dict, prefix: str) -> dict:
    """Overlay ``{prefix}A__B__C=value`` env vars onto a copy of ``base``.

    Each path part reuses an existing key when one matches ignoring case, so
    user-chosen feed names keep the casing they have in the YAML file. New
    keys are lowercased.
    """
    result = dict(base)

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue
        parts = key[len(prefix) :].split("__")

        # PRICE_FEEDS_CONFIG names the file, it is not a setting
        if [p.lower() for p in parts] == ["config"]:
            continue

        target = result
        for part in parts[:-1]:
            name = _match_key(target, part)
            child = target.get(name)
            target[name] = dict(child) if isinstance(child, dict) else {}
            target = target[name]
        target[_match_key(target, parts[-1])] = _auto_cast(value)

    return result


def _match_key(mapping: dict, part: str) -> str:
    """Existing key equal to ``part`` ignoring case, else ``part`` lowercased."""
    if part in mapping:
        return part
    folded = part.lower()
    if folded in mapping:
        return folded
    for existing in mapping:
        if isinstance(existing, str) and existing.lower() == folded:
            return existing
    return folded


def _auto_cast(value: str) -> str | int | float | bool:
    """Cast env var strings that are unambiguously bool or numeric.

    Only canonical numbers are cast, so values such as ``"0042"`` (an API key
    with leading zeros) stay strings.
    """
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    try:
        as_int = int(value)
    except ValueError:
        pass
    else:
        return as_int if str(as_int) == value else value
    try:
        as_float = float(value)
    except ValueError:
        return value
    return as_float if repr(as_float) == value else value
