"""Configuration loading, validation, and access."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, field_validator

from quote_cache.core.exceptions import ConfigError
from quote_cache.core.models import IntradayMode

DEFAULT_SECOND_CHECK = "18:00"


class CacheConfig(BaseModel):
    """Local cache layout."""

    model_config = ConfigDict(frozen=True)

    database_path: str = "./data/quotes"
    cache_suffix: str = ".csv"
    metadata_suffix: str = ".config"

    @field_validator("cache_suffix", "metadata_suffix")
    @classmethod
    def suffix_has_dot(cls, v: str) -> str:
        if not v.startswith("."):
            raise ValueError(f"suffix must start with '.', got {v!r}")
        return v

    @field_validator("metadata_suffix")
    @classmethod
    def suffixes_differ(cls, v: str, info) -> str:
        cache_suffix = info.data.get("cache_suffix")
        if cache_suffix is not None and v == cache_suffix:
            raise ValueError("metadata_suffix must differ from cache_suffix")
        return v


class FeedsConfig(BaseModel):
    """Remote feed endpoints and transport settings."""

    model_config = ConfigDict(frozen=True)

    historical_url: str = "https://stooq.pl/q/d/l/?s={ticker}&d1={start}&d2={end}&i=d"
    intraday_url: str = "https://stooq.pl/q/l/?s={ticker}&f=d1ohlcv"
    request_timeout: float = 15.0
    user_agent: str = "Mozilla/5.0 (compatible; quote-cache/0.1)"

    @field_validator("request_timeout")
    @classmethod
    def timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("request_timeout must be > 0")
        return v

    @field_validator("historical_url")
    @classmethod
    def historical_url_placeholders(cls, v: str) -> str:
        for placeholder in ("{ticker}", "{start}", "{end}"):
            if placeholder not in v:
                raise ValueError(f"historical_url must contain {placeholder}")
        return v

    @field_validator("intraday_url")
    @classmethod
    def intraday_url_placeholder(cls, v: str) -> str:
        if "{ticker}" not in v:
            raise ValueError("intraday_url must contain {ticker}")
        return v


class RefreshConfig(BaseModel):
    """Historical refresh policy defaults."""

    model_config = ConfigDict(frozen=True)

    second_check: str = DEFAULT_SECOND_CHECK

    @field_validator("second_check")
    @classmethod
    def second_check_is_time(cls, v: str) -> str:
        try:
            datetime.strptime(v, "%H:%M")
        except ValueError:
            raise ValueError(f"second_check must be HH:MM, got {v!r}") from None
        return v


class IntradayConfig(BaseModel):
    """Intraday snapshot handling."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    mode: IntradayMode = IntradayMode.APPEND
    separator: str = "--- INTRADAY ---"


class QuoteCacheConfig(BaseModel):
    """Root configuration for quote-cache."""

    model_config = ConfigDict(frozen=True)

    cache: CacheConfig = CacheConfig()
    feeds: FeedsConfig = FeedsConfig()
    refresh: RefreshConfig = RefreshConfig()
    intraday: IntradayConfig = IntradayConfig()


def load_config(
    config_path: str | None = None,
    env_prefix: str = "QUOTE_CACHE_",
) -> QuoteCacheConfig:
    """Load configuration from environment + YAML file + defaults.

    Resolution order (highest priority first):
    1. Environment variables (QUOTE_CACHE_FEEDS__REQUEST_TIMEOUT, etc.)
    2. YAML file at config_path
    3. Built-in defaults

    Nested keys use double-underscore in env vars:
        QUOTE_CACHE_INTRADAY__MODE=merge  ->  intraday.mode = "merge"
    """
    try:
        yaml_path = _resolve_config_path(config_path)
        base: dict = {}
        if yaml_path is not None:
            base = _load_yaml(yaml_path)

        merged = _merge_env_vars(base, env_prefix)
        return QuoteCacheConfig.model_validate(merged)
    except Exception as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(str(e), context={"source": "load_config"}) from e


def _resolve_config_path(explicit: str | None) -> Path | None:
    """Determine config file path."""
    if explicit is not None:
        p = Path(explicit)
        if not p.exists():
            raise ConfigError(
                f"Config file not found: {explicit}",
                context={"field": "config_path", "value": explicit},
            )
        return p

    env_path = os.environ.get("QUOTE_CACHE_CONFIG")
    if env_path:
        p = Path(env_path)
        if not p.exists():
            raise ConfigError(
                f"Config file from QUOTE_CACHE_CONFIG not found: {env_path}",
                context={"field": "QUOTE_CACHE_CONFIG", "value": env_path},
            )
        return p

    default = Path("quote-cache.yml")
    if default.exists():
        return default

    return None


def _load_yaml(path: Path) -> dict:
    """Load and parse YAML file."""
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(
                f"YAML config must be a mapping, got {type(data).__name__}",
                context={"field": "config_file", "value": str(path)},
            )
        return data
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Failed to parse YAML config: {e}",
            context={"field": "config_file", "value": str(path)},
        ) from e


def _merge_env_vars(base: dict, prefix: str) -> dict:
    """Overlay environment variables onto a copy of the base config dict.

    Double-underscore separates nesting levels. Values are auto-cast.
    """
    result = {k: dict(v) if isinstance(v, dict) else v for k, v in base.items()}

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        parts = [p.lower() for p in key[len(prefix) :].split("__")]
        if parts == ["config"]:
            continue

        target = result
        for part in parts[:-1]:
            if not isinstance(target.get(part), dict):
                target[part] = {}
            target = target[part]
        target[parts[-1]] = _auto_cast(value)

    return result


def _auto_cast(value: str) -> str | bool:
    """Auto-cast boolean strings from environment variables.

    Numbers stay strings; pydantic coerces them for numeric fields.
    """
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    return value
