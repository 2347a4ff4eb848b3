"""Service configuration for pyfuelprices."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from pyfuelprices._constants import (
    COLLECTAPI_BASE_URL,
    DEFAULT_CACHE_KEY,
    GAS_PRICE_API_BASE_URL,
    TURKEY_CITIES,
)
from pyfuelprices.exceptions import FuelConfigError
from pyfuelprices.state.policy import MergeMode


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_list(value: str | None) -> tuple[str, ...] | None:
    if value is None:
        return None
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _first_env(env: Mapping[str, str], *names: str) -> str | None:
    for name in names:
        val = env.get(name)
        if val:
            return val
    return None


@dataclasses.dataclass(frozen=True)
class FuelConfig:
    """Service configuration.

    Parameters
    ----------
    kv_url : str or None
        REST endpoint of the key-value store (Upstash/Vercel KV).
    kv_token : str or None
        Bearer token for the key-value store.
    update_token : str
        Shared secret expected by the refresh endpoint. Empty rejects
        every refresh request.
    collectapi_key : str or None
        CollectAPI key. The CollectAPI source is skipped when unset.
    collectapi_base_url : str
        CollectAPI ``gasPrice`` base URL.
    rapidapi_key : str or None
        RapidAPI key for the ``gas-price`` source. Skipped when unset.
    gas_price_api_base_url : str
        RapidAPI ``gas-price`` base URL.
    cache_key : str
        Key under which the merged snapshot is stored.
    stale_after : float
        Seconds after which a stored snapshot is considered stale and a
        read triggers a background refresh.
    concurrency_limit : int
        Size of the fetch worker pool.
    max_retries : int
        Retries per unit of work on transient upstream failures.
    retry_base_delay : float
        Base backoff delay in seconds; attempt ``n`` waits
        ``retry_base_delay * 2**n``.
    retry_max_delay : float
        Upper bound for a single backoff delay.
    refresh_deadline : float
        Overall seconds a refresh may spend fetching. ``0`` disables it.
    request_timeout : float
        Per-request HTTP timeout in seconds.
    merge_mode : MergeMode
        Conflict resolution rule across sources.
    source_priority : tuple of str
        Source order used by :attr:`MergeMode.PRIORITY`.
    brands : tuple of str
        Brand page layouts to scrape (see :mod:`pyfuelprices.sources.brands`).
    locations : tuple of str
        Locations queried from per-location sources.
    api_trace_enabled : bool
        Log redacted upstream payloads at DEBUG level.
    """

    kv_url: str | None = None
    kv_token: str | None = None
    update_token: str = ""
    collectapi_key: str | None = None
    collectapi_base_url: str = COLLECTAPI_BASE_URL
    rapidapi_key: str | None = None
    gas_price_api_base_url: str = GAS_PRICE_API_BASE_URL
    cache_key: str = DEFAULT_CACHE_KEY
    stale_after: float = 3600.0
    concurrency_limit: int = 3
    max_retries: int = 3
    retry_base_delay: float = 1.0
    retry_max_delay: float = 30.0
    refresh_deadline: float = 120.0
    request_timeout: float = 20.0
    merge_mode: MergeMode = MergeMode.MIN
    source_priority: tuple[str, ...] = ()
    brands: tuple[str, ...] = ("opet", "petrol_ofisi", "shell")
    locations: tuple[str, ...] = TURKEY_CITIES
    api_trace_enabled: bool = False

    def __post_init__(self) -> None:
        if self.concurrency_limit < 1:
            raise FuelConfigError(f"concurrency_limit must be >= 1, got {self.concurrency_limit}")
        if self.max_retries < 0:
            raise FuelConfigError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.stale_after < 0:
            raise FuelConfigError(f"stale_after must be >= 0, got {self.stale_after}")

    @property
    def has_kv(self) -> bool:
        """Whether both the KV endpoint and its token are configured."""
        return bool(self.kv_url and self.kv_token)

    @classmethod
    def from_env(cls, **overrides: Any) -> FuelConfig:
        """Create configuration from environment variables.

        Reads the Vercel/Upstash KV variables, ``UPDATE_TOKEN``, the
        upstream API keys and optional ``FUEL_*`` tuning variables.
        Explicit keyword arguments override environment values.
        """
        env = os.environ

        config_kwargs: dict[str, Any] = {}

        kv_url = _first_env(env, "KV_REST_API_URL", "UPSTASH_REDIS_REST_URL", "UPSTASH_REDIS_KV_REST_API_URL")
        kv_token = _first_env(
            env,
            "KV_REST_API_TOKEN",
            "UPSTASH_REDIS_REST_TOKEN",
            "UPSTASH_REDIS_KV_REST_API_TOKEN",
        )
        if kv_url is not None:
            config_kwargs["kv_url"] = kv_url
        if kv_token is not None:
            config_kwargs["kv_token"] = kv_token

        _ENV_CONFIG_MAP = {
            "UPDATE_TOKEN": "update_token",
            "COLLECTAPI_KEY": "collectapi_key",
            "COLLECTAPI_BASE_URL": "collectapi_base_url",
            "RAPIDAPI_KEY": "rapidapi_key",
            "GAS_PRICE_API_BASE_URL": "gas_price_api_base_url",
            "FUEL_CACHE_KEY": "cache_key",
        }
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_FLOAT_MAP = {
            "FUEL_STALE_AFTER": "stale_after",
            "FUEL_RETRY_BASE_DELAY": "retry_base_delay",
            "FUEL_RETRY_MAX_DELAY": "retry_max_delay",
            "FUEL_REFRESH_DEADLINE": "refresh_deadline",
            "FUEL_REQUEST_TIMEOUT": "request_timeout",
        }
        _ENV_INT_MAP = {
            "FUEL_CONCURRENCY": "concurrency_limit",
            "FUEL_MAX_RETRIES": "max_retries",
        }
        try:
            for env_key, field_name in _ENV_FLOAT_MAP.items():
                val = env.get(env_key)
                if val is not None and field_name not in overrides:
                    config_kwargs[field_name] = float(val)
            for env_key, field_name in _ENV_INT_MAP.items():
                val = env.get(env_key)
                if val is not None and field_name not in overrides:
                    config_kwargs[field_name] = int(val)
        except ValueError as exc:
            raise FuelConfigError(f"Invalid numeric environment value: {exc}") from exc

        mode_env = env.get("FUEL_MERGE_MODE")
        if mode_env is not None and "merge_mode" not in overrides:
            try:
                config_kwargs["merge_mode"] = MergeMode(mode_env.strip().lower())
            except ValueError as exc:
                raise FuelConfigError(f"FUEL_MERGE_MODE must be one of {[m.value for m in MergeMode]}") from exc

        _ENV_LIST_MAP = {
            "FUEL_SOURCE_PRIORITY": "source_priority",
            "FUEL_BRANDS": "brands",
            "FUEL_LOCATIONS": "locations",
        }
        for env_key, field_name in _ENV_LIST_MAP.items():
            items = _env_list(env.get(env_key))
            if items is not None and field_name not in overrides:
                config_kwargs[field_name] = items

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(env.get("FUEL_API_TRACE_ENABLED"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
