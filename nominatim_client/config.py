"""
Configuration for the Nominatim client.

Every option can be passed explicitly, set through an environment variable
(a ``.env`` file is honoured), or left to the built-in default, in that
order of precedence.  Durations are in milliseconds.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_BASE_URL = "https://nominatim.openstreetmap.org"
DEFAULT_FORMAT = "json"
DEFAULT_LANGUAGE = "en"
DEFAULT_ADDRESS_DETAILS = True
DEFAULT_EXTRA_TAGS = False
DEFAULT_NAME_DETAILS = False
DEFAULT_USER_AGENT = "nominatim-client/1.0"
DEFAULT_TIMEOUT_MS = 5000

DEFAULT_CACHE_TTL_MS = 86400000  # 1 day
DEFAULT_CACHE_NAMESPACE = "nominatim"
DEFAULT_CACHE_REFRESH_THRESHOLD_MS = 60000
DEFAULT_CACHE_NON_BLOCKING = False


def _as_bool(val: Optional[str], default: bool = False) -> bool:
    if val is None or val.strip() == "":
        return default
    return val.strip().lower() in ("1", "true", "yes", "on")


def _as_int(val: Optional[str], default: Optional[int]) -> Optional[int]:
    if val is None or val.strip() == "":
        return default
    return int(val)


def _pick(option: Any, env_name: str, default: Any, cast: Callable[[Optional[str], Any], Any]) -> Any:
    if option is not None:
        return option
    return cast(os.getenv(env_name), default)


def _as_str(val: Optional[str], default: Optional[str]) -> Optional[str]:
    return val if val else default


@dataclass
class CacheOptions:
    """
    Cache settings supplied by the caller.

    ``store`` is any object with ``get``/``set``/``delete``/``clear``/
    ``ttl_remaining``; when left out a Redis store is used if ``REDIS_URL``
    is set, otherwise an in-memory one.
    """
    enabled: Optional[bool] = None
    ttl: Optional[int] = None
    namespace: Optional[str] = None
    refresh_threshold: Optional[int] = None
    non_blocking: Optional[bool] = None
    max_entries: Optional[int] = None
    redis_url: Optional[str] = None
    store: Optional[Any] = None


@dataclass
class NominatimModuleOptions:
    base_url: Optional[str] = None
    language: Optional[str] = None
    addressdetails: Optional[bool] = None
    timeout: Optional[int] = None
    user_agent: Optional[str] = None
    extratags: Optional[bool] = None
    namedetails: Optional[bool] = None
    cache: Optional[CacheOptions] = None


@dataclass(frozen=True)
class CacheSettings:
    enabled: bool
    ttl: int
    namespace: str
    refresh_threshold: int
    non_blocking: bool
    max_entries: Optional[int]
    redis_url: Optional[str]


@dataclass(frozen=True)
class NominatimSettings:
    base_url: str
    language: str
    addressdetails: bool
    timeout: int
    user_agent: str
    extratags: bool
    namedetails: bool
    cache: CacheSettings

    def default_params(self) -> Dict[str, Any]:
        """Query parameters sent with every request; detail flags only when enabled."""
        params: Dict[str, Any] = {
            "format": DEFAULT_FORMAT,
            "accept-language": self.language,
        }
        if self.addressdetails:
            params["addressdetails"] = 1
        if self.extratags:
            params["extratags"] = 1
        if self.namedetails:
            params["namedetails"] = 1
        return params


def resolve_cache_settings(options: Optional[CacheOptions] = None) -> CacheSettings:
    o = options or CacheOptions()
    return CacheSettings(
        enabled=_pick(o.enabled, "NOMINATIM_CACHE_ENABLED", True, _as_bool),
        ttl=_pick(o.ttl, "NOMINATIM_CACHE_TTL_MS", DEFAULT_CACHE_TTL_MS, _as_int),
        namespace=_pick(o.namespace, "NOMINATIM_CACHE_NAMESPACE", DEFAULT_CACHE_NAMESPACE, _as_str),
        refresh_threshold=_pick(
            o.refresh_threshold, "NOMINATIM_CACHE_REFRESH_THRESHOLD_MS", DEFAULT_CACHE_REFRESH_THRESHOLD_MS, _as_int
        ),
        non_blocking=_pick(o.non_blocking, "NOMINATIM_CACHE_NON_BLOCKING", DEFAULT_CACHE_NON_BLOCKING, _as_bool),
        max_entries=_pick(o.max_entries, "NOMINATIM_CACHE_MAX_ENTRIES", None, _as_int),
        redis_url=_pick(o.redis_url, "REDIS_URL", None, _as_str),
    )


def resolve_settings(options: Optional[NominatimModuleOptions] = None) -> NominatimSettings:
    o = options or NominatimModuleOptions()
    return NominatimSettings(
        base_url=_pick(o.base_url, "NOMINATIM_BASE_URL", DEFAULT_BASE_URL, _as_str),
        language=_pick(o.language, "NOMINATIM_LANGUAGE", DEFAULT_LANGUAGE, _as_str),
        addressdetails=_pick(o.addressdetails, "NOMINATIM_ADDRESS_DETAILS", DEFAULT_ADDRESS_DETAILS, _as_bool),
        timeout=_pick(o.timeout, "NOMINATIM_TIMEOUT_MS", DEFAULT_TIMEOUT_MS, _as_int),
        user_agent=_pick(o.user_agent, "NOMINATIM_USER_AGENT", DEFAULT_USER_AGENT, _as_str),
        extratags=_pick(o.extratags, "NOMINATIM_EXTRA_TAGS", DEFAULT_EXTRA_TAGS, _as_bool),
        namedetails=_pick(o.namedetails, "NOMINATIM_NAME_DETAILS", DEFAULT_NAME_DETAILS, _as_bool),
        cache=resolve_cache_settings(o.cache),
    )
