"""
Wiring for the Nominatim client.

``NominatimModule.for_root()`` resolves options, picks a cache store and
builds the service.  ``get_nominatim_service`` is the FastAPI dependency
that hands the process-wide instance to route handlers.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .cache import CacheManager, MemoryStore
from .config import CacheSettings, NominatimModuleOptions, NominatimSettings, resolve_settings
from .kv import RedisStore
from .service import NominatimService

logger = logging.getLogger(__name__)


def _build_store(settings: CacheSettings, store: Optional[Any]) -> Any:
    if store is not None:
        return store
    if settings.redis_url:
        logger.info("Using Redis cache store at %s", settings.redis_url)
        return RedisStore(url=settings.redis_url)
    return MemoryStore(max_entries=settings.max_entries)


class NominatimModule:
    def __init__(self, settings: NominatimSettings, cache: Optional[CacheManager], service: NominatimService):
        self.settings = settings
        self.cache = cache
        self.service = service

    @classmethod
    def for_root(cls, options: Optional[NominatimModuleOptions] = None) -> "NominatimModule":
        settings = resolve_settings(options)
        cache: Optional[CacheManager] = None
        if settings.cache.enabled:
            store = options.cache.store if options is not None and options.cache is not None else None
            cache = CacheManager(
                store=_build_store(settings.cache, store),
                ttl=settings.cache.ttl,
                namespace=settings.cache.namespace,
                refresh_threshold=settings.cache.refresh_threshold,
                non_blocking=settings.cache.non_blocking,
            )
        service = NominatimService(settings=settings, cache=cache)
        logger.info(
            "Nominatim client configured for %s (language=%s, cache=%s)",
            settings.base_url,
            settings.language,
            "on" if cache is not None else "off",
        )
        return cls(settings, cache, service)

    async def close(self) -> None:
        if self.cache is not None:
            await self.cache.flush()
        self.service.close()


_module: Optional[NominatimModule] = None


def set_nominatim_module(module: Optional[NominatimModule]) -> None:
    global _module
    _module = module


def get_nominatim_module() -> NominatimModule:
    global _module
    if _module is None:
        _module = NominatimModule.for_root()
    return _module


def get_nominatim_service() -> NominatimService:
    return get_nominatim_module().service
