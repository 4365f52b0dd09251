"""
Client for the OpenStreetMap Nominatim geocoding API.

Search, reverse geocoding and OSM id lookups are read through the shared
cache (one day by default); the status endpoint is always queried live.
Nominatim's usage policy asks for an identifying User-Agent and modest
request rates, so keep the cache enabled against the public instance.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import requests

from . import cache_keys
from .cache import CacheManager
from .config import NominatimSettings, resolve_settings
from .errors import NominatimInputError, NominatimRequestError
from .models import Address, Coordinates, FormattedAddress, HealthCheck, Place

logger = logging.getLogger(__name__)

# Fallback order for each formatted field, first present value wins
REGION_KEYS = ("state", "region")
REGION_CODE_KEYS = ("ISO3166-2-lvl2", "ISO3166-2-lvl4", "ISO3166-2-lvl6", "ISO3166-2-lvl8")
COMMUNE_KEYS = ("municipality", "city", "town", "village", "county")
DISTRICT_KEYS = ("city_district", "district", "suburb", "neighbourhood", "hamlet")
STREET_KEYS = ("road", "street", "highway", "residential")
PLACE_TYPE_KEYS = ("amenity", "building", "public_building", "office", "shop", "tourism", "leisure")


def _first(address: Address, keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        value = address.get(key)
        if value is not None:
            return value
    return None


class NominatimService:
    """
    Thin async wrapper around the Nominatim HTTP API.

    The cache is injected; pass ``cache=None`` to always hit upstream.
    """

    def __init__(
        self,
        settings: Optional[NominatimSettings] = None,
        cache: Optional[CacheManager] = None,
        session: Optional[requests.Session] = None,
    ):
        self.settings = settings or resolve_settings()
        self.cache = cache
        self.session = session if session is not None else requests.Session()
        self.session.headers.update({"User-Agent": self.settings.user_agent})
        self.base_url = self.settings.base_url.rstrip("/")
        self.default_params = self.settings.default_params()
        self.timeout = self.settings.timeout / 1000.0

    def _get_json(self, url: str, params: Dict[str, Any]) -> Any:
        resp = self.session.get(url, params=params, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    async def _request(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET ``path`` with the default parameters plus ``params`` and return the parsed JSON.

        Raises NominatimRequestError on any transport, HTTP or decoding failure.
        """
        query = dict(self.default_params)
        if params:
            query.update(params)
        url = f"{self.base_url}{path}"
        try:
            return await asyncio.to_thread(self._get_json, url, query)
        except (requests.RequestException, ValueError) as e:
            logger.error("Nominatim API error: %s", e)
            resp = getattr(e, "response", None)
            if resp is not None:
                logger.error("Status: %s, Data: %s", resp.status_code, resp.text)
            elif isinstance(e, (requests.ConnectionError, requests.Timeout)):
                logger.error("No response received from Nominatim API")
            raise NominatimRequestError("Nominatim request failed") from e

    async def _cached_request(
        self,
        key: str,
        fetch: Callable[[], Awaitable[Any]],
        ttl: Optional[int] = None,
        refresh: bool = False,
    ) -> Any:
        """
        Return the cached value for ``key``, or fetch and store it.

        With ``refresh`` the cached value is ignored and overwritten only once
        the fetch succeeds, so a failed refetch leaves the old entry in place.

        Concurrent misses on the same key are not coalesced: each one calls
        upstream and the last write wins.
        """
        if self.cache is None:
            return await fetch()
        cached = None if refresh else await self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit: %s", key)
            return cached
        logger.debug("Cache miss: %s", key)
        value = await fetch()
        await self.cache.set(key, value, ttl)
        return value

    async def _fetch_places(self, path: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        data = await self._request(path, params)
        if not isinstance(data, list):
            logger.error("Unexpected Nominatim %s payload: %r", path, data)
            raise NominatimRequestError("Nominatim request failed")
        return data

    async def _fetch_reverse(self, lat: float, lon: float) -> Dict[str, Any]:
        data = await self._request("/reverse", {"lat": lat, "lon": lon})
        if not isinstance(data, dict) or not data or "error" in data:
            logger.warning("No reverse geocode result for lat=%s lon=%s: %r", lat, lon, data)
            raise NominatimRequestError("Nominatim request failed")
        return data

    async def search(self, query: str, refresh: bool = False) -> List[Place]:
        """
        Forward geocode free text; results keep the upstream relevance order.

        ``refresh=True`` bypasses the cached entry and replaces it on success.
        """
        data = await self._cached_request(
            cache_keys.search(query),
            lambda: self._fetch_places("/search", {"q": query}),
            refresh=refresh,
        )
        return [Place.from_dict(item) for item in data]

    async def reverse(self, coordinates: Coordinates) -> Place:
        """Reverse geocode a coordinate pair to the nearest place."""
        lat, lon = coordinates.lat, coordinates.lon
        data = await self._cached_request(
            cache_keys.reverse(lat, lon),
            lambda: self._fetch_reverse(lat, lon),
        )
        return Place.from_dict(data)

    get_location_from_coords = reverse

    async def lookup(self, osm_ids: Sequence[str]) -> List[Place]:
        """
        Look up places by OSM id, e.g. ``["R146656", "W104393803"]``.

        Raises NominatimInputError for an empty id list.
        """
        ids = list(osm_ids)
        if not ids:
            raise NominatimInputError("lookup requires at least one OSM ID")
        data = await self._cached_request(
            cache_keys.lookup(ids),
            lambda: self._fetch_places("/lookup", {"osm_ids": ",".join(ids)}),
        )
        return [Place.from_dict(item) for item in data]

    async def health_check(self) -> HealthCheck:
        data = await self._request("/status")
        if not isinstance(data, dict):
            logger.error("Unexpected Nominatim /status payload: %r", data)
            raise NominatimRequestError("Nominatim request failed")
        return HealthCheck.from_dict(data)

    def format_location(self, place: Place) -> FormattedAddress:
        """Flatten a place's address block into a fixed set of fields."""
        address = place.address or {}
        return FormattedAddress(
            country=address.get("country"),
            country_code=address.get("country_code"),
            postcode=address.get("postcode"),
            region=_first(address, REGION_KEYS),
            region_code=_first(address, REGION_CODE_KEYS),
            commune=_first(address, COMMUNE_KEYS),
            district=_first(address, DISTRICT_KEYS),
            street=_first(address, STREET_KEYS),
            place_type=_first(address, PLACE_TYPE_KEYS),
            full_address=place.display_name or None,
        )

    def close(self) -> None:
        self.session.close()
