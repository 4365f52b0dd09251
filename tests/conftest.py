import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Ensure the repository root is on sys.path for direct pytest runs
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from nominatim_client.cache import CacheManager, MemoryStore
from nominatim_client.config import CacheOptions, NominatimModuleOptions, resolve_settings
from nominatim_client.service import NominatimService

PARIS = {
    "place_id": 88066702,
    "licence": "Data © OpenStreetMap contributors, ODbL 1.0. http://osm.org/copyright",
    "osm_type": "relation",
    "osm_id": 7444,
    "lat": "48.8534951",
    "lon": "2.3483915",
    "class": "boundary",
    "type": "administrative",
    "place_rank": 12,
    "importance": 0.8845663630228834,
    "addresstype": "city",
    "name": "Paris",
    "display_name": "Paris, Île-de-France, France métropolitaine, France",
    "address": {
        "city": "Paris",
        "ISO3166-2-lvl6": "FR-75C",
        "state": "Île-de-France",
        "ISO3166-2-lvl4": "FR-IDF",
        "country": "France",
        "country_code": "fr",
    },
    "boundingbox": ["48.8155755", "48.9021560", "2.2241220", "2.4697602"],
}

RIVOLI = {
    "place_id": 240109189,
    "licence": "Data © OpenStreetMap contributors, ODbL 1.0. http://osm.org/copyright",
    "osm_type": "node",
    "osm_id": 240109189,
    "lat": "48.8606111",
    "lon": "2.337644",
    "class": "tourism",
    "type": "museum",
    "place_rank": 30,
    "importance": 0.6,
    "display_name": "Musée du Louvre, Rue de Rivoli, Paris, France",
    "address": {
        "tourism": "Musée du Louvre",
        "road": "Rue de Rivoli",
        "quarter": "Palais-Royal",
        "city_district": "1er Arrondissement",
        "city": "Paris",
        "postcode": "75001",
        "country": "France",
        "country_code": "fr",
    },
    "boundingbox": ["48.8603", "48.8609", "2.3373", "2.3379"],
}


def make_response(payload, status_code=200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload
    resp.text = str(payload)
    resp.raise_for_status.return_value = None
    return resp


@pytest.fixture
def session():
    s = MagicMock()
    s.headers = {}
    return s


@pytest.fixture
def settings():
    return resolve_settings(NominatimModuleOptions(
        base_url="https://nominatim.test/",
        language="fr",
        addressdetails=True,
        extratags=False,
        namedetails=False,
        user_agent="tests/1.0",
        timeout=2500,
        cache=CacheOptions(namespace="nominatim"),
    ))


@pytest.fixture
def cache():
    return CacheManager(store=MemoryStore(), ttl=60000, namespace="nominatim")


@pytest.fixture
def service(settings, cache, session):
    return NominatimService(settings=settings, cache=cache, session=session)
