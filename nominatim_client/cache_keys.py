# Cache key templates used by NominatimService.
from typing import Iterable, Union

Number = Union[int, float]


def search(query: str) -> str:
    return f"search:{query}"


def reverse(lat: Number, lon: Number) -> str:
    return f"reverse:{lat}:{lon}"


def lookup(osm_ids: Iterable[str]) -> str:
    return f"lookup:{','.join(osm_ids)}"
