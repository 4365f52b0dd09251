"""
FastAPI endpoints exposing the Nominatim client.

Each route is a thin shell over ``NominatimService``, injected with
``Depends`` so tests (and other apps) can swap in their own instance.
Upstream failures map to 502 and invalid input to 400.
"""

from dataclasses import asdict
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException

from nominatim_client.errors import NominatimInputError, NominatimRequestError
from nominatim_client.models import Coordinates
from nominatim_client.module import get_nominatim_service
from nominatim_client.service import NominatimService

router = APIRouter()


@router.get("/search")
async def search(q: str, service: NominatimService = Depends(get_nominatim_service)) -> List[Dict[str, Any]]:
    """
    Forward geocode a free-text query.

    Results are served from the cache when the same query was seen within
    the cache TTL.
    """
    try:
        places = await service.search(q)
    except NominatimRequestError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return [p.to_dict() for p in places]


@router.get("/reverse")
async def reverse(lat: float, lon: float, service: NominatimService = Depends(get_nominatim_service)) -> Dict[str, Any]:
    try:
        place = await service.reverse(Coordinates(lat=lat, lon=lon))
    except NominatimRequestError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return place.to_dict()


@router.get("/lookup")
async def lookup(osm_ids: str = "", service: NominatimService = Depends(get_nominatim_service)) -> List[Dict[str, Any]]:
    """Look up comma-separated OSM ids, e.g. ``?osm_ids=R146656,W104393803``."""
    ids = [i.strip() for i in osm_ids.split(",") if i.strip()]
    try:
        places = await service.lookup(ids)
    except NominatimInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NominatimRequestError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return [p.to_dict() for p in places]


@router.get("/status")
async def status(service: NominatimService = Depends(get_nominatim_service)) -> Dict[str, Any]:
    try:
        health = await service.health_check()
    except NominatimRequestError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return asdict(health)


@router.get("/format")
async def format_location(lat: float, lon: float, service: NominatimService = Depends(get_nominatim_service)) -> Dict[str, Any]:
    """
    Reverse geocode a coordinate pair and return both the raw place and its
    flattened address (country, region, commune, street, ...).
    """
    try:
        place = await service.reverse(Coordinates(lat=lat, lon=lon))
    except NominatimRequestError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {
        "original": place.to_dict(),
        "formatted": asdict(service.format_location(place)),
    }
