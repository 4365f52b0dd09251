"""
Typed views of the JSON returned by the Nominatim API.

Places, health checks and formatted addresses are immutable once built.
Open-ended blocks (``address``, ``extratags``, ``namedetails``) stay plain
string-keyed dicts so any field the upstream service adds is preserved.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

# Component name -> value, e.g. {"road": "Rue de Rivoli", "city": "Paris"}
Address = Dict[str, str]
ExtraTags = Dict[str, str]
NameDetails = Dict[str, str]


class OSMType(str, Enum):
    NODE = "node"
    WAY = "way"
    RELATION = "relation"

    @classmethod
    def parse(cls, value: Any) -> Optional["OSMType"]:
        """Accept full names ("way") as well as the one-letter codes ("W")."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str) or not value:
            return None
        v = value.strip().lower()
        for member in cls:
            if v == member.value or v == member.value[0]:
                return member
        return None


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lon: float


def _str_dict(value: Any) -> Optional[Dict[str, str]]:
    if not isinstance(value, dict):
        return None
    return {str(k): v for k, v in value.items()}


@dataclass(frozen=True)
class Place:
    """
    One geocoding result.

    ``lat``, ``lon`` and the bounding box are kept as the upstream decimal
    strings to preserve their precision.  The upstream ``class`` key is
    exposed as ``osm_class``.
    """
    place_id: int
    licence: str
    osm_type: Optional[OSMType]
    osm_id: int
    lat: str
    lon: str
    osm_class: str
    type: str
    place_rank: int
    importance: float
    display_name: str
    boundingbox: Tuple[str, ...] = ()
    addresstype: Optional[str] = None
    name: Optional[str] = None
    address: Optional[Address] = None
    extratags: Optional[ExtraTags] = None
    namedetails: Optional[NameDetails] = None

    def __hash__(self) -> int:
        # address/tag blocks are dicts; identity is the upstream place
        return hash((self.place_id, self.osm_type, self.osm_id))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Place":
        return cls(
            place_id=int(data.get("place_id") or 0),
            licence=data.get("licence") or "",
            osm_type=OSMType.parse(data.get("osm_type")),
            osm_id=int(data.get("osm_id") or 0),
            lat=str(data.get("lat", "")),
            lon=str(data.get("lon", "")),
            osm_class=data.get("class") or data.get("category") or "",
            type=data.get("type") or "",
            place_rank=int(data.get("place_rank") or 0),
            importance=float(data.get("importance") or 0.0),
            display_name=data.get("display_name") or "",
            boundingbox=tuple(str(v) for v in data.get("boundingbox") or ()),
            addresstype=data.get("addresstype"),
            name=data.get("name"),
            address=_str_dict(data.get("address")),
            extratags=_str_dict(data.get("extratags")),
            namedetails=_str_dict(data.get("namedetails")),
        )

    @property
    def coordinates(self) -> Optional[Coordinates]:
        try:
            return Coordinates(lat=float(self.lat), lon=float(self.lon))
        except ValueError:
            return None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize back to the upstream key names, dropping absent optional blocks."""
        out: Dict[str, Any] = {
            "place_id": self.place_id,
            "licence": self.licence,
            "osm_type": self.osm_type.value if self.osm_type else None,
            "osm_id": self.osm_id,
            "lat": self.lat,
            "lon": self.lon,
            "class": self.osm_class,
            "type": self.type,
            "place_rank": self.place_rank,
            "importance": self.importance,
            "display_name": self.display_name,
            "boundingbox": list(self.boundingbox),
        }
        for key in ("addresstype", "name", "address", "extratags", "namedetails"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        return out


@dataclass(frozen=True)
class HealthCheck:
    status: Union[int, str]
    message: str
    data_updated: Optional[str] = None
    software_version: Optional[str] = None
    database_version: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HealthCheck":
        return cls(
            status=data.get("status", ""),
            message=data.get("message") or "",
            data_updated=data.get("data_updated"),
            software_version=data.get("software_version"),
            database_version=data.get("database_version"),
        )


@dataclass(frozen=True)
class FormattedAddress:
    country: Optional[str] = None
    country_code: Optional[str] = None
    postcode: Optional[str] = None
    region: Optional[str] = None
    region_code: Optional[str] = None
    commune: Optional[str] = None
    district: Optional[str] = None
    street: Optional[str] = None
    place_type: Optional[str] = None
    full_address: Optional[str] = None
