from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

# Typed attribute -> key in the GeoJSON ``properties`` mapping.
PROPERTY_KEYS: Dict[str, str] = {
    "id": "id1",
    "title": "title",
    "inscription": "inscription",
    "address": "address",
    "erected": "erected",
    "lead_subject_type": "lead_subject_type",
    "lead_subject_roles": "lead_subject_roles",
    "organisations": "organisations",
}


def _text(value: object) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass(frozen=True)
class PlaqueRecord:
    """A raw plaque feature with a total view over its ragged attributes.

    Every text attribute defaults to ``""`` so the classifier, resolver and
    year parser never see a missing key. The untouched source ``properties``
    are kept alongside for round-tripping back to GeoJSON.
    """

    longitude: float
    latitude: float
    id: str = ""
    title: str = ""
    inscription: str = ""
    address: str = ""
    erected: str = ""
    lead_subject_type: str = ""
    lead_subject_roles: str = ""
    organisations: str = ""
    properties: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_properties(cls, coordinates: Tuple[float, float], properties: Optional[Mapping[str, Any]]) -> "PlaqueRecord":
        props = dict(properties or {})
        lon, lat = coordinates
        return cls(
            longitude=float(lon),
            latitude=float(lat),
            properties=props,
            **{attr: _text(props.get(key)) for attr, key in PROPERTY_KEYS.items()},
        )

    @property
    def coordinates(self) -> Tuple[float, float]:
        return (self.longitude, self.latitude)

    def to_properties(self) -> Dict[str, Any]:
        props = dict(self.properties)
        for attr, key in PROPERTY_KEYS.items():
            value = getattr(self, attr)
            if value or key in props:
                props[key] = value
        return props

    def to_feature(self) -> Dict[str, Any]:
        return {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [self.longitude, self.latitude]},
            "properties": self.to_properties(),
        }


@dataclass(frozen=True)
class NormalizedRecord:
    """A ``PlaqueRecord`` plus the derived category, region and year."""

    record: PlaqueRecord
    category: str
    region: str
    year: Optional[int] = None

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def title(self) -> str:
        return self.record.title

    @property
    def address(self) -> str:
        return self.record.address

    @property
    def coordinates(self) -> Tuple[float, float]:
        return self.record.coordinates

    def to_feature(self) -> Dict[str, Any]:
        feature = self.record.to_feature()
        feature["properties"].update({"category": self.category, "region": self.region, "year": self.year})
        return feature
