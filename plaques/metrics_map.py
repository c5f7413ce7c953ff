from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from plaques.charts import CATEGORY_COLORS, FALLBACK_COLOR
from plaques.classify import category_label
from plaques.records import NormalizedRecord


@dataclass(frozen=True)
class MapFocus:
    longitude: float = -0.1
    latitude: float = 51.51
    zoom: float = 10


DEFAULT_FOCUS = MapFocus()
RECORD_ZOOM = 15


def hex_to_rgb(color: str) -> List[int]:
    color = color.lstrip("#")
    return [int(color[i : i + 2], 16) for i in (0, 2, 4)]


def category_rgb(category: str) -> List[int]:
    return hex_to_rgb(CATEGORY_COLORS.get(category, FALLBACK_COLOR))


def focus_on(record: Optional[NormalizedRecord], zoom: float = RECORD_ZOOM) -> MapFocus:
    if record is None:
        return DEFAULT_FOCUS
    lon, lat = record.coordinates
    return MapFocus(longitude=lon, latitude=lat, zoom=zoom)


def visible_selection(
    records: Sequence[NormalizedRecord], selected: Optional[NormalizedRecord]
) -> Optional[NormalizedRecord]:
    """The selected record if it is still in ``records``; matched by value, so records without an id work."""
    if selected is None:
        return None
    for rec in records:
        if rec == selected:
            return rec
    return None


def map_points(records: Sequence[NormalizedRecord]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "id": [r.id for r in records],
            "longitude": [r.coordinates[0] for r in records],
            "latitude": [r.coordinates[1] for r in records],
            "color": [category_rgb(r.category) for r in records],
            "category": [category_label(r.category) for r in records],
            "title": [r.title or "Plaque" for r in records],
            "address": [r.address for r in records],
            "year": [str(r.year) if r.year is not None else "unknown" for r in records],
            "region": [r.region for r in records],
        },
        columns=["id", "longitude", "latitude", "color", "category", "title", "address", "year", "region"],
    )


def record_detail(record: NormalizedRecord) -> Dict[str, Any]:
    raw = record.record
    lon, lat = record.coordinates
    return {
        "id": raw.id or None,
        "title": raw.title or "Plaque",
        "address": raw.address or None,
        "inscription": raw.inscription or None,
        "category": category_label(record.category),
        "region": record.region,
        "year": record.year,
        "lead_subject": raw.lead_subject_type or None,
        "roles": raw.lead_subject_roles or None,
        "organisations": raw.organisations or None,
        "coordinates": f"{lon:.5f}, {lat:.5f}",
    }


def compute_map(ctx: Dict[str, Any], selected: Optional[NormalizedRecord] = None) -> Dict[str, Any]:
    filtered: List[NormalizedRecord] = ctx.get("filtered", []) or []
    focus = focus_on(selected) if selected is not None else DEFAULT_FOCUS
    return {
        "points": map_points(filtered),
        "focus": asdict(focus),
        "selected": record_detail(selected) if selected is not None else None,
    }
