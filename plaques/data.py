from __future__ import annotations

import json
import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd
from pydantic import ValidationError

from plaques.classify import category_label, classify_category, resolve_region
from plaques.enhance import augment_records
from plaques.filters import (
    DEFAULT_YEAR_EXTENT,
    FilterState,
    SelectionFilter,
    apply_filters,
    normalize_filters,
    parse_selection,
)
from plaques.records import NormalizedRecord, PlaqueRecord
from plaques.schemas import FeatureCollectionModel, FeatureModel

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
FILE_GLOB = "open-plaques-london-*.geojson"
SAMPLE_CSV_PATH = DATA_DIR / "sample-plaques.csv"

# Raw features taken (after geometry validation) before augmentation.
SAMPLE_LIMIT = 800

YEAR_RE = re.compile(r"\d{4}")
INSCRIPTION_YEAR_RE = re.compile(r"\b(19|20)\d{2}\b")

RECORD_COLUMNS = ["id", "title", "address", "category", "category_label", "region", "year", "longitude", "latitude"]


def get_source_files() -> List[Path]:
    return sorted(DATA_DIR.glob(FILE_GLOB))


def file_signature(files: List[Path]) -> Tuple[Tuple[str, float], ...]:
    return tuple((f.name, f.stat().st_mtime) for f in files)


def parse_year(raw: object) -> Optional[int]:
    """Return the first 4-digit run in ``raw`` as an int, e.g. "Est. 1923" -> 1923."""
    if raw is None:
        return None
    match = YEAR_RE.search(str(raw))
    if not match:
        return None
    try:
        return int(match.group(0))
    except ValueError:
        return None


def derive_year(record: PlaqueRecord) -> Optional[int]:
    # A non-empty erected value is the only source, even when it holds no year.
    # Otherwise a 19xx/20xx year in the inscription. Birth years are never used.
    if record.erected:
        return parse_year(record.erected)
    match = INSCRIPTION_YEAR_RE.search(record.inscription)
    return parse_year(match.group(0)) if match else None


def normalize_record(record: PlaqueRecord) -> NormalizedRecord:
    return NormalizedRecord(
        record=record,
        category=classify_category(record),
        region=resolve_region(record),
        year=derive_year(record),
    )


def normalize_records(records: Iterable[PlaqueRecord]) -> List[NormalizedRecord]:
    return [normalize_record(r) for r in records]


def get_year_extent(records: Iterable[NormalizedRecord]) -> Tuple[int, int]:
    years = [r.year for r in records if r.year is not None]
    if not years:
        return DEFAULT_YEAR_EXTENT
    return (min(years), max(years))


def region_options(records: Iterable[NormalizedRecord]) -> List[str]:
    return sorted({r.region for r in records if r.region})


def records_from_features(features: Iterable[Mapping[str, Any]]) -> Tuple[List[PlaqueRecord], int]:
    """Validate GeoJSON features; returns (records, dropped) where dropped lack a 2-element point."""
    records: List[PlaqueRecord] = []
    dropped = 0
    for raw in features:
        try:
            feature = FeatureModel.model_validate(raw)
        except ValidationError:
            dropped += 1
            continue
        records.append(PlaqueRecord.from_properties(feature.geometry.coordinates, feature.properties))
    return records, dropped


def load_features(path: Path) -> List[PlaqueRecord]:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(payload, list):
        payload = {"features": payload}
    collection = FeatureCollectionModel.model_validate(payload)
    records, dropped = records_from_features(collection.features)
    logger.info("Loaded %d plaque features from %s", len(records), Path(path).name)
    if dropped:
        logger.warning("Dropped %d features without a valid point geometry", dropped)
    return records


def features_from_csv(source, lat_field: str = "latitude", lon_field: str = "longitude") -> List[Dict[str, Any]]:
    """Convert a plaque CSV into GeoJSON point features, skipping rows without numeric coordinates."""
    df = pd.read_csv(source, dtype=str)
    if df.empty or lat_field not in df.columns or lon_field not in df.columns:
        return []
    lat = pd.to_numeric(df[lat_field], errors="coerce")
    lon = pd.to_numeric(df[lon_field], errors="coerce")
    valid = lat.notna() & lon.notna()
    prop_cols = [c for c in df.columns if c not in {lat_field, lon_field}]

    features: List[Dict[str, Any]] = []
    for idx in df.index[valid]:
        props = {c: (None if pd.isna(df.at[idx, c]) else df.at[idx, c]) for c in prop_cols}
        features.append(
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [float(lon[idx]), float(lat[idx])]},
                "properties": props,
            }
        )
    skipped = int((~valid).sum())
    if skipped:
        logger.info("Skipped %d CSV rows without numeric coordinates", skipped)
    return features


def records_frame(records: Sequence[NormalizedRecord]) -> pd.DataFrame:
    """Tabular view of normalized records; the index is the position in ``records``."""
    if not records:
        frame = pd.DataFrame(columns=RECORD_COLUMNS)
        frame["year"] = frame["year"].astype("Int64")
        return frame
    frame = pd.DataFrame(
        {
            "id": [r.id for r in records],
            "title": [r.title or None for r in records],
            "address": [r.address or None for r in records],
            "category": [r.category for r in records],
            "category_label": [category_label(r.category) for r in records],
            "region": [r.region for r in records],
            "year": pd.array([r.year for r in records], dtype="Int64"),
            "longitude": [r.coordinates[0] for r in records],
            "latitude": [r.coordinates[1] for r in records],
        }
    )
    return frame


def build_data_context(
    raw_records: Sequence[PlaqueRecord],
    *,
    augment: bool = True,
    sample_limit: Optional[int] = SAMPLE_LIMIT,
) -> Dict[str, object]:
    sample = list(raw_records[:sample_limit]) if sample_limit is not None else list(raw_records)
    if augment:
        sample = augment_records(sample)
    records = normalize_records(sample)
    return {
        "files": [],
        "signature": None,
        "raw_records": sample,
        "records": records,
        "year_extent": get_year_extent(records),
        "region_options": region_options(records),
    }


# ---------------- Public API (Streamlit dashboard) ----------------
@lru_cache(maxsize=4)
def _load_dashboard_data_cached(files_sig: Tuple[Tuple[str, float], ...]) -> Dict[str, object]:
    # Newest export wins when several are present.
    name = files_sig[-1][0]
    raw_records = load_features(DATA_DIR / name)
    data_ctx = build_data_context(raw_records)
    logger.info("Prepared %d normalized plaques (%d raw)", len(data_ctx["records"]), len(raw_records))
    data_ctx["files"] = [n for n, _ in files_sig]
    data_ctx["signature"] = files_sig
    return data_ctx


def load_dashboard_data() -> Dict[str, object]:
    files = get_source_files()
    if not files:
        return {
            "files": [],
            "signature": None,
            "raw_records": [],
            "records": [],
            "year_extent": DEFAULT_YEAR_EXTENT,
            "region_options": [],
        }
    return _load_dashboard_data_cached(file_signature(files))


def _build_context(data_ctx: Dict[str, object], filt: FilterState, selection: Optional[SelectionFilter]) -> Dict[str, object]:
    records: List[NormalizedRecord] = list(data_ctx.get("records", []) or [])
    filtered = apply_filters(records, filt, selection)
    return {
        "filters": filt,
        "selection": selection,
        "records": records,
        "filtered": filtered,
        "filtered_frame": records_frame(filtered),
        "year_extent": data_ctx.get("year_extent", DEFAULT_YEAR_EXTENT),
        "region_options": data_ctx.get("region_options", []),
    }


@lru_cache(maxsize=16)
def _prepare_context_cached(
    files_sig: Tuple[Tuple[str, float], ...],
    filt: FilterState,
    selection: Optional[SelectionFilter],
) -> Dict[str, object]:
    return _build_context(_load_dashboard_data_cached(files_sig), filt, selection)


def prepare_context(
    filters: dict | FilterState,
    data_ctx: Dict[str, object],
    selection: dict | SelectionFilter | None = None,
) -> Dict[str, object]:
    """Snapshot of every derived collection for one (data, filters, selection) state.

    Contexts for loaded data files are memoized on the file signature and the
    two frozen filter values; callers must treat the result as read-only.
    """
    year_extent = data_ctx.get("year_extent", DEFAULT_YEAR_EXTENT)
    filt = filters if isinstance(filters, FilterState) else normalize_filters(filters, year_extent=year_extent)
    sel = selection if selection is None or isinstance(selection, SelectionFilter) else parse_selection(selection)

    signature = data_ctx.get("signature")
    if signature:
        return _prepare_context_cached(signature, filt, sel)
    return _build_context(data_ctx, filt, sel)
