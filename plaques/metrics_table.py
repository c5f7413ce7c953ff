from __future__ import annotations

import math
from typing import Any, Dict, List, Sequence, Tuple

import pandas as pd

from plaques.data import records_frame
from plaques.records import NormalizedRecord

PAGE_SIZES = [10, 20, 50]
DEFAULT_PAGE_SIZE = 10
DEFAULT_SORT = ("title", "asc")

# Table column id -> (header, frame column used for sorting).
TABLE_COLUMNS: Dict[str, Tuple[str, str]] = {
    "title": ("Title", "title"),
    "category": ("Type", "category_label"),
    "year": ("Year", "year"),
    "region": ("Borough", "region"),
    "address": ("Address", "address"),
    "coords": ("Lon / Lat", "longitude"),
}


def _sort_key(series: pd.Series) -> pd.Series:
    if pd.api.types.is_numeric_dtype(series):
        return series
    return series.str.lower()


def sort_records(records: Sequence[NormalizedRecord], sort_by: str = "title", direction: str = "asc") -> List[NormalizedRecord]:
    """Stable sort; missing values go last in either direction and text compares case-insensitively."""
    records = list(records)
    if sort_by not in TABLE_COLUMNS or not records:
        return records
    column = TABLE_COLUMNS[sort_by][1]
    frame = records_frame(records)
    ordered = frame.sort_values(
        by=column,
        ascending=(direction != "desc"),
        na_position="last",
        kind="mergesort",
        key=_sort_key,
    )
    return [records[i] for i in ordered.index]


def toggle_sort(sort_by: str, direction: str, clicked: str) -> Tuple[str, str]:
    if clicked == sort_by:
        return sort_by, ("desc" if direction == "asc" else "asc")
    return clicked, "asc"


def paginate(n_rows: int, page: int = 0, page_size: int = DEFAULT_PAGE_SIZE) -> Dict[str, Any]:
    if page_size not in PAGE_SIZES:
        page_size = DEFAULT_PAGE_SIZE
    page_count = max(1, math.ceil(n_rows / page_size))
    page = min(max(0, int(page)), page_count - 1)
    start = page * page_size
    stop = min(start + page_size, n_rows)
    first = start + 1 if n_rows else 0
    return {
        "page": page,
        "page_size": page_size,
        "page_count": page_count,
        "start": start,
        "stop": stop,
        "label": f"Showing {first}–{stop} of {n_rows} plaques",
    }


def format_coords(record: NormalizedRecord) -> str:
    lon, lat = record.coordinates
    return f"{lon:.4f}, {lat:.4f}"


def table_rows(records: Sequence[NormalizedRecord]) -> pd.DataFrame:
    frame = records_frame(records)
    display = pd.DataFrame(
        {
            "Title": frame["title"],
            "Type": frame["category_label"],
            "Year": [str(r.year) if r.year is not None else "—" for r in records],
            "Borough": frame["region"],
            "Address": frame["address"],
            "Lon / Lat": [format_coords(r) for r in records],
        },
        index=frame.index,
    )
    return display


def compute_table(
    ctx: Dict[str, Any],
    *,
    sort_by: str = DEFAULT_SORT[0],
    direction: str = DEFAULT_SORT[1],
    page: int = 0,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> Dict[str, Any]:
    filtered: List[NormalizedRecord] = ctx.get("filtered", []) or []
    ordered = sort_records(filtered, sort_by, direction)
    pager = paginate(len(ordered), page, page_size)
    current = ordered[pager["start"] : pager["stop"]]
    return {
        "sort_by": sort_by,
        "direction": direction,
        "pagination": pager,
        "records": current,
        "rows": table_rows(current).reset_index(drop=True),
    }
