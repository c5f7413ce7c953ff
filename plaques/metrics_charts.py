from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from plaques.charts import (
    SELECTION_PARAM,
    category_bar_chart,
    region_pie_chart,
    to_vega_spec,
    year_line_chart,
)
from plaques.data import records_frame
from plaques.filters import SELECTION_CATEGORY, SELECTION_REGION, SELECTION_YEAR, SelectionFilter, parse_selection
from plaques.records import NormalizedRecord

CHART_KINDS = {
    "bar": SELECTION_CATEGORY,
    "line": SELECTION_YEAR,
    "pie": SELECTION_REGION,
}


def aggregate_by_category(records: Sequence[NormalizedRecord]) -> Dict[str, int]:
    """Category -> count, in first-seen order; categories with no records are absent."""
    frame = records_frame(records)
    if frame.empty:
        return {}
    counts = frame.groupby("category", sort=False).size()
    return {str(k): int(v) for k, v in counts.items()}


def aggregate_by_year(records: Sequence[NormalizedRecord]) -> List[Tuple[int, int]]:
    """(year, count) pairs ascending by year, skipping records without a year."""
    frame = records_frame(records)
    years = frame["year"].dropna()
    if years.empty:
        return []
    counts = years.astype(int).value_counts().sort_index()
    return [(int(y), int(c)) for y, c in counts.items()]


def aggregate_by_region(records: Sequence[NormalizedRecord]) -> Dict[str, int]:
    frame = records_frame(records)
    if frame.empty:
        return {}
    counts = frame.groupby("region", sort=False).size()
    return {str(k): int(v) for k, v in counts.items()}


def selection_from_event(chart_type: str, event: Optional[Mapping[str, Any]]) -> Optional[SelectionFilter]:
    """Map a chart selection event (``{"selection": {"pick": [{field: value}]}}``) to a SelectionFilter."""
    kind = CHART_KINDS.get(chart_type)
    if kind is None or not event:
        return None
    points = (event.get("selection") or {}).get(SELECTION_PARAM) or []
    if not points:
        return None
    value = points[0].get(kind)
    if value is None:
        return None
    return parse_selection({"kind": kind, "value": value})


def compute_charts(ctx: Dict[str, Any]) -> Dict[str, Any]:
    filtered: List[NormalizedRecord] = ctx.get("filtered", []) or []
    by_category = aggregate_by_category(filtered)
    by_year = aggregate_by_year(filtered)
    by_region = aggregate_by_region(filtered)

    charts: Dict[str, Any] = {}
    if by_category:
        charts["bar"] = to_vega_spec(category_bar_chart(by_category))
    if by_year:
        charts["line"] = to_vega_spec(year_line_chart(by_year))
    if by_region:
        charts["pie"] = to_vega_spec(region_pie_chart(by_region))

    filters = ctx.get("filters")
    selection = ctx.get("selection")
    return {
        "filters": asdict(filters) if filters is not None else None,
        "selection": asdict(selection) if selection is not None else None,
        "by_category": by_category,
        "by_year": [{"year": y, "count": c} for y, c in by_year],
        "by_region": by_region,
        "charts": charts,
    }
