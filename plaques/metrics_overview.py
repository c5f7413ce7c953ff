from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from plaques.classify import category_label
from plaques.data import records_frame
from plaques.metrics_charts import aggregate_by_category
from plaques.records import NormalizedRecord


@dataclass(frozen=True)
class Statistics:
    total: int = 0
    by_category: Dict[str, int] = field(default_factory=dict)
    most_recent: Optional[NormalizedRecord] = None


def most_recent_record(records: Sequence[NormalizedRecord]) -> Optional[NormalizedRecord]:
    """Record with the highest year; the first one seen wins a tie. Records without a year never qualify."""
    years = records_frame(records)["year"].dropna()
    if years.empty:
        return None
    return records[int(years.idxmax())]


def build_statistics(records: Sequence[NormalizedRecord]) -> Statistics:
    records = list(records)
    return Statistics(
        total=len(records),
        by_category=aggregate_by_category(records),
        most_recent=most_recent_record(records),
    )


def top_categories(by_category: Dict[str, int], n: int = 3) -> List[Dict[str, Any]]:
    ranked = sorted(by_category.items(), key=lambda kv: kv[1], reverse=True)[:n]
    return [{"category": c, "label": category_label(c), "count": count} for c, count in ranked]


def _record_summary(record: Optional[NormalizedRecord]) -> Optional[Dict[str, Any]]:
    if record is None:
        return None
    return {
        "id": record.id,
        "title": record.title or None,
        "address": record.address or None,
        "year": record.year,
        "region": record.region,
        "category": record.category,
    }


def compute_overview(ctx: Dict[str, Any]) -> Dict[str, Any]:
    # Summary cards describe the whole dataset, not the filtered view.
    records: List[NormalizedRecord] = ctx.get("records", []) or []
    stats = build_statistics(records)
    filters = ctx.get("filters")
    return {
        "filters": asdict(filters) if filters is not None else None,
        "total": stats.total,
        "visible": len(ctx.get("filtered", []) or []),
        "by_category": stats.by_category,
        "top_categories": top_categories(stats.by_category),
        "most_recent": _record_summary(stats.most_recent),
    }
