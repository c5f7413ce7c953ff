from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Iterable, List, Optional, Tuple, Union

from plaques.records import NormalizedRecord
from plaques.schemas import ALL_CATEGORIES, FilterUpdateModel, SelectionModel

DEFAULT_YEAR_EXTENT: Tuple[int, int] = (1900, 2020)

SELECTION_CATEGORY = "category"
SELECTION_REGION = "region"
SELECTION_YEAR = "year"


@dataclass(frozen=True)
class FilterState:
    category: str = ALL_CATEGORIES
    year_range: Tuple[int, int] = DEFAULT_YEAR_EXTENT
    search: str = ""
    regions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SelectionFilter:
    kind: str
    value: Union[int, str]


@dataclass(frozen=True)
class ViewState:
    filters: FilterState = field(default_factory=FilterState)
    selection: Optional[SelectionFilter] = None


def _as_year_range(value: object, fallback: Tuple[int, int]) -> Tuple[int, int]:
    try:
        lo, hi = int(value[0]), int(value[1])  # type: ignore[index]
    except Exception:
        return fallback
    return (hi, lo) if lo > hi else (lo, hi)


def normalize_filters(raw: dict, *, year_extent: Optional[Tuple[int, int]] = None) -> FilterState:
    year_extent = year_extent or DEFAULT_YEAR_EXTENT

    category = str(raw.get("category") or ALL_CATEGORIES)
    year_range = _as_year_range(raw.get("year_range"), year_extent)
    search = str(raw.get("search") or "")
    regions = tuple(str(r) for r in (raw.get("regions") or []) if r is not None)

    return FilterState(category=category, year_range=year_range, search=search, regions=regions)


def reset_filters(year_extent: Optional[Tuple[int, int]] = None) -> FilterState:
    return FilterState(year_range=tuple(year_extent or DEFAULT_YEAR_EXTENT))


def update_filters(filters: FilterState, partial: dict) -> FilterState:
    """Merge-patch ``partial`` onto ``filters``; keys absent from ``partial`` are preserved."""
    patch = FilterUpdateModel.model_validate(partial or {}).model_dump(exclude_unset=True, exclude_none=True)
    merged = {**asdict(filters), **patch}
    return normalize_filters(merged, year_extent=filters.year_range)


def parse_selection(payload: Optional[dict]) -> Optional[SelectionFilter]:
    if not payload:
        return None
    model = SelectionModel.model_validate(payload)
    return SelectionFilter(kind=model.kind, value=model.value)


def apply_update(state: ViewState, partial: dict) -> ViewState:
    filters = update_filters(state.filters, partial)
    if filters == state.filters:
        return state
    return ViewState(filters=filters, selection=None)


def select(state: ViewState, selection: Optional[SelectionFilter]) -> ViewState:
    return ViewState(filters=state.filters, selection=selection)


def reset(state: ViewState, year_extent: Optional[Tuple[int, int]] = None) -> ViewState:
    return ViewState(filters=reset_filters(year_extent), selection=None)


def failed_clauses(
    record: NormalizedRecord,
    filters: FilterState,
    selection: Optional[SelectionFilter] = None,
) -> List[str]:
    """Names of the active clauses ``record`` violates; empty means it is visible."""
    failed: List[str] = []

    # Selection and filter-state narrowing are AND-combined; neither clears the other here.
    # A year selection is carried in the view state but never narrows.
    if selection is not None:
        if selection.kind == SELECTION_CATEGORY and record.category != selection.value:
            failed.append("selection")
        elif selection.kind == SELECTION_REGION and record.region != selection.value:
            failed.append("selection")

    if filters.category != ALL_CATEGORIES and record.category != filters.category:
        failed.append("category")

    min_year, max_year = filters.year_range
    if record.year is not None and (record.year < min_year or record.year > max_year):
        failed.append("year_range")

    if filters.regions and record.region not in filters.regions:
        failed.append("regions")

    search = filters.search.strip().lower()
    if search:
        hay = f"{record.title} {record.address}".lower()
        if search not in hay:
            failed.append("search")

    return failed


def matches(record: NormalizedRecord, filters: FilterState, selection: Optional[SelectionFilter] = None) -> bool:
    return not failed_clauses(record, filters, selection)


def apply_filters(
    records: Iterable[NormalizedRecord],
    filters: FilterState,
    selection: Optional[SelectionFilter] = None,
) -> List[NormalizedRecord]:
    return [r for r in records if matches(r, filters, selection)]
