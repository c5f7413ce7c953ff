from __future__ import annotations

import itertools

import pytest
from pydantic import ValidationError

from plaques.classify import BUILDING, EVENT, HISTORICAL_PERSON, OTHER, UNKNOWN_REGION
from plaques.data import normalize_record
from plaques.filters import (
    ALL_CATEGORIES,
    FilterState,
    SelectionFilter,
    ViewState,
    apply_filters,
    apply_update,
    failed_clauses,
    normalize_filters,
    parse_selection,
    reset,
    reset_filters,
    select,
    update_filters,
)
from plaques.records import NormalizedRecord, PlaqueRecord


def _n(category=OTHER, region=UNKNOWN_REGION, year=None, title="", address="", id1="x") -> NormalizedRecord:
    rec = PlaqueRecord.from_properties((-0.1, 51.5), {"id1": id1, "title": title, "address": address})
    return NormalizedRecord(record=rec, category=category, region=region, year=year)


RECORDS = [
    _n(HISTORICAL_PERSON, "Camden", 1850, "John Smith", "Camden Road", "a"),
    _n(BUILDING, "Islington", 1901, "Town Hall", "Islington High St", "b"),
    _n(EVENT, UNKNOWN_REGION, 1666, "Great Fire", "Pudding Lane", "c"),
    _n(OTHER, "Camden", None, "Mystery", "Kentish Town", "d"),
    _n(BUILDING, "Hackney", 2025, "Hackney Empire", "Mare Street", "e"),
]


def _ids(records):
    return [r.id for r in records]


def test_end_to_end_scenario():
    raw = [
        PlaqueRecord.from_properties((-0.14, 51.54), {"inscription": "John Smith was born here in 1850", "address": "Camden Road"}),
        PlaqueRecord.from_properties((-0.10, 51.54), {"title": "Town Hall", "inscription": "built in 1901", "address": "Islington High St"}),
        PlaqueRecord.from_properties((-0.08, 51.51), {"inscription": "Site of the Battle of 1666", "address": "Pudding Lane"}),
    ]
    normalized = [normalize_record(r) for r in raw]
    filters = FilterState(category=ALL_CATEGORIES, year_range=(1800, 2000), search="", regions=())

    result = apply_filters(normalized, filters)

    assert len(result) == 3
    assert [r.category for r in result] == [HISTORICAL_PERSON, BUILDING, EVENT]
    assert [r.region for r in result] == ["Camden", "Islington", UNKNOWN_REGION]
    # Only 19xx/20xx years are lifted from inscriptions; A and C have no year and pass the range.
    assert [r.year for r in result] == [None, 1901, None]


def test_default_filters_pass_everything_in_range():
    filters = FilterState(year_range=(1600, 2030))
    assert _ids(apply_filters(RECORDS, filters)) == ["a", "b", "c", "d", "e"]


def test_year_range_is_inclusive_and_missing_years_pass():
    filters = FilterState(year_range=(1850, 1901))
    assert _ids(apply_filters(RECORDS, filters)) == ["a", "b", "d"]


def test_category_region_and_search_clauses():
    assert _ids(apply_filters(RECORDS, FilterState(category=BUILDING, year_range=(0, 3000)))) == ["b", "e"]
    assert _ids(apply_filters(RECORDS, FilterState(regions=("Camden",), year_range=(0, 3000)))) == ["a", "d"]
    assert _ids(apply_filters(RECORDS, FilterState(search="  TOWN ", year_range=(0, 3000)))) == ["b", "d"]
    assert _ids(apply_filters(RECORDS, FilterState(search="mare street", year_range=(0, 3000)))) == ["e"]


def test_selection_narrows_by_kind():
    wide = FilterState(year_range=(0, 3000))
    assert _ids(apply_filters(RECORDS, wide, SelectionFilter("category", BUILDING))) == ["b", "e"]
    assert _ids(apply_filters(RECORDS, wide, SelectionFilter("region", "Camden"))) == ["a", "d"]


def test_year_selection_does_not_narrow():
    wide = FilterState(year_range=(0, 3000))
    selection = SelectionFilter("year", 1666)
    assert _ids(apply_filters(RECORDS, wide, selection)) == ["a", "b", "c", "d", "e"]
    assert failed_clauses(RECORDS[1], wide, selection) == []
    assert failed_clauses(RECORDS[3], wide, selection) == []


def test_selection_and_filter_state_are_and_combined():
    filters = FilterState(category=BUILDING, year_range=(0, 3000))
    assert _ids(apply_filters(RECORDS, filters, SelectionFilter("region", "Hackney"))) == ["e"]
    assert apply_filters(RECORDS, filters, SelectionFilter("category", EVENT)) == []


SEARCHES = ["", "town"]
CATEGORIES = [ALL_CATEGORIES, BUILDING]
REGIONS = [(), ("Camden", "Hackney")]
RANGES = [(1800, 1950), (0, 3000)]
SELECTIONS = [None, SelectionFilter("region", "Camden"), SelectionFilter("year", 2025)]


@pytest.mark.parametrize(
    "category, year_range, search, regions, selection",
    list(itertools.product(CATEGORIES, RANGES, SEARCHES, REGIONS, SELECTIONS)),
)
def test_filter_result_is_exactly_the_conjunction(category, year_range, search, regions, selection):
    filters = FilterState(category=category, year_range=year_range, search=search, regions=regions)
    result = apply_filters(RECORDS, filters, selection)
    for r in RECORDS:
        violated = failed_clauses(r, filters, selection)
        assert (r in result) == (not violated)
    assert result == [r for r in RECORDS if r in result]


def test_normalize_filters_defaults_and_swaps_bounds():
    f = normalize_filters({}, year_extent=(1700, 2026))
    assert f == FilterState(year_range=(1700, 2026))
    f = normalize_filters({"year_range": [2000, 1900], "regions": ["Camden", None], "search": None})
    assert f.year_range == (1900, 2000)
    assert f.regions == ("Camden",)
    assert f.search == ""


def test_update_filters_merges_partial():
    base = FilterState(category=BUILDING, year_range=(1800, 1900), search="hall", regions=("Camden",))
    updated = update_filters(base, {"search": "house"})
    assert updated == FilterState(category=BUILDING, year_range=(1800, 1900), search="house", regions=("Camden",))
    assert base.search == "hall"
    assert update_filters(base, {"year_range": (1950, 1850)}).year_range == (1850, 1950)


def test_update_filters_rejects_unknown_keys_and_categories():
    with pytest.raises(ValidationError):
        update_filters(FilterState(), {"colour": "red"})
    with pytest.raises(ValidationError):
        update_filters(FilterState(), {"category": "Spaceship"})


def test_empty_update_is_a_no_op():
    state = ViewState(filters=FilterState(year_range=(0, 3000)), selection=SelectionFilter("region", "Camden"))
    before = apply_filters(RECORDS, state.filters, state.selection)
    after_state = apply_update(state, {})
    assert after_state is state
    assert apply_filters(RECORDS, after_state.filters, after_state.selection) == before


def test_explicit_update_clears_selection():
    state = ViewState(filters=FilterState(year_range=(0, 3000)), selection=SelectionFilter("region", "Camden"))
    updated = apply_update(state, {"category": BUILDING})
    assert updated.selection is None
    assert updated.filters.category == BUILDING
    assert apply_update(state, {"category": ALL_CATEGORIES}) is state


def test_select_and_reset():
    state = ViewState(filters=FilterState(search="x"))
    chosen = select(state, SelectionFilter("category", EVENT))
    assert chosen.filters == state.filters
    assert chosen.selection == SelectionFilter("category", EVENT)

    cleared = reset(chosen, (1700, 2026))
    assert cleared == ViewState(filters=reset_filters((1700, 2026)), selection=None)
    assert cleared.filters.year_range == (1700, 2026)


def test_parse_selection_coerces_values():
    assert parse_selection(None) is None
    assert parse_selection({"kind": "year", "value": "1990"}) == SelectionFilter("year", 1990)
    assert parse_selection({"kind": "region", "value": "Camden"}) == SelectionFilter("region", "Camden")
    with pytest.raises(ValidationError):
        parse_selection({"kind": "colour", "value": "red"})


def test_filter_values_are_hashable():
    assert hash(FilterState()) == hash(FilterState())
    assert hash(SelectionFilter("year", 2000)) == hash(SelectionFilter("year", 2000))
