from __future__ import annotations

import pytest

from plaques.classify import (
    BUILDING,
    CATEGORY_RULES,
    EVENT,
    GAZETTEER,
    HISTORICAL_PERSON,
    OTHER,
    UNKNOWN_REGION,
    KeywordRule,
    category_label,
    classify_category,
    resolve_region,
)
from plaques.records import PlaqueRecord


def _record(**props) -> PlaqueRecord:
    return PlaqueRecord.from_properties((-0.12, 51.5), props)


def test_building_takes_priority_over_person_phrasing():
    rec = _record(inscription="The house was built in 1880. John Smith was born here.", lead_subject_type="man")
    assert classify_category(rec) == BUILDING


def test_event_takes_priority_over_person_phrasing():
    rec = _record(inscription="Site of the meeting where she lived here", lead_subject_type="woman")
    assert classify_category(rec) == EVENT


@pytest.mark.parametrize(
    "props, expected",
    [
        ({"title": "Old Town HALL"}, BUILDING),
        ({"address": "Keats House, Hampstead"}, BUILDING),
        ({"inscription": "Hospital was founded on this spot"}, BUILDING),
        ({"inscription": "Here stood the Globe"}, EVENT),
        ({"inscription": "The great fire occurred in this street"}, EVENT),
        ({"lead_subject_type": "Person"}, HISTORICAL_PERSON),
        ({"lead_subject_roles": "Poet, Writer and critic"}, HISTORICAL_PERSON),
        ({"inscription": "Composer died here"}, HISTORICAL_PERSON),
        ({"lead_subject_type": "animal", "inscription": "a famous cat"}, OTHER),
        ({}, OTHER),
    ],
)
def test_classify_category_rules(props, expected):
    assert classify_category(_record(**props)) == expected


def test_lead_subject_type_must_match_exactly():
    assert classify_category(_record(lead_subject_type="manor")) == OTHER


def test_rules_are_an_ordered_table():
    assert [r.category for r in CATEGORY_RULES] == [BUILDING, EVENT, HISTORICAL_PERSON]
    custom = (KeywordRule(EVENT, contains=(("title", ("fair",)),)),)
    assert classify_category(_record(title="Bartholomew Fair"), custom) == EVENT
    assert classify_category(_record(title="Town Hall"), custom) == OTHER


def test_category_label():
    assert category_label(HISTORICAL_PERSON) == "Historical person"
    assert category_label("Mystery") == "Mystery"


def test_gazetteer_order_and_size():
    assert len(GAZETTEER) == 34
    assert GAZETTEER[0] == "city of london"
    assert GAZETTEER.index("barking") < GAZETTEER.index("dagenham")


@pytest.mark.parametrize(
    "props, expected",
    [
        ({"address": "12 Camden Road"}, "Camden"),
        ({"organisations": "City of London Corporation"}, "City Of London"),
        ({"address": "Tower Hamlets"}, "Tower Hamlets"),
        ({"organisations": "Royal Borough of Kensington and Chelsea"}, "Kensington"),
        ({"address": "Barking and Dagenham"}, "Barking"),
        ({"organisations": "Westminster Council", "address": "Camden Town"}, "Westminster"),
        ({"address": "Main Street, Bath"}, UNKNOWN_REGION),
        ({}, UNKNOWN_REGION),
    ],
)
def test_resolve_region(props, expected):
    assert resolve_region(_record(**props)) == expected


def test_resolve_region_is_deterministic():
    rec = _record(address="Greenwich Park", organisations="Lewisham Society")
    assert resolve_region(rec) == resolve_region(rec) == "Lewisham"
