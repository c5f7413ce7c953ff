"""Category and region derivation.

Both derivations are ordered rule tables evaluated first-match-wins, so the
order of ``CATEGORY_RULES`` and ``GAZETTEER`` is the priority contract.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

from plaques.records import PlaqueRecord

HISTORICAL_PERSON = "HistoricalPerson"
BUILDING = "Building"
EVENT = "Event"
OTHER = "Other"

CATEGORIES: Tuple[str, ...] = (HISTORICAL_PERSON, BUILDING, EVENT, OTHER)

CATEGORY_LABELS: Dict[str, str] = {
    HISTORICAL_PERSON: "Historical person",
    BUILDING: "Building",
    EVENT: "Event",
    OTHER: "Other",
}

UNKNOWN_REGION = "Unknown"

# London boroughs. Order is the tie-break when several tokens occur in the same text.
GAZETTEER: Tuple[str, ...] = (
    "city of london",
    "westminster",
    "camden",
    "islington",
    "hackney",
    "tower hamlets",
    "southwark",
    "lambeth",
    "wandsworth",
    "hammersmith",
    "kensington",
    "chelsea",
    "fulham",
    "barnet",
    "enfield",
    "haringey",
    "brent",
    "ealing",
    "harrow",
    "hillingdon",
    "richmond",
    "kingston",
    "merton",
    "sutton",
    "croydon",
    "bromley",
    "lewisham",
    "greenwich",
    "bexley",
    "newham",
    "redbridge",
    "barking",
    "dagenham",
    "havering",
)


def lowered_fields(record: PlaqueRecord) -> Dict[str, str]:
    return {
        "title": record.title.lower(),
        "inscription": record.inscription.lower(),
        "address": record.address.lower(),
        "lead_subject_type": record.lead_subject_type.lower(),
        "lead_subject_roles": record.lead_subject_roles.lower(),
        "organisations": record.organisations.lower(),
    }


@dataclass(frozen=True)
class KeywordRule:
    """Assigns ``category`` when any listed field matches any of its keywords.

    ``contains`` is a substring test, ``equals`` an exact test; both run on
    lower-cased text.
    """

    category: str
    contains: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()
    equals: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()

    def matches(self, fields: Dict[str, str]) -> bool:
        for name, tokens in self.equals:
            if fields.get(name, "") in tokens:
                return True
        for name, keywords in self.contains:
            text = fields.get(name, "")
            if any(k in text for k in keywords):
                return True
        return False


CATEGORY_RULES: Tuple[KeywordRule, ...] = (
    # Founding/naming language co-occurs with biography text, so it goes first.
    KeywordRule(
        BUILDING,
        contains=(
            ("inscription", ("was founded", "opened", "built", "constructed")),
            ("title", ("hall", "house", "theatre", "hospital", "school", "church")),
            ("address", ("hall", "house")),
        ),
    ),
    KeywordRule(
        EVENT,
        contains=(
            ("inscription", ("here stood", "site of", "battle", "meeting", "event", "happened", "occurred")),
        ),
    ),
    KeywordRule(
        HISTORICAL_PERSON,
        equals=(("lead_subject_type", ("man", "woman", "person")),),
        contains=(
            ("lead_subject_roles", ("writer", "artist", "politician", "scientist", "musician", "actor")),
            ("inscription", ("was born", "lived here", "died here", "worked here")),
        ),
    ),
)


def classify_category(record: PlaqueRecord, rules: Sequence[KeywordRule] = CATEGORY_RULES) -> str:
    fields = lowered_fields(record)
    for rule in rules:
        if rule.matches(fields):
            return rule.category
    return OTHER


def category_label(category: str) -> str:
    return CATEGORY_LABELS.get(category, category)


def resolve_region(record: PlaqueRecord, gazetteer: Sequence[str] = GAZETTEER) -> str:
    haystack = f"{record.organisations.lower()} {record.address.lower()}"
    for token in gazetteer:
        if token in haystack:
            return token.title()
    return UNKNOWN_REGION
