"""Deterministic demo-fixture augmentation.

The bundled export stops in 2023 and is dominated by person plaques, so the
dashboard pads it with synthetic future-dated building/event variants and
rewrites a handful of erected dates into a recent window. Output depends only
on the input order and ``AugmentSettings``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Sequence, Tuple

from plaques.records import PlaqueRecord

# One plaque (Frederick Marryat, 470 Baker Street N2) is pinned to the second vintage year.
PINNED_RECORD_ID = "6428"
PINNED_ADDRESS = "470 Baker Street N2"

CANDIDATE_INSCRIPTION_KEYWORDS = ("hall", "house", "theatre", "site")
CANDIDATE_TITLE_KEYWORDS = ("building", "event")


@dataclass(frozen=True)
class AugmentSettings:
    first_vintage: int = 2025
    second_vintage: int = 2026
    candidate_stride: int = 7
    first_vintage_count: int = 20
    second_vintage_count: int = 20
    grid_step: float = 0.005
    grid_columns: int = 5
    recent_head: int = 50
    recent_stride: int = 5
    recent_start: int = 2020
    recent_window: int = 5


def _is_candidate(record: PlaqueRecord) -> bool:
    inscription = record.inscription.lower()
    title = record.title.lower()
    return any(k in inscription for k in CANDIDATE_INSCRIPTION_KEYWORDS) or any(
        k in title for k in CANDIDATE_TITLE_KEYWORDS
    )


def select_candidates(records: Sequence[PlaqueRecord], settings: AugmentSettings = AugmentSettings()) -> List[PlaqueRecord]:
    return [r for idx, r in enumerate(records) if idx % settings.candidate_stride == 0 and _is_candidate(r)]


def _grid_offset(idx: int, settings: AugmentSettings) -> Tuple[float, float]:
    return (
        (idx % settings.grid_columns) * settings.grid_step,
        (idx // settings.grid_columns) * settings.grid_step,
    )


def _is_pinned(record: PlaqueRecord) -> bool:
    return record.id == PINNED_RECORD_ID or PINNED_ADDRESS in record.address


def _vintage_variant(record: PlaqueRecord, idx: int, year: int, inscription: str, settings: AugmentSettings) -> PlaqueRecord:
    dx, dy = _grid_offset(idx, settings)
    return replace(
        record,
        longitude=record.longitude + dx,
        latitude=record.latitude + dy,
        id=f"{year}_{record.id or idx}",
        erected=str(year),
        title=f"{record.title or 'Plaque'} ({year})",
        inscription=inscription,
    )


def _first_vintage_inscription(text: str, idx: int, year: int) -> str:
    if idx % 4 == 0:
        return f"Modern building established here in {year}. {text}"
    if idx % 4 == 1:
        return f"Historical event commemorated in {year}. {text}"
    return f"{text} - Plaque erected {year}"


def _second_vintage_inscription(text: str, idx: int, year: int) -> str:
    if idx % 4 == 0:
        return f"New cultural center opened here in {year}. {text}"
    if idx % 4 == 1:
        return f"Memorial event held at this site in {year}. {text}"
    return f"{text} - Commemorative plaque installed {year}"


def first_vintage_variants(candidates: Sequence[PlaqueRecord], settings: AugmentSettings = AugmentSettings()) -> List[PlaqueRecord]:
    out: List[PlaqueRecord] = []
    for idx, record in enumerate(candidates[: settings.first_vintage_count]):
        # The text keeps the first vintage year even for the pinned plaque.
        inscription = _first_vintage_inscription(record.inscription, idx, settings.first_vintage)
        year = settings.second_vintage if _is_pinned(record) else settings.first_vintage
        out.append(_vintage_variant(record, idx, year, inscription, settings))
    return out


def second_vintage_variants(candidates: Sequence[PlaqueRecord], settings: AugmentSettings = AugmentSettings()) -> List[PlaqueRecord]:
    start = settings.first_vintage_count
    stop = start + settings.second_vintage_count
    out: List[PlaqueRecord] = []
    for idx, record in enumerate(candidates[start:stop]):
        inscription = _second_vintage_inscription(record.inscription, idx, settings.second_vintage)
        out.append(_vintage_variant(record, idx, settings.second_vintage, inscription, settings))
    return out


def recent_year_for(idx: int, settings: AugmentSettings = AugmentSettings()) -> int:
    return settings.recent_start + idx % settings.recent_window


def with_recent_years(records: Sequence[PlaqueRecord], settings: AugmentSettings = AugmentSettings()) -> List[PlaqueRecord]:
    """Rewrite ``erected`` on every ``recent_stride``-th record of the head; nothing else changes."""
    out: List[PlaqueRecord] = []
    for idx, record in enumerate(records[: settings.recent_head]):
        if idx % settings.recent_stride == 0:
            record = replace(record, erected=str(recent_year_for(idx, settings)))
        out.append(record)
    return out


def augment_records(records: Sequence[PlaqueRecord], settings: AugmentSettings = AugmentSettings()) -> List[PlaqueRecord]:
    records = list(records)
    candidates = select_candidates(records, settings)
    return (
        with_recent_years(records, settings)
        + records[settings.recent_head :]
        + first_vintage_variants(candidates, settings)
        + second_vintage_variants(candidates, settings)
    )
