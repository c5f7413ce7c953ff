from __future__ import annotations

import json
from typing import List

import pytest

from plaques.data import build_data_context
from plaques.enhance import augment_records
from plaques.records import PlaqueRecord


def _fixture() -> List[PlaqueRecord]:
    inscriptions = [
        "The music hall stood on this site",
        "Novelist lived here",
        "Theatre founded by the company",
        "Scientist was born here 1901",
    ]
    return [
        PlaqueRecord.from_properties(
            (-0.15 + (i % 13) * 0.01, 51.48 + (i % 11) * 0.01),
            {
                "id1": str(1000 + i),
                "title": f"Plaque {i}",
                "inscription": inscriptions[i % len(inscriptions)],
                "address": f"{i} High Street Camden" if i % 2 else f"{i} Church Lane Hackney",
                "erected": str(1900 + i % 100),
            },
        )
        for i in range(300)
    ]


def _dump(records: List[PlaqueRecord]) -> str:
    return json.dumps([r.to_feature() for r in records], sort_keys=True)


@pytest.mark.regression
def test_augmenter_output_is_byte_identical_across_runs():
    first = _dump(augment_records(_fixture()))
    second = _dump(augment_records(_fixture()))
    assert first == second


@pytest.mark.regression
def test_augmenter_snapshot_of_synthetic_tail():
    out = augment_records(_fixture())
    # Candidates are every 7th index whose inscription mentions hall/house/theatre/site.
    expected_sources = [i for i in range(0, 300, 7) if i % 4 in (0, 2)]

    assert len(out) == 300 + min(20, len(expected_sources)) + max(0, min(40, len(expected_sources)) - 20)
    tail = out[300:]
    assert [r.id for r in tail[:20]] == [f"2025_{1000 + i}" for i in expected_sources[:20]]
    assert [r.id for r in tail[20:]] == [f"2026_{1000 + i}" for i in expected_sources[20:40]]
    assert [r.erected for r in out[:50:5]] == ["2020"] * 10
    assert out[51].erected == "1951"


@pytest.mark.regression
def test_data_context_is_stable_for_the_same_input():
    a = build_data_context(_fixture())
    b = build_data_context(_fixture())
    assert [r.to_feature() for r in a["records"]] == [r.to_feature() for r in b["records"]]
    assert a["year_extent"] == b["year_extent"]
    assert a["region_options"] == ["Camden", "Hackney"]
