from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence, Tuple

import altair as alt
import pandas as pd

from plaques.classify import BUILDING, EVENT, HISTORICAL_PERSON, OTHER, category_label

alt.data_transformers.disable_max_rows()

# Point-selection parameter name shared by the three clickable charts.
SELECTION_PARAM = "pick"

CATEGORY_COLORS: Dict[str, str] = {
    HISTORICAL_PERSON: "#3b82f6",
    BUILDING: "#ef4444",
    EVENT: "#22c55e",
    OTHER: "#a855f7",
}
FALLBACK_COLOR = "#6b7280"
LINE_COLOR = "#3b82f6"
REGION_PALETTE = ["#0ea5e9", "#22c55e", "#eab308", "#f97316", "#a855f7", "#f43f5e", "#14b8a6", "#6366f1"]


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def category_frame(counts: Mapping[str, int]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "category": list(counts.keys()),
            "label": [category_label(c) for c in counts.keys()],
            "count": [int(v) for v in counts.values()],
        }
    )


def year_frame(pairs: Sequence[Tuple[int, int]]) -> pd.DataFrame:
    return pd.DataFrame({"year": [int(y) for y, _ in pairs], "count": [int(c) for _, c in pairs]})


def region_frame(counts: Mapping[str, int]) -> pd.DataFrame:
    return pd.DataFrame({"region": list(counts.keys()), "count": [int(v) for v in counts.values()]})


def category_bar_chart(counts: Mapping[str, int]) -> alt.Chart:
    df = category_frame(counts)
    pick = alt.selection_point(name=SELECTION_PARAM, fields=["category"])
    domain = list(CATEGORY_COLORS.keys())
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("label:N", title="Plaque type", sort=None),
            y=alt.Y("count:Q", title="Number of plaques"),
            color=alt.Color(
                "category:N",
                scale=alt.Scale(domain=domain, range=[CATEGORY_COLORS[c] for c in domain]),
                legend=None,
            ),
            opacity=alt.condition(pick, alt.value(1), alt.value(0.4)),
            tooltip=[alt.Tooltip("label:N", title="Type"), alt.Tooltip("count:Q", format=",")],
        )
        .add_params(pick)
        .properties(height=320)
    )


def year_line_chart(pairs: Sequence[Tuple[int, int]]) -> alt.Chart:
    df = year_frame(pairs)
    pick = alt.selection_point(name=SELECTION_PARAM, fields=["year"], nearest=True)
    return (
        alt.Chart(df)
        .mark_line(point={"filled": True, "size": 40}, color=LINE_COLOR)
        .encode(
            x=alt.X("year:Q", title="Year", axis=alt.Axis(format="d")),
            y=alt.Y("count:Q", title="Plaques established per year"),
            tooltip=[alt.Tooltip("year:Q", format="d"), alt.Tooltip("count:Q", format=",")],
        )
        .add_params(pick)
        .properties(height=320)
    )


def region_pie_chart(counts: Mapping[str, int]) -> alt.Chart:
    df = region_frame(counts)
    pick = alt.selection_point(name=SELECTION_PARAM, fields=["region"])
    return (
        alt.Chart(df)
        .mark_arc()
        .encode(
            theta=alt.Theta("count:Q"),
            color=alt.Color("region:N", title="Borough", scale=alt.Scale(range=REGION_PALETTE)),
            opacity=alt.condition(pick, alt.value(1), alt.value(0.5)),
            tooltip=[alt.Tooltip("region:N", title="Borough"), alt.Tooltip("count:Q", format=",")],
        )
        .add_params(pick)
        .properties(height=360)
    )


def chart_csv(frame: pd.DataFrame) -> bytes:
    return frame.to_csv(index=False).encode("utf-8")


def legend_items() -> List[Tuple[str, str]]:
    return [(category_label(c), color) for c, color in CATEGORY_COLORS.items()]
