import logging
from contextlib import contextmanager
from typing import List, Optional

import altair as alt
import pandas as pd
import pydeck as pdk
import streamlit as st

from plaques import data as pdata
from plaques.charts import (
    category_bar_chart,
    category_frame,
    chart_csv,
    legend_items,
    region_frame,
    region_pie_chart,
    year_frame,
    year_line_chart,
)
from plaques.classify import CATEGORIES, category_label
from plaques.filters import ALL_CATEGORIES, ViewState, apply_update, reset, select
from plaques.metrics_charts import compute_charts, selection_from_event
from plaques.metrics_map import compute_map, record_detail, visible_selection
from plaques.metrics_overview import compute_overview
from plaques.metrics_table import PAGE_SIZES, TABLE_COLUMNS, compute_table, toggle_sort

logger = logging.getLogger(__name__)

alt.data_transformers.disable_max_rows()

VIEWS = ["Map", "Charts", "Table"]
CHART_TYPES = {"Bar · plaques by type": "bar", "Line · plaques per year": "line", "Pie · plaques by borough": "pie"}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        .swatch {display:inline-block;width:10px;height:10px;border-radius:50%;margin-right:4px;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body


def format_filter_summary(state: ViewState) -> str:
    f = state.filters
    chips = [
        "Type: All" if f.category == ALL_CATEGORIES else f"Type: {category_label(f.category)}",
        f"Years: {f.year_range[0]}–{f.year_range[1]}",
        f"Boroughs: {', '.join(f.regions)}" if f.regions else "Boroughs: All",
    ]
    if f.search.strip():
        chips.append(f"Search: “{f.search.strip()}”")
    if state.selection is not None:
        value = category_label(state.selection.value) if state.selection.kind == "category" else state.selection.value
        chips.append(f"Chart selection: {state.selection.kind} = {value}")
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def render_page_header(title: str, breadcrumb: str, export_df: Optional[pd.DataFrame] = None, export_name: str = "export.csv"):
    inject_base_styles()
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if export_df is not None and not export_df.empty:
            st.download_button(
                "Export CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name=export_name,
                mime="text/csv",
            )
    st.markdown(f"<div class='chip-row'>{format_filter_summary(view_state)}</div>", unsafe_allow_html=True)


def go_to(view: str):
    st.session_state["_nav_target"] = view
    st.rerun()


# ---------- UI setup ----------
st.set_page_config(page_title="London Plaques Explorer", layout="wide")
inject_base_styles()
st.title("London Plaques Explorer")
st.caption("Browse OpenPlaques London by map, charts and table. Filters apply to every view.")

try:
    data_ctx = pdata.load_dashboard_data()
except Exception:
    logger.exception("loading plaque data failed")
    st.error("Could not load the plaque dataset. Check the GeoJSON export in the data/ folder.")
    st.stop()

if not data_ctx.get("files"):
    st.error(f"No files found. Place an {pdata.FILE_GLOB} export in {pdata.DATA_DIR}.")
    st.stop()

year_extent = data_ctx["year_extent"]
if "view_state" not in st.session_state:
    st.session_state["view_state"] = reset(ViewState(), year_extent)
view_state: ViewState = st.session_state["view_state"]

if "_nav_target" in st.session_state:
    st.session_state["nav"] = st.session_state.pop("_nav_target")


def commit(state: ViewState):
    st.session_state["view_state"] = state


def clear_selected_record():
    st.session_state.pop("selected_record", None)
    st.session_state.pop("table_rows", None)


# ----- Sidebar: navigation + filters -----
with st.sidebar:
    st.markdown("### Navigate")
    nav_choice = st.radio("Navigate", VIEWS, key="nav", horizontal=True)

    st.markdown("---")
    head_cols = st.columns([3, 1])
    head_cols[0].markdown("### Filters")
    if head_cols[1].button("Reset"):
        commit(reset(view_state, year_extent))
        clear_selected_record()
        st.rerun()

    f = view_state.filters
    category_options = [ALL_CATEGORIES] + list(CATEGORIES)
    category = st.selectbox(
        "Plaque type",
        options=category_options,
        index=category_options.index(f.category) if f.category in category_options else 0,
        format_func=lambda c: "All types" if c == ALL_CATEGORIES else category_label(c),
    )
    lo, hi = year_extent
    year_range = st.slider(
        "Year range",
        min_value=int(lo),
        max_value=int(hi) if hi > lo else int(lo) + 1,
        value=(max(int(lo), f.year_range[0]), min(int(hi) if hi > lo else int(lo) + 1, f.year_range[1])),
        step=1,
    )
    search = st.text_input("Search title or address", value=f.search)
    regions = st.multiselect(
        "Boroughs",
        options=data_ctx["region_options"],
        default=[r for r in f.regions if r in data_ctx["region_options"]],
    )

    updated = apply_update(
        view_state,
        {"category": category, "year_range": list(year_range), "search": search, "regions": regions},
    )
    if updated is not view_state:
        commit(updated)
        clear_selected_record()
        view_state = updated

    st.markdown("---")
    st.markdown("### Dataset overview")
    ctx = pdata.prepare_context(view_state.filters, data_ctx, view_state.selection)
    overview = compute_overview(ctx)
    ov_cols = st.columns(2)
    ov_cols[0].metric("Total plaques", f"{overview['total']:,}")
    ov_cols[1].metric("Visible", f"{overview['visible']:,}")
    if overview["top_categories"]:
        st.markdown("**Top plaque types**")
        for item in overview["top_categories"]:
            st.markdown(f"- {item['label']}: **{item['count']:,}**")
    recent = overview["most_recent"]
    st.markdown("**Most recent plaque**")
    if recent:
        st.markdown(f"{recent['title'] or 'Plaque'}  \n{recent['address'] or ''}  \nYear **{recent['year']}** · {recent['region']}")
    else:
        st.markdown("–")
    if view_state.selection is not None and st.button("Clear chart selection"):
        commit(select(view_state, None))
        st.rerun()

    st.markdown("---")
    with st.expander("CSV → GeoJSON demo", expanded=False):
        if pdata.SAMPLE_CSV_PATH.exists():
            sample_features = pdata.features_from_csv(pdata.SAMPLE_CSV_PATH)
            st.caption(f"Converted {len(sample_features)} rows from {pdata.SAMPLE_CSV_PATH.name}.")
            if sample_features:
                st.json(sample_features[0], expanded=False)
        else:
            st.caption("Sample CSV not found.")


def render_detail(selected):
    if selected is None:
        return
    detail = record_detail(selected)
    with card(detail["title"]):
        st.caption(detail["address"] or "")
        cols = st.columns(3)
        cols[0].metric("Type", detail["category"])
        cols[1].metric("Year", detail["year"] if detail["year"] is not None else "unknown")
        cols[2].metric("Borough", detail["region"])
        if detail["inscription"]:
            st.markdown(f"> {detail['inscription']}")
        extra = {k: detail[k] for k in ("lead_subject", "roles", "organisations", "coordinates", "id") if detail[k]}
        if extra:
            st.json(extra, expanded=False)


def selected_record():
    return visible_selection(ctx["filtered"], st.session_state.get("selected_record"))


def render_map_page():
    render_page_header("Map", "Home / Map", export_df=ctx["filtered_frame"], export_name="plaques.csv")
    selected = selected_record()
    payload = compute_map(ctx, selected)
    points: pd.DataFrame = payload["points"]
    if points.empty:
        st.info("No plaques match the current filters.")
        return
    layer = pdk.Layer(
        "ScatterplotLayer",
        data=points,
        get_position=["longitude", "latitude"],
        get_fill_color="color",
        get_radius=40,
        radius_min_pixels=4,
        radius_max_pixels=11,
        stroked=True,
        get_line_color=[15, 23, 42],
        line_width_min_pixels=1,
        opacity=0.9,
        pickable=True,
    )
    focus = payload["focus"]
    view = pdk.ViewState(latitude=focus["latitude"], longitude=focus["longitude"], zoom=focus["zoom"], pitch=0)
    st.pydeck_chart(
        pdk.Deck(
            layers=[layer],
            initial_view_state=view,
            map_style="light",
            tooltip={"text": "{title}\n{address}\n{category} · {year} · {region}"},
        )
    )
    legend = " ".join(f"<span class='swatch' style='background:{color}'></span>{label}" for label, color in legend_items())
    st.markdown(legend, unsafe_allow_html=True)
    st.caption(f"Showing {len(points):,} plaques")
    render_detail(selected)


def render_charts_page():
    payload = compute_charts(ctx)
    render_page_header("Charts", "Home / Charts")
    chart_label = st.selectbox("Chart", list(CHART_TYPES.keys()), key="chart_type")
    chart_type = CHART_TYPES[chart_label]

    if chart_type == "bar":
        counts = payload["by_category"]
        chart = category_bar_chart(counts) if counts else None
        frame = category_frame(counts)
    elif chart_type == "line":
        pairs = [(d["year"], d["count"]) for d in payload["by_year"]]
        chart = year_line_chart(pairs) if pairs else None
        frame = year_frame(pairs)
    else:
        counts = payload["by_region"]
        chart = region_pie_chart(counts) if counts else None
        frame = region_frame(counts)

    with card(chart_label):
        if chart is None:
            st.info("No plaques match the current filters.")
            return
        event = st.altair_chart(chart, use_container_width=True, on_select="rerun", key=f"chart_{chart_type}")
        st.caption("Click a bar, point or slice to focus the map on it.")
        st.download_button(
            "Export chart data (CSV)",
            data=chart_csv(frame),
            file_name=f"plaques-{chart_type}.csv",
            mime="text/csv",
        )

    selection = selection_from_event(chart_type, event)
    if selection is not None and selection != view_state.selection:
        commit(select(view_state, selection))
        go_to("Map")


def render_table_page():
    sort_by = st.session_state.get("table_sort_by", "title")
    direction = st.session_state.get("table_sort_dir", "asc")
    page_size = st.session_state.get("table_page_size", PAGE_SIZES[0])
    page = st.session_state.get("table_page", 0)

    payload = compute_table(ctx, sort_by=sort_by, direction=direction, page=page, page_size=page_size)
    render_page_header("Table", "Home / Table", export_df=ctx["filtered_frame"], export_name="plaques.csv")

    with card("Filtered plaque records"):
        st.caption("Click a row to zoom the map to that plaque and open its details.")
        sort_cols = st.columns(len(TABLE_COLUMNS))
        for col, (col_id, (header, _)) in zip(sort_cols, TABLE_COLUMNS.items()):
            arrow = (" ▲" if direction == "asc" else " ▼") if col_id == sort_by else ""
            if col.button(f"{header}{arrow}", key=f"sort_{col_id}"):
                st.session_state["table_sort_by"], st.session_state["table_sort_dir"] = toggle_sort(sort_by, direction, col_id)
                st.rerun()

        rows: pd.DataFrame = payload["rows"]
        if rows.empty:
            st.info("No plaques match the current filters.")
        event = st.dataframe(
            rows,
            use_container_width=True,
            hide_index=True,
            on_select="rerun",
            selection_mode="single-row",
            key="table_rows",
        )

        pager = payload["pagination"]
        nav_cols = st.columns([4, 1, 1, 1, 1, 2])
        nav_cols[0].markdown(pager["label"])
        last = pager["page_count"] - 1
        if nav_cols[1].button("« First", disabled=pager["page"] == 0):
            st.session_state["table_page"] = 0
            st.rerun()
        if nav_cols[2].button("‹ Prev", disabled=pager["page"] == 0):
            st.session_state["table_page"] = pager["page"] - 1
            st.rerun()
        if nav_cols[3].button("Next ›", disabled=pager["page"] >= last):
            st.session_state["table_page"] = pager["page"] + 1
            st.rerun()
        if nav_cols[4].button("Last »", disabled=pager["page"] >= last):
            st.session_state["table_page"] = last
            st.rerun()
        new_size = nav_cols[5].selectbox("Rows per page", PAGE_SIZES, index=PAGE_SIZES.index(pager["page_size"]))
        if new_size != pager["page_size"]:
            st.session_state["table_page_size"] = new_size
            st.session_state["table_page"] = 0
            st.rerun()
        st.caption(f"Page {pager['page'] + 1} of {pager['page_count']}")

    selected_rows: List[int] = list(event.selection.rows) if event is not None else []
    if selected_rows:
        record = payload["records"][selected_rows[0]]
        if record != st.session_state.get("selected_record"):
            st.session_state["selected_record"] = record
            go_to("Map")


if nav_choice == "Map":
    render_map_page()
elif nav_choice == "Charts":
    render_charts_page()
else:
    render_table_page()
