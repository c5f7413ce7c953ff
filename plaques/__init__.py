"""Core (UI-agnostic) plaque dashboard logic.

This package contains:
- record schema and ingress validation (GeoJSON/CSV -> typed records)
- derived attributes (year, category, region) and fixture augmentation
- filter state, selection and the filter engine shared by every view
- page compute functions (statistics, chart aggregates, table and map projections)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
