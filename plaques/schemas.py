from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from plaques.classify import CATEGORIES

ALL_CATEGORIES = "all"


class GeometryModel(BaseModel):
    type: str = "Point"
    coordinates: Tuple[float, float]


class FeatureModel(BaseModel):
    type: str = "Feature"
    geometry: GeometryModel
    properties: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("properties", mode="before")
    @classmethod
    def _empty_properties(cls, value: Any) -> Any:
        return value if value is not None else {}


class FeatureCollectionModel(BaseModel):
    type: str = "FeatureCollection"
    features: List[Dict[str, Any]] = Field(default_factory=list)


class FilterUpdateModel(BaseModel):
    """Partial filter update emitted by the sidebar controls."""

    model_config = ConfigDict(extra="forbid")

    category: Optional[str] = None
    year_range: Optional[Tuple[int, int]] = None
    search: Optional[str] = None
    regions: Optional[List[str]] = None

    @field_validator("category")
    @classmethod
    def _known_category(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value != ALL_CATEGORIES and value not in CATEGORIES:
            raise ValueError(f"unknown category: {value}")
        return value

    @field_validator("year_range")
    @classmethod
    def _ordered_range(cls, value: Optional[Tuple[int, int]]) -> Optional[Tuple[int, int]]:
        if value is None:
            return None
        lo, hi = value
        return (hi, lo) if lo > hi else (lo, hi)


class SelectionModel(BaseModel):
    """Cross-view selection emitted by a chart click."""

    kind: Literal["category", "region", "year"]
    value: Union[int, str]

    @model_validator(mode="after")
    def _year_as_int(self) -> "SelectionModel":
        if self.kind == "year" and not isinstance(self.value, int):
            self.value = int(str(self.value).strip())
        elif self.kind != "year":
            self.value = str(self.value)
        return self
