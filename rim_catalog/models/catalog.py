from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from rim_catalog.core.enums import FilterField
from rim_catalog.models.wheel import WheelGroup
from rim_catalog.utils.converters import as_str


class CatalogFilters(BaseModel):
    """Storefront filter state. An empty string means "no constraint"."""

    model_config = ConfigDict(frozen=True)

    search: str = ""
    model: str = ""
    size: str = ""
    bolt_pattern: str = ""
    finish: str = ""
    defect_type: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _null_to_empty(cls, v: Any) -> str:
        return as_str(v)

    def with_value(self, field: FilterField, value: Optional[str]) -> "CatalogFilters":
        return self.model_copy(update={field.value: as_str(value)})

    @property
    def is_empty(self) -> bool:
        return not any(getattr(self, f.value) for f in FilterField)


class Facets(BaseModel):
    """Distinct values available to the filter dropdowns."""

    models: list[str] = []
    bolt_patterns: list[str] = []
    finishes: list[str] = []


class CatalogView(BaseModel):
    """Everything the presentation layer renders for one catalog view."""

    groups: list[WheelGroup]
    loading: bool
    loading_more: bool
    has_more: bool
    error: Optional[str] = None
    facets: Facets
