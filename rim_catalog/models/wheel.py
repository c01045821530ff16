from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, computed_field, field_validator

from rim_catalog.utils.converters import as_str, safe_int, str_list


class InventoryRow(BaseModel):
    """One physical wheel as stored in the inventory table."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    model: str = ""
    brand: str = ""
    size: str = ""
    bolt_pattern: str = ""
    finish: str = ""
    wheel_offset: Optional[int] = None  # ET, mm
    description: str = ""
    defects: list[str] = []
    photos: list[str] = []
    video_url: Optional[str] = None
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> str:
        return as_str(v)

    @field_validator(
        "model", "brand", "size", "bolt_pattern", "finish", "description", mode="before"
    )
    @classmethod
    def _null_to_empty(cls, v: Any) -> str:
        return as_str(v)

    @field_validator("defects", "photos", mode="before")
    @classmethod
    def _null_to_list(cls, v: Any) -> list[str]:
        return str_list(v)

    @field_validator("wheel_offset", mode="before")
    @classmethod
    def _offset(cls, v: Any) -> Optional[int]:
        return safe_int(v)

    @field_validator("video_url", mode="before")
    @classmethod
    def _video(cls, v: Any) -> Optional[str]:
        return as_str(v) or None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "InventoryRow":
        return cls.model_validate(row)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class WheelGroup(BaseModel):
    """Every inventory row sharing model, size, bolt pattern and finish.

    Derived on each aggregation pass and never persisted. ``quantity`` is
    computed from ``members`` so the two cannot disagree.
    """

    group_key: str
    model: str
    brand: str = ""
    size: str
    bolt_pattern: str
    finish: str
    defect_tags: list[str] = []
    members: list[InventoryRow] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def quantity(self) -> int:
        return len(self.members)

    @property
    def member_ids(self) -> list[str]:
        return [row.id for row in self.members]
