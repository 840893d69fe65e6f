import uuid
from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class FlagShape(BaseModel):
    """Switch with an optional banner message and check frequency."""

    kind: Literal["flag"] = "flag"
    enabled: bool
    message: str | None = None
    frequency: str | None = None


class ThresholdShape(BaseModel):
    kind: Literal["threshold"] = "threshold"
    value: float
    unit: str | None = None


class ToggleBundleShape(BaseModel):
    kind: Literal["toggles"] = "toggles"
    toggles: dict[str, bool]


class ScalarShape(BaseModel):
    kind: Literal["scalar"] = "scalar"
    value: bool | int | float | str | None


class DocumentShape(BaseModel):
    kind: Literal["document"] = "document"


SettingShape = Annotated[
    FlagShape | ThresholdShape | ToggleBundleShape | ScalarShape | DocumentShape,
    Field(discriminator="kind"),
]


class AdminSettingOut(BaseModel):
    id: uuid.UUID
    setting_key: str
    setting_value: Any = None
    setting_type: str
    description: str | None = None
    is_public: bool
    updated_at: datetime
    shape: SettingShape


class AdminSettingListResponse(BaseModel):
    settings: list[AdminSettingOut]
    total: int


class AdminSettingUpdateRequest(BaseModel):
    value: Any
