from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, Field


class FieldCategory(str, Enum):
    basic = "basic"
    selection = "selection"
    advanced = "advanced"
    address = "address"
    utility = "utility"
    layout = "layout"


class SettingKind(str, Enum):
    text = "text"
    textarea = "textarea"
    number = "number"
    checkbox = "checkbox"
    select = "select"
    options = "options"
    wysiwyg = "wysiwyg"


class SettingDefinition(BaseModel):
    kind: SettingKind
    label: str
    default: Any = None
    options: Mapping[str, str] | None = Field(
        default=None, description="Enumerated choices for select settings"
    )

    class Config:
        frozen = True


class FieldTypeDefinition(BaseModel):
    type_id: str
    label: str
    icon: str = "dashicons-admin-generic"
    category: FieldCategory = FieldCategory.basic
    is_container: bool = False
    settings: Mapping[str, SettingDefinition] = Field(default_factory=dict)

    class Config:
        frozen = True

    def defaults(self) -> dict[str, Any]:
        return {name: setting.default for name, setting in self.settings.items()}


__all__ = ["FieldCategory", "SettingKind", "SettingDefinition", "FieldTypeDefinition"]
