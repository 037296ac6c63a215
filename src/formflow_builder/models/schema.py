from __future__ import annotations

from typing import Any, Iterator, Mapping

from pydantic import BaseModel, Field, ValidationError, model_validator

from .conditions import ConditionalRule

# Keys older builder payloads stored beside `type`/`name` instead of in settings.
LEGACY_SETTING_KEYS = ("label", "required", "placeholder", "help_text", "default_value")


class SchemaPayloadError(ValueError):
    """Raised when a raw payload cannot be coerced into a FormSchema."""

    def __init__(self, messages: list[str]) -> None:
        super().__init__("; ".join(messages))
        self.messages = messages


class FieldNode(BaseModel):
    type: str = ""
    name: str = ""
    id: str | None = None
    settings: dict[str, Any] = Field(default_factory=dict)
    children: list[FieldNode] = Field(default_factory=list)

    class Config:
        extra = "ignore"

    @model_validator(mode="before")
    @classmethod
    def _coerce_payload(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in ("type", "name"):
            raw = data.get(key)
            if raw is None:
                data[key] = ""
            elif isinstance(raw, (int, float)) and not isinstance(raw, bool):
                data[key] = str(raw)
        if data.get("id") is not None and not isinstance(data["id"], str):
            data["id"] = str(data["id"])
        settings = data.get("settings")
        # PHP encodes an empty associative array as [].
        settings = dict(settings) if isinstance(settings, Mapping) else {}
        for key in LEGACY_SETTING_KEYS:
            if key in data and key not in settings:
                settings[key] = data[key]
        data["settings"] = settings
        if data.get("children") is None:
            data["children"] = []
        return data

    @property
    def key(self) -> str:
        """Identifier rules use to address this node: its name, else its id."""
        return self.name or (self.id or "")

    def setting(self, name: str, default: Any = None) -> Any:
        value = self.settings.get(name)
        return default if value is None else value

    def walk(self) -> Iterator[FieldNode]:
        yield self
        for child in self.children:
            yield from child.walk()


class StepNode(BaseModel):
    id: str = ""
    title: str = ""
    description: str = ""
    fields: list[FieldNode] = Field(default_factory=list)

    class Config:
        extra = "ignore"

    @model_validator(mode="before")
    @classmethod
    def _coerce_payload(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            for key in ("title", "description"):
                if data.get(key) is None:
                    data[key] = ""
            if data.get("fields") is None:
                data["fields"] = []
        return data

    def walk(self) -> Iterator[FieldNode]:
        for node in self.fields:
            yield from node.walk()


class FormSettings(BaseModel):
    submit_button_text: str = "Submit"
    success_message: str = "Thank you for your submission!"
    next_button_text: str = "Next"
    prev_button_text: str = "Previous"
    show_progress: bool = True

    class Config:
        extra = "allow"


class FormSchema(BaseModel):
    version: str = "1.0"
    steps: list[StepNode] = Field(default_factory=list)
    settings: FormSettings = Field(default_factory=FormSettings)
    conditions: list[ConditionalRule] = Field(default_factory=list)

    class Config:
        extra = "ignore"

    @model_validator(mode="before")
    @classmethod
    def _assign_step_ids(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if data.get("settings") is None or data.get("settings") == []:
            data["settings"] = {}
        if data.get("conditions") is None:
            data["conditions"] = []
        steps = data.get("steps")
        if steps is None:
            data["steps"] = []
        elif isinstance(steps, list):
            assigned = []
            for index, step in enumerate(steps, start=1):
                if isinstance(step, dict) and not step.get("id"):
                    step = {**step, "id": f"step_{index}"}
                assigned.append(step)
            data["steps"] = assigned
        return data

    @classmethod
    def from_payload(cls, data: Any) -> FormSchema:
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            messages = [
                f"{'.'.join(str(part) for part in error['loc']) or 'schema'}: {error['msg']}"
                for error in exc.errors()
            ]
            raise SchemaPayloadError(messages) from exc

    def walk(self) -> Iterator[tuple[StepNode, FieldNode]]:
        for step in self.steps:
            for node in step.walk():
                yield step, node

    def serialized_size(self) -> int:
        return len(self.model_dump_json().encode("utf-8"))


def default_schema() -> FormSchema:
    """Schema used to seed a new form instance."""

    return FormSchema(
        version="1.0",
        steps=[StepNode(id="step_1", title="Step 1", description="", fields=[])],
        settings=FormSettings(
            submit_button_text="Submit",
            success_message="Thank you for your submission!",
        ),
        conditions=[],
    )


FieldNode.model_rebuild()


__all__ = [
    "FieldNode",
    "StepNode",
    "FormSettings",
    "FormSchema",
    "SchemaPayloadError",
    "default_schema",
    "LEGACY_SETTING_KEYS",
]
