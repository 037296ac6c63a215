from __future__ import annotations

from enum import Enum
from typing import Any, Sequence

from pydantic import BaseModel, Field, field_validator, model_validator


class ConditionOperator(str, Enum):
    equals = "equals"
    not_equals = "not_equals"
    contains = "contains"
    not_contains = "not_contains"
    starts_with = "starts_with"
    ends_with = "ends_with"
    greater_than = "greater_than"
    less_than = "less_than"
    greater_equal = "greater_equal"
    less_equal = "less_equal"
    is_empty = "is_empty"
    is_not_empty = "is_not_empty"
    is_checked = "is_checked"


class RuleAction(str, Enum):
    show = "show"
    hide = "hide"
    enable = "enable"
    disable = "disable"
    require = "require"
    unrequire = "unrequire"
    set_value = "set_value"
    clear_value = "clear_value"


class RuleLogic(str, Enum):
    all = "all"
    any = "any"


STEP_ACTIONS = frozenset({RuleAction.show, RuleAction.hide})

_LOGIC_ALIASES = {"and": "all", "or": "any"}


class Condition(BaseModel):
    field: str
    operator: ConditionOperator = ConditionOperator.equals
    value: Any = None

    class Config:
        extra = "ignore"


class ConditionalRule(BaseModel):
    """A single "when these conditions hold, do this to that target" rule.

    Exactly one of ``target_field`` / ``target_step`` is expected; a rule
    naming neither is kept but has no effect.
    """

    target_field: str | None = None
    target_step: str | None = None
    action: RuleAction = RuleAction.show
    logic: RuleLogic = RuleLogic.all
    conditions: Sequence[Condition] = Field(default_factory=list)
    value: Any = None

    class Config:
        extra = "ignore"

    @model_validator(mode="before")
    @classmethod
    def _accept_builder_aliases(cls, data: Any) -> Any:
        if isinstance(data, dict) and "target_field" not in data and "target" in data:
            data = dict(data)
            data["target_field"] = data.pop("target")
        return data

    @field_validator("logic", mode="before")
    @classmethod
    def _normalize_logic(cls, value: Any) -> Any:
        if isinstance(value, str):
            lowered = value.strip().lower()
            return _LOGIC_ALIASES.get(lowered, lowered)
        return value


__all__ = [
    "ConditionOperator",
    "RuleAction",
    "RuleLogic",
    "Condition",
    "ConditionalRule",
    "STEP_ACTIONS",
]
