from __future__ import annotations

from typing import Any, Mapping, Sequence

from pydantic import BaseModel, Field


class VisibilityResult(BaseModel):
    """Outcome of evaluating a schema's rules against submitted values."""

    hidden_fields: frozenset[str] = frozenset()
    hidden_steps: frozenset[str] = frozenset()
    disabled_fields: frozenset[str] = frozenset()
    required_fields: frozenset[str] = frozenset()
    optional_fields: frozenset[str] = frozenset()
    field_values: Mapping[str, Any] = Field(default_factory=dict)

    class Config:
        frozen = True

    def is_hidden(self, key: str) -> bool:
        return bool(key) and key in self.hidden_fields

    def is_disabled(self, key: str) -> bool:
        return bool(key) and key in self.disabled_fields

    def is_required(self, key: str, statically_required: bool) -> bool:
        if self.is_hidden(key):
            return False
        if key in self.optional_fields:
            return False
        return statically_required or key in self.required_fields


class ValidationResult(BaseModel):
    valid: bool = True
    errors: Sequence[str] = Field(default_factory=list)
    warnings: Sequence[str] = Field(default_factory=list)


__all__ = ["VisibilityResult", "ValidationResult"]
