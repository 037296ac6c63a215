from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from .field_types import LAYOUT_TYPES, NESTING_CONTAINER_TYPES
from .models.conditions import STEP_ACTIONS
from .models.results import ValidationResult
from .models.schema import FieldNode, FormSchema, SchemaPayloadError
from .registry import FieldTypeRegistry, default_registry

logger = logging.getLogger(__name__)

FIELD_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*$")
MAX_CONDITIONS_PER_RULE = 5


@dataclass(frozen=True)
class ValidationLimits:
    max_size_bytes: int = 500 * 1024
    max_steps: int = 20
    max_fields_per_step: int = 50
    max_nesting: int = 3

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ValidationLimits:
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            max_size_bytes=int(env.get("FORMFLOW_SCHEMA_MAX_SIZE", defaults.max_size_bytes)),
            max_steps=int(env.get("FORMFLOW_SCHEMA_MAX_STEPS", defaults.max_steps)),
            max_fields_per_step=int(
                env.get("FORMFLOW_SCHEMA_MAX_FIELDS_PER_STEP", defaults.max_fields_per_step)
            ),
            max_nesting=int(env.get("FORMFLOW_SCHEMA_MAX_NESTING", defaults.max_nesting)),
        )


@dataclass
class _Walk:
    """Mutable state shared across one validation pass."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    # name -> location of its first occurrence
    seen_names: dict[str, str] = field(default_factory=dict)
    flagged_first: set[str] = field(default_factory=set)
    depth: int = 0
    depth_reported: bool = False


class SchemaValidator:
    """Structural checks a schema must pass before it may be persisted.

    Every check runs on every call; errors and warnings are collected rather
    than raised so one save attempt reports everything at once.
    """

    def __init__(
        self,
        registry: FieldTypeRegistry | None = None,
        *,
        limits: ValidationLimits | None = None,
    ) -> None:
        self._registry = registry or default_registry()
        self._limits = limits or ValidationLimits()

    @property
    def limits(self) -> ValidationLimits:
        return self._limits

    def validate(self, schema: FormSchema | Mapping[str, Any]) -> ValidationResult:
        if not isinstance(schema, FormSchema):
            try:
                schema = FormSchema.from_payload(schema)
            except SchemaPayloadError as exc:
                return ValidationResult(valid=False, errors=list(exc.messages), warnings=[])

        walk = _Walk()
        self._check_size(schema, walk)
        self._check_steps(schema, walk)
        for step_number, step in enumerate(schema.steps, start=1):
            if len(step.fields) > self._limits.max_fields_per_step:
                walk.warnings.append(
                    f"Step {step_number} has many fields ({len(step.fields)}). "
                    "Consider splitting into multiple steps for better performance."
                )
            self._check_fields(step.fields, step_number, (), walk)
        self._check_rules(schema, walk)

        result = ValidationResult(valid=not walk.errors, errors=walk.errors, warnings=walk.warnings)
        logger.info(
            "Validated form schema",
            extra={
                "valid": result.valid,
                "error_count": len(result.errors),
                "warning_count": len(result.warnings),
                "step_count": len(schema.steps),
            },
        )
        return result

    def _check_size(self, schema: FormSchema, walk: _Walk) -> None:
        if schema.serialized_size() > self._limits.max_size_bytes:
            kilobytes = self._limits.max_size_bytes // 1024
            walk.errors.append(
                f"Form schema exceeds maximum size ({kilobytes} KB). Please reduce the number of fields."
            )

    def _check_steps(self, schema: FormSchema, walk: _Walk) -> None:
        if len(schema.steps) > self._limits.max_steps:
            walk.errors.append(f"Form exceeds maximum number of steps ({self._limits.max_steps}).")
        if not schema.steps:
            walk.errors.append("Form must have at least one step.")

    def _check_fields(
        self,
        nodes: Sequence[FieldNode],
        step_number: int,
        parent_path: tuple[int, ...],
        walk: _Walk,
    ) -> None:
        for index, node in enumerate(nodes, start=1):
            path = (*parent_path, index)
            location = f"Field {'.'.join(str(part) for part in path)} in step {step_number}"
            self._check_node(node, location, walk)
            if node.children:
                self._check_fields(node.children, step_number, path, walk)

    def _check_node(self, node: FieldNode, location: str, walk: _Walk) -> None:
        if not node.type:
            walk.errors.append(f"{location} is missing a type.")
        elif node.type not in self._registry:
            walk.warnings.append(f'{location} uses unknown field type "{node.type}".')

        if not node.name:
            if node.type not in LAYOUT_TYPES:
                walk.errors.append(f"{location} is missing a name.")
        else:
            self._check_name(node.name, location, walk)

        if node.type in NESTING_CONTAINER_TYPES:
            # One counter for the whole walk; it is never decremented.
            walk.depth += 1
            if walk.depth > self._limits.max_nesting and not walk.depth_reported:
                walk.depth_reported = True
                walk.errors.append(
                    f"Container nesting depth exceeds maximum ({self._limits.max_nesting} levels)."
                )

    def _check_name(self, name: str, location: str, walk: _Walk) -> None:
        if name in walk.seen_names:
            if name not in walk.flagged_first:
                walk.flagged_first.add(name)
                walk.errors.append(_duplicate_message(name, walk.seen_names[name]))
            walk.errors.append(_duplicate_message(name, location))
        else:
            walk.seen_names[name] = location

        if not FIELD_NAME_PATTERN.match(name):
            walk.errors.append(
                f'Invalid field name "{name}". Names must start with a letter and contain only '
                "letters, numbers, underscores, and hyphens."
            )

    def _check_rules(self, schema: FormSchema, walk: _Walk) -> None:
        field_keys: set[str] = set()
        for _, node in schema.walk():
            if node.name:
                field_keys.add(node.name)
            if node.id:
                field_keys.add(node.id)
        step_ids = {step.id for step in schema.steps}

        for number, rule in enumerate(schema.conditions, start=1):
            prefix = f"Conditional rule {number}"
            if rule.target_step:
                if rule.target_step not in step_ids:
                    walk.warnings.append(f'{prefix} targets unknown step "{rule.target_step}".')
                if rule.action not in STEP_ACTIONS:
                    walk.warnings.append(
                        f'{prefix} uses action "{rule.action.value}", which has no effect on steps.'
                    )
            elif rule.target_field:
                if rule.target_field not in field_keys:
                    walk.warnings.append(f'{prefix} targets unknown field "{rule.target_field}".')
            else:
                walk.warnings.append(f"{prefix} has no target.")

            if not rule.conditions:
                walk.warnings.append(f"{prefix} has no conditions and will never apply.")
            elif len(rule.conditions) > MAX_CONDITIONS_PER_RULE:
                walk.warnings.append(
                    f"{prefix} has {len(rule.conditions)} conditions; "
                    f"the builder supports at most {MAX_CONDITIONS_PER_RULE}."
                )
            for condition in rule.conditions:
                if condition.field not in field_keys:
                    walk.warnings.append(f'{prefix} references unknown field "{condition.field}".')


def _duplicate_message(name: str, location: str) -> str:
    where = location[0].lower() + location[1:]
    return f'Duplicate field name "{name}" found ({where}). Field names must be unique.'


__all__ = ["SchemaValidator", "ValidationLimits", "FIELD_NAME_PATTERN", "MAX_CONDITIONS_PER_RULE"]
