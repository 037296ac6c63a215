from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic import BaseModel

from .field_types import CATEGORY_LABELS
from .models.context import InstanceContext
from .models.results import ValidationResult
from .models.schema import FormSchema, default_schema
from .registry import FieldTypeRegistry, default_registry
from .renderer import FormRenderer
from .schema_repository import InMemorySchemaRepository, SchemaRepository
from .validator import SchemaValidator

logger = logging.getLogger(__name__)


class SaveOutcome(BaseModel):
    saved: bool
    validation: ValidationResult


class FormBuilderService:
    """Transport-agnostic facade over registry, validator, renderer and storage.

    Persistence is gated on validation: a schema with structural errors is
    never written, and every error is reported in a single response.
    """

    def __init__(
        self,
        *,
        registry: FieldTypeRegistry | None = None,
        repository: SchemaRepository | None = None,
        validator: SchemaValidator | None = None,
        renderer: FormRenderer | None = None,
    ) -> None:
        self.registry = registry or default_registry()
        self.repository = repository or InMemorySchemaRepository()
        self.validator = validator or SchemaValidator(self.registry)
        self.renderer = renderer or FormRenderer(self.registry)

    def get_field_types_by_category(self) -> dict[str, list[dict[str, Any]]]:
        return {
            category.value: [
                {"type": type_id, **definition.model_dump(mode="json", exclude={"type_id"})}
                for type_id, definition in members
            ]
            for category, members in self.registry.list_by_category().items()
        }

    def category_labels(self) -> dict[str, str]:
        return {category.value: label for category, label in CATEGORY_LABELS.items()}

    def validate(self, schema: FormSchema | Mapping[str, Any]) -> ValidationResult:
        return self.validator.validate(schema)

    def render(
        self,
        schema: FormSchema,
        context: InstanceContext | Mapping[str, Any] | None = None,
        values: Mapping[str, Any] | None = None,
    ) -> str:
        return str(self.renderer.render(schema, context, values))

    def render_preview(self, schema: FormSchema) -> str:
        return str(self.renderer.render_preview(schema))

    def new_schema(self) -> FormSchema:
        return default_schema()

    def load_schema(self, instance_id: int) -> FormSchema:
        schema = self.repository.load(instance_id)
        if schema is None:
            logger.info("No stored schema; using default", extra={"instance_id": instance_id})
            return default_schema()
        return schema

    def save_schema(self, instance_id: int, schema: FormSchema) -> SaveOutcome:
        validation = self.validator.validate(schema)
        if not validation.valid:
            logger.warning(
                "Rejected invalid form schema",
                extra={"instance_id": instance_id, "errors": list(validation.errors)},
            )
            return SaveOutcome(saved=False, validation=validation)
        saved = self.repository.save(instance_id, schema)
        return SaveOutcome(saved=saved, validation=validation)


__all__ = ["FormBuilderService", "SaveOutcome"]
