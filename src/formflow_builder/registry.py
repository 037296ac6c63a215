from __future__ import annotations

import copy
import logging
import threading
from typing import Any, Iterable, Iterator

from .field_types import DEFAULT_FIELD_TYPES
from .models.field_type import FieldCategory, FieldTypeDefinition
from .models.schema import FieldNode

logger = logging.getLogger(__name__)


class FieldTypeRegistry:
    """Catalog of field types available to the builder and renderer.

    Registries are plain objects handed to the validator, renderer and
    service; build one per process (or per test) instead of sharing a global.
    Registration is expected during startup; lookups afterwards are lock-free.
    """

    def __init__(self, definitions: Iterable[FieldTypeDefinition] | None = None) -> None:
        self._types: dict[str, FieldTypeDefinition] = {}
        self._lock = threading.Lock()
        for definition in definitions or ():
            self.register(definition.type_id, definition)

    def register(self, type_id: str, definition: FieldTypeDefinition) -> None:
        if definition.type_id != type_id:
            definition = definition.model_copy(update={"type_id": type_id})
        with self._lock:
            if type_id in self._types:
                logger.debug("Replacing field type definition", extra={"type_id": type_id})
            # Readers never lock; publish a new dict instead of mutating.
            updated = dict(self._types)
            updated[type_id] = definition
            self._types = updated

    def get(self, type_id: str) -> FieldTypeDefinition | None:
        return self._types.get(type_id)

    def __contains__(self, type_id: object) -> bool:
        return type_id in self._types

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)

    def is_container(self, type_id: str) -> bool:
        definition = self.get(type_id)
        return bool(definition and definition.is_container)

    def list_by_category(self) -> dict[FieldCategory, list[tuple[str, FieldTypeDefinition]]]:
        grouped: dict[FieldCategory, list[tuple[str, FieldTypeDefinition]]] = {
            category: [] for category in FieldCategory
        }
        for type_id, definition in self._types.items():
            grouped[definition.category].append((type_id, definition))
        return grouped

    def resolve_settings(self, node: FieldNode) -> dict[str, Any]:
        """Type defaults overlaid with the node's explicitly set values."""
        definition = self.get(node.type)
        resolved = copy.deepcopy(definition.defaults()) if definition else {}
        for key, value in node.settings.items():
            if value is not None:
                resolved[key] = value
        return resolved


def default_registry() -> FieldTypeRegistry:
    """Fresh registry loaded with the built-in field types."""
    return FieldTypeRegistry(DEFAULT_FIELD_TYPES.values())


__all__ = ["FieldTypeRegistry", "default_registry"]
