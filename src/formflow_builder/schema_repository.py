from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Dict, Protocol

from pydantic import ValidationError

from .models.schema import FormSchema

logger = logging.getLogger(__name__)


class SchemaRepository(Protocol):
    def load(self, instance_id: int) -> FormSchema | None:
        ...

    def save(self, instance_id: int, schema: FormSchema) -> bool:
        ...


class LocalSchemaRepository:
    """One JSON document per form instance under ``base_path``."""

    def __init__(self, *, base_path: Path) -> None:
        self._base_path = base_path

    def _path(self, instance_id: int) -> Path:
        return self._base_path / f"{int(instance_id)}.json"

    def load(self, instance_id: int) -> FormSchema | None:
        file_path = self._path(instance_id)
        if not file_path.exists():
            return None
        try:
            with file_path.open("r", encoding="utf-8") as fp:
                data = json.load(fp)
            return FormSchema.model_validate(data)
        except (ValueError, ValidationError):
            logger.error(
                "Stored form schema is unreadable",
                extra={"instance_id": instance_id, "path": str(file_path)},
                exc_info=True,
            )
            return None

    def save(self, instance_id: int, schema: FormSchema) -> bool:
        file_path = self._path(instance_id)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = file_path.with_suffix(".json.tmp")
            tmp_path.write_text(schema.model_dump_json(indent=2), encoding="utf-8")
            tmp_path.replace(file_path)
        except OSError:
            logger.error("Failed to write form schema", extra={"instance_id": instance_id}, exc_info=True)
            return False
        logger.info("Saved form schema", extra={"instance_id": instance_id, "path": str(file_path)})
        return True


class InMemorySchemaRepository:
    def __init__(self) -> None:
        self._schemas: Dict[int, str] = {}
        self._lock = threading.Lock()

    def load(self, instance_id: int) -> FormSchema | None:
        with self._lock:
            payload = self._schemas.get(instance_id)
        if payload is None:
            return None
        try:
            return FormSchema.model_validate_json(payload)
        except ValidationError:
            logger.error("Stored form schema is unreadable", extra={"instance_id": instance_id}, exc_info=True)
            return None

    def save(self, instance_id: int, schema: FormSchema) -> bool:
        # Stored serialized; every load returns a fresh copy.
        payload = schema.model_dump_json()
        with self._lock:
            self._schemas[instance_id] = payload
        return True


__all__ = ["SchemaRepository", "LocalSchemaRepository", "InMemorySchemaRepository"]
