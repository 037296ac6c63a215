from __future__ import annotations

import logging
from datetime import datetime

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore
from pydantic import ValidationError

from .models.schema import FormSchema

logger = logging.getLogger(__name__)


class FirestoreSchemaStore:
    """Firestore-backed schema repository for production use."""

    COLLECTION_NAME = "form_instances"

    def __init__(self, project_id: str | None = None, *, client: firestore.Client | None = None) -> None:
        self._db = client or firestore.Client(project=project_id)
        self._collection = self._db.collection(self.COLLECTION_NAME)

    def load(self, instance_id: int) -> FormSchema | None:
        """Fetch the stored schema for an instance, if any."""
        doc = self._collection.document(str(instance_id)).get()
        if not doc.exists:
            return None
        try:
            return self._from_firestore_dict(doc.to_dict() or {})
        except ValidationError:
            logger.error("Stored form schema is unreadable", extra={"instance_id": instance_id}, exc_info=True)
            return None

    def save(self, instance_id: int, schema: FormSchema) -> bool:
        """Persist the schema; returns False when Firestore rejects the write."""
        doc_ref = self._collection.document(str(instance_id))
        try:
            doc_ref.set(self._to_firestore_dict(schema), merge=True)
        except gcp_exceptions.GoogleAPICallError:
            logger.error("Failed to save form schema", extra={"instance_id": instance_id}, exc_info=True)
            return False

        logger.info(
            "Saved form schema",
            extra={
                "instance_id": instance_id,
                "version": schema.version,
                "step_count": len(schema.steps),
            },
        )
        return True

    def _to_firestore_dict(self, schema: FormSchema) -> dict:
        # Stored as a JSON blob: schemas can nest deeper than Firestore maps allow.
        return {
            "form_schema": schema.model_dump_json(),
            "version": schema.version,
            "updated_at": datetime.utcnow(),
        }

    def _from_firestore_dict(self, data: dict) -> FormSchema | None:
        payload = data.get("form_schema")
        if not payload:
            return None
        return FormSchema.model_validate_json(payload)


__all__ = ["FirestoreSchemaStore"]
