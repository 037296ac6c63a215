from __future__ import annotations

import os
from pathlib import Path

from formflow_builder.api import create_app
from formflow_builder.builder_service import FormBuilderService
from formflow_builder.firestore_schema_store import FirestoreSchemaStore
from formflow_builder.logging_config import setup_logging
from formflow_builder.registry import default_registry
from formflow_builder.renderer import FormRenderer
from formflow_builder.schema_repository import InMemorySchemaRepository, LocalSchemaRepository
from formflow_builder.validator import SchemaValidator, ValidationLimits

# Environment configuration
ENVIRONMENT = os.getenv("ENVIRONMENT", "dev")
PROJECT_ID = os.getenv("PROJECT_ID")
SCHEMA_STORE = os.getenv("SCHEMA_STORE", "firestore" if ENVIRONMENT == "prod" else "local")
SCHEMA_DATA_DIR = os.getenv("SCHEMA_DATA_DIR", "data/schemas")
CLIENT_SCRIPT_URL = os.getenv("CLIENT_SCRIPT_URL", "/static/formflow.js")

# Setup logging
setup_logging(environment=ENVIRONMENT, project_id=PROJECT_ID)

# Firestore in production, JSON files (or memory) elsewhere
if SCHEMA_STORE == "firestore":
    repository = FirestoreSchemaStore(project_id=PROJECT_ID)
elif SCHEMA_STORE == "memory":
    repository = InMemorySchemaRepository()
else:
    repository = LocalSchemaRepository(base_path=Path(SCHEMA_DATA_DIR).resolve())

registry = default_registry()
service = FormBuilderService(
    registry=registry,
    repository=repository,
    validator=SchemaValidator(registry, limits=ValidationLimits.from_env()),
    renderer=FormRenderer(registry, client_script_url=CLIENT_SCRIPT_URL),
)

app = create_app(service, project_id=PROJECT_ID)
