from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from .builder_service import FormBuilderService
from .interaction import client_asset
from .logging_config import set_trace_id
from .models.context import InstanceContext
from .models.results import ValidationResult
from .models.schema import FormSchema, SchemaPayloadError

logger = logging.getLogger(__name__)

TRACE_HEADER = "X-Cloud-Trace-Context"


class RenderRequest(BaseModel):
    form: FormSchema = Field(alias="schema")
    context: InstanceContext = Field(default_factory=InstanceContext)
    values: Mapping[str, Any] = Field(default_factory=dict)

    class Config:
        populate_by_name = True


class MarkupResponse(BaseModel):
    html: str


class FieldTypeCatalogResponse(BaseModel):
    labels: Mapping[str, str]
    categories: Mapping[str, Sequence[Mapping[str, Any]]]


class SchemaResponse(BaseModel):
    instance_id: int
    form: FormSchema = Field(alias="schema")

    class Config:
        populate_by_name = True


class SaveResponse(BaseModel):
    instance_id: int
    saved: bool
    warnings: Sequence[str] = Field(default_factory=list)


def _parse_schema(payload: Mapping[str, Any]) -> FormSchema:
    try:
        return FormSchema.from_payload(payload)
    except SchemaPayloadError as exc:
        raise HTTPException(status_code=422, detail={"errors": exc.messages}) from exc


def create_app(service: FormBuilderService, *, project_id: str | None = None) -> FastAPI:
    app = FastAPI(title="FormFlow Builder API", version="0.1.0")

    @app.middleware("http")
    async def bind_trace_id(request: Request, call_next):
        header = request.headers.get(TRACE_HEADER)
        if header:
            trace = header.split("/", 1)[0]
            set_trace_id(f"projects/{project_id}/traces/{trace}" if project_id else trace)
        return await call_next(request)

    @app.get("/v1/builder/field-types", response_model=FieldTypeCatalogResponse)
    async def list_field_types() -> FieldTypeCatalogResponse:
        return FieldTypeCatalogResponse(
            labels=service.category_labels(),
            categories=service.get_field_types_by_category(),
        )

    @app.post("/v1/builder/validate", response_model=ValidationResult)
    async def validate_schema(payload: dict[str, Any] = Body(...)) -> ValidationResult:
        return service.validate(payload)

    @app.post("/v1/builder/preview", response_model=MarkupResponse)
    async def preview_schema(payload: dict[str, Any] = Body(...)) -> MarkupResponse:
        return MarkupResponse(html=service.render_preview(_parse_schema(payload)))

    @app.post("/v1/forms:render", response_model=MarkupResponse)
    async def render_form(request: RenderRequest) -> MarkupResponse:
        return MarkupResponse(html=service.render(request.form, request.context, request.values))

    @app.get("/v1/builder/schema/{instance_id}", response_model=SchemaResponse, response_model_by_alias=True)
    async def get_schema(instance_id: int) -> SchemaResponse:
        return SchemaResponse(instance_id=instance_id, form=service.load_schema(instance_id))

    @app.put("/v1/builder/schema/{instance_id}", response_model=SaveResponse)
    async def put_schema(instance_id: int, payload: dict[str, Any] = Body(...)) -> SaveResponse:
        outcome = service.save_schema(instance_id, _parse_schema(payload))
        if not outcome.validation.valid:
            raise HTTPException(
                status_code=400,
                detail={
                    "errors": list(outcome.validation.errors),
                    "warnings": list(outcome.validation.warnings),
                },
            )
        if not outcome.saved:
            raise HTTPException(status_code=500, detail="Failed to save form schema")
        return SaveResponse(instance_id=instance_id, saved=True, warnings=list(outcome.validation.warnings))

    @app.get("/static/formflow.js")
    async def client_script() -> Response:
        return Response(content=client_asset(), media_type="application/javascript")

    @app.get("/health")
    async def healthcheck() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    return app


__all__ = ["create_app", "RenderRequest", "MarkupResponse", "SchemaResponse", "SaveResponse"]
