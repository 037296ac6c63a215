from pathlib import Path

from formflow_builder.builder_service import FormBuilderService
from formflow_builder.models.schema import FormSchema, default_schema
from formflow_builder.schema_repository import InMemorySchemaRepository, LocalSchemaRepository

FIXTURES = Path(__file__).resolve().parents[1] / "data" / "schemas"


class RefusingRepository(InMemorySchemaRepository):
    def save(self, instance_id, schema):
        return False


def test_load_falls_back_to_default_schema():
    service = FormBuilderService()

    assert service.load_schema(99) == default_schema()
    assert service.new_schema() == default_schema()


def test_save_is_gated_on_validation():
    repository = InMemorySchemaRepository()
    service = FormBuilderService(repository=repository)
    invalid = FormSchema.from_payload(
        {"steps": [{"fields": [{"type": "text", "name": "dup"}, {"type": "text", "name": "dup"}]}]}
    )

    outcome = service.save_schema(3, invalid)

    assert outcome.saved is False
    assert outcome.validation.valid is False
    assert repository.load(3) is None


def test_valid_schema_is_persisted_and_reloaded():
    service = FormBuilderService()
    schema = FormSchema.from_payload({"steps": [{"fields": [{"type": "text", "name": "city"}]}]})

    outcome = service.save_schema(3, schema)

    assert outcome.saved is True
    assert outcome.validation.errors == []
    assert service.load_schema(3) == schema


def test_storage_failure_is_reported():
    service = FormBuilderService(repository=RefusingRepository())
    schema = FormSchema.from_payload({"steps": [{"fields": [{"type": "text", "name": "city"}]}]})

    outcome = service.save_schema(3, schema)

    assert outcome.saved is False
    assert outcome.validation.valid is True


def test_render_uses_stored_fixture():
    service = FormBuilderService(repository=LocalSchemaRepository(base_path=FIXTURES))

    html = service.render(service.load_schema(1001), {"id": 1001}, {"ownership": "rent"})
    preview = service.render_preview(default_schema())

    assert isinstance(html, str)
    assert 'id="isf-form-1001"' in html
    assert 'name="landlord_name"' in html
    assert 'data-instance="0"' in preview


def test_category_labels_cover_every_category():
    service = FormBuilderService()

    assert service.category_labels() == {
        "basic": "Basic Fields",
        "selection": "Selection Fields",
        "advanced": "Advanced Fields",
        "address": "Address Fields",
        "utility": "Utility Fields",
        "layout": "Layout Elements",
    }
