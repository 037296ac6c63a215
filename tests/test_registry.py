from formflow_builder.builder_service import FormBuilderService
from formflow_builder.field_types import DEFAULT_FIELD_TYPES
from formflow_builder.models.field_type import FieldCategory, FieldTypeDefinition, SettingDefinition, SettingKind
from formflow_builder.models.schema import FieldNode
from formflow_builder.registry import FieldTypeRegistry, default_registry


def test_default_registry_groups_every_builtin_type():
    registry = default_registry()
    grouped = registry.list_by_category()

    assert list(grouped) == list(FieldCategory)
    assert sum(len(members) for members in grouped.values()) == len(DEFAULT_FIELD_TYPES) == 37
    assert [type_id for type_id, _ in grouped[FieldCategory.basic]] == ["text", "email", "phone", "number", "textarea"]
    assert [type_id for type_id, _ in grouped[FieldCategory.layout]] == [
        "heading",
        "paragraph",
        "divider",
        "spacer",
        "columns",
        "section",
    ]


def test_empty_categories_are_still_listed():
    registry = FieldTypeRegistry([DEFAULT_FIELD_TYPES["text"]])
    grouped = registry.list_by_category()

    assert set(grouped) == set(FieldCategory)
    assert grouped[FieldCategory.layout] == []
    assert [type_id for type_id, _ in grouped[FieldCategory.basic]] == ["text"]


def test_unknown_type_lookup_returns_none():
    registry = default_registry()

    assert registry.get("hologram") is None
    assert "hologram" not in registry
    assert registry.is_container("hologram") is False


def test_containers_are_flagged():
    registry = default_registry()

    assert {type_id for type_id in registry if registry.is_container(type_id)} == {"repeater", "columns", "section"}


def test_register_last_write_wins_and_aligns_type_id():
    registry = default_registry()
    replacement = FieldTypeDefinition(
        type_id="something-else",
        label="Short Text",
        category=FieldCategory.basic,
        settings={"label": SettingDefinition(kind=SettingKind.text, label="Label", default="Name")},
    )

    registry.register("text", replacement)

    stored = registry.get("text")
    assert stored is not None
    assert stored.label == "Short Text"
    assert stored.type_id == "text"
    assert len(registry) == 37


def test_registries_are_isolated():
    first = default_registry()
    second = default_registry()
    first.register(
        "rating_bar",
        FieldTypeDefinition(type_id="rating_bar", label="Rating Bar", category=FieldCategory.advanced),
    )

    assert "rating_bar" in first
    assert "rating_bar" not in second


def test_resolve_settings_overlays_node_values_on_defaults():
    registry = default_registry()
    node = FieldNode.model_validate(
        {"type": "slider", "name": "budget", "settings": {"max": 500, "prefix": None, "suffix": " USD"}}
    )

    settings = registry.resolve_settings(node)

    assert settings["max"] == 500
    assert settings["min"] == 0
    assert settings["prefix"] == ""
    assert settings["suffix"] == " USD"


def test_resolve_settings_defaults_are_not_shared():
    registry = default_registry()
    node = FieldNode(type="select", name="color")

    registry.resolve_settings(node)["options"].append("red")

    assert registry.resolve_settings(node)["options"] == []


def test_service_catalog_has_six_categories_matching_builtin_counts():
    service = FormBuilderService()
    catalog = service.get_field_types_by_category()

    assert set(catalog) == {"basic", "selection", "advanced", "address", "utility", "layout"}
    for category, members in catalog.items():
        assert isinstance(members, list)
        expected = sum(1 for definition in DEFAULT_FIELD_TYPES.values() if definition.category.value == category)
        assert len(members) == expected, category
    repeater = next(item for item in catalog["advanced"] if item["type"] == "repeater")
    assert repeater["is_container"] is True
    assert repeater["settings"]["min_items"]["default"] == 1
