from datetime import date
from pathlib import Path

from markupsafe import Markup

from formflow_builder.models.context import InstanceContext
from formflow_builder.models.schema import FormSchema
from formflow_builder.renderer import FormRenderer

FIXTURES = Path(__file__).resolve().parents[1] / "data" / "schemas"


def load_fixture(name: str) -> FormSchema:
    fixture_path = FIXTURES / f"{name}.json"
    return FormSchema.model_validate_json(fixture_path.read_text(encoding="utf-8"))


def one_step(*fields: dict, **extra) -> FormSchema:
    return FormSchema.from_payload({"steps": [{"id": "step_1", "fields": list(fields)}], **extra})


def test_single_email_field_has_stable_ids():
    html = FormRenderer().render(one_step({"type": "email", "name": "email", "settings": {"required": True}}), {"id": 1})

    assert isinstance(html, Markup)
    assert '<input id="isf_email" name="email" class="isf-input" required aria-required="true"' in html
    assert 'aria-describedby="isf_email_error"' in html
    assert '<div id="isf_email_error" class="isf-field-error" role="alert" aria-live="polite"></div>' in html
    assert 'for="isf_email"' in html


def test_help_text_joins_described_by():
    html = FormRenderer().render(load_fixture("1001"), {"id": 1001})

    assert 'aria-describedby="isf_email_help isf_email_error"' in html
    assert '<p id="isf_email_help" class="isf-help-text">We&#39;ll send your confirmation here.</p>' in html


def test_repeater_renders_minimum_items_and_a_template():
    schema = one_step(
        {
            "type": "repeater",
            "name": "items",
            "settings": {"min_items": 2, "max_items": 4},
            "children": [{"type": "text", "name": "name", "settings": {"label": "Name"}}],
        }
    )

    html = FormRenderer().render(schema, {"id": 1})

    assert html.count('class="isf-repeater-item"') == 3
    assert html.count('<template class="isf-repeater-template" data-placeholder="__INDEX__">') == 1
    assert 'data-min="2" data-max="4" data-next-index="2"' in html
    assert 'name="items[0][name]"' in html and 'name="items[1][name]"' in html
    assert 'id="isf_items_1_name"' in html
    assert 'name="items[__INDEX__][name]"' in html
    assert 'id="isf_items___INDEX___name"' in html


def test_repeater_prefills_submitted_rows():
    schema = one_step(
        {
            "type": "repeater",
            "name": "items",
            "settings": {"min_items": 1, "max_items": 2},
            "children": [{"type": "text", "name": "name"}],
        }
    )

    html = FormRenderer().render(
        schema, {"id": 1}, {"items": [{"name": "Nest"}, {"name": "Ecobee"}, {"name": "Dropped"}]}
    )

    assert 'value="Nest"' in html and 'value="Ecobee"' in html
    assert "Dropped" not in html
    assert '<button type="button" class="isf-repeater-add" disabled>' in html


def test_rendering_is_deterministic():
    renderer = FormRenderer()
    schema = load_fixture("1001")
    context = InstanceContext(id=1001, today=date(2024, 5, 1))

    assert renderer.render(schema, context, {"ownership": "rent"}) == renderer.render(
        schema, context, {"ownership": "rent"}
    )


def test_steps_reflect_conditional_visibility():
    html = FormRenderer().render(load_fixture("1001"), {"id": 1001}, {"skip_devices": "1"})

    assert '<div class="isf-step active" data-step="1"' in html
    assert '<div class="isf-step isf-conditional-hidden" data-step="2" data-step-id="step_2"' in html
    assert 'data-current-step="1"' in html


def test_conditional_fields_carry_initial_state():
    renderer = FormRenderer()
    schema = load_fixture("1001")

    initial = renderer.render(schema, {"id": 1001}, {})
    renting = renderer.render(schema, {"id": 1001}, {"ownership": "rent", "account_number": "12-3456"})

    assert (
        'class="isf-field-wrapper isf-field-type-text isf-conditional-hidden" data-field-type="text" '
        'data-field-key="landlord_name" data-field-name="landlord_name" hidden aria-hidden="true"'
    ) in initial
    assert 'required aria-required="true" disabled aria-disabled="true"' in initial
    assert 'class="isf-field-wrapper isf-field-type-text isf-required" data-field-type="text"' in renting
    assert 'aria-disabled="true"' not in renting.split('id="isf_email"')[1].split(">")[0]


def test_layout_containers():
    html = FormRenderer().render(load_fixture("1001"), {"id": 1001})

    assert "grid-template-columns: repeat(2, 1fr); gap: 10px" in html
    assert 'aria-expanded="false"' in html
    assert 'class="isf-section-content" hidden>' in html
    assert 'name="first_name"' in html and 'name="notes"' in html


def test_rule_program_is_embedded_safely():
    schema = one_step(
        {"type": "text", "name": "a"},
        {"type": "text", "name": "b"},
        conditions=[
            {
                "target_field": "b",
                "action": "show",
                "conditions": [{"field": "a", "operator": "equals", "value": "</script><b>"}],
            }
        ],
    )

    html = FormRenderer().render(schema, {"id": 7})

    assert '<script type="application/json" class="isf-conditional-rules" data-instance="7">' in html
    assert "\\u003c/script\\u003e\\u003cb\\u003e" in html
    assert "</script><b>" not in html


def test_user_text_is_escaped():
    schema = one_step(
        {"type": "text", "name": "a", "settings": {"label": "<b>Name</b>"}},
        {"type": "paragraph", "settings": {"content": "line <one>\nline two"}},
    )

    html = FormRenderer().render(schema, {"id": 1}, {"a": '"><script>alert(1)</script>'})

    assert "&lt;b&gt;Name&lt;/b&gt;" in html
    assert "<script>alert(1)</script>" not in html
    assert "line &lt;one&gt;<br>line two" in html


def test_progress_bar_only_for_multi_step_forms():
    renderer = FormRenderer()

    multi = renderer.render(load_fixture("1001"), {"id": 1})
    single = renderer.render(one_step({"type": "text", "name": "a"}), {"id": 1})
    disabled = renderer.render(
        FormSchema.from_payload({"steps": [{"fields": []}, {"fields": []}], "settings": {"show_progress": False}}),
        {"id": 1},
    )

    assert 'class="isf-progress"' in multi
    assert 'class="isf-progress"' not in single
    assert 'class="isf-progress"' not in disabled


def test_unknown_types_use_the_hook():
    schema = one_step({"type": "hologram", "name": "holo"}, {"type": "text", "name": "after"})
    calls = []

    def hook(ctx):
        calls.append(ctx.node.type)
        return Markup("<p>unsupported</p>")

    default_html = FormRenderer().render(schema, {"id": 1})
    hooked_html = FormRenderer(unknown_type_hook=hook).render(schema, {"id": 1})

    assert 'data-field-type="hologram"' in default_html
    assert 'name="after"' in default_html
    assert calls == ["hologram"]
    assert "<p>unsupported</p>" in hooked_html


def test_failing_routine_degrades_to_empty_wrapper():
    renderer = FormRenderer()

    def boom(ctx):
        raise ValueError("bad settings")

    renderer.register_renderer("number", boom)
    html = renderer.render(one_step({"type": "number", "name": "n"}, {"type": "text", "name": "t"}), {"id": 1})

    assert 'data-field-key="n"' in html
    assert 'id="isf_n"' not in html
    assert 'name="t"' in html


def test_today_token_resolves_from_instance_context():
    schema = one_step({"type": "date", "name": "install_date", "settings": {"min_date": "today"}})

    html = FormRenderer().render(schema, InstanceContext(id=1, today=date(2024, 5, 1)))

    assert 'min="2024-05-01"' in html


def test_widget_initial_values_are_normalized():
    schema = one_step(
        {"type": "slider", "name": "budget", "settings": {"min": 0, "max": 100, "step": 5}},
        {"type": "color_picker", "name": "accent"},
    )

    html = FormRenderer().render(schema, {"id": 1}, {"budget": "150", "accent": "#abc"})

    assert 'value="100" aria-valuenow="100"' in html
    assert 'value="#AABBCC"' in html


def test_preview_uses_placeholder_instance_and_script_url():
    renderer = FormRenderer(client_script_url="/static/formflow.js")

    html = renderer.render_preview(one_step({"type": "text", "name": "a"}))

    assert 'id="isf-form-0" data-instance="0"' in html
    assert '<script src="/static/formflow.js" defer></script>' in html


def test_duplicate_names_get_unique_ids():
    html = FormRenderer().render(one_step({"type": "text", "name": "a"}, {"type": "text", "name": "a"}), {"id": 1})

    assert 'id="isf_a"' in html
    assert 'id="isf_a_2"' in html


def test_explicit_today_makes_date_output_reproducible():
    schema = one_step(
        {"type": "date", "name": "install_date", "settings": {"min_date": "today"}},
        {"type": "date_range", "name": "stay"},
    )
    renderer = FormRenderer()

    first = renderer.render_preview(schema, today=date(2031, 2, 3))
    second = renderer.render_preview(schema, today=date(2031, 2, 3))

    assert first == second
    assert 'min="2031-02-03"' in first
    assert 'data-today="2031-02-03"' in first
