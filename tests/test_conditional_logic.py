import json
from pathlib import Path

import pytest

from formflow_builder.conditional_logic import (
    ConditionalLogicEvaluator,
    as_number,
    as_text,
    evaluate_condition,
    is_checked,
    is_empty,
)
from formflow_builder.models.schema import FormSchema

FIXTURES = Path(__file__).resolve().parents[1] / "data" / "schemas"

STEP_2_FIELDS = {"device", "thermostat_count", "devices", "brand", "model", "notes"}


def load_fixture(name: str) -> FormSchema:
    fixture_path = FIXTURES / f"{name}.json"
    return FormSchema.model_validate_json(fixture_path.read_text(encoding="utf-8"))


def schema_with_rules(*rules: dict, fields: list | None = None) -> FormSchema:
    fields = fields or [{"type": "text", "name": "a"}, {"type": "text", "name": "b"}]
    return FormSchema.from_payload({"steps": [{"id": "step_1", "fields": fields}], "conditions": list(rules)})


def rule(target: str, action: str, *conditions: tuple, logic: str = "all", **extra) -> dict:
    return {
        "target_field": target,
        "action": action,
        "logic": logic,
        "conditions": [{"field": field, "operator": op, "value": value} for field, op, value in conditions],
        **extra,
    }


def test_fixture_with_no_values():
    result = ConditionalLogicEvaluator().evaluate(load_fixture("1001"), {})

    assert result.hidden_fields == {"landlord_name"}
    assert result.hidden_steps == frozenset()
    assert result.disabled_fields == {"email"}
    assert result.required_fields == frozenset()
    assert result.is_required("first_name", statically_required=True) is True
    assert result.is_required("landlord_name", statically_required=False) is False


def test_fixture_renters_see_required_landlord():
    result = ConditionalLogicEvaluator().evaluate(
        load_fixture("1001"), {"ownership": "rent", "account_number": "12-3456"}
    )

    assert result.hidden_fields == frozenset()
    assert result.disabled_fields == frozenset()
    assert result.required_fields == {"landlord_name"}
    assert result.is_required("landlord_name", statically_required=False) is True


def test_fixture_hidden_step_hides_its_fields():
    result = ConditionalLogicEvaluator().evaluate(load_fixture("1001"), {"skip_devices": "1"})

    assert result.hidden_steps == {"step_2"}
    assert STEP_2_FIELDS <= result.hidden_fields
    assert result.is_hidden("notes")
    assert not result.is_hidden("programs")


def test_last_rule_wins_per_target_and_channel():
    schema = schema_with_rules(
        rule("b", "hide", ("a", "equals", "x")),
        rule("b", "show", ("a", "equals", "x")),
        rule("b", "disable", ("a", "equals", "x")),
    )

    result = ConditionalLogicEvaluator().evaluate(schema, {"a": "x"})

    assert result.hidden_fields == frozenset()
    assert result.disabled_fields == {"b"}


def test_require_without_match_leaves_static_requirement():
    schema = schema_with_rules(
        rule("b", "unrequire", ("a", "equals", "guest")),
    )
    evaluator = ConditionalLogicEvaluator()

    unmatched = evaluator.evaluate(schema, {"a": "member"})
    matched = evaluator.evaluate(schema, {"a": "guest"})

    assert unmatched.is_required("b", statically_required=True) is True
    assert matched.optional_fields == {"b"}
    assert matched.is_required("b", statically_required=True) is False


def test_hidden_fields_are_never_required():
    schema = schema_with_rules(
        rule("b", "require", ("a", "is_not_empty", None)),
        rule("b", "hide", ("a", "equals", "secret")),
    )

    result = ConditionalLogicEvaluator().evaluate(schema, {"a": "secret"})

    assert "b" in result.hidden_fields
    assert "b" not in result.required_fields
    assert result.is_required("b", statically_required=True) is False


def test_value_actions():
    schema = schema_with_rules(
        rule("b", "set_value", ("a", "equals", "copy"), value="copied"),
        rule("a", "clear_value", ("b", "equals", "reset")),
    )
    evaluator = ConditionalLogicEvaluator()

    assert evaluator.evaluate(schema, {"a": "copy"}).field_values == {"b": "copied"}
    assert evaluator.evaluate(schema, {"a": "other", "b": "reset"}).field_values == {"a": ""}
    assert evaluator.evaluate(schema, {}).field_values == {}


def test_rules_without_conditions_have_no_effect():
    schema = schema_with_rules({"target_field": "b", "action": "hide", "conditions": []})

    result = ConditionalLogicEvaluator().evaluate(schema, {})

    assert result.hidden_fields == frozenset()


def test_any_logic_matches_on_a_single_condition():
    schema = schema_with_rules(
        rule("b", "hide", ("a", "equals", "x"), ("a", "equals", "y"), logic="or"),
    )
    evaluator = ConditionalLogicEvaluator()

    assert evaluator.evaluate(schema, {"a": "y"}).hidden_fields == {"b"}
    assert evaluator.evaluate(schema, {"a": "z"}).hidden_fields == frozenset()


def test_field_ids_resolve_to_names():
    fields = [{"type": "text", "name": "a", "id": "fld_a"}, {"type": "text", "name": "b", "id": "fld_b"}]
    schema = schema_with_rules(rule("fld_b", "hide", ("fld_a", "equals", "x")), fields=fields)

    result = ConditionalLogicEvaluator().evaluate(schema, {"a": "x"})

    assert result.hidden_fields == {"b"}


def test_hidden_container_hides_descendants():
    fields = [
        {"type": "text", "name": "a"},
        {
            "type": "repeater",
            "name": "rows",
            "children": [
                {"type": "section", "children": [{"type": "text", "name": "inner"}]},
                {"type": "text", "name": "label"},
            ],
        },
    ]
    schema = schema_with_rules(rule("rows", "hide", ("a", "is_empty", None)), fields=fields)
    evaluator = ConditionalLogicEvaluator()

    program = evaluator.compile(schema)
    result = evaluator.interpret(program, {})

    assert program["children"] == {"rows": ["inner", "label"]}
    assert result.hidden_fields == {"rows", "inner", "label"}


def test_step_rules_with_field_actions_are_dropped():
    schema = FormSchema.from_payload(
        {
            "steps": [{"id": "step_1", "fields": [{"type": "text", "name": "a"}]}],
            "conditions": [
                {"target_step": "step_1", "action": "disable", "conditions": [{"field": "a", "operator": "is_empty"}]}
            ],
        }
    )

    program = ConditionalLogicEvaluator().compile(schema)

    assert program["rules"] == []


def test_program_is_plain_json_and_interpretation_is_deterministic():
    evaluator = ConditionalLogicEvaluator()
    schema = load_fixture("1001")

    program = evaluator.compile(schema)
    round_tripped = json.loads(json.dumps(program))

    assert round_tripped == program
    assert program["version"] == 1
    assert program["steps"]["step_2"] == ["device", "thermostat_count", "devices", "brand", "model", "notes"]
    values = {"ownership": "rent"}
    assert evaluator.interpret(round_tripped, values) == evaluator.evaluate(schema, values)


@pytest.mark.parametrize(
    ("operator", "actual", "expected", "outcome"),
    [
        ("equals", "rent", "rent", True),
        ("equals", 3.0, "3", True),
        ("equals", ["a", "b"], "b", True),
        ("not_equals", None, "", False),
        ("contains", "thermostat", "stat", True),
        ("contains", ["pool pump"], "pool", False),
        ("not_contains", "heat pump", "gas", True),
        ("starts_with", "CA-123", "CA", True),
        ("ends_with", "file.pdf", ".pdf", True),
        ("greater_than", "10", 9, True),
        ("greater_than", "ten", 9, False),
        ("less_than", " 2.5 ", "3", True),
        ("greater_equal", 5, "5", True),
        ("less_equal", "1e2", 100, True),
        ("is_empty", {"street": " ", "city": ""}, None, True),
        ("is_empty", 0, None, False),
        ("is_not_empty", ["x"], None, True),
        ("is_checked", "Yes", None, True),
        ("is_checked", "0", None, False),
        ("is_checked", [], None, False),
    ],
)
def test_operators(operator, actual, expected, outcome):
    condition = {"field": "x", "operator": operator, "value": expected}

    assert evaluate_condition(condition, {"x": actual}) is outcome


def test_coercion_helpers():
    assert as_text(None) == ""
    assert as_text(True) == "1"
    assert as_text(False) == ""
    assert as_text(4.0) == "4"
    assert as_number(True) is None
    assert as_number("+.5") == 0.5
    assert as_number("1,000") is None
    assert is_empty(False) is True
    assert is_checked(True) is True


def test_numbers_are_written_the_way_browsers_write_them():
    assert as_text(0.1) == "0.1"
    assert as_text(2.5e-5) == "0.000025"
    assert as_text(1e-7) == "1e-7"
    assert as_text(-1.25e-9) == "-1.25e-9"
    assert as_text(1e20) == "100000000000000000000"
    assert as_text(1e21) == "1e+21"
    assert as_text(10**21) == "1e+21"
    assert as_text(-0.0) == "0"


def test_only_ascii_digits_and_browser_whitespace_count_for_numbers():
    assert as_number(chr(0x0663)) is None
    assert as_number(chr(0xFEFF) + "7") == 7.0
    assert is_empty(chr(0x3000) + chr(0xFEFF)) is True


def test_unknown_operators_never_match():
    assert evaluate_condition({"field": "x", "operator": "resembles", "value": "a"}, {"x": "a"}) is False
