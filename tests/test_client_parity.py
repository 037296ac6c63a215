"""The browser runtime and the server must reach the same conclusions.

The shipped ``formflow.js`` is loaded into an embedded V8 with just enough of
``window``/``document`` for its bootstrap, then fed the same rule programs and
values as :class:`ConditionalLogicEvaluator`.
"""

import json
from pathlib import Path

import pytest
from py_mini_racer import MiniRacer

from formflow_builder.conditional_logic import ConditionalLogicEvaluator, evaluate_condition
from formflow_builder.interaction import client_asset
from formflow_builder.models.results import VisibilityResult
from formflow_builder.models.schema import FormSchema

FIXTURES = Path(__file__).resolve().parents[1] / "data" / "schemas"

BROWSER_STUBS = """
var window = globalThis;
var document = {readyState: 'loading', addEventListener: function () {}};
"""


@pytest.fixture(scope="module")
def runtime():
    context = MiniRacer()
    context.eval(BROWSER_STUBS)
    context.eval(client_asset())
    return context


def load_fixture(name: str) -> FormSchema:
    fixture_path = FIXTURES / f"{name}.json"
    return FormSchema.model_validate_json(fixture_path.read_text(encoding="utf-8"))


def client_interpret(runtime, program: dict, values: dict) -> dict:
    script = f"JSON.stringify(window.FormFlow.interpret({json.dumps(program)}, {json.dumps(values)}))"
    return json.loads(runtime.eval(script))


def client_condition(runtime, condition: dict, values: dict) -> bool:
    return runtime.eval(f"window.FormFlow.evaluateCondition({json.dumps(condition)}, {json.dumps(values)})")


def client_shape(result: VisibilityResult) -> dict:
    def flags(keys) -> dict:
        return {key: True for key in keys}

    return {
        "hiddenFields": flags(result.hidden_fields),
        "hiddenSteps": flags(result.hidden_steps),
        "disabledFields": flags(result.disabled_fields),
        "requiredFields": flags(result.required_fields),
        "optionalFields": flags(result.optional_fields),
        "fieldValues": dict(result.field_values),
    }


def schema_with_rules(fields: list, *rules: dict) -> FormSchema:
    return FormSchema.from_payload({"steps": [{"id": "step_1", "fields": fields}], "conditions": list(rules)})


TEXT_AB = [{"type": "text", "name": "a"}, {"type": "text", "name": "b"}]


@pytest.mark.parametrize(
    "values",
    [
        {},
        {"ownership": "rent", "account_number": "12-3456"},
        {"ownership": "own", "skip_devices": "1"},
        {"skip_devices": ["yes"], "thermostat_count": "3"},
        {"ownership": "rent", "skip_devices": True},
    ],
)
def test_fixture_program_agrees(runtime, values):
    evaluator = ConditionalLogicEvaluator()
    program = evaluator.compile(load_fixture("1001"))

    assert client_interpret(runtime, program, values) == client_shape(evaluator.interpret(program, values))


@pytest.mark.parametrize(
    ("schema", "values"),
    [
        (
            schema_with_rules(
                TEXT_AB,
                {"target_field": "b", "action": "hide", "conditions": [{"field": "a", "operator": "equals", "value": "x"}]},
                {"target_field": "b", "action": "show", "conditions": [{"field": "a", "operator": "equals", "value": "x"}]},
                {"target_field": "b", "action": "require", "conditions": [{"field": "a", "operator": "is_not_empty"}]},
            ),
            {"a": "x"},
        ),
        (
            schema_with_rules(
                TEXT_AB,
                {
                    "target_field": "b",
                    "action": "set_value",
                    "value": {"street": "1 Main"},
                    "conditions": [{"field": "a", "operator": "greater_equal", "value": "2.5"}],
                },
                {"target_field": "a", "action": "clear_value", "conditions": [{"field": "b", "operator": "is_empty"}]},
            ),
            {"a": 2.5},
        ),
        (
            schema_with_rules(
                [
                    {"type": "text", "name": "a"},
                    {
                        "type": "repeater",
                        "name": "rows",
                        "children": [{"type": "section", "children": [{"type": "text", "name": "inner"}]}],
                    },
                ],
                {"target_field": "rows", "action": "hide", "conditions": [{"field": "a", "operator": "is_empty"}]},
                {"target_field": "inner", "action": "require", "conditions": [{"field": "a", "operator": "is_empty"}]},
            ),
            {"a": "   "},
        ),
        (
            schema_with_rules(
                TEXT_AB,
                {
                    "target_field": "b",
                    "action": "disable",
                    "logic": "any",
                    "conditions": [
                        {"field": "a", "operator": "equals", "value": "x"},
                        {"field": "a", "operator": "ends_with", "value": "z"},
                    ],
                },
            ),
            {"a": "quiz"},
        ),
        (
            schema_with_rules(
                [{"type": "text", "name": "toString"}, {"type": "text", "name": "constructor"}],
                {"target_field": "constructor", "action": "hide", "conditions": [{"field": "toString", "operator": "is_empty"}]},
                {"target_field": "toString", "action": "require", "conditions": [{"field": "valueOf", "operator": "is_empty"}]},
            ),
            {},
        ),
    ],
)
def test_rule_programs_agree(runtime, schema, values):
    evaluator = ConditionalLogicEvaluator()
    program = evaluator.compile(schema)

    assert client_interpret(runtime, program, values) == client_shape(evaluator.interpret(program, values))


def test_unknown_operators_and_actions_are_inert_on_both_sides(runtime):
    program = {
        "version": 1,
        "rules": [
            {"scope": "field", "target": "b", "action": "hide", "logic": "all",
             "conditions": [{"field": "a", "operator": "resembles", "value": "x"}], "value": None},
            {"scope": "field", "target": "b", "action": "explode", "logic": "all",
             "conditions": [{"field": "a", "operator": "is_empty", "value": None}], "value": None},
        ],
        "children": {},
        "steps": {},
    }
    server = ConditionalLogicEvaluator().interpret(program, {})

    assert server == VisibilityResult()
    assert client_interpret(runtime, program, {}) == client_shape(server)


WIDE_SPACE = chr(0x3000)
BYTE_ORDER_MARK = chr(0xFEFF)
ARABIC_THREE = chr(0x0663)


@pytest.mark.parametrize(
    ("operator", "actual", "expected"),
    [
        ("equals", 3.0, "3"),
        ("equals", 0.1, "0.1"),
        ("equals", 1e-7, "1e-7"),
        ("equals", 2.5e-5, "0.000025"),
        ("equals", 1e21, "1e+21"),
        ("equals", 1e20, "100000000000000000000"),
        ("equals", -0.0, "0"),
        ("equals", True, "1"),
        ("equals", False, ""),
        ("equals", ["a", "b"], "b"),
        ("not_equals", None, None),
        ("contains", 123.5, "3.5"),
        ("contains", ["pool pump"], "pool"),
        ("not_contains", "heat pump", "gas"),
        ("starts_with", ["ab", "cd"], "c"),
        ("starts_with", "anything", ""),
        ("ends_with", "file.pdf", ""),
        ("ends_with", 1.5, ".5"),
        ("greater_than", "10", 9),
        ("greater_than", ARABIC_THREE, 1),
        ("less_than", WIDE_SPACE + " 2", 3),
        ("less_than", "2" + BYTE_ORDER_MARK, 3),
        ("greater_equal", 5, "5"),
        ("less_equal", "1e2", 100),
        ("less_equal", "1,000", 2000),
        ("is_empty", BYTE_ORDER_MARK + " ", None),
        ("is_empty", {"street": " ", "lines": [], "city": None}, None),
        ("is_empty", 0, None),
        ("is_not_empty", ["x"], None),
        ("is_checked", " Yes ", None),
        ("is_checked", 1.0, None),
        ("is_checked", "0", None),
        ("is_checked", [], None),
        ("bogus", "x", "x"),
    ],
)
def test_operators_agree(runtime, operator, actual, expected):
    condition = {"field": "x", "operator": operator, "value": expected}
    values = {"x": actual}

    assert client_condition(runtime, condition, values) is evaluate_condition(condition, values)
