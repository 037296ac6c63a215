"""Conditional-logic rules: compilation and interpretation.

A schema's rules are compiled once into a plain JSON-serializable program.
The server interprets that program here; the browser interprets the very same
program (embedded by the renderer) in ``static/formflow.js``. Both sides must
therefore agree on the operator semantics implemented below.
"""

from __future__ import annotations

import logging
import math
import re
from decimal import Decimal
from typing import Any, Callable, Iterable, Mapping

from .models.conditions import STEP_ACTIONS, ConditionOperator, RuleAction, RuleLogic
from .models.results import VisibilityResult
from .models.schema import FieldNode, FormSchema

logger = logging.getLogger(__name__)

PROGRAM_VERSION = 1

# Characters the browser treats as whitespace in String.prototype.trim and /\s/.
WHITESPACE = "".join(
    chr(code)
    for code in (
        0x09, 0x0A, 0x0B, 0x0C, 0x0D, 0x20, 0xA0, 0x1680, *range(0x2000, 0x200B),
        0x2028, 0x2029, 0x202F, 0x205F, 0x3000, 0xFEFF,
    )
)
_NUMBER_PATTERN = re.compile(
    rf"^[{WHITESPACE}]*[-+]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][-+]?[0-9]+)?[{WHITESPACE}]*\Z"
)
_CHECKED_VALUES = frozenset({"1", "true", "on", "yes"})
# Above this magnitude the browser prints numbers in exponent form.
_MAX_PLAIN_NUMBER = 10**21

VISIBILITY = "visibility"
ENABLED = "enabled"
REQUIREMENT = "requirement"
VALUE = "value"

_NO_EFFECT = object()

# action -> (channel, state when matched, state when not matched)
ACTION_EFFECTS: Mapping[RuleAction, tuple[str, Any, Any]] = {
    RuleAction.show: (VISIBILITY, True, False),
    RuleAction.hide: (VISIBILITY, False, True),
    RuleAction.enable: (ENABLED, True, False),
    RuleAction.disable: (ENABLED, False, True),
    RuleAction.require: (REQUIREMENT, True, _NO_EFFECT),
    RuleAction.unrequire: (REQUIREMENT, False, _NO_EFFECT),
    RuleAction.set_value: (VALUE, None, _NO_EFFECT),
    RuleAction.clear_value: (VALUE, "", _NO_EFFECT),
}


def as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, int) and abs(value) >= _MAX_PLAIN_NUMBER:
        value = float(value)
    if isinstance(value, float):
        return _number_text(value)
    return str(value)


def _number_text(value: float) -> str:
    """Format a float the way JavaScript's String(number) does."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    # repr gives the shortest round-tripping digits, which is what the browser prints too
    parsed = Decimal(repr(abs(value))).as_tuple()
    digits = "".join(str(digit) for digit in parsed.digits).rstrip("0")
    count = len(digits)
    # position of the decimal point relative to the first digit
    point = len(parsed.digits) + parsed.exponent
    if count <= point <= 21:
        text = digits + "0" * (point - count)
    elif 0 < point <= 21:
        text = f"{digits[:point]}.{digits[point:]}"
    elif -6 < point <= 0:
        text = "0." + "0" * -point + digits
    else:
        power = point - 1
        head = digits[0] + (f".{digits[1:]}" if count > 1 else "")
        text = f"{head}e{'+' if power >= 0 else '-'}{abs(power)}"
    return sign + text


def as_number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str) and _NUMBER_PATTERN.match(value):
        return float(value.strip(WHITESPACE))
    return None


def is_empty(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip(WHITESPACE)
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    if isinstance(value, Mapping):
        return all(is_empty(item) for item in value.values())
    return False


def is_checked(value: Any) -> bool:
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    if isinstance(value, bool):
        return value
    return as_text(value).strip(WHITESPACE).lower() in _CHECKED_VALUES


def _text_match(actual: Any, predicate: Callable[[str], bool]) -> bool:
    if isinstance(actual, (list, tuple)):
        return any(predicate(as_text(item)) for item in actual)
    return predicate(as_text(actual))


def _compare(actual: Any, expected: Any, predicate: Callable[[float, float], bool]) -> bool:
    left = as_number(actual)
    right = as_number(expected)
    if left is None or right is None:
        return False
    return predicate(left, right)


def _equals(actual: Any, expected: Any) -> bool:
    target = as_text(expected)
    return _text_match(actual, lambda text: text == target)


def _contains(actual: Any, expected: Any) -> bool:
    target = as_text(expected)
    if isinstance(actual, (list, tuple)):
        return any(as_text(item) == target for item in actual)
    return target in as_text(actual)


OPERATORS: Mapping[ConditionOperator, Callable[[Any, Any], bool]] = {
    ConditionOperator.equals: _equals,
    ConditionOperator.not_equals: lambda actual, expected: not _equals(actual, expected),
    ConditionOperator.contains: _contains,
    ConditionOperator.not_contains: lambda actual, expected: not _contains(actual, expected),
    ConditionOperator.starts_with: lambda actual, expected: _text_match(
        actual, lambda text: text.startswith(as_text(expected))
    ),
    ConditionOperator.ends_with: lambda actual, expected: _text_match(
        actual, lambda text: text.endswith(as_text(expected))
    ),
    ConditionOperator.greater_than: lambda actual, expected: _compare(actual, expected, lambda a, b: a > b),
    ConditionOperator.less_than: lambda actual, expected: _compare(actual, expected, lambda a, b: a < b),
    ConditionOperator.greater_equal: lambda actual, expected: _compare(actual, expected, lambda a, b: a >= b),
    ConditionOperator.less_equal: lambda actual, expected: _compare(actual, expected, lambda a, b: a <= b),
    ConditionOperator.is_empty: lambda actual, _expected: is_empty(actual),
    ConditionOperator.is_not_empty: lambda actual, _expected: not is_empty(actual),
    ConditionOperator.is_checked: lambda actual, _expected: is_checked(actual),
}


def evaluate_condition(condition: Mapping[str, Any], values: Mapping[str, Any]) -> bool:
    # str-valued enum keys, so raw operator strings look up directly
    operator = OPERATORS.get(condition.get("operator"))
    if operator is None:
        return False
    return operator(values.get(condition.get("field")), condition.get("value"))


class ConditionalLogicEvaluator:
    """Compiles schema rules into a program and interprets it."""

    def compile(self, schema: FormSchema) -> dict[str, Any]:
        aliases: dict[str, str] = {}
        for _, node in schema.walk():
            if node.id and node.name and node.id != node.name:
                aliases[node.id] = node.name

        def resolve(reference: str) -> str:
            return aliases.get(reference, reference)

        rules: list[dict[str, Any]] = []
        for rule in schema.conditions:
            if rule.target_step:
                if rule.action not in STEP_ACTIONS:
                    continue
                scope, target = "step", rule.target_step
            elif rule.target_field:
                scope, target = "field", resolve(rule.target_field)
            else:
                continue
            rules.append(
                {
                    "scope": scope,
                    "target": target,
                    "action": rule.action.value,
                    "logic": rule.logic.value,
                    "conditions": [
                        {
                            "field": resolve(condition.field),
                            "operator": condition.operator.value,
                            "value": condition.value,
                        }
                        for condition in rule.conditions
                    ],
                    "value": rule.value,
                }
            )

        children: dict[str, list[str]] = {}
        steps: dict[str, list[str]] = {}
        for step in schema.steps:
            steps[step.id] = [node.key for node in step.walk() if node.key]
            for node in step.walk():
                _collect_children(node, children)

        return {"version": PROGRAM_VERSION, "rules": rules, "children": children, "steps": steps}

    def interpret(self, program: Mapping[str, Any], values: Mapping[str, Any] | None = None) -> VisibilityResult:
        values = values or {}
        # (scope, target, channel) -> state; later rules overwrite earlier ones
        states: dict[tuple[str, str, str], Any] = {}

        for rule in program.get("rules", ()):
            conditions = rule.get("conditions") or []
            if not conditions:
                continue
            outcomes = (evaluate_condition(condition, values) for condition in conditions)
            matched = all(outcomes) if rule.get("logic") == RuleLogic.all.value else any(outcomes)

            effect = ACTION_EFFECTS.get(rule.get("action"))
            if effect is None:
                continue
            channel, when_matched, when_unmatched = effect
            state = when_matched if matched else when_unmatched
            if state is _NO_EFFECT:
                continue
            if rule["action"] == RuleAction.set_value.value:
                state = rule.get("value")
            states[(rule["scope"], rule["target"], channel)] = state

        hidden_steps = {
            target for (scope, target, channel), state in states.items()
            if scope == "step" and channel == VISIBILITY and state is False
        }
        hidden_fields = {
            target for (scope, target, channel), state in states.items()
            if scope == "field" and channel == VISIBILITY and state is False
        }
        hidden_fields = set(_descendants(hidden_fields, program.get("children", {})))
        for step_id in hidden_steps:
            hidden_fields.update(program.get("steps", {}).get(step_id, ()))

        def field_states(channel: str, wanted: Any) -> set[str]:
            return {
                target for (scope, target, rule_channel), state in states.items()
                if scope == "field" and rule_channel == channel and state == wanted
            }

        result = VisibilityResult(
            hidden_fields=frozenset(hidden_fields),
            hidden_steps=frozenset(hidden_steps),
            disabled_fields=frozenset(field_states(ENABLED, False)),
            required_fields=frozenset(field_states(REQUIREMENT, True) - hidden_fields),
            optional_fields=frozenset(field_states(REQUIREMENT, False)),
            field_values={
                target: state for (scope, target, channel), state in states.items()
                if scope == "field" and channel == VALUE
            },
        )
        logger.debug(
            "Evaluated conditional logic",
            extra={
                "rule_count": len(program.get("rules", ())),
                "hidden_fields": len(result.hidden_fields),
                "hidden_steps": len(result.hidden_steps),
            },
        )
        return result

    def evaluate(self, schema: FormSchema, values: Mapping[str, Any] | None = None) -> VisibilityResult:
        return self.interpret(self.compile(schema), values)


def _collect_children(node: FieldNode, children: dict[str, list[str]]) -> None:
    if node.key and node.children:
        children[node.key] = [child.key for child in _keyed_descendants(node.children)]


def _keyed_descendants(nodes: Iterable[FieldNode]) -> Iterable[FieldNode]:
    # Anonymous containers are transparent: their keyed children belong to the nearest keyed ancestor.
    for node in nodes:
        if node.key:
            yield node
        else:
            yield from _keyed_descendants(node.children)


def _descendants(roots: Iterable[str], children: Mapping[str, Iterable[str]]) -> Iterable[str]:
    pending = list(roots)
    seen: set[str] = set()
    while pending:
        key = pending.pop()
        if key in seen:
            continue
        seen.add(key)
        pending.extend(children.get(key, ()))
    return seen


__all__ = [
    "ConditionalLogicEvaluator",
    "evaluate_condition",
    "OPERATORS",
    "ACTION_EFFECTS",
    "PROGRAM_VERSION",
    "as_text",
    "as_number",
    "is_empty",
    "is_checked",
]
