"""
Condition Evaluator

Decides single visibility predicates against a snapshot of effective
values, and combines the conditions of a ConditionalLogic.

No function in this module raises on bad input. Any type mismatch
(non-numeric comparison, unknown predicate, missing dependency value)
resolves to False.

Also holds the small helpers the authoring UI uses to offer conditions
and dependencies for a variable.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from formula_engine.model import (
    Condition,
    ConditionalLogic,
    ConditionType,
    LogicOperator,
    Variable,
    VariableType,
)
from formula_engine.values import (
    ArrayValue,
    StringValue,
    Value,
    coerce_value,
    is_empty,
    loose_equals,
    to_number,
)

_CONDITION_LABELS: Dict[ConditionType, str] = {
    ConditionType.EQUALS: "Equals",
    ConditionType.NOT_EQUALS: "Does not equal",
    ConditionType.GREATER_THAN: "Greater than",
    ConditionType.LESS_THAN: "Less than",
    ConditionType.CONTAINS: "Contains/Is one of",
    ConditionType.IS_EMPTY: "Is empty",
    ConditionType.IS_NOT_EMPTY: "Is not empty",
}

_BASIC_CONDITIONS = [
    ConditionType.EQUALS,
    ConditionType.NOT_EQUALS,
    ConditionType.IS_EMPTY,
    ConditionType.IS_NOT_EMPTY,
]

_CONDITIONS_BY_TYPE: Dict[VariableType, List[ConditionType]] = {
    VariableType.NUMBER: [
        ConditionType.EQUALS,
        ConditionType.NOT_EQUALS,
        ConditionType.GREATER_THAN,
        ConditionType.LESS_THAN,
        ConditionType.IS_EMPTY,
        ConditionType.IS_NOT_EMPTY,
    ],
    VariableType.SELECT: [
        ConditionType.EQUALS,
        ConditionType.NOT_EQUALS,
        ConditionType.CONTAINS,
        ConditionType.IS_EMPTY,
        ConditionType.IS_NOT_EMPTY,
    ],
    VariableType.CHECKBOX: [ConditionType.EQUALS, ConditionType.NOT_EQUALS],
}
# Slider and stepper hold numbers
_CONDITIONS_BY_TYPE[VariableType.SLIDER] = _CONDITIONS_BY_TYPE[VariableType.NUMBER]
_CONDITIONS_BY_TYPE[VariableType.STEPPER] = _CONDITIONS_BY_TYPE[VariableType.NUMBER]
_CONDITIONS_BY_TYPE[VariableType.DROPDOWN] = _CONDITIONS_BY_TYPE[VariableType.SELECT]
_CONDITIONS_BY_TYPE[VariableType.MULTIPLE_CHOICE] = _CONDITIONS_BY_TYPE[VariableType.SELECT]
_CONDITIONS_BY_TYPE[VariableType.TEXT] = _CONDITIONS_BY_TYPE[VariableType.SELECT]


def _expected_list(condition: Condition) -> List[Value]:
    raw = condition.expected_values
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        raw = [raw]
    return [v for v in (coerce_value(item) for item in raw) if v is not None]


def _equals(actual: Optional[Value], expected: Optional[Value]) -> bool:
    if actual is None:
        return False
    if isinstance(actual, ArrayValue) and not isinstance(expected, ArrayValue):
        return any(loose_equals(item, expected) for item in actual.items)
    return loose_equals(actual, expected)


def _compare(actual: Optional[Value], expected: Optional[Value], greater: bool) -> bool:
    left = to_number(actual)
    right = to_number(expected)
    if left is None or right is None:
        return False
    return left > right if greater else left < right


def _contains(actual: Optional[Value], condition: Condition) -> bool:
    if actual is None:
        return False

    expected_values = _expected_list(condition)
    if expected_values:
        if isinstance(actual, ArrayValue):
            return any(
                loose_equals(item, expected)
                for item in actual.items
                for expected in expected_values
            )
        return any(loose_equals(actual, expected) for expected in expected_values)

    # No list given: substring match of text, or membership in a selection
    expected = coerce_value(condition.expected_value)
    if expected is None:
        return False
    if isinstance(actual, ArrayValue):
        return any(loose_equals(item, expected) for item in actual.items)
    if isinstance(actual, StringValue) and isinstance(expected, StringValue):
        return expected.value.lower() in actual.value.lower()
    return False


def evaluate_condition(condition: Condition, snapshot: Mapping[str, Any]) -> bool:
    """
    Evaluate one condition against the current effective values.

    Args:
        condition: Condition to test
        snapshot: Mapping of variable id -> value (raw or Value variant)

    Returns:
        Whether the predicate holds. Never raises.
    """
    actual = coerce_value(snapshot.get(condition.depends_on_variable))
    kind = condition.condition

    if kind is ConditionType.EQUALS:
        return _equals(actual, coerce_value(condition.expected_value))
    if kind is ConditionType.NOT_EQUALS:
        return not _equals(actual, coerce_value(condition.expected_value))
    if kind is ConditionType.GREATER_THAN:
        return _compare(actual, coerce_value(condition.expected_value), greater=True)
    if kind is ConditionType.LESS_THAN:
        return _compare(actual, coerce_value(condition.expected_value), greater=False)
    if kind is ConditionType.CONTAINS:
        return _contains(actual, condition)
    if kind is ConditionType.IS_EMPTY:
        return is_empty(actual)
    if kind is ConditionType.IS_NOT_EMPTY:
        return not is_empty(actual)
    return False


def conditions_met(logic: Optional[ConditionalLogic], snapshot: Mapping[str, Any]) -> bool:
    """
    Combine the conditions of a rule with its operator.

    A missing or disabled rule always passes, and so does an enabled
    rule that has no conditions yet.
    """
    if logic is None or not logic.enabled or not logic.conditions:
        return True
    results = (evaluate_condition(c, snapshot) for c in logic.conditions)
    if logic.operator is LogicOperator.OR:
        return any(results)
    return all(results)


def condition_label(condition: ConditionType) -> str:
    """User-facing label of a condition type."""
    return _CONDITION_LABELS.get(condition, condition.value)


def available_conditions(variable_type: VariableType) -> List[ConditionType]:
    """Conditions that make sense when depending on a variable of this type."""
    return list(_CONDITIONS_BY_TYPE.get(variable_type, _BASIC_CONDITIONS))


def available_dependencies(variable: Variable, variables: List[Variable]) -> List[Variable]:
    """
    Variables a condition on `variable` may depend on.

    Only variables declared before it qualify, and only those without
    conditional logic of their own, which keeps rule chains one level deep.
    """
    index = next((i for i, v in enumerate(variables) if v.id == variable.id), -1)
    if index == -1:
        return []
    return [v for v in variables[:index] if not v.has_conditions]
