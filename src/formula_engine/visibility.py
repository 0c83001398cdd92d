"""
Visibility Resolver

Walks a formula's variables in declaration order, decides which ones are
visible, and builds the effective value map used for pricing.

Conditions are evaluated against the effective values of EARLIER
variables, never against the raw input: raw input may still hold stale
entries for fields that are now hidden.

This single left-to-right pass relies on the invariant checked by
analyzer.validate_formula: a condition only depends on variables
declared before it, so no cycle can exist.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

from formula_engine.conditions import conditions_met
from formula_engine.model import NUMERIC_TYPES, Variable, VariableType
from formula_engine.values import (
    ArrayValue,
    BoolValue,
    NumberValue,
    StringValue,
    Value,
    coerce_value,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VisibilityResult:
    """Outcome of one resolution pass."""

    visible: FrozenSet[str] = frozenset()
    effective: Dict[str, Value] = field(default_factory=dict)

    def is_visible(self, variable_id: str) -> bool:
        return variable_id in self.visible

    @property
    def hidden(self) -> FrozenSet[str]:
        return frozenset(self.effective) - self.visible


def zero_value(variable: Variable) -> Value:
    """The value a variable takes when nothing else supplies one."""
    if variable.type in NUMERIC_TYPES:
        return NumberValue(0)
    if variable.type is VariableType.MULTIPLE_CHOICE:
        return ArrayValue(())
    if variable.type is VariableType.CHECKBOX:
        return BoolValue(False)
    return StringValue("")


def _first_present(*candidates: Any) -> Optional[Value]:
    for candidate in candidates:
        value = coerce_value(candidate)
        if value is not None:
            return value
    return None


def resolve(variables: List[Variable], raw_values: Mapping[str, Any]) -> VisibilityResult:
    """
    Resolve visibility and effective values.

    Args:
        variables: Declared variables, in declaration order
        raw_values: Customer input by variable id (raw JSON or Value variants)

    Returns:
        VisibilityResult with the visible ids and an effective value for
        every declared variable. Hidden variables carry their rule's
        default value, or the type-specific zero.
    """
    effective: Dict[str, Value] = {}
    visible = set()

    for variable in variables:
        logic = variable.conditional_logic
        if conditions_met(logic, effective):
            visible.add(variable.id)
            value = _first_present(raw_values.get(variable.id), variable.default_value)
        else:
            value = _first_present(logic.default_value)
        effective[variable.id] = value if value is not None else zero_value(variable)

    logger.debug(
        "Resolved %d variables, hidden: %s",
        len(variables),
        sorted(set(effective) - visible),
    )
    return VisibilityResult(visible=frozenset(visible), effective=effective)
