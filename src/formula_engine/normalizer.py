"""
Value Normalizer

Turns a variable's effective value into the single number (its
contribution) that the formula may reference.

Coercion failures are not errors here. A non-numeric number field,
a value matching no option, or an empty selection all contribute 0,
so a customer always gets a price.
"""

from __future__ import annotations

import math
from typing import Dict, List, Mapping, Optional

from formula_engine.model import NUMERIC_TYPES, Option, Variable, VariableType
from formula_engine.values import (
    ArrayValue,
    Value,
    coerce_value,
    is_truthy,
    loose_equals,
    to_number,
)


def find_option(variable: Variable, value: Optional[Value]) -> Optional[Option]:
    """First option whose value equals `value`, or None."""
    if value is None:
        return None
    for option in variable.options:
        if loose_equals(coerce_value(option.value), value):
            return option
    return None


def _selected(value: Optional[Value]) -> List[Value]:
    if value is None:
        return []
    if isinstance(value, ArrayValue):
        return list(value.items)
    return [value]


def _numeric(variable: Variable, value: Optional[Value]) -> float:
    number = to_number(value, allow_bool=True)
    if number is None:
        return 0.0
    if variable.type is VariableType.NUMBER:
        return number
    lower = variable.min_value if variable.min_value is not None else 0.0
    upper = variable.max_value if variable.max_value is not None else math.inf
    return min(max(number, lower), upper)


def _single_choice(variable: Variable, value: Optional[Value]) -> Optional[Option]:
    # A one-item selection from a multi-value widget still picks one option
    if isinstance(value, ArrayValue):
        value = value.items[0] if value.items else None
    return find_option(variable, value)


def normalize(variable: Variable, effective_value) -> float:
    """
    Contribution of one variable.

    Args:
        variable: The declared variable
        effective_value: Its effective value (raw JSON or Value variant)

    Returns:
        A finite float. 0.0 whenever the value cannot be read.
    """
    value = coerce_value(effective_value)
    kind = variable.type

    if kind in NUMERIC_TYPES:
        return _numeric(variable, value)

    if kind is VariableType.SELECT:
        option = _single_choice(variable, value)
        if option is None:
            return 0.0
        if option.multiplier is not None:
            return float(option.multiplier)
        if option.numeric_value is not None:
            return float(option.numeric_value)
        return 0.0

    if kind is VariableType.DROPDOWN:
        option = _single_choice(variable, value)
        if option is None or option.numeric_value is None:
            return 0.0
        return float(option.numeric_value)

    if kind is VariableType.MULTIPLE_CHOICE:
        total = 0.0
        for item in _selected(value):
            option = find_option(variable, item)
            if option is not None and option.numeric_value is not None:
                total += option.numeric_value
        return total

    if kind is VariableType.CHECKBOX:
        return 1.0 if is_truthy(value) else 0.0

    # TEXT: display only
    return 0.0


def build_contributions(variables: List[Variable], effective: Mapping[str, object]) -> Dict[str, float]:
    """
    Contribution map for a whole formula.

    Includes one entry per variable id and, for multi-select variables,
    one `<variableId>_<optionId>` entry per option carrying that option's
    numeric value when selected and 0 otherwise.
    """
    contributions: Dict[str, float] = {}
    for variable in variables:
        value = coerce_value(effective.get(variable.id))
        contributions[variable.id] = normalize(variable, value)

        tokens = variable.option_tokens()
        if not tokens:
            continue
        picked = _selected(value)
        for token, option in tokens.items():
            option_value = coerce_value(option.value)
            is_picked = any(loose_equals(option_value, item) for item in picked)
            if is_picked and option.numeric_value is not None:
                contributions[token] = float(option.numeric_value)
            else:
                contributions[token] = 0.0
    return contributions
