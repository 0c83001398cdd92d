"""
Value variants for user supplied input.

Raw calculator input arrives as loosely typed JSON. At the boundary every
raw value is converted into exactly one of:

    - NumberValue   (JSON number)
    - StringValue   (JSON string)
    - BoolValue     (JSON boolean)
    - ArrayValue    (JSON array, e.g. multiple-choice selections)

A missing value (absent key or JSON null) is represented by None.

ARCHITECTURAL RULE:
    Conditions and the normalizer only ever see these variants.
    They never inspect raw JSON types directly.
"""

from __future__ import annotations

import math
from abc import ABC
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

_FALSE_STRINGS = frozenset({"", "false", "0", "no", "off"})


class Value(ABC):
    """Base class for all value variants. Structure only."""
    pass


@dataclass(frozen=True)
class NumberValue(Value):
    value: Union[int, float]


@dataclass(frozen=True)
class StringValue(Value):
    value: str


@dataclass(frozen=True)
class BoolValue(Value):
    value: bool


@dataclass(frozen=True)
class ArrayValue(Value):
    """
    Ordered selection of scalar values.

    Nested arrays are flattened on coercion; missing elements are dropped.
    """

    items: Tuple[Value, ...] = ()


def coerce_value(raw: Any) -> Optional[Value]:
    """
    Convert a raw JSON-ish value into a Value variant.

    Value instances pass through unchanged, so an already resolved
    effective map can be fed back in as raw input.
    """
    if raw is None:
        return None
    if isinstance(raw, Value):
        return raw
    # bool before int: bool is an int subclass
    if isinstance(raw, bool):
        return BoolValue(raw)
    if isinstance(raw, (int, float)):
        return NumberValue(raw)
    if isinstance(raw, str):
        return StringValue(raw)
    if isinstance(raw, (list, tuple, set, frozenset)):
        items = []
        for element in raw:
            coerced = coerce_value(element)
            if coerced is None:
                continue
            if isinstance(coerced, ArrayValue):
                items.extend(coerced.items)
            else:
                items.append(coerced)
        return ArrayValue(tuple(items))
    return StringValue(str(raw))


def to_raw(value: Optional[Value]) -> Any:
    """Inverse of coerce_value, for reporting and serialization."""
    if value is None:
        return None
    if isinstance(value, ArrayValue):
        return [to_raw(item) for item in value.items]
    return value.value


def to_number(value: Optional[Value], allow_bool: bool = False) -> Optional[float]:
    """
    Numeric reading of a value, or None when it has none.

    Numeric strings ("12", " 3.5 ") count as numbers. Non-finite results
    are rejected. Booleans read as 1/0 only when allow_bool is set.
    """
    if isinstance(value, NumberValue):
        try:
            number = float(value.value)
        except OverflowError:
            # integers beyond float range
            return None
    elif isinstance(value, StringValue):
        text = value.value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    elif isinstance(value, BoolValue) and allow_bool:
        number = 1.0 if value.value else 0.0
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def _text(value: Value) -> str:
    if isinstance(value, BoolValue):
        return "true" if value.value else "false"
    if isinstance(value, NumberValue):
        number = to_number(value)
        return format_number(number) if number is not None else str(value.value)
    if isinstance(value, StringValue):
        return value.value
    return ""


def loose_equals(left: Optional[Value], right: Optional[Value]) -> bool:
    """
    Equality across variants: numbers and numeric strings compare by value,
    booleans compare to 1/0 and "true"/"false", everything else by text.
    """
    if left is None or right is None:
        return left is None and right is None

    if isinstance(left, ArrayValue) or isinstance(right, ArrayValue):
        if not (isinstance(left, ArrayValue) and isinstance(right, ArrayValue)):
            return False
        if len(left.items) != len(right.items):
            return False
        return all(loose_equals(a, b) for a, b in zip(left.items, right.items))

    left_number = to_number(left)
    right_number = to_number(right)
    if left_number is not None and right_number is not None:
        return left_number == right_number

    if isinstance(left, BoolValue) and right_number is not None:
        return float(left.value) == right_number
    if isinstance(right, BoolValue) and left_number is not None:
        return float(right.value) == left_number

    if isinstance(left, BoolValue) or isinstance(right, BoolValue):
        return _text(left).strip().lower() == _text(right).strip().lower()

    return _text(left) == _text(right)


def is_empty(value: Optional[Value]) -> bool:
    """True for missing values, empty strings and empty arrays."""
    if value is None:
        return True
    if isinstance(value, StringValue):
        return value.value == ""
    if isinstance(value, ArrayValue):
        return len(value.items) == 0
    return False


def is_truthy(value: Optional[Value]) -> bool:
    """Checkbox reading of a value."""
    if value is None:
        return False
    if isinstance(value, BoolValue):
        return value.value
    if isinstance(value, NumberValue):
        return value.value != 0
    if isinstance(value, StringValue):
        return value.value.strip().lower() not in _FALSE_STRINGS
    return len(value.items) > 0


def format_number(number: float) -> str:
    """Shortest text form of a finite number: integral values without '.0'."""
    if number.is_integer():
        return str(int(number))
    return repr(number)
