"""
Serialization helpers for calculator definitions (Formula, Variable, Option, ...).

Reads and writes the camelCase JSON shape shared with the formula builder
UI and the AI formula generator. YAML is accepted for hand-written fixtures.

Loading normalizes the legacy single-condition conditional logic shape
(condition fields inline, no `conditions` array) into the multi-condition
form and, unless told otherwise, validates the result with
analyzer.validate_formula.
"""
from __future__ import annotations

import json
import math
from typing import Any, Dict, List, Optional

import yaml

from formula_engine.analyzer import validate_formula
from formula_engine.config import EngineConfig
from formula_engine.errors import ValidationError
from formula_engine.model import (
    Condition,
    ConditionalLogic,
    ConditionType,
    Formula,
    LogicOperator,
    Option,
    ServiceSelection,
    Variable,
    VariableType,
)


def _compact(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


def _require(d: Any, key: str, where: str) -> Any:
    if not isinstance(d, dict):
        raise ValidationError(f"{where} must be an object, got {type(d).__name__}")
    if d.get(key) is None:
        raise ValidationError(f"{where} is missing required field '{key}'")
    return d[key]


def _optional_number(d: Dict[str, Any], key: str, where: str) -> Optional[float]:
    raw = d.get(key)
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise ValidationError(f"{where}: '{key}' must be a number, got {raw!r}")
    try:
        number = float(raw)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"{where}: '{key}' must be a number, got {raw!r}")
    if not math.isfinite(number):
        raise ValidationError(f"{where}: '{key}' must be a finite number, got {raw!r}")
    return number


def _flag(d: Dict[str, Any], key: str, where: str) -> bool:
    raw = d.get(key)
    if raw is None:
        return False
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str) and raw.strip().lower() in ("true", "false"):
        return raw.strip().lower() == "true"
    raise ValidationError(f"{where}: '{key}' must be a boolean, got {raw!r}")


def _enum(enum_cls, raw: Any, where: str):
    try:
        return enum_cls(raw)
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationError(f"{where}: unknown value {raw!r} (expected one of {allowed})")


def option_to_dict(o: Option) -> Dict[str, Any]:
    return _compact({
        "id": o.id,
        "label": o.label,
        "value": o.value,
        "numericValue": o.numeric_value,
        "multiplier": o.multiplier,
        "image": o.image,
    })


def option_from_dict(d: Dict[str, Any], where: str = "option") -> Option:
    value = _require(d, "value", where)
    return Option(
        label=d.get("label") if d.get("label") is not None else str(value),
        value=value,
        numeric_value=_optional_number(d, "numericValue", where),
        multiplier=_optional_number(d, "multiplier", where),
        id=None if d.get("id") is None else str(d["id"]),
        image=d.get("image"),
    )


def condition_to_dict(c: Condition) -> Dict[str, Any]:
    return _compact({
        "id": c.id,
        "dependsOnVariable": c.depends_on_variable,
        "condition": c.condition.value,
        "expectedValue": c.expected_value,
        "expectedValues": c.expected_values,
    })


def condition_from_dict(d: Dict[str, Any], default_id: str, where: str = "condition") -> Condition:
    if not isinstance(d, dict):
        raise ValidationError(f"{where}: each condition must be an object, got {type(d).__name__}")
    expected_values = d.get("expectedValues")
    if expected_values is not None and not isinstance(expected_values, list):
        expected_values = [expected_values]
    return Condition(
        id=str(d["id"]) if d.get("id") is not None else default_id,
        depends_on_variable=_require(d, "dependsOnVariable", where),
        condition=_enum(ConditionType, _require(d, "condition", where), where),
        expected_value=d.get("expectedValue"),
        expected_values=expected_values,
    )


def conditional_logic_to_dict(c: ConditionalLogic | None) -> Dict[str, Any] | None:
    if c is None:
        return None
    return _compact({
        "enabled": c.enabled,
        "operator": c.operator.value,
        "conditions": [condition_to_dict(cond) for cond in c.conditions],
        "defaultValue": c.default_value,
    })


def conditional_logic_from_dict(d: Dict[str, Any] | None, variable_id: str) -> ConditionalLogic | None:
    """
    Read either conditional logic shape.

    Legacy:  {"enabled", "dependsOnVariable", "condition", "expectedValue", ...}
    Current: {"enabled", "operator", "conditions": [...], "defaultValue"}

    The legacy shape becomes a one-element `conditions` list.
    """
    if d is None:
        return None
    where = f"conditionalLogic of '{variable_id}'"
    if not isinstance(d, dict):
        raise ValidationError(f"{where} must be an object")

    raw_operator = d.get("operator") or LogicOperator.AND.value
    operator = _enum(LogicOperator, str(raw_operator).upper(), where)

    if d.get("conditions") is not None:
        if not isinstance(d["conditions"], list):
            raise ValidationError(f"{where}: 'conditions' must be a list")
        conditions = [
            condition_from_dict(c, f"{variable_id}-c{i + 1}", where)
            for i, c in enumerate(d["conditions"])
        ]
    elif d.get("dependsOnVariable"):
        conditions = [condition_from_dict(d, f"{variable_id}-legacy", where)]
    else:
        conditions = []

    return ConditionalLogic(
        enabled=_flag(d, "enabled", where),
        operator=operator,
        conditions=conditions,
        default_value=d.get("defaultValue"),
    )


def variable_to_dict(v: Variable) -> Dict[str, Any]:
    return _compact({
        "id": v.id,
        "name": v.name,
        "type": v.type.value,
        "unit": v.unit,
        "min": v.min_value,
        "max": v.max_value,
        "defaultValue": v.default_value,
        "options": [option_to_dict(o) for o in v.options] or None,
        "conditionalLogic": conditional_logic_to_dict(v.conditional_logic),
        "allowMultipleSelection": v.allow_multiple_selection or None,
        "connectionKey": v.connection_key,
    })


def variable_from_dict(d: Dict[str, Any]) -> Variable:
    var_id = _require(d, "id", "variable")
    where = f"variable '{var_id}'"
    options = d.get("options") or []
    if not isinstance(options, list):
        raise ValidationError(f"{where}: 'options' must be a list")
    return Variable(
        id=var_id,
        name=d.get("name") or str(var_id),
        type=_enum(VariableType, _require(d, "type", where), where),
        unit=d.get("unit"),
        min_value=_optional_number(d, "min", where),
        max_value=_optional_number(d, "max", where),
        default_value=d.get("defaultValue"),
        options=[option_from_dict(o, f"{where} option") for o in options],
        conditional_logic=conditional_logic_from_dict(d.get("conditionalLogic"), str(var_id)),
        allow_multiple_selection=_flag(d, "allowMultipleSelection", where),
        connection_key=d.get("connectionKey"),
    )


def formula_to_dict(f: Formula) -> Dict[str, Any]:
    return _compact({
        "id": f.id,
        "name": f.name,
        "title": f.title,
        "formula": f.formula,
        "variables": [variable_to_dict(v) for v in f.variables],
    })


def formula_from_dict(d: Dict[str, Any], validate: bool = True,
                      config: Optional[EngineConfig] = None) -> Formula:
    formula_id = _require(d, "id", "formula")
    variables = d.get("variables") or []
    if not isinstance(variables, list):
        raise ValidationError(f"formula '{formula_id}': 'variables' must be a list")
    f = Formula(
        id=str(formula_id),
        formula=d.get("formula") or "",
        variables=[variable_from_dict(v) for v in variables],
        name=d.get("name"),
        title=d.get("title"),
    )
    if validate:
        validate_formula(f, config)
    return f


def formula_to_json(f: Formula) -> str:
    return json.dumps(formula_to_dict(f), sort_keys=True)


def formula_from_json(s: str, validate: bool = True, config: Optional[EngineConfig] = None) -> Formula:
    try:
        d = json.loads(s)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Formula JSON is malformed: {e}")
    return formula_from_dict(d, validate=validate, config=config)


def formula_to_yaml(f: Formula) -> str:
    return yaml.safe_dump(formula_to_dict(f), sort_keys=False)


def formula_from_yaml(s: str, validate: bool = True, config: Optional[EngineConfig] = None) -> Formula:
    try:
        d = yaml.safe_load(s)
    except yaml.YAMLError as e:
        raise ValidationError(f"Formula YAML is malformed: {e}")
    return formula_from_dict(d, validate=validate, config=config)


def selections_from_dicts(items: List[Dict[str, Any]], validate: bool = True,
                          config: Optional[EngineConfig] = None) -> List[ServiceSelection]:
    """Read [{"formula": {...}, "values": {...}}, ...] into ServiceSelections."""
    selections = []
    for item in items:
        formula = formula_from_dict(_require(item, "formula", "selection"), validate=validate, config=config)
        values = item.get("values") or {}
        if not isinstance(values, dict):
            raise ValidationError("selection 'values' must be an object")
        selections.append(ServiceSelection(formula=formula, values=dict(values)))
    return selections
