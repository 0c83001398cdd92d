"""
Tests for serialization and deserialization of calculator definitions.

These tests ensure:
    - The camelCase JSON shape loads into model objects
    - Legacy single-condition logic is normalized on load
    - Loading validates unless told otherwise
    - JSON/YAML dumps load back into an equal Formula
"""

import json

import pytest
from formula_engine.errors import ValidationError
from formula_engine.examples import build_roof_cleaning, gutter_cleaning_dict
from formula_engine.model import ConditionType, LogicOperator, VariableType
from formula_engine.serialization import (
    conditional_logic_from_dict,
    formula_from_dict,
    formula_from_json,
    formula_from_yaml,
    formula_to_dict,
    formula_to_json,
    formula_to_yaml,
    selections_from_dicts,
)


def minimal(**overrides):
    d = {
        "id": "f1",
        "formula": "squareFootage * rate",
        "variables": [
            {"id": "squareFootage", "name": "Square Footage", "type": "number", "min": 0},
            {
                "id": "rate",
                "name": "Rate",
                "type": "select",
                "options": [{"label": "Basic", "value": "basic", "multiplier": "1.5"}],
            },
        ],
    }
    d.update(overrides)
    return d


class TestLoading:
    """Loading the JSON shape."""

    def test_minimal(self):
        f = formula_from_dict(minimal())
        assert f.id == "f1"
        assert f.variables[0].type is VariableType.NUMBER
        assert f.variables[0].min_value == 0
        assert f.variables[1].options[0].multiplier == 1.5

    def test_legacy_condition_is_normalized(self):
        f = formula_from_dict(gutter_cleaning_dict())
        logic = f.get_variable("guards").conditional_logic
        assert logic.enabled
        assert logic.operator is LogicOperator.AND
        assert len(logic.conditions) == 1
        cond = logic.conditions[0]
        assert cond.id == "guards-legacy"
        assert cond.depends_on_variable == "gutter_condition"
        assert cond.condition is ConditionType.CONTAINS
        assert cond.expected_values == ["moderate", "dirty"]

    def test_modern_conditions(self):
        logic = conditional_logic_from_dict(
            {
                "enabled": True,
                "operator": "or",
                "conditions": [
                    {"dependsOnVariable": "a", "condition": "equals", "expectedValue": 1},
                    {"id": "x", "dependsOnVariable": "b", "condition": "is_empty"},
                ],
                "defaultValue": 0,
            },
            "v",
        )
        assert logic.operator is LogicOperator.OR
        assert [c.id for c in logic.conditions] == ["v-c1", "x"]
        assert logic.default_value == 0

    def test_enabled_without_dependency(self):
        logic = conditional_logic_from_dict({"enabled": True}, "v")
        assert logic.conditions == []

    @pytest.mark.parametrize("raw,expected", [
        ("false", False),
        ("False", False),
        ("true", True),
        (0, False),
        (1, True),
        (None, False),
    ])
    def test_enabled_string_booleans(self, raw, expected):
        logic = conditional_logic_from_dict(
            {"enabled": raw, "dependsOnVariable": "a", "condition": "is_empty"}, "v"
        )
        assert logic.enabled is expected

    def test_name_defaults_to_id(self):
        d = minimal()
        del d["variables"][0]["name"]
        assert formula_from_dict(d).variables[0].name == "squareFootage"


class TestLoadErrors:
    """Structural problems surface as ValidationError."""

    @pytest.mark.parametrize("mutate,message", [
        (lambda d: d.pop("id"), "missing required field 'id'"),
        (lambda d: d["variables"][0].pop("type"), "missing required field 'type'"),
        (lambda d: d["variables"][0].update(type="color"), "unknown value 'color'"),
        (lambda d: d["variables"][0].update(max="lots"), "'max' must be a number"),
        (lambda d: d["variables"][0].update(max="inf"), "'max' must be a finite number"),
        (lambda d: d["variables"][0].update(min=float("nan")), "'min' must be a finite number"),
        (lambda d: d["variables"][1]["options"][0].update(multiplier="NaN"),
         "'multiplier' must be a finite number"),
        (lambda d: d["variables"][1]["options"][0].update(numericValue="-Infinity"),
         "'numericValue' must be a finite number"),
        (lambda d: d["variables"][1].update(allowMultipleSelection="sometimes"),
         "'allowMultipleSelection' must be a boolean"),
        (lambda d: d["variables"][1]["options"][0].pop("value"), "missing required field 'value'"),
        (lambda d: d.update(variables="nope"), "'variables' must be a list"),
        (lambda d: d.update(formula="squareFootage * price"), "undeclared tokens: price"),
    ])
    def test_invalid(self, mutate, message):
        d = minimal()
        mutate(d)
        with pytest.raises(ValidationError, match=message):
            formula_from_dict(d)

    def test_unknown_condition(self):
        d = minimal()
        d["variables"][1]["conditionalLogic"] = {
            "enabled": True,
            "dependsOnVariable": "squareFootage",
            "condition": "between",
        }
        with pytest.raises(ValidationError, match="unknown value 'between'"):
            formula_from_dict(d)

    def test_condition_that_is_not_an_object(self):
        d = minimal()
        d["variables"][1]["conditionalLogic"] = {"enabled": True, "conditions": ["oops"]}
        with pytest.raises(ValidationError, match="each condition must be an object, got str"):
            formula_from_dict(d)

    def test_enabled_must_be_boolean(self):
        with pytest.raises(ValidationError, match="'enabled' must be a boolean"):
            conditional_logic_from_dict({"enabled": "maybe"}, "v")

    def test_forward_dependency(self):
        d = minimal()
        d["variables"][0]["conditionalLogic"] = {
            "enabled": True,
            "dependsOnVariable": "rate",
            "condition": "is_not_empty",
        }
        with pytest.raises(ValidationError, match="declared after it"):
            formula_from_dict(d)

    def test_skip_validation(self):
        f = formula_from_dict(minimal(formula="unknown + 1"), validate=False)
        assert f.formula == "unknown + 1"

    def test_malformed_json(self):
        with pytest.raises(ValidationError, match="malformed"):
            formula_from_json("{not json")

    def test_malformed_yaml(self):
        with pytest.raises(ValidationError, match="malformed"):
            formula_from_yaml("id: [unclosed")


class TestDumping:
    """Dumps load back into an equal Formula."""

    def test_dict_shape(self):
        d = formula_to_dict(formula_from_dict(gutter_cleaning_dict()))
        guards = d["variables"][3]
        assert guards["conditionalLogic"]["conditions"][0]["dependsOnVariable"] == "gutter_condition"
        assert "dependsOnVariable" not in guards["conditionalLogic"]
        assert "unit" not in guards

    def test_json_roundtrip(self):
        formula = build_roof_cleaning()
        restored = formula_from_json(formula_to_json(formula))
        assert restored == formula
        assert json.loads(formula_to_json(formula))["id"] == "roof-cleaning"

    def test_yaml_roundtrip(self):
        formula = formula_from_dict(gutter_cleaning_dict())
        assert formula_from_yaml(formula_to_yaml(formula)) == formula


def test_selections_from_dicts():
    selections = selections_from_dicts([
        {"formula": minimal(), "values": {"squareFootage": 10, "rate": "basic"}},
        {"formula": minimal(id="f2")},
    ])
    assert [s.formula.id for s in selections] == ["f1", "f2"]
    assert selections[0].values == {"squareFootage": 10, "rate": "basic"}
    assert selections[1].values == {}
