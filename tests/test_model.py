"""
Tests for Core Model Objects

These tests verify:
    - Basic model creation and defaults
    - Retrieval methods
    - Per-option formula tokens
"""

import pytest
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


class TestVariable:
    """Test Variable objects."""

    def test_create_variable(self):
        """Should create a variable with id, name and type."""
        var = Variable(id="sqft", name="Square Feet", type=VariableType.NUMBER)
        assert var.id == "sqft"
        assert var.options == []
        assert var.conditional_logic is None
        assert not var.has_conditions

    def test_disabled_logic_is_not_conditional(self):
        var = Variable(
            id="x",
            name="X",
            type=VariableType.NUMBER,
            conditional_logic=ConditionalLogic(enabled=False),
        )
        assert not var.has_conditions

    def test_option_tokens_for_multi_select(self):
        """Multi-select variables expose '<id>_<optionId>' tokens."""
        var = Variable(
            id="extras",
            name="Extras",
            type=VariableType.MULTIPLE_CHOICE,
            allow_multiple_selection=True,
            options=[
                Option(id="rails", label="Rails", value="rails", numeric_value=10),
                Option(label="No id", value="noid", numeric_value=5),
            ],
        )
        tokens = var.option_tokens()
        assert list(tokens) == ["extras_rails"]
        assert tokens["extras_rails"].numeric_value == 10

    def test_no_option_tokens_without_multiple_selection(self):
        var = Variable(
            id="extras",
            name="Extras",
            type=VariableType.MULTIPLE_CHOICE,
            options=[Option(id="rails", label="Rails", value="rails")],
        )
        assert var.option_tokens() == {}


class TestConditionalLogic:
    """Test ConditionalLogic defaults."""

    def test_defaults(self):
        logic = ConditionalLogic()
        assert logic.enabled is False
        assert logic.operator is LogicOperator.AND
        assert logic.conditions == []
        assert logic.default_value is None

    def test_conditions_are_not_shared(self):
        """Mutable defaults must not leak between instances."""
        a = ConditionalLogic()
        b = ConditionalLogic()
        a.conditions.append(Condition(id="c", depends_on_variable="x", condition=ConditionType.IS_EMPTY))
        assert b.conditions == []


class TestFormula:
    """Test Formula container."""

    def test_get_variable(self):
        formula = Formula(
            id="f1",
            formula="a + b",
            variables=[
                Variable(id="a", name="A", type=VariableType.NUMBER),
                Variable(id="b", name="B", type=VariableType.NUMBER),
            ],
        )
        assert formula.get_variable("b").name == "B"
        assert formula.get_variable("missing") is None

    def test_selection_defaults(self):
        selection = ServiceSelection(formula=Formula(id="f", formula="1"))
        assert selection.values == {}


@pytest.mark.parametrize("raw", ["number", "slider", "stepper", "select", "dropdown",
                                 "multiple-choice", "checkbox", "text"])
def test_variable_types_round_trip_by_value(raw):
    assert VariableType(raw).value == raw
