"""
Tests for the Service Aggregator.

These tests verify:
    - One price per selection plus a total
    - Selections never share hidden-variable state
    - Breakdown data on each quote
"""

import pytest
from formula_engine.aggregator import aggregate, price_selection
from formula_engine.errors import FormulaError
from formula_engine.model import (
    Condition,
    ConditionalLogic,
    ConditionType,
    Formula,
    ServiceSelection,
    Variable,
    VariableType,
)


def surcharge_formula(formula_id, hidden_default):
    """`surcharge` only shows when `rush` is checked; hidden it is `hidden_default`."""
    return Formula(
        id=formula_id,
        formula="base + surcharge",
        variables=[
            Variable(id="base", name="Base", type=VariableType.NUMBER, default_value=100),
            Variable(id="rush", name="Rush", type=VariableType.CHECKBOX),
            Variable(
                id="surcharge",
                name="Surcharge",
                type=VariableType.NUMBER,
                conditional_logic=ConditionalLogic(
                    enabled=True,
                    conditions=[Condition(id="c", depends_on_variable="rush",
                                          condition=ConditionType.EQUALS, expected_value=True)],
                    default_value=hidden_default,
                ),
            ),
        ],
    )


def test_price_selection():
    quote = price_selection(ServiceSelection(
        formula=surcharge_formula("f", hidden_default=0),
        values={"rush": True, "surcharge": 45},
    ))
    assert quote.formula_id == "f"
    assert quote.price == 145
    assert quote.visible == frozenset({"base", "rush", "surcharge"})
    assert quote.contributions == {"base": 100.0, "rush": 1.0, "surcharge": 45.0}


def test_aggregate_totals():
    result = aggregate([
        ServiceSelection(formula=surcharge_formula("a", 0), values={"base": 50}),
        ServiceSelection(formula=surcharge_formula("b", 0), values={"rush": True, "surcharge": 20}),
    ])
    assert [q.price for q in result.per_service] == [50, 120]
    assert result.total == 170
    assert result.to_dict() == {
        "perService": [{"formulaId": "a", "price": 50}, {"formulaId": "b", "price": 120}],
        "total": 170,
    }


def test_hidden_defaults_do_not_leak():
    """Each selection resolves visibility against its own values only."""
    a = ServiceSelection(formula=surcharge_formula("a", hidden_default=999), values={})
    b = ServiceSelection(formula=surcharge_formula("b", hidden_default=0),
                         values={"rush": True, "surcharge": 10})

    result = aggregate([a, b])

    assert result.per_service[0].price == 1099
    assert result.per_service[1].price == 110
    assert "surcharge" not in result.per_service[0].visible
    assert "surcharge" in result.per_service[1].visible

    # Same selections alone price the same
    assert aggregate([b]).total == 110
    assert aggregate([a]).total == 1099


def test_selection_values_are_not_mutated():
    values = {"rush": False, "surcharge": 75}
    aggregate([ServiceSelection(formula=surcharge_formula("a", 0), values=values)])
    assert values == {"rush": False, "surcharge": 75}


def test_empty_aggregate():
    result = aggregate([])
    assert result.per_service == []
    assert result.total == 0


def test_unvalidated_formula_raises():
    bad = Formula(id="bad", formula="base * rate",
                  variables=[Variable(id="base", name="Base", type=VariableType.NUMBER)])
    with pytest.raises(FormulaError):
        aggregate([ServiceSelection(formula=bad, values={"base": 1})])
