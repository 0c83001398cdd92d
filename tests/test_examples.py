"""
Test the example calculators end to end.

Validates that every example passes load-time checks and prices the
sample quote used by the demo script.
"""

from formula_engine.aggregator import aggregate
from formula_engine.analyzer import validate_formula
from formula_engine.examples import build_example_formulas
from formula_engine.model import ServiceSelection

SAMPLE_VALUES = {
    "house-painting": {"house_sqft": 1800, "property_height": "two", "paint_quality": "premium"},
    "roof-cleaning": {"roof_sqft": 2200, "material": "metal", "coating_sqft": 300, "pitch": 10},
    "deck-staining": {"deck_sqft": 320, "extras": ["rails", "seal"]},
    "gutter-cleaning": {"property_height_gutter": "two", "gutter_condition": "dirty", "guards": ["front"]},
}


def test_examples_are_valid():
    formulas = build_example_formulas()
    assert [f.id for f in formulas] == ["house-painting", "roof-cleaning", "deck-staining", "gutter-cleaning"]
    for formula in formulas:
        validate_formula(formula)


def test_sample_quote():
    formulas = build_example_formulas()
    result = aggregate([ServiceSelection(formula=f, values=SAMPLE_VALUES[f.id]) for f in formulas])

    prices = {q.formula_id: q.price for q in result.per_service}
    # 1800 * 4.5 * 1.3 * 1.4
    assert prices["house-painting"] == 14742
    # 99 + 2200 * 0.25 * 1.1 + 300 * 0.8 + 75 (pitch > 8) + 0
    assert prices["roof-cleaning"] == 1019
    # 320 * 2 + (120 + 60) + 120 * 0.5
    assert prices["deck-staining"] == 880
    # (2000 / 100) * 35 * 1.5 * 1.5 + 150
    assert prices["gutter-cleaning"] == 1725
    assert result.total == 18366


def test_roof_hidden_coating_and_safety_fee():
    roof = build_example_formulas()[1]
    result = aggregate([ServiceSelection(formula=roof, values={
        "roof_sqft": 100, "material": "tile", "coating_sqft": 300, "pitch": 4, "has_gutters": True,
    })])
    quote = result.per_service[0]
    assert "coating_sqft" not in quote.visible
    assert "steep_fee" not in quote.visible
    # 99 + 500 (slider min) * 0.25 * 1.2 + 0 + 0 + 40
    assert quote.price == 289
