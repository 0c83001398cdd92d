"""
Demo: Analyze the example calculators and price a sample quote.
"""

import logging

from formula_engine.aggregator import aggregate
from formula_engine.analyzer import analyze_formula
from formula_engine.examples import build_example_formulas
from formula_engine.model import ServiceSelection
from formula_engine.serialization import formula_to_yaml


SAMPLE_VALUES = {
    "house-painting": {"house_sqft": 1800, "property_height": "two", "paint_quality": "premium"},
    "roof-cleaning": {"roof_sqft": 2200, "material": "metal", "coating_sqft": 300, "pitch": 10},
    "deck-staining": {"deck_sqft": 320, "extras": ["rails", "seal"]},
    "gutter-cleaning": {"property_height_gutter": "two", "gutter_condition": "dirty", "guards": ["front"]},
}


def print_report(report):
    """Pretty-print a FormulaReport."""
    print()
    print("=" * 70)
    print(f"FORMULA ANALYSIS REPORT: {report.formula_id}")
    print("=" * 70)
    print(f"  Variables:             {report.total_variables}")
    print(f"  Conditions:            {report.total_conditions}")
    print(f"  Referenced Tokens:     {', '.join(sorted(report.referenced_tokens))}")
    print(f"  Evaluation Order:      {' -> '.join(report.evaluation_order)}")
    print(f"  Expression Depth:      {report.expression_depth}")
    print(f"  Expression Nodes:      {report.expression_node_count}")

    for error in report.errors:
        print(f"  ERROR: {error}")
    for warning in report.warnings:
        print(f"  WARNING: {warning}")
    print()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    formulas = build_example_formulas()
    for formula in formulas:
        print_report(analyze_formula(formula))

    selections = [ServiceSelection(formula=f, values=SAMPLE_VALUES.get(f.id, {})) for f in formulas]
    result = aggregate(selections)

    print("QUOTE")
    for quote in result.per_service:
        print(f"  {quote.formula_id:<20} ${quote.price:>8}")
    print(f"  {'TOTAL':<20} ${result.total:>8}")
    print()

    with open("example_formula_output.yaml", "w") as f:
        f.write(formula_to_yaml(formulas[1]))
    print("Roof cleaning formula exported to example_formula_output.yaml")
