"""
Example calculators used by the demo script and the tests.

Covers every variable kind, AND/OR visibility rules, a hidden-variable
default, per-option tokens of a multi-select, and one definition in the
legacy single-condition JSON shape.
"""
from typing import Any, Dict, List

from formula_engine.model import (
    Condition,
    ConditionalLogic,
    ConditionType,
    Formula,
    LogicOperator,
    Option,
    Variable,
    VariableType,
)
from formula_engine.serialization import formula_from_dict


def build_house_painting() -> Formula:
    return Formula(
        id="house-painting",
        name="House Painting",
        title="Professional House Painting Service",
        formula="house_sqft * 4.5 * property_height * paint_quality",
        variables=[
            Variable(
                id="house_sqft",
                name="House Square Footage",
                type=VariableType.NUMBER,
                unit="sq ft",
                default_value=2000,
                connection_key="house_sqft",
            ),
            Variable(
                id="property_height",
                name="Property Height",
                type=VariableType.DROPDOWN,
                connection_key="property_height",
                options=[
                    Option(label="Single Story", value="single", numeric_value=1),
                    Option(label="Two Story", value="two", numeric_value=1.3),
                    Option(label="Three Story", value="three", numeric_value=1.6),
                ],
            ),
            Variable(
                id="paint_quality",
                name="Paint Quality",
                type=VariableType.DROPDOWN,
                options=[
                    Option(label="Standard", value="standard", numeric_value=1),
                    Option(label="Premium", value="premium", numeric_value=1.4),
                    Option(label="Ultra Premium", value="ultra", numeric_value=1.8),
                ],
            ),
        ],
    )


def build_roof_cleaning() -> Formula:
    """
    Roof cleaning with conditional add-ons.

    `coating_sqft` only shows for metal roofs; while hidden it takes its
    rule's default of 0. `steep_fee` shows for steep OR tall roofs.
    """
    return Formula(
        id="roof-cleaning",
        name="Roof Cleaning",
        formula=(
            "base + roof_sqft * 0.25 * material"
            " + coating_sqft * 0.8 + (steep_fee > 0 ? 75 : 0) + has_gutters * 40"
        ),
        variables=[
            Variable(id="base", name="Call-out fee", type=VariableType.NUMBER, default_value=99),
            Variable(
                id="roof_sqft",
                name="Roof Area",
                type=VariableType.SLIDER,
                unit="sq ft",
                min_value=500,
                max_value=6000,
                default_value=1500,
            ),
            Variable(
                id="material",
                name="Roof Material",
                type=VariableType.SELECT,
                options=[
                    Option(label="Asphalt", value="asphalt", multiplier=1),
                    Option(label="Tile", value="tile", multiplier=1.2),
                    Option(label="Metal", value="metal", multiplier=1.1),
                ],
            ),
            Variable(
                id="coating_sqft",
                name="Coating Area",
                type=VariableType.NUMBER,
                conditional_logic=ConditionalLogic(
                    enabled=True,
                    conditions=[
                        Condition(
                            id="metal-only",
                            depends_on_variable="material",
                            condition=ConditionType.EQUALS,
                            expected_value="metal",
                        ),
                    ],
                    default_value=0,
                ),
            ),
            Variable(id="pitch", name="Roof Pitch", type=VariableType.STEPPER, min_value=0, max_value=12),
            Variable(id="stories", name="Stories", type=VariableType.NUMBER, default_value=1),
            Variable(
                id="steep_fee",
                name="Safety Equipment",
                type=VariableType.CHECKBOX,
                default_value=True,
                conditional_logic=ConditionalLogic(
                    enabled=True,
                    operator=LogicOperator.OR,
                    conditions=[
                        Condition(
                            id="steep",
                            depends_on_variable="pitch",
                            condition=ConditionType.GREATER_THAN,
                            expected_value=8,
                        ),
                        Condition(
                            id="tall",
                            depends_on_variable="stories",
                            condition=ConditionType.GREATER_THAN,
                            expected_value=2,
                        ),
                    ],
                ),
            ),
            Variable(id="has_gutters", name="Clean gutters too", type=VariableType.CHECKBOX),
            Variable(id="notes", name="Notes", type=VariableType.TEXT),
        ],
    )


def build_deck_staining() -> Formula:
    """Multi-select add-ons referenced both as a sum and per option."""
    return Formula(
        id="deck-staining",
        name="Deck Staining",
        formula="deck_sqft * 2 + extras + extras_rails * 0.5",
        variables=[
            Variable(id="deck_sqft", name="Deck Area", type=VariableType.NUMBER, unit="sq ft"),
            Variable(
                id="extras",
                name="Extras",
                type=VariableType.MULTIPLE_CHOICE,
                allow_multiple_selection=True,
                options=[
                    Option(id="rails", label="Railings", value="rails", numeric_value=120),
                    Option(id="stairs", label="Stairs", value="stairs", numeric_value=80),
                    Option(id="seal", label="Sealant", value="seal", numeric_value=60),
                ],
            ),
        ],
    )


def gutter_cleaning_dict() -> Dict[str, Any]:
    """Gutter cleaning in the JSON shape, using legacy inline conditional logic."""
    return {
        "id": "gutter-cleaning",
        "name": "Gutter Cleaning",
        "formula": "(house_sqft_gutter / 100) * 35 * property_height_gutter * gutter_condition + guards",
        "variables": [
            {
                "id": "house_sqft_gutter",
                "name": "House Square Footage",
                "type": "number",
                "unit": "sq ft",
                "connectionKey": "house_sqft",
                "defaultValue": 2000,
            },
            {
                "id": "property_height_gutter",
                "name": "Property Height",
                "type": "dropdown",
                "connectionKey": "property_height",
                "options": [
                    {"label": "Single Story", "value": "single", "numericValue": 1},
                    {"label": "Two Story", "value": "two", "numericValue": 1.5},
                    {"label": "Three Story", "value": "three", "numericValue": 2},
                ],
            },
            {
                "id": "gutter_condition",
                "name": "Gutter Condition",
                "type": "dropdown",
                "options": [
                    {"label": "Clean/New", "value": "clean", "numericValue": 1},
                    {"label": "Moderately Dirty", "value": "moderate", "numericValue": 1.2},
                    {"label": "Very Dirty/Clogged", "value": "dirty", "numericValue": 1.5},
                ],
            },
            {
                "id": "guards",
                "name": "Gutter Guards",
                "type": "multiple-choice",
                "options": [
                    {"label": "Front", "value": "front", "numericValue": 150},
                    {"label": "Back", "value": "back", "numericValue": 150},
                ],
                "conditionalLogic": {
                    "enabled": True,
                    "dependsOnVariable": "gutter_condition",
                    "condition": "contains",
                    "expectedValues": ["moderate", "dirty"],
                },
            },
        ],
    }


def build_example_formulas() -> List[Formula]:
    return [
        build_house_painting(),
        build_roof_cleaning(),
        build_deck_staining(),
        formula_from_dict(gutter_cleaning_dict()),
    ]
