"""
Core Calculator Model Objects

Defines the data structures of a pricing calculator definition:
    - Options (choices of select-like variables)
    - Conditions and ConditionalLogic (visibility rules)
    - Variables (typed inputs)
    - Formulas (root container: variables + expression template)
    - ServiceSelections (a formula plus one customer's raw input)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about rendering or persistence
        - Are plain data, never evaluated by themselves
        - Are fully serializable (see serialization.py)
        - Hold conditional logic only in the normalized multi-condition form
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class VariableType(Enum):
    """
    Input widget kinds a variable can declare.

    The numeric kinds contribute their value directly, the option kinds
    contribute through their options, TEXT never contributes.
    """

    NUMBER = "number"
    SLIDER = "slider"
    STEPPER = "stepper"
    SELECT = "select"
    DROPDOWN = "dropdown"
    MULTIPLE_CHOICE = "multiple-choice"
    CHECKBOX = "checkbox"
    TEXT = "text"


NUMERIC_TYPES = frozenset({VariableType.NUMBER, VariableType.SLIDER, VariableType.STEPPER})
OPTION_TYPES = frozenset({VariableType.SELECT, VariableType.DROPDOWN, VariableType.MULTIPLE_CHOICE})


class ConditionType(Enum):
    """Predicates a visibility condition can apply to another variable."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    CONTAINS = "contains"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"


class LogicOperator(Enum):
    """How the conditions of one ConditionalLogic combine."""

    AND = "AND"
    OR = "OR"


@dataclass
class Option:
    """
    One choice of a select, dropdown or multiple-choice variable.

    Properties:
        label: Text shown to the customer
        value: Value stored when the option is picked (string or number)
        numeric_value: Contribution to the formula when picked
        multiplier: Contribution for `select` variables, preferred over numeric_value
        id: Stable option id, enables `<variableId>_<optionId>` formula tokens
        image: Optional image URL or data URI, carried through untouched
    """

    label: str
    value: Union[str, int, float]
    numeric_value: Optional[float] = None
    multiplier: Optional[float] = None
    id: Optional[str] = None
    image: Optional[str] = None


@dataclass
class Condition:
    """
    A single visibility predicate.

    Example:
        Show "Gutter guards" only when roofMaterial equals "metal":

        Condition(
            id="c1",
            depends_on_variable="roofMaterial",
            condition=ConditionType.EQUALS,
            expected_value="metal",
        )

    Properties:
        id: Condition identifier, unique within its ConditionalLogic
        depends_on_variable: Id of a variable declared EARLIER in the formula
        condition: ConditionType predicate
        expected_value: Scalar compared against (equals, greater_than, ...)
        expected_values: Scalars for membership tests (contains)

    IMPORTANT:
        Expected values are kept as raw JSON scalars so the definition
        round-trips unchanged. Coercion happens in conditions.py.
    """

    id: str
    depends_on_variable: str
    condition: ConditionType
    expected_value: Any = None
    expected_values: Optional[List[Any]] = None


@dataclass
class ConditionalLogic:
    """
    Visibility rule attached to a variable.

    Properties:
        enabled: When False the variable is always visible
        operator: AND (all conditions) or OR (any condition)
        conditions: Normalized list of conditions, never the legacy inline shape
        default_value: Effective value of the variable while it is hidden
    """

    enabled: bool = False
    operator: LogicOperator = LogicOperator.AND
    conditions: List[Condition] = field(default_factory=list)
    default_value: Any = None


@dataclass
class Variable:
    """
    Declares one typed calculator input.

    Properties:
        id:
            Bare identifier token referenced by the formula text
            Examples: "squareFootage", "house_sqft"

        name:
            Human-readable label

        type:
            VariableType of the input widget

        min_value / max_value:
            Bounds; sliders and steppers are clamped into them

        default_value:
            Used when the customer supplied nothing

        options:
            Choices for select, dropdown and multiple-choice variables

        conditional_logic:
            Optional visibility rule

        allow_multiple_selection:
            Multiple-choice only; exposes per-option formula tokens

        connection_key:
            Shared-input key used by callers to prefill values across
            calculators. Not interpreted by the engine.
    """

    id: str
    name: str
    type: VariableType
    unit: Optional[str] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    default_value: Any = None
    options: List[Option] = field(default_factory=list)
    conditional_logic: Optional[ConditionalLogic] = None
    allow_multiple_selection: bool = False
    connection_key: Optional[str] = None

    @property
    def has_conditions(self) -> bool:
        return self.conditional_logic is not None and self.conditional_logic.enabled

    def option_tokens(self) -> Dict[str, Option]:
        """
        Per-option formula tokens of a multi-select variable.

        Returns:
            Mapping "<variableId>_<optionId>" -> Option, empty for any
            variable that does not allow multiple selection.
        """
        if self.type is not VariableType.MULTIPLE_CHOICE or not self.allow_multiple_selection:
            return {}
        return {f"{self.id}_{opt.id}": opt for opt in self.options if opt.id}


@dataclass
class Formula:
    """
    Root container of a calculator definition.

    Properties:
        id:
            Formula identifier

        formula:
            Expression template over variable ids
            Example: "(house_sqft / 100) * 35 * gutter_condition"

        variables:
            Declared inputs, in display order

        name / title:
            Optional descriptive metadata

    INVARIANTS:
        - Every identifier in `formula` is a declared variable id
          (or a per-option token of a multi-select variable)
        - Conditions only depend on variables declared earlier
        - The condition dependency graph is acyclic

    These invariants are checked by analyzer.validate_formula when a
    formula is loaded, never during pricing.
    """

    id: str
    formula: str
    variables: List[Variable] = field(default_factory=list)
    name: Optional[str] = None
    title: Optional[str] = None

    def get_variable(self, variable_id: str) -> Optional[Variable]:
        """
        Retrieve a variable by id.

        Returns:
            Variable object or None if not found
        """
        for var in self.variables:
            if var.id == variable_id:
                return var
        return None


@dataclass
class ServiceSelection:
    """One formula plus the raw values a customer entered for it."""

    formula: Formula
    values: Dict[str, Any] = field(default_factory=dict)
