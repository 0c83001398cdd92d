"""
Expression System for Pricing Formulas

Formula text is parsed into an Abstract Syntax Tree before anything is
computed. The tree can only express:

    - Numeric literals
    - Variable references
    - Unary sign (+x, -x)
    - Arithmetic (+ - * /)
    - Comparisons (> < >= <= == !=)
    - Ternaries (condition ? a : b)

ARCHITECTURAL RULE:
    Formula text is never executed as code.
    Anything outside this grammar is rejected by the parser.
"""

from abc import ABC
from dataclasses import dataclass
from enum import Enum


class Expression(ABC):
    """
    Base class for all AST expressions.

    This class is structure only. Evaluation lives in evaluator.py,
    parsing in parser.py.
    """
    pass


class BinaryOperator(Enum):
    """
    Binary operators allowed in formulas.

    Comparisons evaluate to 1 (true) or 0 (false).
    """

    # Arithmetic
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"

    # Comparison
    EQUALS = "=="
    NOT_EQUALS = "!="
    GREATER_THAN = ">"
    GREATER_EQUAL = ">="
    LESS_THAN = "<"
    LESS_EQUAL = "<="


COMPARISON_OPERATORS = frozenset({
    BinaryOperator.EQUALS,
    BinaryOperator.NOT_EQUALS,
    BinaryOperator.GREATER_THAN,
    BinaryOperator.GREATER_EQUAL,
    BinaryOperator.LESS_THAN,
    BinaryOperator.LESS_EQUAL,
})


class UnaryOperator(Enum):
    """Sign operators."""

    NEGATE = "-"
    PLUS = "+"


@dataclass(frozen=True)
class Literal(Expression):
    """
    A numeric constant.

    Examples:
        - 10
        - 0.5
        - 1e-05 (produced by substituting very small contributions)
    """

    value: float


@dataclass(frozen=True)
class VariableReference(Expression):
    """
    References a formula token (a variable id or per-option token).

    IMPORTANT:
        This object does NOT validate that the token is declared.
        Validation belongs in analyzer.py.
    """

    name: str


@dataclass(frozen=True)
class UnaryExpression(Expression):
    """
    Example:
        -(base - discount)

    Becomes:
        UnaryExpression(
            operator=UnaryOperator.NEGATE,
            operand=BinaryExpression(...)
        )
    """

    operator: UnaryOperator
    operand: Expression


@dataclass(frozen=True)
class BinaryExpression(Expression):
    """
    Represents an arithmetic or comparison expression.

    Example:
        squareFootage * 0.5 + 20

    Becomes:
        BinaryExpression(
            operator=BinaryOperator.ADD,
            left=BinaryExpression(
                operator=BinaryOperator.MULTIPLY,
                left=VariableReference("squareFootage"),
                right=Literal(0.5)
            ),
            right=Literal(20)
        )
    """

    operator: BinaryOperator
    left: Expression
    right: Expression


@dataclass(frozen=True)
class Ternary(Expression):
    """
    Conditional expression: condition ? if_true : if_false

    The condition is true when it evaluates to any non-zero number.

    Example:
        (hasPermit ? 50 : 0) + base
    """

    condition: Expression
    if_true: Expression
    if_false: Expression
