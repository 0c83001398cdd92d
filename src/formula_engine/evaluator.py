"""
Expression Evaluator

Substitutes contributions into a formula template and computes a price.

Pipeline:
    1. substitute(): replace every whole identifier token with its
       contribution (longest ids first, word-boundary anchored)
    2. parse_formula(): the substituted text must now consist of numbers,
       operators and parentheses only
    3. evaluate_expression(): walk the AST
    4. round half up, clamp at 0

ARCHITECTURAL RULE:
    A token left unresolved after substitution is a FormulaError.
    It is never treated as 0 and never handed to a code-executing primitive.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import replace
from typing import List, Mapping, Optional, Tuple

from formula_engine.config import DEFAULT_CONFIG, EngineConfig
from formula_engine.errors import FormulaError
from formula_engine.expressions import (
    BinaryExpression,
    BinaryOperator,
    Expression,
    Literal,
    Ternary,
    UnaryExpression,
    UnaryOperator,
    VariableReference,
)
from formula_engine.parser import IDENTIFIER_RE, parse_formula
from formula_engine.values import format_number

logger = logging.getLogger(__name__)


def _literal_text(token: str, number: float) -> str:
    if not math.isfinite(number):
        raise FormulaError(f"Contribution of '{token}' is not a finite number: {number!r}")
    text = format_number(float(number))
    # "a - b" with b = -3 becomes "5 - (-3)"
    return f"({text})" if number < 0 else text


def substitute(template: str, contributions: Mapping[str, float]) -> str:
    """
    Replace identifier tokens in `template` with their contributions.

    Matching is whole-token only, so `sq` never matches inside `sqft`.
    All ids are replaced in a single pass, longest first, so substituted
    numbers are never rescanned. Tokens with no contribution are left as-is.
    """
    ids = [key for key in contributions if IDENTIFIER_RE.match(key)]
    if not ids:
        return template
    ids.sort(key=len, reverse=True)
    pattern = re.compile(r"\b(?:" + "|".join(re.escape(i) for i in ids) + r")\b")
    return pattern.sub(lambda m: _literal_text(m.group(), contributions[m.group()]), template)


def collect_references(expr: Expression) -> List[str]:
    """Identifier tokens referenced by an expression, in first-seen order."""
    found: List[str] = []
    stack = [expr]
    while stack:
        node = stack.pop()
        if isinstance(node, VariableReference):
            if node.name not in found:
                found.append(node.name)
        elif isinstance(node, UnaryExpression):
            stack.append(node.operand)
        elif isinstance(node, BinaryExpression):
            stack.extend([node.right, node.left])
        elif isinstance(node, Ternary):
            stack.extend([node.if_false, node.if_true, node.condition])
    return found


def _apply_binary(op: BinaryOperator, left: float, right: float) -> float:
    if op is BinaryOperator.ADD:
        return left + right
    if op is BinaryOperator.SUBTRACT:
        return left - right
    if op is BinaryOperator.MULTIPLY:
        return left * right
    if op is BinaryOperator.DIVIDE:
        if right == 0:
            logger.warning("Division by zero in formula, evaluating %s / 0 as 0", left)
            return 0.0
        return left / right
    if op is BinaryOperator.EQUALS:
        return 1.0 if left == right else 0.0
    if op is BinaryOperator.NOT_EQUALS:
        return 1.0 if left != right else 0.0
    if op is BinaryOperator.GREATER_THAN:
        return 1.0 if left > right else 0.0
    if op is BinaryOperator.GREATER_EQUAL:
        return 1.0 if left >= right else 0.0
    if op is BinaryOperator.LESS_THAN:
        return 1.0 if left < right else 0.0
    if op is BinaryOperator.LESS_EQUAL:
        return 1.0 if left <= right else 0.0
    raise FormulaError(f"Unsupported operator: {op}")


def evaluate_expression(expr: Expression) -> float:
    """
    Compute the numeric value of a fully substituted expression.

    Walks the tree with an explicit stack, so long operator chains
    (which parse into deep left-leaning trees) evaluate without recursion.

    Raises:
        FormulaError: On any VariableReference or unknown node type
    """
    results: List[float] = []
    # (node, children already evaluated)
    stack: List[Tuple[Expression, bool]] = [(expr, False)]
    while stack:
        node, ready = stack.pop()

        if isinstance(node, Literal):
            results.append(float(node.value))

        elif isinstance(node, UnaryExpression):
            if not ready:
                stack.append((node, True))
                stack.append((node.operand, False))
            else:
                operand = results.pop()
                results.append(-operand if node.operator is UnaryOperator.NEGATE else operand)

        elif isinstance(node, BinaryExpression):
            if not ready:
                stack.append((node, True))
                stack.append((node.right, False))
                stack.append((node.left, False))
            else:
                right = results.pop()
                left = results.pop()
                results.append(_apply_binary(node.operator, left, right))

        elif isinstance(node, Ternary):
            if not ready:
                stack.append((node, True))
                stack.append((node.condition, False))
            else:
                # Only the taken branch is evaluated; its value is the ternary's
                branch = node.if_true if results.pop() != 0 else node.if_false
                stack.append((branch, False))

        elif isinstance(node, VariableReference):
            raise FormulaError(f"Unresolved token '{node.name}'")

        else:
            raise FormulaError(f"Unsupported expression type: {type(node).__name__}")

    return results.pop()


def round_price(number: float) -> int:
    """Round half up, then clamp negative prices to 0."""
    return max(0, math.floor(number + 0.5))


def evaluate(template: str, contributions: Mapping[str, float],
             config: Optional[EngineConfig] = None) -> int:
    """
    Evaluate a formula template to a price.

    Args:
        template: Formula text over identifier tokens
        contributions: Numeric contribution per token
        config: Parsing limits (DEFAULT_CONFIG if None)

    Returns:
        max(0, round(result)) as an int

    Raises:
        FormulaError: If the template references a token with no
            contribution, contains anything outside the formula grammar,
            or the result is not a finite number

    Example:
        evaluate("10 * squareFootage", {"squareFootage": 12}) -> 120
    """
    config = config or DEFAULT_CONFIG
    if template is not None and len(template) > config.max_formula_length:
        raise FormulaError(
            f"Formula is {len(template)} characters long, the maximum is {config.max_formula_length}"
        )

    substituted = substitute(template or "", contributions)
    # Substituted numbers may be longer than the ids they replace
    limits = replace(config, max_formula_length=max(config.max_formula_length, len(substituted)))
    expr = parse_formula(substituted, limits)

    unresolved = collect_references(expr)
    if unresolved:
        raise FormulaError(f"Unresolved tokens in formula: {', '.join(unresolved)}")

    result = evaluate_expression(expr)
    if not math.isfinite(result):
        raise FormulaError(f"Formula result is not a finite number: {result!r}")

    price = round_price(result)
    logger.debug("Evaluated %r -> %s (raw %s)", template, price, result)
    return price
