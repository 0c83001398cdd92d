"""
Formula Parser (formula text -> Expression AST).

Grammar, lowest precedence first:

    ternary        := equality ( "?" ternary ":" ternary )?
    equality       := relational ( ("==" | "!=") relational )*
    relational     := additive ( ("<" | ">" | "<=" | ">=") additive )*
    additive       := multiplicative ( ("+" | "-") multiplicative )*
    multiplicative := unary ( ("*" | "/") unary )*
    unary          := ("-" | "+") unary | primary
    primary        := NUMBER | IDENTIFIER | "(" ternary ")"

Every character of the input must belong to a token of this grammar.
Anything else (quotes, brackets, '&&', function calls, ...) is a
FormulaError, never silently skipped.
"""

import re
from typing import List, NamedTuple, Optional

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

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_TOKEN_RE = re.compile(
    r"""
    (?P<number>(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)
  | (?P<identifier>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<operator>>=|<=|==|!=|[-+*/()?:<>])
  | (?P<space>\s+)
  | (?P<invalid>.)
    """,
    re.VERBOSE | re.DOTALL,
)

_EQUALITY = {"==": BinaryOperator.EQUALS, "!=": BinaryOperator.NOT_EQUALS}
_RELATIONAL = {
    "<": BinaryOperator.LESS_THAN,
    ">": BinaryOperator.GREATER_THAN,
    "<=": BinaryOperator.LESS_EQUAL,
    ">=": BinaryOperator.GREATER_EQUAL,
}
_ADDITIVE = {"+": BinaryOperator.ADD, "-": BinaryOperator.SUBTRACT}
_MULTIPLICATIVE = {"*": BinaryOperator.MULTIPLY, "/": BinaryOperator.DIVIDE}
_UNARY = {"-": UnaryOperator.NEGATE, "+": UnaryOperator.PLUS}


class Token(NamedTuple):
    kind: str
    text: str
    position: int


def tokenize(text: str) -> List[Token]:
    """Split formula text into tokens, rejecting any character outside the grammar."""
    tokens = []
    for match in _TOKEN_RE.finditer(text):
        kind = match.lastgroup
        if kind == "space":
            continue
        if kind == "invalid":
            raise FormulaError(
                f"Unexpected character {match.group()!r} at position {match.start()}"
            )
        tokens.append(Token(kind, match.group(), match.start()))
    return tokens


def _peek(tokens: List[Token], pos: int) -> Optional[str]:
    if pos < len(tokens) and tokens[pos].kind == "operator":
        return tokens[pos].text
    return None


def _expect(tokens: List[Token], pos: int, text: str) -> int:
    if _peek(tokens, pos) != text:
        found = tokens[pos].text if pos < len(tokens) else "end of formula"
        raise FormulaError(f"Expected '{text}' but found '{found}'")
    return pos + 1


def _check_depth(depth: int, config: EngineConfig) -> None:
    if depth > config.max_nesting_depth:
        raise FormulaError(
            f"Formula nesting exceeds the maximum depth of {config.max_nesting_depth}"
        )


def _parse_ternary(tokens: List[Token], pos: int, depth: int, config: EngineConfig) -> tuple:
    """Parse ternary expression (lowest precedence, right associative)."""
    _check_depth(depth, config)
    condition, pos = _parse_equality(tokens, pos, depth, config)

    if _peek(tokens, pos) != "?":
        return condition, pos

    if_true, pos = _parse_ternary(tokens, pos + 1, depth + 1, config)
    pos = _expect(tokens, pos, ":")
    if_false, pos = _parse_ternary(tokens, pos, depth + 1, config)
    return Ternary(condition, if_true, if_false), pos


def _parse_binary_level(tokens, pos, depth, config, operators, next_level) -> tuple:
    """Parse a left-associative chain of one precedence level."""
    left, pos = next_level(tokens, pos, depth, config)
    while _peek(tokens, pos) in operators:
        op = operators[tokens[pos].text]
        right, pos = next_level(tokens, pos + 1, depth, config)
        left = BinaryExpression(op, left, right)
    return left, pos


def _parse_equality(tokens, pos, depth, config) -> tuple:
    return _parse_binary_level(tokens, pos, depth, config, _EQUALITY, _parse_relational)


def _parse_relational(tokens, pos, depth, config) -> tuple:
    return _parse_binary_level(tokens, pos, depth, config, _RELATIONAL, _parse_additive)


def _parse_additive(tokens, pos, depth, config) -> tuple:
    return _parse_binary_level(tokens, pos, depth, config, _ADDITIVE, _parse_multiplicative)


def _parse_multiplicative(tokens, pos, depth, config) -> tuple:
    return _parse_binary_level(tokens, pos, depth, config, _MULTIPLICATIVE, _parse_unary)


def _parse_unary(tokens: List[Token], pos: int, depth: int, config: EngineConfig) -> tuple:
    """Parse unary sign."""
    op = _peek(tokens, pos)
    if op in _UNARY:
        _check_depth(depth + 1, config)
        operand, pos = _parse_unary(tokens, pos + 1, depth + 1, config)
        return UnaryExpression(_UNARY[op], operand), pos
    return _parse_primary(tokens, pos, depth, config)


def _parse_primary(tokens: List[Token], pos: int, depth: int, config: EngineConfig) -> tuple:
    """Parse primary expression (number, identifier, or parenthesized)."""
    if pos >= len(tokens):
        raise FormulaError("Unexpected end of formula")

    token = tokens[pos]

    if token.kind == "number":
        return Literal(float(token.text)), pos + 1

    if token.kind == "identifier":
        return VariableReference(token.text), pos + 1

    if token.text == "(":
        expr, pos = _parse_ternary(tokens, pos + 1, depth + 1, config)
        pos = _expect(tokens, pos, ")")
        return expr, pos

    raise FormulaError(f"Unexpected token '{token.text}' at position {token.position}")


def parse_formula(text: str, config: Optional[EngineConfig] = None) -> Expression:
    """
    Parse formula text into an Expression.

    Args:
        text: Formula text, e.g. "(hasPermit ? 50 : 0) + base"
        config: Limits on length and nesting (DEFAULT_CONFIG if None)

    Returns:
        Expression AST

    Raises:
        FormulaError: If the text is empty, too long, or not in the grammar
    """
    config = config or DEFAULT_CONFIG

    if text is None or not text.strip():
        raise FormulaError("Formula is empty")
    if len(text) > config.max_formula_length:
        raise FormulaError(
            f"Formula is {len(text)} characters long, the maximum is {config.max_formula_length}"
        )

    tokens = tokenize(text)
    expr, pos = _parse_ternary(tokens, 0, 0, config)

    if pos < len(tokens):
        token = tokens[pos]
        raise FormulaError(f"Unexpected token '{token.text}' at position {token.position}")

    return expr
