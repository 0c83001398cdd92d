"""
Formula Analyzer: load-time validation and inventory of calculator definitions.

This module inspects Formula objects:
    - Variable id hygiene (bare identifiers, no duplicates)
    - Formula syntax and token references
    - Condition dependency order and cycles
    - Expression complexity metrics
    - Warning flags for likely authoring mistakes

IMPORTANT: It does NOT modify the formula. analyze_formula() produces a
read-only report; validate_formula() raises ValidationError when that
report carries errors. This is meant to run once, when a formula is
saved or loaded, never per pricing request.
"""

from __future__ import annotations

from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from formula_engine.config import DEFAULT_CONFIG, EngineConfig
from formula_engine.errors import FormulaError, ValidationError
from formula_engine.expressions import (
    BinaryExpression,
    Expression,
    Ternary,
    UnaryExpression,
    VariableReference,
)
from formula_engine.model import Formula, VariableType
from formula_engine.parser import IDENTIFIER_RE, parse_formula


@dataclass
class ExpressionMetrics:
    """Metrics about a single expression tree."""
    depth: int = 0
    node_count: int = 0
    variable_references: Set[str] = field(default_factory=set)


def _analyze_expression(expr: Expression | None) -> ExpressionMetrics:
    """Walk an expression tree with an explicit stack and collect metrics."""
    metrics = ExpressionMetrics()
    if expr is None:
        return metrics

    stack: List[Tuple[Expression, int]] = [(expr, 0)]
    while stack:
        node, level = stack.pop()
        metrics.node_count += 1
        metrics.depth = max(metrics.depth, level)

        if isinstance(node, VariableReference):
            metrics.variable_references.add(node.name)
        elif isinstance(node, BinaryExpression):
            stack.extend([(node.left, level + 1), (node.right, level + 1)])
        elif isinstance(node, UnaryExpression):
            stack.append((node.operand, level + 1))
        elif isinstance(node, Ternary):
            stack.extend([
                (node.condition, level + 1),
                (node.if_true, level + 1),
                (node.if_false, level + 1),
            ])
    return metrics


def _find_cycles_dfs(graph: Dict[str, List[str]], start: str, visited: Set[str],
                     rec_stack: Set[str], path: List[str]) -> Optional[List[str]]:
    """DFS to find a cycle starting from a node."""
    visited.add(start)
    rec_stack.add(start)
    path.append(start)

    for neighbor in graph.get(start, []):
        if neighbor not in visited:
            cycle = _find_cycles_dfs(graph, neighbor, visited, rec_stack, path[:])
            if cycle:
                return cycle
        elif neighbor in rec_stack:
            cycle_start_idx = path.index(neighbor)
            return path[cycle_start_idx:] + [neighbor]

    rec_stack.remove(start)
    return None


def _topological_order(nodes: List[str], depends_on: Dict[str, List[str]]) -> Optional[List[str]]:
    """
    Kahn's algorithm over "variable -> variables it depends on" edges.

    Returns dependencies-first order (ties broken by declaration order),
    or None when the graph has a cycle.
    """
    dependents: Dict[str, List[str]] = defaultdict(list)
    pending = {node: 0 for node in nodes}
    for node in nodes:
        for dep in set(depends_on.get(node, [])):
            if dep in pending:
                pending[node] += 1
                dependents[dep].append(node)

    position = {node: i for i, node in enumerate(nodes)}
    ready = deque(node for node in nodes if pending[node] == 0)
    order = []
    while ready:
        node = ready.popleft()
        order.append(node)
        for child in sorted(dependents[node], key=position.get):
            pending[child] -= 1
            if pending[child] == 0:
                ready.append(child)

    return order if len(order) == len(nodes) else None


@dataclass
class FormulaReport:
    """Analysis report for one formula definition."""

    formula_id: str
    total_variables: int = 0
    total_conditions: int = 0

    # Token usage
    referenced_tokens: Set[str] = field(default_factory=set)
    undefined_tokens: Set[str] = field(default_factory=set)
    unused_variables: Set[str] = field(default_factory=set)

    # Condition dependencies: variable id -> ids it depends on
    dependencies: Dict[str, List[str]] = field(default_factory=dict)
    evaluation_order: List[str] = field(default_factory=list)
    has_cycles: bool = False
    cycle_example: Optional[List[str]] = None

    # Expression complexity
    expression_depth: int = 0
    expression_node_count: int = 0

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        if msg not in self.errors:
            self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)


def analyze_formula(formula: Formula, config: Optional[EngineConfig] = None) -> FormulaReport:
    """
    Perform load-time analysis of a Formula.

    Checks for:
    - Invalid or duplicate variable ids, colliding per-option tokens
    - Formula syntax errors and tokens that match no declared id
    - Conditions on undeclared, later-declared or self variables, and cycles
    - Unused variables and high expression complexity (warnings only)

    Returns a FormulaReport with metrics, errors and warnings.
    """
    config = config or DEFAULT_CONFIG
    report = FormulaReport(formula_id=formula.id)
    report.total_variables = len(formula.variables)

    # =========================================================================
    # 1. VARIABLE IDS
    # =========================================================================

    position: Dict[str, int] = {}
    for index, var in enumerate(formula.variables):
        if not isinstance(var.id, str) or not IDENTIFIER_RE.match(var.id):
            report.add_error(f"Invalid variable id {var.id!r}: must be a bare identifier")
        if var.id in position:
            report.add_error(f"Duplicate variable id '{var.id}'")
        else:
            position[var.id] = index

        if var.type in (VariableType.SLIDER, VariableType.STEPPER):
            if var.min_value is not None and var.max_value is not None and var.min_value > var.max_value:
                report.add_warning(f"Variable '{var.id}' has min {var.min_value} above max {var.max_value}")

    known_tokens: Dict[str, str] = {var_id: var_id for var_id in position}
    for var in formula.variables:
        for token in var.option_tokens():
            if token in known_tokens:
                report.add_error(
                    f"Option token '{token}' of variable '{var.id}' collides with '{known_tokens[token]}'"
                )
            else:
                known_tokens[token] = var.id

    # =========================================================================
    # 2. CONDITION DEPENDENCIES
    # =========================================================================

    for index, var in enumerate(formula.variables):
        if not var.has_conditions:
            continue
        deps: List[str] = []
        seen_condition_ids: Set[str] = set()
        for cond in var.conditional_logic.conditions:
            report.total_conditions += 1
            if cond.id in seen_condition_ids:
                report.add_warning(f"Variable '{var.id}' repeats condition id '{cond.id}'")
            seen_condition_ids.add(cond.id)

            dep = cond.depends_on_variable
            if dep == var.id:
                report.add_error(f"Variable '{var.id}' has a condition on itself")
            elif dep not in position:
                report.add_error(f"Variable '{var.id}' depends on undeclared variable '{dep}'")
            elif position[dep] > index:
                report.add_error(
                    f"Variable '{var.id}' depends on '{dep}', which is declared after it"
                )
            if dep not in deps:
                deps.append(dep)
        report.dependencies[var.id] = deps

    visited: Set[str] = set()
    for var_id in report.dependencies:
        if var_id not in visited:
            cycle = _find_cycles_dfs(report.dependencies, var_id, visited, set(), [])
            if cycle:
                report.has_cycles = True
                report.cycle_example = cycle
                break

    order = _topological_order(list(position), report.dependencies)
    if order is None or report.has_cycles:
        report.has_cycles = True
        example = " -> ".join(report.cycle_example) if report.cycle_example else "unknown"
        report.add_error(f"Condition dependency cycle: {example}")
    else:
        report.evaluation_order = order

    # =========================================================================
    # 3. FORMULA TEXT
    # =========================================================================

    try:
        expr = parse_formula(formula.formula, config)
    except FormulaError as e:
        report.add_error(f"Formula syntax error: {e}")
        expr = None

    if expr is not None:
        metrics = _analyze_expression(expr)
        report.referenced_tokens = metrics.variable_references
        report.expression_depth = metrics.depth
        report.expression_node_count = metrics.node_count
        report.undefined_tokens = metrics.variable_references - set(known_tokens)

        used = {known_tokens[t] for t in metrics.variable_references if t in known_tokens}
        # Variables that only drive visibility are not unused
        used.update(dep for deps in report.dependencies.values() for dep in deps)
        report.unused_variables = {
            var.id for var in formula.variables
            if var.id not in used and var.type is not VariableType.TEXT
        }

    # =========================================================================
    # 4. WARNING AND ERROR FLAGS
    # =========================================================================

    if report.undefined_tokens:
        report.add_error(
            f"Formula references undeclared tokens: {', '.join(sorted(report.undefined_tokens))}"
        )

    if report.unused_variables:
        report.add_warning(
            f"Variables not used by the formula: {', '.join(sorted(report.unused_variables))}"
        )

    if report.expression_depth > config.complexity_warning_depth:
        report.add_warning(f"High expression complexity: depth {report.expression_depth}")

    return report


def validate_formula(formula: Formula, config: Optional[EngineConfig] = None) -> FormulaReport:
    """
    Raise ValidationError unless the formula is structurally sound.

    Returns:
        The FormulaReport (carrying any warnings) when valid
    """
    report = analyze_formula(formula, config)
    if report.errors:
        raise ValidationError(
            f"Formula '{formula.id}' is invalid: {'; '.join(report.errors)}",
            report.errors,
        )
    return report
