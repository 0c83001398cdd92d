"""
Service Aggregator

Prices each selected service independently and sums the results.

For every ServiceSelection:
    1. visibility.resolve()        -> visible ids + effective values
    2. normalizer.build_contributions()
    3. evaluator.evaluate()        -> price

Selections never share state: each one is resolved against its own
values only, so a hidden-variable default of one service cannot leak
into another service's price.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from formula_engine.config import EngineConfig
from formula_engine.evaluator import evaluate
from formula_engine.model import ServiceSelection
from formula_engine.normalizer import build_contributions
from formula_engine.visibility import resolve

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceQuote:
    """Price of one selection, with what went into it."""

    formula_id: str
    price: int
    visible: FrozenSet[str] = frozenset()
    contributions: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"formulaId": self.formula_id, "price": self.price}


@dataclass(frozen=True)
class AggregateResult:
    per_service: List[ServiceQuote] = field(default_factory=list)
    total: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "perService": [quote.to_dict() for quote in self.per_service],
            "total": self.total,
        }


def price_selection(selection: ServiceSelection, config: Optional[EngineConfig] = None) -> ServiceQuote:
    """
    Price a single selection.

    Raises:
        FormulaError: If the formula cannot be evaluated (only possible
            for formulas that skipped validation)
    """
    formula = selection.formula
    visibility = resolve(formula.variables, selection.values)
    contributions = build_contributions(formula.variables, visibility.effective)
    price = evaluate(formula.formula, contributions, config)
    return ServiceQuote(
        formula_id=formula.id,
        price=price,
        visible=visibility.visible,
        contributions=contributions,
    )


def aggregate(selections: Iterable[ServiceSelection],
              config: Optional[EngineConfig] = None) -> AggregateResult:
    """
    Price every selection and total them.

    Returns:
        AggregateResult with one ServiceQuote per selection, in input order
    """
    quotes = [price_selection(selection, config) for selection in selections]
    total = sum(quote.price for quote in quotes)
    logger.debug("Aggregated %d services, total %s", len(quotes), total)
    return AggregateResult(per_service=quotes, total=total)
