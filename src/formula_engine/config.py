"""
Engine configuration.

Limits applied when parsing and checking formulas. Every entry point
takes an optional EngineConfig and falls back to DEFAULT_CONFIG.

Example YAML file:

    max_formula_length: 4000
    max_nesting_depth: 30
    complexity_warning_depth: 6
"""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Mapping

import yaml


@dataclass(frozen=True)
class EngineConfig:
    """
    Properties:
        max_formula_length: Longest accepted formula text, in characters
        max_nesting_depth: Deepest accepted parenthesis/sign/ternary nesting
        complexity_warning_depth: Expression depth above which the analyzer warns
    """

    max_formula_length: int = 2000
    max_nesting_depth: int = 50
    complexity_warning_depth: int = 5


DEFAULT_CONFIG = EngineConfig()


def config_from_dict(d: Mapping[str, Any] | None) -> EngineConfig:
    if not d:
        return DEFAULT_CONFIG
    known = {f.name for f in fields(EngineConfig)}
    unknown = set(d) - known
    if unknown:
        raise ValueError(f"Unknown engine config keys: {', '.join(sorted(unknown))}")
    values = {}
    for key, value in d.items():
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValueError(f"Engine config '{key}' must be a positive integer, got {value!r}")
        values[key] = value
    return replace(DEFAULT_CONFIG, **values)


def load_config(path: str) -> EngineConfig:
    with open(path) as fh:
        return config_from_dict(yaml.safe_load(fh))
