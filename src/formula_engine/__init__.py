"""
Formula Engine Package

Deterministic pricing for calculator definitions: typed input variables,
conditional visibility rules and an arithmetic formula over variable ids.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - How inputs are rendered
    - Persistence of formulas or leads
    - Currency, tax or billing
    - Who authored the formula (UI or AI generator)

Every entry point is a pure function of its inputs.
Nothing here executes formula text as code.
"""

__version__ = "0.1.0"
