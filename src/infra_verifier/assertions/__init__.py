"""
Assertion Engine Package.

This package evaluates declarative expectations against resource snapshots.
"""

from .base import evaluate
from .paths import resolve_path
from .predicates import apply_predicate, parse_predicate

__all__ = [
    "apply_predicate",
    "evaluate",
    "parse_predicate",
    "resolve_path",
]
