"""
Assertion Predicates Module.

This module maps each Predicate variant to the check it performs on an
observed value.
"""

from typing import Any, Callable, Dict, Tuple

from ..types import Predicate


def _equals(observed: Any, expected: Any) -> bool:
    if isinstance(observed, tuple) and isinstance(expected, list):
        expected = tuple(expected)
    return observed == expected


def _non_empty(observed: Any, expected: Any) -> bool:
    if observed is None:
        return False
    if isinstance(observed, (str, tuple, list, dict)):
        return len(observed) > 0
    return True


def _greater_than(observed: Any, expected: Any) -> bool:
    if observed is None or isinstance(observed, bool):
        return False
    try:
        return float(observed) > float(expected)
    except (TypeError, ValueError):
        return False


def _length_equals(observed: Any, expected: Any) -> bool:
    try:
        return len(observed) == int(expected)
    except TypeError:
        return False


PREDICATES: Dict[Predicate, Tuple[Callable[[Any, Any], bool], str]] = {
    Predicate.EQUALS: (_equals, "=="),
    Predicate.NON_EMPTY: (_non_empty, "is non-empty"),
    Predicate.GREATER_THAN: (_greater_than, ">"),
    Predicate.LENGTH_EQUALS: (_length_equals, "has length"),
}


def apply_predicate(predicate: Predicate, observed: Any, expected: Any) -> bool:
    """Returns True when the observed value satisfies the predicate."""
    check, _ = PREDICATES[predicate]
    return check(observed, expected)


def describe(predicate: Predicate, path: str, expected: Any) -> str:
    """Human-readable form of an expectation, e.g. "cidr == '10.0.0.0/16'"."""
    _, symbol = PREDICATES[predicate]
    if predicate == Predicate.NON_EMPTY:
        return f"{path} {symbol}"
    return f"{path} {symbol} {expected!r}"


def parse_predicate(name: str) -> Predicate:
    """Accepts the enum value ("length_equals") or a symbol alias ("==")."""
    aliases = {"==": Predicate.EQUALS, ">": Predicate.GREATER_THAN, "len": Predicate.LENGTH_EQUALS}
    if name in aliases:
        return aliases[name]
    return Predicate(name.lower())
