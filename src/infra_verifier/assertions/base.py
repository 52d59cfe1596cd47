"""
Assertion Engine Module.

This module evaluates a set of expectations against one resource snapshot.
Every expectation is evaluated, even after a failure, so the result always
carries the complete diff.
"""

import time
from typing import Any, Iterable, List

from ...utils import setup_logging
from ..types import AssertionResult, Expectation, ScenarioResult
from .paths import resolve_path, snapshot_kind
from .predicates import apply_predicate, describe

logger = setup_logging()


def evaluate(
    snapshot: Any,
    expectations: Iterable[Expectation],
    resource: str = "",
    scenario_name: str = "",
) -> ScenarioResult:
    """
    Evaluates expectations against a snapshot.

    Args:
        snapshot: Resource snapshot or OutputSet
        expectations: Expectations to check, in declaration order
        resource: Label used in assertion results; defaults to the snapshot kind
        scenario_name: Name carried on the returned result

    Returns:
        ScenarioResult that passes iff every assertion passed

    Raises:
        SchemaMismatchError: If any expectation path does not exist on the
            snapshot type. Paths are validated before anything is evaluated.
    """
    started = time.monotonic()
    label = resource or snapshot_kind(snapshot)
    expectations = list(expectations)

    resolved = [resolve_path(snapshot, expectation.path) for expectation in expectations]

    assertions: List[AssertionResult] = []
    for expectation, (observed, found) in zip(expectations, resolved):
        passed = found and apply_predicate(expectation.predicate, observed, expectation.expected)
        if passed:
            message = describe(expectation.predicate, expectation.path, expectation.expected)
        elif not found:
            message = f"{expectation.path}: no such element"
        else:
            message = (
                f"expected {describe(expectation.predicate, expectation.path, expectation.expected)}, "
                f"observed {observed!r}"
            )
        assertions.append(
            AssertionResult(
                resource=label,
                path=expectation.path,
                predicate=expectation.predicate,
                expected=expectation.expected,
                observed=observed,
                passed=passed,
                message=message,
            )
        )

    failed = sum(1 for assertion in assertions if not assertion.passed)
    if failed:
        logger.info(f"{label}: {failed} of {len(assertions)} assertion(s) failed")
    return ScenarioResult(
        name=scenario_name or label,
        passed=failed == 0,
        assertions=tuple(assertions),
        duration=time.monotonic() - started,
    )
