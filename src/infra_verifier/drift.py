"""
Drift Detection Module.

A drift scenario applies the configuration and immediately plans again. A
clean apply plans to a no-op; anything else is reported as drift, one failed
assertion per changed resource address.
"""

from typing import List

from ..utils import setup_logging
from .runner import ScenarioRunner
from .types import AssertionResult, OutputSet, PlanResult, Predicate, ScenarioState

logger = setup_logging()


class DriftDetector(ScenarioRunner):
    """Scenario runner that re-plans after apply instead of inspecting resources."""

    def _verify(self, outputs: OutputSet) -> None:
        self._transition(ScenarioState.ASSERTING)
        plan = self.driver.plan(self.handle)
        self._drift = plan.changes
        self._assertions.extend(drift_assertions(plan))
        if plan.changes:
            addresses = ", ".join(change.address for change in plan.changes)
            logger.warning(f"[{self.scenario.name}] Drift detected in: {addresses}")


def drift_assertions(plan: PlanResult) -> List[AssertionResult]:
    """
    Converts a post-apply plan into assertion results.

    Args:
        plan: Result of planning right after apply

    Returns:
        A single passing change_count assertion when the plan is a no-op,
        otherwise one failed assertion per changed resource
    """
    if plan.changes:
        return [
            AssertionResult(
                resource="drift",
                path=change.address,
                predicate=Predicate.EQUALS,
                expected="no-op",
                observed="/".join(change.actions),
                passed=False,
                message=f"{change.address} would be {'/'.join(change.actions)} after apply",
            )
            for change in plan.changes
        ]
    if plan.exit_code != 0:
        # Terraform reports changes that touch no resource, e.g. outputs only
        return [
            AssertionResult(
                resource="drift",
                path="exit_code",
                predicate=Predicate.EQUALS,
                expected=0,
                observed=plan.exit_code,
                passed=False,
                message=f"plan exited with {plan.exit_code} but listed no resource changes",
            )
        ]
    return [
        AssertionResult(
            resource="drift",
            path="change_count",
            predicate=Predicate.EQUALS,
            expected=0,
            observed=plan.change_count,
            passed=True,
            message="plan after apply is a no-op",
        )
    ]
