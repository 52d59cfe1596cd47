"""
Result Aggregation and Reporting Module.

The aggregator is registered as a completion listener on every scenario
runner. It only ever appends, so a recorded result is never changed.
"""

import threading
from datetime import datetime
from typing import Any, Dict, List

from .types import AssertionResult, ScenarioResult


class ResultAggregator:
    """Thread-safe, append-only collection of scenario results."""

    def __init__(self) -> None:
        self._results: List[ScenarioResult] = []
        self._lock = threading.Lock()
        self.started_at = datetime.now().isoformat()

    def record(self, result: ScenarioResult) -> None:
        with self._lock:
            self._results.append(result)

    @property
    def results(self) -> List[ScenarioResult]:
        with self._lock:
            return list(self._results)

    def summary(self) -> Dict[str, Any]:
        """
        Summarises every recorded result.

        Returns:
            {"total", "passed", "failed", "failures"}, where failures lists
            the failed scenarios in completion order with their failing
            assertions and any error
        """
        results = self.results
        failures = [
            {
                "scenario": result.name,
                "assertions": list(result.failed_assertions),
                "error": result.error or result.teardown_error,
            }
            for result in results
            if not result.passed
        ]
        return {
            "total": len(results),
            "passed": sum(1 for result in results if result.passed),
            "failed": len(failures),
            "failures": failures,
        }

    @property
    def all_passed(self) -> bool:
        return all(result.passed for result in self.results)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serialisable report of every scenario and the summary."""
        summary = self.summary()
        return {
            "all_passed": summary["failed"] == 0,
            "timestamp": self.started_at,
            "summary": {
                "total": summary["total"],
                "passed": summary["passed"],
                "failed": summary["failed"],
                "failures": [
                    {
                        "scenario": failure["scenario"],
                        "error": failure["error"],
                        "assertions": [_assertion_dict(a) for a in failure["assertions"]],
                    }
                    for failure in summary["failures"]
                ],
            },
            "scenarios": [
                {
                    "name": result.name,
                    "passed": result.passed,
                    "duration_seconds": round(result.duration, 2),
                    "error": result.error,
                    "teardown_error": result.teardown_error,
                    "drift": [
                        {"address": change.address, "actions": list(change.actions)}
                        for change in result.drift
                    ],
                    "states": [state.value for state in result.states],
                    "assertions": [_assertion_dict(a) for a in result.assertions],
                }
                for result in self.results
            ],
        }


def _assertion_dict(assertion: AssertionResult) -> Dict[str, Any]:
    return {
        "resource": assertion.resource,
        "path": assertion.path,
        "predicate": assertion.predicate.value,
        "expected": _plain(assertion.expected),
        "observed": _plain(assertion.observed),
        "passed": assertion.passed,
        "message": assertion.message,
    }


def _plain(value: Any) -> Any:
    if isinstance(value, tuple):
        return [_plain(item) for item in value]
    if hasattr(value, "__dataclass_fields__"):
        return {name: _plain(getattr(value, name)) for name in value.__dataclass_fields__}
    return value


def print_report(aggregator: ResultAggregator) -> None:
    """Print a human-readable verification report."""
    summary = aggregator.summary()
    print("\n" + "=" * 60)
    print("INFRASTRUCTURE VERIFICATION REPORT")
    print("=" * 60)
    print(f"\nScenarios: {summary['total']}  Passed: {summary['passed']}  Failed: {summary['failed']}")

    print(f"\n=== Scenarios ({summary['total']}) ===")
    for result in aggregator.results:
        marker = "✅" if result.passed else "❌"
        print(f"{marker} {result.name} ({len(result.assertions)} assertion(s), {result.duration:.1f}s)")

    print(f"\n=== Failures ({summary['failed']}) ===")
    if summary["failures"]:
        for i, failure in enumerate(summary["failures"], 1):
            print(f"{i}. Scenario: {failure['scenario']}")
            if failure["error"]:
                print(f"   Error: {failure['error']}")
            for assertion in failure["assertions"]:
                print(
                    f"     - {assertion.resource} {assertion.path}: "
                    f"Expected='{assertion.expected}' Observed='{assertion.observed}'"
                )
    else:
        print("No failures.")

    leaked = [result for result in aggregator.results if result.teardown_error]
    if leaked:
        print(f"\n=== Teardown Failures ({len(leaked)}) ===")
        for result in leaked:
            print(f"⚠️  {result.name}: {result.teardown_error}")
        print("\nNote: resources of these scenarios may still exist and need manual cleanup.")

    print("\n" + "=" * 60)
