"""
Scenario Runner Module.

This module runs one verification scenario through its state machine:

    pending -> provisioning -> inspecting -> asserting -> tearing_down -> completed

Teardown sits in a finally block that is entered before the first Terraform
call, so the environment is destroyed on success, on assertion failure, on
unexpected errors and on cancellation. Errors never escape run(): they are
converted into a failed ScenarioResult so sibling scenarios keep running.
"""

import threading
import time
from typing import Callable, Iterable, List, Optional, Tuple

from ..config import Config
from ..errors import (
    NotFoundError,
    ScenarioCancelled,
    SchemaMismatchError,
    VerificationError,
)
from ..utils import setup_logging
from .assertions import evaluate
from .inspectors import ResourceInspector
from .provisioning import TerraformDriver
from .scenarios import OUTPUTS_RESOURCE
from .types import (
    AssertionResult,
    EnvironmentConfig,
    EnvironmentHandle,
    OutputSet,
    ResourceChange,
    ResourceCheck,
    ScenarioDefinition,
    ScenarioMode,
    ScenarioResult,
    ScenarioState,
)

logger = setup_logging()

CompletionListener = Callable[[ScenarioResult], None]


class ScenarioRunner:
    """Runs one scenario. A runner is single-use: create one per scenario run."""

    def __init__(
        self,
        scenario: ScenarioDefinition,
        config: Config,
        driver: Optional[TerraformDriver] = None,
        inspector: Optional[ResourceInspector] = None,
        listeners: Optional[Iterable[CompletionListener]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self.scenario = scenario
        self.config = config
        self.driver = driver or TerraformDriver(
            terraform_binary=config.terraform_binary,
            command_timeout_seconds=config.command_timeout_seconds,
            unique_id_variable=config.unique_id_variable,
        )
        self.inspector = inspector or ResourceInspector(
            max_attempts=config.max_retries,
            timeout_seconds=config.timeout_seconds,
        )
        self.listeners: List[CompletionListener] = list(listeners or [])
        self.cancel_event = cancel_event or threading.Event()
        self.state = ScenarioState.PENDING
        self.handle: Optional[EnvironmentHandle] = None
        self._states: List[ScenarioState] = [ScenarioState.PENDING]
        self._assertions: List[AssertionResult] = []
        self._drift: Tuple[ResourceChange, ...] = ()

    @property
    def region(self) -> str:
        region = self.scenario.variables.get("region")
        return str(region) if region else self.config.aws_region

    def run(self) -> ScenarioResult:
        """
        Executes the scenario and always tears the environment down.

        Returns:
            ScenarioResult; a provisioning failure yields zero assertions and
            the error attached
        """
        started = time.monotonic()
        error: Optional[str] = None
        teardown_error: Optional[str] = None
        logger.info(f"[{self.scenario.name}] Starting scenario ({self.scenario.mode.value})")

        try:
            self._check_cancelled()
            self._transition(ScenarioState.PROVISIONING)
            env_config = EnvironmentConfig(
                terraform_dir=self.scenario.terraform_dir or self.config.infra_dir,
                variables=self.scenario.variables,
                name=self.scenario.name,
            )
            self.handle = self.driver.init(env_config)
            self._check_cancelled()

            if self.scenario.mode == ScenarioMode.PLAN:
                plan = self.driver.plan(self.handle)
                logger.info(
                    f"[{self.scenario.name}] Plan succeeded with {plan.change_count} change(s)"
                )
            else:
                outputs = self.driver.apply(self.handle)
                self._check_cancelled()
                self._verify(outputs)
        except ScenarioCancelled as e:
            logger.warning(f"[{self.scenario.name}] Cancelled during {self.state.value}")
            error = f"{type(e).__name__}: {e}"
        except VerificationError as e:
            logger.error(f"[{self.scenario.name}] {type(e).__name__} during {self.state.value}: {e}")
            error = f"{type(e).__name__}: {e}"
        except Exception as e:
            logger.exception(f"[{self.scenario.name}] Unexpected error during {self.state.value}")
            error = f"{type(e).__name__}: {e}"
        finally:
            self._transition(ScenarioState.TEARING_DOWN)
            teardown_error = self._teardown()

        self._transition(ScenarioState.COMPLETED)
        passed = (
            error is None
            and teardown_error is None
            and all(assertion.passed for assertion in self._assertions)
        )
        result = ScenarioResult(
            name=self.scenario.name,
            passed=passed,
            assertions=tuple(self._assertions),
            duration=time.monotonic() - started,
            error=error,
            drift=self._drift,
            teardown_error=teardown_error,
            states=tuple(self._states),
        )
        logger.info(
            f"[{self.scenario.name}] {'PASSED' if passed else 'FAILED'} "
            f"in {result.duration:.1f}s ({len(result.failed_assertions)} failed assertion(s))"
        )
        for listener in self.listeners:
            listener(result)
        return result

    def _verify(self, outputs: OutputSet) -> None:
        """Inspects every checked resource, then evaluates all expectations."""
        self._transition(ScenarioState.INSPECTING)
        snapshots = []
        for check in self.scenario.checks:
            self._check_cancelled()
            if check.resource == OUTPUTS_RESOURCE:
                snapshots.append((check, OUTPUTS_RESOURCE, outputs, None))
                continue
            identifier = self._identifier(outputs, check)
            label = f"{check.resource}:{identifier}" if identifier else check.resource
            if not identifier:
                snapshots.append((check, label, None, f"output '{check.identifier_output}' is empty"))
                continue
            try:
                snapshot = self.inspector.inspect(check.resource, identifier, self.region)
            except NotFoundError as e:
                snapshots.append((check, label, None, str(e)))
                continue
            snapshots.append((check, label, snapshot, None))

        self._transition(ScenarioState.ASSERTING)
        for check, label, snapshot, missing in snapshots:
            if missing is not None:
                self._assertions.extend(_not_found(check, label, missing))
                continue
            result = evaluate(snapshot, check.expectations, resource=label, scenario_name=self.scenario.name)
            self._assertions.extend(result.assertions)

    def _identifier(self, outputs: OutputSet, check: ResourceCheck) -> str:
        name = check.identifier_output
        if name not in outputs:
            raise SchemaMismatchError(
                f"Terraform output '{name}' does not exist; available: {sorted(outputs)}"
            )
        value = outputs[name]
        if isinstance(value, tuple):
            raise SchemaMismatchError(f"Terraform output '{name}' is a list, expected a single identifier")
        return value

    def _teardown(self) -> Optional[str]:
        if self.handle is None:
            return None
        try:
            self.driver.destroy(self.handle)
        except VerificationError as e:
            logger.error(
                f"[{self.scenario.name}] Teardown failed; resources may be left behind "
                f"in {self.handle.working_dir}: {e}"
            )
            return f"{type(e).__name__}: {e}"
        return None

    def _check_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise ScenarioCancelled(f"Scenario {self.scenario.name} cancelled")

    def _transition(self, state: ScenarioState) -> None:
        logger.debug(f"[{self.scenario.name}] {self.state.value} -> {state.value}")
        self.state = state
        self._states.append(state)


def _not_found(check: ResourceCheck, label: str, reason: str) -> List[AssertionResult]:
    return [
        AssertionResult(
            resource=label,
            path=expectation.path,
            predicate=expectation.predicate,
            expected=expectation.expected,
            observed=None,
            passed=False,
            message=reason,
        )
        for expectation in check.expectations
    ]
