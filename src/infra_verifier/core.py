"""
Core verification orchestration logic.

This module contains the main entry point for a verification run: it loads
the scenarios, runs each one in its own isolated environment in parallel and
collects the results.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional

from ..config import Config
from ..utils import setup_logging
from .catalogue import default_scenarios
from .drift import DriftDetector
from .inspectors import ResourceInspector
from .report import ResultAggregator
from .runner import ScenarioRunner
from .scenarios import load_scenarios, select_scenarios
from .types import ScenarioDefinition, ScenarioMode

logger = setup_logging()


def build_runner(
    scenario: ScenarioDefinition,
    config: Config,
    aggregator: Optional[ResultAggregator] = None,
    cancel_event: Optional[threading.Event] = None,
    inspector: Optional[ResourceInspector] = None,
) -> ScenarioRunner:
    """Creates the runner matching the scenario mode, with the aggregator subscribed."""
    runner_class = DriftDetector if scenario.mode == ScenarioMode.DRIFT else ScenarioRunner
    listeners = [aggregator.record] if aggregator is not None else []
    return runner_class(
        scenario,
        config,
        inspector=inspector,
        listeners=listeners,
        cancel_event=cancel_event,
    )


def resolve_scenarios(config: Config, names: Optional[Iterable[str]] = None) -> List[ScenarioDefinition]:
    """Scenarios from the configured file, or the built-in catalogue, filtered by name."""
    if config.scenario_file:
        scenarios = load_scenarios(config.scenario_file)
    else:
        scenarios = default_scenarios(config.aws_region)
    return select_scenarios(scenarios, names)


def run_verification(
    config: Config,
    scenarios: Optional[List[ScenarioDefinition]] = None,
    cancel_event: Optional[threading.Event] = None,
) -> ResultAggregator:
    """
    Main entry point for a verification run.

    This function:
    - Resolves the scenarios to run (explicit list, scenario file or catalogue)
    - Runs every scenario in parallel, each against its own environment
    - Collects every result in a ResultAggregator, including failed ones

    Args:
        config: Validated configuration
        scenarios: Scenarios to run; defaults to resolve_scenarios(config)
        cancel_event: Set it to make every running scenario skip to teardown

    Returns:
        ResultAggregator holding one result per scenario
    """
    if scenarios is None:
        scenarios = resolve_scenarios(config)
    cancel_event = cancel_event or threading.Event()
    aggregator = ResultAggregator()
    # boto3 clients are thread-safe, so one inspector serves every scenario
    inspector = ResourceInspector(
        max_attempts=config.max_retries,
        timeout_seconds=config.timeout_seconds,
    )

    logger.info(
        f"Running {len(scenarios)} scenario(s) against {config.infra_dir} "
        f"with up to {config.max_parallel} in parallel"
    )
    runners = [
        build_runner(scenario, config, aggregator, cancel_event, inspector)
        for scenario in scenarios
    ]
    with ThreadPoolExecutor(
        max_workers=config.max_parallel, thread_name_prefix="scenario"
    ) as executor:
        futures = [executor.submit(runner.run) for runner in runners]
        for future in futures:
            # run() converts every failure into a result; this only re-raises
            # interpreter-level errors
            future.result()

    summary = aggregator.summary()
    logger.info(
        f"Verification completed: {summary['passed']}/{summary['total']} scenario(s) passed"
    )
    return aggregator
