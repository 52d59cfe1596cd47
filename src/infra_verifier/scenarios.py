"""
Scenario Declaration Module.

Scenarios are declared as plain data, either in a JSON file or in the
built-in catalogue, and parsed here into immutable ScenarioDefinition objects.

JSON format:

    {
      "scenarios": [
        {
          "name": "security_groups",
          "mode": "assert",
          "variables": {"region": "us-east-1"},
          "checks": [
            {
              "resource": "security_group",
              "identifier_output": "rds_sg_id",
              "expect": [
                {"path": "ip_permissions", "predicate": "length_equals", "value": 1},
                {"path": "ip_permissions[0].from_port", "value": 5432}
              ]
            }
          ]
        }
      ]
    }
"""

import json
import re
from typing import Any, Dict, Iterable, List, Optional

from ..errors import ConfigurationError
from ..utils import setup_logging
from .assertions.predicates import parse_predicate
from .inspectors.base import RESOURCE_KINDS
from .types import (
    Expectation,
    Predicate,
    ResourceCheck,
    ScenarioDefinition,
    ScenarioMode,
)

logger = setup_logging()

OUTPUTS_RESOURCE = "outputs"

# Names end up in temp directory prefixes and log lines
SCENARIO_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


def parse_scenarios(data: Dict[str, Any]) -> List[ScenarioDefinition]:
    """
    Builds scenario definitions from parsed declaration data.

    Args:
        data: Mapping with a "scenarios" list

    Returns:
        List of ScenarioDefinition in declaration order

    Raises:
        ConfigurationError: If the declaration is malformed or names repeat
    """
    if not isinstance(data, dict) or not isinstance(data.get("scenarios"), list):
        raise ConfigurationError("Scenario declaration must contain a 'scenarios' list")

    scenarios = [_parse_scenario(raw) for raw in data["scenarios"]]
    names = [scenario.name for scenario in scenarios]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise ConfigurationError(f"Duplicate scenario names: {duplicates}")
    return scenarios


def load_scenarios(path: str) -> List[ScenarioDefinition]:
    """Reads and parses a JSON scenario file."""
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read scenario file {path}: {e}")
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in scenario file {path}: {e}")
    scenarios = parse_scenarios(data)
    logger.info(f"Loaded {len(scenarios)} scenario(s) from {path}")
    return scenarios


def select_scenarios(
    scenarios: Iterable[ScenarioDefinition], names: Optional[Iterable[str]] = None
) -> List[ScenarioDefinition]:
    """Keeps only the named scenarios, failing on unknown names."""
    scenarios = list(scenarios)
    if not names:
        return scenarios
    wanted = list(names)
    known = {scenario.name for scenario in scenarios}
    unknown = [name for name in wanted if name not in known]
    if unknown:
        raise ConfigurationError(f"Unknown scenario(s): {unknown}. Known: {sorted(known)}")
    return [scenario for scenario in scenarios if scenario.name in wanted]


def _parse_scenario(raw: Dict[str, Any]) -> ScenarioDefinition:
    if not isinstance(raw, dict) or not raw.get("name"):
        raise ConfigurationError(f"Scenario entry needs a name: {raw!r}")
    name = raw["name"]
    if not isinstance(name, str) or not SCENARIO_NAME_PATTERN.match(name):
        raise ConfigurationError(
            f"Scenario name {name!r} may only contain letters, digits, '_', '.' and '-'"
        )
    try:
        mode = ScenarioMode(raw.get("mode", ScenarioMode.ASSERT.value))
    except ValueError:
        raise ConfigurationError(f"Scenario {name}: unknown mode {raw.get('mode')!r}")

    variables = raw.get("variables", {})
    if not isinstance(variables, dict):
        raise ConfigurationError(f"Scenario {name}: 'variables' must be a mapping")

    checks = tuple(_parse_check(name, check) for check in raw.get("checks", []))
    if mode == ScenarioMode.ASSERT and not checks:
        raise ConfigurationError(f"Scenario {name}: assert mode needs at least one check")

    return ScenarioDefinition(
        name=name,
        variables=dict(variables),
        checks=checks,
        mode=mode,
        terraform_dir=raw.get("terraform_dir"),
    )


def _parse_check(scenario_name: str, raw: Dict[str, Any]) -> ResourceCheck:
    resource = raw.get("resource", "")
    if resource != OUTPUTS_RESOURCE and resource not in RESOURCE_KINDS:
        raise ConfigurationError(
            f"Scenario {scenario_name}: unsupported resource '{resource}'"
        )
    identifier_output = raw.get("identifier_output")
    if resource != OUTPUTS_RESOURCE and not identifier_output:
        raise ConfigurationError(
            f"Scenario {scenario_name}: check on '{resource}' needs 'identifier_output'"
        )

    expectations = []
    for entry in raw.get("expect", []):
        if not isinstance(entry, dict) or not entry.get("path"):
            raise ConfigurationError(f"Scenario {scenario_name}: expectation needs a path: {entry!r}")
        try:
            predicate = parse_predicate(entry.get("predicate", Predicate.EQUALS.value))
        except ValueError:
            raise ConfigurationError(
                f"Scenario {scenario_name}: unknown predicate {entry.get('predicate')!r}"
            )
        if predicate != Predicate.NON_EMPTY and "value" not in entry:
            raise ConfigurationError(
                f"Scenario {scenario_name}: '{entry.get('path')}' needs a 'value'"
            )
        _check_value_type(scenario_name, entry["path"], predicate, entry.get("value"))
        expectations.append(Expectation(entry["path"], predicate, entry.get("value")))
    if not expectations:
        raise ConfigurationError(f"Scenario {scenario_name}: check on '{resource}' has no expectations")

    return ResourceCheck(
        resource=resource,
        expectations=tuple(expectations),
        identifier_output=identifier_output,
    )


def _check_value_type(scenario_name: str, path: str, predicate: Predicate, value: Any) -> None:
    if isinstance(value, bool):
        numeric = False
    elif predicate == Predicate.LENGTH_EQUALS:
        numeric = isinstance(value, int) and value >= 0
    else:
        numeric = isinstance(value, (int, float))
    if predicate in (Predicate.LENGTH_EQUALS, Predicate.GREATER_THAN) and not numeric:
        kind = "a non-negative integer" if predicate == Predicate.LENGTH_EQUALS else "a number"
        raise ConfigurationError(
            f"Scenario {scenario_name}: '{path}' {predicate.value} needs {kind}, got {value!r}"
        )
