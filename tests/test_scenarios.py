"""
Tests for scenario declaration parsing and the built-in catalogue.
"""

import json
import os
import tempfile
import unittest

from src.errors import ConfigurationError
from src.infra_verifier.catalogue import default_scenarios
from src.infra_verifier.scenarios import load_scenarios, parse_scenarios, select_scenarios
from src.infra_verifier.types import Predicate, ScenarioMode

DECLARATION = {
    "scenarios": [
        {
            "name": "security_groups",
            "variables": {"region": "eu-west-1"},
            "checks": [
                {
                    "resource": "security_group",
                    "identifier_output": "rds_sg_id",
                    "expect": [
                        {"path": "ip_permissions", "predicate": "length_equals", "value": 1},
                        {"path": "ip_permissions[0].from_port", "value": 5432},
                    ],
                }
            ],
        },
        {"name": "plan_only", "mode": "plan", "variables": {"region": "eu-west-1"}},
    ]
}


class TestParseScenarios(unittest.TestCase):
    """Tests for parse_scenarios()."""

    def test_parses_checks_and_defaults(self) -> None:
        scenarios = parse_scenarios(DECLARATION)
        self.assertEqual([s.name for s in scenarios], ["security_groups", "plan_only"])

        first = scenarios[0]
        self.assertEqual(first.mode, ScenarioMode.ASSERT)
        self.assertEqual(first.variables, {"region": "eu-west-1"})
        check = first.checks[0]
        self.assertEqual(check.identifier_output, "rds_sg_id")
        self.assertEqual(check.expectations[0].predicate, Predicate.LENGTH_EQUALS)
        self.assertEqual(check.expectations[1].predicate, Predicate.EQUALS)
        self.assertEqual(check.expectations[1].expected, 5432)

        self.assertEqual(scenarios[1].mode, ScenarioMode.PLAN)
        self.assertEqual(scenarios[1].checks, ())

    def test_missing_scenarios_list(self) -> None:
        with self.assertRaises(ConfigurationError):
            parse_scenarios({"tests": []})

    def test_duplicate_names(self) -> None:
        with self.assertRaises(ConfigurationError):
            parse_scenarios({"scenarios": [DECLARATION["scenarios"][1], DECLARATION["scenarios"][1]]})

    def test_unknown_mode(self) -> None:
        with self.assertRaises(ConfigurationError):
            parse_scenarios({"scenarios": [{"name": "x", "mode": "chaos"}]})

    def test_assert_mode_needs_checks(self) -> None:
        with self.assertRaises(ConfigurationError):
            parse_scenarios({"scenarios": [{"name": "x"}]})

    def test_unsupported_resource(self) -> None:
        raw = {"name": "x", "checks": [{"resource": "s3_bucket", "identifier_output": "b", "expect": []}]}
        with self.assertRaises(ConfigurationError):
            parse_scenarios({"scenarios": [raw]})

    def test_resource_check_needs_identifier_output(self) -> None:
        raw = {"name": "x", "checks": [{"resource": "vpc", "expect": [{"path": "cidr", "value": "10.0.0.0/16"}]}]}
        with self.assertRaises(ConfigurationError):
            parse_scenarios({"scenarios": [raw]})

    def test_value_required_unless_non_empty(self) -> None:
        missing_value = {"name": "x", "checks": [{"resource": "outputs", "expect": [{"path": "vpc_id"}]}]}
        with self.assertRaises(ConfigurationError):
            parse_scenarios({"scenarios": [missing_value]})

        non_empty = {
            "name": "y",
            "checks": [{"resource": "outputs", "expect": [{"path": "vpc_id", "predicate": "non_empty"}]}],
        }
        scenario = parse_scenarios({"scenarios": [non_empty]})[0]
        self.assertIsNone(scenario.checks[0].expectations[0].expected)

    def test_unknown_predicate(self) -> None:
        raw = {"name": "x", "checks": [{"resource": "outputs", "expect": [{"path": "a", "predicate": "regex", "value": "."}]}]}
        with self.assertRaises(ConfigurationError):
            parse_scenarios({"scenarios": [raw]})

    def test_length_equals_needs_an_integer(self) -> None:
        """Value types are checked before anything is provisioned."""
        for value in ("two", 2.5, -1, True, None):
            raw = {
                "name": "x",
                "checks": [{"resource": "outputs", "expect": [{"path": "ids", "predicate": "length_equals", "value": value}]}],
            }
            with self.subTest(value=value):
                with self.assertRaises(ConfigurationError):
                    parse_scenarios({"scenarios": [raw]})

    def test_greater_than_needs_a_number(self) -> None:
        for value in ("zero", None, False):
            raw = {
                "name": "x",
                "checks": [
                    {
                        "resource": "db_instance",
                        "identifier_output": "db_id",
                        "expect": [{"path": "backup_retention_period", "predicate": "greater_than", "value": value}],
                    }
                ],
            }
            with self.subTest(value=value):
                with self.assertRaises(ConfigurationError):
                    parse_scenarios({"scenarios": [raw]})

        raw["checks"][0]["expect"][0]["value"] = 0.5
        scenario = parse_scenarios({"scenarios": [raw]})[0]
        self.assertEqual(scenario.checks[0].expectations[0].expected, 0.5)

    def test_scenario_name_characters(self) -> None:
        for name in ("team/network", "..", "has space"):
            with self.subTest(name=name):
                with self.assertRaises(ConfigurationError):
                    parse_scenarios({"scenarios": [{"name": name, "mode": "plan"}]})
        self.assertEqual(parse_scenarios({"scenarios": [{"name": "net-1.a_b", "mode": "plan"}]})[0].name, "net-1.a_b")

    def test_check_without_expectations(self) -> None:
        raw = {"name": "x", "checks": [{"resource": "outputs", "expect": []}]}
        with self.assertRaises(ConfigurationError):
            parse_scenarios({"scenarios": [raw]})


class TestLoadAndSelect(unittest.TestCase):
    """Tests for loading scenario files and filtering by name."""

    def test_load_from_file(self) -> None:
        with tempfile.NamedTemporaryFile("w", suffix=".json", delete=False) as f:
            json.dump(DECLARATION, f)
        self.addCleanup(os.remove, f.name)
        self.assertEqual(len(load_scenarios(f.name)), 2)

    def test_load_invalid_json(self) -> None:
        with tempfile.NamedTemporaryFile("w", suffix=".json", delete=False) as f:
            f.write("{broken")
        self.addCleanup(os.remove, f.name)
        with self.assertRaises(ConfigurationError):
            load_scenarios(f.name)

    def test_load_missing_file(self) -> None:
        with self.assertRaises(ConfigurationError):
            load_scenarios("/does/not/exist.json")

    def test_select_keeps_declaration_order(self) -> None:
        scenarios = parse_scenarios(DECLARATION)
        selected = select_scenarios(scenarios, ["plan_only", "security_groups"])
        self.assertEqual([s.name for s in selected], ["security_groups", "plan_only"])
        self.assertEqual(select_scenarios(scenarios, None), scenarios)

    def test_select_unknown_name(self) -> None:
        with self.assertRaises(ConfigurationError):
            select_scenarios(parse_scenarios(DECLARATION), ["nope"])


class TestCatalogue(unittest.TestCase):
    """Tests for the built-in scenario catalogue."""

    def test_catalogue_covers_every_mode(self) -> None:
        scenarios = default_scenarios("eu-central-1")
        names = [s.name for s in scenarios]
        self.assertIn("resource_provisioning", names)
        self.assertIn("security_groups", names)
        self.assertEqual({s.mode for s in scenarios}, set(ScenarioMode))
        for scenario in scenarios:
            self.assertEqual(scenario.variables["region"], "eu-central-1")

    def test_security_group_rule_expectations(self) -> None:
        security = next(s for s in default_scenarios() if s.name == "security_groups")
        rds_check = next(c for c in security.checks if c.identifier_output == "rds_sg_id")
        paths = [(e.path, e.expected) for e in rds_check.expectations]
        self.assertIn(("ip_permissions", 1), paths)
        self.assertIn(("ip_permissions[0].from_port", 5432), paths)


if __name__ == "__main__":
    unittest.main()
