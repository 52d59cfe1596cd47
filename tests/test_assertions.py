"""
Unit tests for the assertion engine: path resolution, predicates and
non-short-circuit evaluation.
"""

import unittest

from src.errors import SchemaMismatchError
from src.infra_verifier.assertions import evaluate, parse_predicate, resolve_path
from src.infra_verifier.types import (
    DbInstanceSnapshot,
    Expectation,
    IpPermission,
    OutputSet,
    Predicate,
    SecurityGroupSnapshot,
    VpcSnapshot,
)


def make_vpc(cidr: str) -> VpcSnapshot:
    return VpcSnapshot(vpc_id="vpc-123", cidr=cidr, state="available", is_default=False)


def make_security_group(*ports: int) -> SecurityGroupSnapshot:
    return SecurityGroupSnapshot(
        group_id="sg-123",
        group_name="rds",
        vpc_id="vpc-123",
        ip_permissions=tuple(
            IpPermission(ip_protocol="tcp", from_port=port, to_port=port, cidr_blocks=("10.0.0.0/16",))
            for port in ports
        ),
    )


class TestEvaluate(unittest.TestCase):
    """Tests for evaluate()."""

    def test_vpc_cidr_matches(self) -> None:
        """vpc.cidr == 10.0.0.0/16 passes against a matching snapshot."""
        result = evaluate(make_vpc("10.0.0.0/16"), [Expectation("vpc.cidr", Predicate.EQUALS, "10.0.0.0/16")])
        self.assertTrue(result.passed)
        self.assertEqual(len(result.assertions), 1)
        self.assertTrue(result.assertions[0].passed)

    def test_vpc_cidr_mismatch_records_observed_and_expected(self) -> None:
        """A mismatch fails with both values recorded."""
        result = evaluate(make_vpc("10.0.0.0/24"), [Expectation("vpc.cidr", Predicate.EQUALS, "10.0.0.0/16")])
        self.assertFalse(result.passed)
        assertion = result.assertions[0]
        self.assertFalse(assertion.passed)
        self.assertEqual(assertion.observed, "10.0.0.0/24")
        self.assertEqual(assertion.expected, "10.0.0.0/16")
        self.assertIn("10.0.0.0/24", assertion.message)

    def test_no_short_circuit(self) -> None:
        """Three expectations with the first failing still give three entries."""
        expectations = [
            Expectation("cidr", Predicate.EQUALS, "192.168.0.0/16"),
            Expectation("state", Predicate.EQUALS, "available"),
            Expectation("vpc_id", Predicate.NON_EMPTY),
        ]
        result = evaluate(make_vpc("10.0.0.0/16"), expectations)
        self.assertEqual(len(result.assertions), 3)
        self.assertEqual([a.passed for a in result.assertions], [False, True, True])
        self.assertFalse(result.passed)

    def test_security_group_length_and_port_both_recorded(self) -> None:
        """Two rules: the length check fails and the port check is still evaluated."""
        expectations = [
            Expectation("ip_permissions", Predicate.LENGTH_EQUALS, 1),
            Expectation("ip_permissions[0].from_port", Predicate.EQUALS, 5432),
        ]
        result = evaluate(make_security_group(5432, 6379), expectations)
        self.assertEqual(len(result.assertions), 2)
        self.assertFalse(result.assertions[0].passed)
        self.assertEqual(len(result.assertions[0].observed), 2)
        self.assertTrue(result.assertions[1].passed)
        self.assertFalse(result.passed)

    def test_index_out_of_range_fails_without_schema_error(self) -> None:
        """A valid path with a missing element is a failed assertion."""
        result = evaluate(
            make_security_group(),
            [Expectation("ip_permissions[0].from_port", Predicate.EQUALS, 5432)],
        )
        self.assertFalse(result.passed)
        self.assertIsNone(result.assertions[0].observed)
        self.assertIn("no such element", result.assertions[0].message)

    def test_unknown_field_raises_schema_mismatch(self) -> None:
        """A path that does not exist on the snapshot type is a programming error."""
        with self.assertRaises(SchemaMismatchError):
            evaluate(
                make_vpc("10.0.0.0/16"),
                [
                    Expectation("cidr", Predicate.EQUALS, "10.0.0.0/16"),
                    Expectation("cidr_range", Predicate.EQUALS, "10.0.0.0/16"),
                ],
            )

    def test_greater_than(self) -> None:
        """Backup retention must be positive."""
        snapshot = DbInstanceSnapshot(
            identifier="db",
            status="available",
            engine="postgres",
            instance_class="db.t3.micro",
            multi_az=False,
            backup_retention_period=7,
            endpoint_address="db.example.com",
            endpoint_port=5432,
        )
        result = evaluate(snapshot, [Expectation("backup_retention_period", Predicate.GREATER_THAN, 0)])
        self.assertTrue(result.passed)

    def test_output_set_expectations(self) -> None:
        """Outputs are evaluated like any other snapshot."""
        outputs = OutputSet({"vpc_id": "vpc-1", "db_endpoint": "", "private_subnet_ids": ["a", "b"]})
        result = evaluate(
            outputs,
            [
                Expectation("vpc_id", Predicate.NON_EMPTY),
                Expectation("db_endpoint", Predicate.NON_EMPTY),
                Expectation("private_subnet_ids", Predicate.LENGTH_EQUALS, 2),
            ],
        )
        self.assertEqual([a.passed for a in result.assertions], [True, False, True])
        self.assertEqual(result.assertions[0].resource, "outputs")

    def test_missing_output_raises_schema_mismatch(self) -> None:
        """An output name that Terraform does not declare is a schema error."""
        with self.assertRaises(SchemaMismatchError):
            evaluate(OutputSet({"vpc_id": "vpc-1"}), [Expectation("redis_endpoint", Predicate.NON_EMPTY)])


class TestPaths(unittest.TestCase):
    """Tests for field path resolution."""

    def test_nested_index(self) -> None:
        snapshot = make_security_group(22, 443)
        self.assertEqual(resolve_path(snapshot, "ip_permissions[1].to_port"), (443, True))

    def test_kind_prefix_is_optional(self) -> None:
        snapshot = make_security_group(22)
        self.assertEqual(
            resolve_path(snapshot, "security_group.group_id"),
            resolve_path(snapshot, "group_id"),
        )

    def test_malformed_path(self) -> None:
        with self.assertRaises(SchemaMismatchError):
            resolve_path(make_vpc("10.0.0.0/16"), "cidr..state")

    def test_index_into_scalar(self) -> None:
        with self.assertRaises(SchemaMismatchError):
            resolve_path(make_vpc("10.0.0.0/16"), "cidr[0]")


class TestPredicates(unittest.TestCase):
    """Tests for predicate parsing."""

    def test_parse_aliases(self) -> None:
        self.assertEqual(parse_predicate("=="), Predicate.EQUALS)
        self.assertEqual(parse_predicate("length_equals"), Predicate.LENGTH_EQUALS)
        self.assertEqual(parse_predicate("NON_EMPTY"), Predicate.NON_EMPTY)

    def test_parse_unknown(self) -> None:
        with self.assertRaises(ValueError):
            parse_predicate("matches")


if __name__ == "__main__":
    unittest.main()
