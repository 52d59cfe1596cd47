"""
Built-in scenario catalogue.

These scenarios cover the reference stack: a VPC with public and private
subnets, an internet gateway and public route table, a PostgreSQL RDS
instance, a single-node Redis cluster, an ECS cluster with its security
groups and a CloudWatch log group. The expected values are the assumed
contract of that stack; override them with a scenario file when the
infrastructure differs.
"""

from typing import Any, Dict, List, Optional

from .scenarios import parse_scenarios
from .types import ScenarioDefinition


def _expect(path: str, value: Any = None, predicate: str = "equals") -> Dict[str, Any]:
    entry: Dict[str, Any] = {"path": path, "predicate": predicate}
    if predicate != "non_empty":
        entry["value"] = value
    return entry


def _non_empty(*paths: str) -> List[Dict[str, Any]]:
    return [_expect(path, predicate="non_empty") for path in paths]


def default_declaration(region: str = "us-east-1") -> Dict[str, Any]:
    variables = {"region": region}
    return {
        "scenarios": [
            {
                "name": "plan_validation",
                "mode": "plan",
                "variables": variables,
            },
            {
                "name": "resource_provisioning",
                "variables": variables,
                "checks": [
                    {
                        "resource": "outputs",
                        "expect": _non_empty(
                            "vpc_id",
                            "public_subnet_1_id",
                            "db_endpoint",
                            "redis_endpoint",
                            "ecs_cluster_name",
                        ),
                    },
                    {
                        "resource": "vpc",
                        "identifier_output": "vpc_id",
                        "expect": [_expect("vpc.cidr", "10.0.0.0/16")],
                    },
                    {
                        "resource": "subnet",
                        "identifier_output": "public_subnet_1_id",
                        "expect": [_expect("cidr", "10.0.1.0/24")],
                    },
                    {
                        "resource": "ecs_cluster",
                        "identifier_output": "ecs_cluster_name",
                        "expect": [_expect("status", "ACTIVE")],
                    },
                ],
            },
            {
                "name": "network_connectivity",
                "variables": variables,
                "checks": [
                    {
                        "resource": "internet_gateway",
                        "identifier_output": "vpc_id",
                        "expect": _non_empty("gateway_id"),
                    },
                    {
                        "resource": "route_table",
                        "identifier_output": "public_route_table_id",
                        # local route + default route through the internet gateway
                        "expect": [_expect("routes", 2, "length_equals")],
                    },
                ],
            },
            {
                "name": "security_groups",
                "variables": variables,
                "checks": [
                    {
                        "resource": "security_group",
                        "identifier_output": "rds_sg_id",
                        "expect": [
                            _expect("ip_permissions", 1, "length_equals"),
                            _expect("ip_permissions[0].from_port", 5432),
                        ],
                    },
                    {
                        "resource": "security_group",
                        "identifier_output": "ecs_sg_id",
                        "expect": [
                            _expect("ip_permissions", 1, "length_equals"),
                            _expect("ip_permissions[0].from_port", 3000),
                        ],
                    },
                ],
            },
            {
                "name": "failover",
                "variables": variables,
                "checks": [
                    {
                        "resource": "db_instance",
                        "identifier_output": "db_id",
                        "expect": [_expect("status", "available")],
                    },
                    {
                        "resource": "cache_cluster",
                        "identifier_output": "redis_id",
                        "expect": [_expect("status", "available")],
                    },
                ],
            },
            {
                "name": "resilience",
                "variables": variables,
                "checks": [
                    {
                        "resource": "outputs",
                        "expect": [_expect("private_subnet_ids", 2, "length_equals")],
                    },
                    {
                        "resource": "log_group",
                        "identifier_output": "log_group_name",
                        "expect": [_expect("retention_in_days", 30)],
                    },
                ],
            },
            {
                "name": "backup_restore",
                "variables": variables,
                "checks": [
                    {
                        "resource": "db_instance",
                        "identifier_output": "db_id",
                        "expect": [_expect("backup_retention_period", 0, "greater_than")],
                    },
                ],
            },
            {
                "name": "drift_detection",
                "mode": "drift",
                "variables": variables,
            },
        ]
    }


def default_scenarios(region: Optional[str] = None) -> List[ScenarioDefinition]:
    """Parsed form of the built-in catalogue."""
    return parse_scenarios(default_declaration(region or "us-east-1"))
