"""
Type definitions for the Terraform Infrastructure Verifier.

This module holds the data model shared by the provisioning driver, the
resource inspectors, the assertion engine and the scenario runner.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

# AWS Client Types - Using Any for flexibility with boto3 clients
#
# boto3 service clients are generated at runtime and ship no static stubs, so
# these aliases only document intent at call sites.
EC2Client = Any
RDSClient = Any
ElastiCacheClient = Any
CloudWatchLogsClient = Any
ECSClient = Any

OutputValue = Union[str, Tuple[str, ...]]
VariableValue = Union[str, int, float, bool, list, dict]


class LifecycleState(Enum):
    """Lifecycle of one provisioned environment."""

    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    PLANNED = "planned"
    APPLIED = "applied"
    DESTROYED = "destroyed"


class ScenarioState(Enum):
    """States of the scenario runner state machine."""

    PENDING = "pending"
    PROVISIONING = "provisioning"
    INSPECTING = "inspecting"
    ASSERTING = "asserting"
    TEARING_DOWN = "tearing_down"
    COMPLETED = "completed"


class ScenarioMode(Enum):
    """What a scenario does once the environment is up."""

    ASSERT = "assert"
    PLAN = "plan"
    DRIFT = "drift"


class OutputSet(Mapping):
    """
    Read-only mapping of Terraform output names to values.

    List outputs are stored as tuples of strings and every other value as a
    string, so an OutputSet cannot be changed once it has been read.
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None) -> None:
        normalised: Dict[str, OutputValue] = {}
        for name, value in (values or {}).items():
            normalised[name] = _normalise_output(value)
        self._values = MappingProxyType(normalised)

    def __getitem__(self, name: str) -> OutputValue:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"OutputSet({dict(self._values)!r})"


def _normalise_output(value: Any) -> OutputValue:
    if isinstance(value, (list, tuple)):
        return tuple(_stringify(item) for item in value)
    return _stringify(value)


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class EnvironmentConfig:
    """Input for one environment: Terraform directory and variables."""

    terraform_dir: str
    variables: Mapping[str, VariableValue]
    name: str = "environment"


@dataclass
class EnvironmentHandle:
    """
    One provisioned instance of the infrastructure.

    The handle is owned by a single scenario runner. Its working directory is
    a private copy of the configuration so Terraform state is never shared.
    """

    name: str
    source_dir: str
    working_dir: str
    variables: Mapping[str, VariableValue]
    state: LifecycleState = LifecycleState.UNINITIALIZED
    outputs: Optional[OutputSet] = None


@dataclass(frozen=True)
class ResourceChange:
    """One resource that Terraform would change."""

    address: str
    actions: Tuple[str, ...]


@dataclass(frozen=True)
class PlanResult:
    """Outcome of `terraform plan -detailed-exitcode`."""

    change_count: int
    exit_code: int
    changes: Tuple[ResourceChange, ...] = ()


# Resource snapshots. Each is built fresh per inspection call and never mutated.


@dataclass(frozen=True)
class VpcSnapshot:
    vpc_id: str
    cidr: str
    state: str
    is_default: bool
    cidr_blocks: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SubnetSnapshot:
    subnet_id: str
    vpc_id: str
    cidr: str
    availability_zone: str
    map_public_ip_on_launch: bool
    state: str


@dataclass(frozen=True)
class IpPermission:
    ip_protocol: str
    from_port: Optional[int]
    to_port: Optional[int]
    cidr_blocks: Tuple[str, ...] = ()
    source_security_group_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SecurityGroupSnapshot:
    group_id: str
    group_name: str
    vpc_id: str
    ip_permissions: Tuple[IpPermission, ...] = ()
    ip_permissions_egress: Tuple[IpPermission, ...] = ()


@dataclass(frozen=True)
class Route:
    destination_cidr: str
    gateway_id: str
    state: str


@dataclass(frozen=True)
class RouteTableSnapshot:
    route_table_id: str
    vpc_id: str
    routes: Tuple[Route, ...] = ()
    subnet_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class InternetGatewaySnapshot:
    gateway_id: str
    attached_vpc_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DbInstanceSnapshot:
    identifier: str
    status: str
    engine: str
    instance_class: str
    multi_az: bool
    backup_retention_period: int
    endpoint_address: str
    endpoint_port: Optional[int]


@dataclass(frozen=True)
class CacheClusterSnapshot:
    cluster_id: str
    status: str
    engine: str
    node_type: str
    num_cache_nodes: int
    endpoint_address: str


@dataclass(frozen=True)
class LogGroupSnapshot:
    name: str
    retention_in_days: Optional[int]
    arn: str


@dataclass(frozen=True)
class EcsClusterSnapshot:
    cluster_name: str
    cluster_arn: str
    status: str
    active_services_count: int
    running_tasks_count: int


Snapshot = Union[
    VpcSnapshot,
    SubnetSnapshot,
    SecurityGroupSnapshot,
    RouteTableSnapshot,
    InternetGatewaySnapshot,
    DbInstanceSnapshot,
    CacheClusterSnapshot,
    LogGroupSnapshot,
    EcsClusterSnapshot,
    OutputSet,
]


class Predicate(Enum):
    """Comparison applied by one expectation."""

    EQUALS = "equals"
    NON_EMPTY = "non_empty"
    GREATER_THAN = "greater_than"
    LENGTH_EQUALS = "length_equals"


@dataclass(frozen=True)
class Expectation:
    path: str
    predicate: Predicate = Predicate.EQUALS
    expected: Any = None


@dataclass(frozen=True)
class ResourceCheck:
    """Expectations against one resource, located through a Terraform output."""

    resource: str
    expectations: Tuple[Expectation, ...]
    identifier_output: Optional[str] = None


@dataclass(frozen=True)
class ScenarioDefinition:
    name: str
    variables: Mapping[str, VariableValue] = field(default_factory=dict)
    checks: Tuple[ResourceCheck, ...] = ()
    mode: ScenarioMode = ScenarioMode.ASSERT
    terraform_dir: Optional[str] = None


@dataclass(frozen=True)
class AssertionResult:
    resource: str
    path: str
    predicate: Predicate
    expected: Any
    observed: Any
    passed: bool
    message: str = ""


@dataclass(frozen=True)
class ScenarioResult:
    name: str
    passed: bool
    assertions: Tuple[AssertionResult, ...] = ()
    duration: float = 0.0
    error: Optional[str] = None
    drift: Tuple[ResourceChange, ...] = ()
    teardown_error: Optional[str] = None
    states: Tuple[ScenarioState, ...] = ()

    @property
    def failed_assertions(self) -> Tuple[AssertionResult, ...]:
        return tuple(a for a in self.assertions if not a.passed)
