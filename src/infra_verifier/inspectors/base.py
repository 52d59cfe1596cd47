"""
Base Resource Inspector Module.

This module holds the ResourceInspector, which creates boto3 clients per
service and region, routes each resource kind to its service-specific
inspector and applies the retry policy for transient AWS errors.
"""

import threading
from typing import Any, Callable, Dict, Optional, Tuple

import boto3
from botocore.config import Config as BotocoreConfig

from ...errors import ConfigurationError
from ...utils import retry_on_transient, setup_logging
from ..types import (
    CacheClusterSnapshot,
    DbInstanceSnapshot,
    EcsClusterSnapshot,
    InternetGatewaySnapshot,
    LogGroupSnapshot,
    RouteTableSnapshot,
    SecurityGroupSnapshot,
    Snapshot,
    SubnetSnapshot,
    VpcSnapshot,
)
from .cloudwatch_inspectors import inspect_log_group
from .ec2_inspectors import inspect_security_group
from .ecs_inspectors import inspect_ecs_cluster
from .elasticache_inspectors import inspect_cache_cluster
from .rds_inspectors import inspect_db_instance
from .vpc_inspectors import (
    inspect_internet_gateway,
    inspect_route_table,
    inspect_subnet,
    inspect_vpc,
)

logger = setup_logging()

# Resource kind -> (boto3 service name, inspector function)
RESOURCE_KINDS: Dict[str, Tuple[str, Callable[[Any, str], Snapshot]]] = {
    "vpc": ("ec2", inspect_vpc),
    "subnet": ("ec2", inspect_subnet),
    "security_group": ("ec2", inspect_security_group),
    "route_table": ("ec2", inspect_route_table),
    "internet_gateway": ("ec2", inspect_internet_gateway),
    "db_instance": ("rds", inspect_db_instance),
    "cache_cluster": ("elasticache", inspect_cache_cluster),
    "log_group": ("logs", inspect_log_group),
    "ecs_cluster": ("ecs", inspect_ecs_cluster),
}


class ResourceInspector:
    """
    Read-only access to live AWS resources.

    botocore's own retries are switched off so that the attempt bound and
    backoff configured here are the only retry policy in effect.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        timeout_seconds: float = 120.0,
        base_delay: float = 1.0,
        session: Optional[boto3.session.Session] = None,
    ) -> None:
        self.max_attempts = max_attempts
        self.timeout_seconds = timeout_seconds
        self.base_delay = base_delay
        self._session = session
        self._clients: Dict[Tuple[str, str], Any] = {}
        self._lock = threading.Lock()

    def client(self, service: str, region: str) -> Any:
        """Returns a cached boto3 client for the service and region."""
        key = (service, region)
        with self._lock:
            if key not in self._clients:
                client_config = BotocoreConfig(
                    region_name=region,
                    retries={"max_attempts": 1, "mode": "standard"},
                    connect_timeout=10,
                    read_timeout=30,
                )
                if self._session is not None:
                    self._clients[key] = self._session.client(service, config=client_config)
                else:
                    self._clients[key] = boto3.client(service, config=client_config)
            return self._clients[key]

    def inspect(self, kind: str, identifier: str, region: str) -> Snapshot:
        """
        Reads one resource of the given kind.

        Args:
            kind: Resource kind, one of RESOURCE_KINDS
            identifier: Resource ID or name, usually a Terraform output value
            region: AWS region the resource lives in

        Returns:
            Snapshot of the resource

        Raises:
            ConfigurationError: If the kind is not supported
            NotFoundError: If the identifier does not resolve
            TransientAPIError: If every retry attempt failed
        """
        if kind not in RESOURCE_KINDS:
            raise ConfigurationError(
                f"Unsupported resource kind '{kind}'. Supported: {sorted(RESOURCE_KINDS)}"
            )
        if not identifier:
            raise ConfigurationError(f"Empty identifier for {kind}")
        service, inspector = RESOURCE_KINDS[kind]
        client = self.client(service, region)
        logger.debug(f"Inspecting {kind} {identifier} in {region}")
        return retry_on_transient(
            lambda: inspector(client, identifier),
            max_attempts=self.max_attempts,
            timeout_seconds=self.timeout_seconds,
            base_delay=self.base_delay,
            logger=logger,
        )

    def get_vpc(self, vpc_id: str, region: str) -> VpcSnapshot:
        return self.inspect("vpc", vpc_id, region)

    def get_subnet(self, subnet_id: str, region: str) -> SubnetSnapshot:
        return self.inspect("subnet", subnet_id, region)

    def get_security_group(self, group_id: str, region: str) -> SecurityGroupSnapshot:
        return self.inspect("security_group", group_id, region)

    def get_route_table(self, route_table_id: str, region: str) -> RouteTableSnapshot:
        return self.inspect("route_table", route_table_id, region)

    def get_internet_gateway(self, vpc_id: str, region: str) -> InternetGatewaySnapshot:
        return self.inspect("internet_gateway", vpc_id, region)

    def get_db_instance(self, db_instance_id: str, region: str) -> DbInstanceSnapshot:
        return self.inspect("db_instance", db_instance_id, region)

    def get_cache_cluster(self, cluster_id: str, region: str) -> CacheClusterSnapshot:
        return self.inspect("cache_cluster", cluster_id, region)

    def get_log_group(self, log_group_name: str, region: str) -> LogGroupSnapshot:
        return self.inspect("log_group", log_group_name, region)

    def get_ecs_cluster(self, cluster_name: str, region: str) -> EcsClusterSnapshot:
        return self.inspect("ecs_cluster", cluster_name, region)
