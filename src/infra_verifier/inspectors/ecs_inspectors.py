"""
ECS Resource Inspectors Module.

This module contains functions for reading ECS clusters.
"""

from ...errors import NotFoundError
from ...utils import inspector_error_handler, setup_logging
from ..types import ECSClient, EcsClusterSnapshot

logger = setup_logging()


@inspector_error_handler
def inspect_ecs_cluster(ecs_client: ECSClient, cluster_name: str) -> EcsClusterSnapshot:
    """
    Fetch one ECS cluster by name or ARN.

    ECS reports unknown clusters in the "failures" list instead of raising,
    and keeps deleted clusters visible with status INACTIVE.
    """
    response = ecs_client.describe_clusters(clusters=[cluster_name])
    clusters = response.get("clusters", [])
    if not clusters:
        reasons = [failure.get("reason", "") for failure in response.get("failures", [])]
        logger.info(f"ECS cluster {cluster_name} not found: {reasons}")
        raise NotFoundError(f"ECS cluster {cluster_name} not found")
    cluster = clusters[0]
    return EcsClusterSnapshot(
        cluster_name=cluster.get("clusterName", cluster_name),
        cluster_arn=cluster.get("clusterArn", ""),
        status=cluster.get("status", ""),
        active_services_count=int(cluster.get("activeServicesCount", 0)),
        running_tasks_count=int(cluster.get("runningTasksCount", 0)),
    )
