"""
ElastiCache Resource Inspectors Module.
"""

from ...errors import NotFoundError
from ...utils import inspector_error_handler
from ..types import CacheClusterSnapshot, ElastiCacheClient


@inspector_error_handler
def inspect_cache_cluster(
    elasticache_client: ElastiCacheClient, cluster_id: str
) -> CacheClusterSnapshot:
    """
    Fetch one cache cluster by ID, with node information so single-node
    Redis clusters expose their endpoint.
    """
    response = elasticache_client.describe_cache_clusters(
        CacheClusterId=cluster_id, ShowCacheNodeInfo=True
    )
    clusters = response.get("CacheClusters", [])
    if not clusters:
        raise NotFoundError(f"Cache cluster {cluster_id} not found")
    cluster = clusters[0]

    endpoint_address = ""
    configuration_endpoint = cluster.get("ConfigurationEndpoint") or {}
    if configuration_endpoint.get("Address"):
        endpoint_address = configuration_endpoint["Address"]
    else:
        for node in cluster.get("CacheNodes", []):
            address = (node.get("Endpoint") or {}).get("Address")
            if address:
                endpoint_address = address
                break

    return CacheClusterSnapshot(
        cluster_id=cluster.get("CacheClusterId", cluster_id),
        status=cluster.get("CacheClusterStatus", ""),
        engine=cluster.get("Engine", ""),
        node_type=cluster.get("CacheNodeType", ""),
        num_cache_nodes=int(cluster.get("NumCacheNodes", 0)),
        endpoint_address=endpoint_address,
    )
