"""
RDS Resource Inspectors Module.

This module contains functions for reading RDS database instances.
"""

from ...errors import NotFoundError
from ...utils import inspector_error_handler
from ..types import DbInstanceSnapshot, RDSClient


@inspector_error_handler
def inspect_db_instance(rds_client: RDSClient, db_instance_id: str) -> DbInstanceSnapshot:
    """
    Fetch one RDS instance by identifier.

    Args:
        rds_client: Boto3 RDS client
        db_instance_id: DB instance identifier (not the ARN or endpoint)

    Returns:
        DbInstanceSnapshot including status and backup retention
    """
    response = rds_client.describe_db_instances(DBInstanceIdentifier=db_instance_id)
    instances = response.get("DBInstances", [])
    if not instances:
        raise NotFoundError(f"DB instance {db_instance_id} not found")
    instance = instances[0]
    endpoint = instance.get("Endpoint") or {}
    return DbInstanceSnapshot(
        identifier=instance.get("DBInstanceIdentifier", db_instance_id),
        status=instance.get("DBInstanceStatus", ""),
        engine=instance.get("Engine", ""),
        instance_class=instance.get("DBInstanceClass", ""),
        multi_az=bool(instance.get("MultiAZ", False)),
        backup_retention_period=int(instance.get("BackupRetentionPeriod", 0)),
        endpoint_address=endpoint.get("Address", ""),
        endpoint_port=endpoint.get("Port"),
    )
