"""
EC2 Security Group Inspectors Module.

This module reads security groups and their ingress and egress rules.
"""

from typing import Any, Dict, List, Tuple

from ...errors import NotFoundError
from ...utils import inspector_error_handler
from ..types import EC2Client, IpPermission, SecurityGroupSnapshot


@inspector_error_handler
def inspect_security_group(ec2_client: EC2Client, group_id: str) -> SecurityGroupSnapshot:
    """
    Fetch one security group by ID.

    Args:
        ec2_client: Boto3 EC2 client
        group_id: Security group identifier

    Returns:
        SecurityGroupSnapshot with rules in the order AWS reports them
    """
    response = ec2_client.describe_security_groups(GroupIds=[group_id])
    groups = response.get("SecurityGroups", [])
    if not groups:
        raise NotFoundError(f"Security group {group_id} not found")
    group = groups[0]
    return SecurityGroupSnapshot(
        group_id=group.get("GroupId", group_id),
        group_name=group.get("GroupName", ""),
        vpc_id=group.get("VpcId", ""),
        ip_permissions=_to_permissions(group.get("IpPermissions", [])),
        ip_permissions_egress=_to_permissions(group.get("IpPermissionsEgress", [])),
    )


def _to_permissions(raw_permissions: List[Dict[str, Any]]) -> Tuple[IpPermission, ...]:
    permissions = []
    for permission in raw_permissions:
        permissions.append(
            IpPermission(
                ip_protocol=str(permission.get("IpProtocol", "")),
                from_port=permission.get("FromPort"),
                to_port=permission.get("ToPort"),
                cidr_blocks=tuple(
                    ip_range.get("CidrIp", "") for ip_range in permission.get("IpRanges", [])
                ),
                source_security_group_ids=tuple(
                    pair.get("GroupId", "") for pair in permission.get("UserIdGroupPairs", [])
                ),
            )
        )
    return tuple(permissions)
