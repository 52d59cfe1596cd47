"""
VPC Resource Inspectors Module.

This module reads VPC-level networking resources: the VPC itself, subnets,
route tables and internet gateways.
"""

from ...errors import NotFoundError
from ...utils import inspector_error_handler, setup_logging
from ..types import (
    EC2Client,
    InternetGatewaySnapshot,
    Route,
    RouteTableSnapshot,
    SubnetSnapshot,
    VpcSnapshot,
)

logger = setup_logging()


@inspector_error_handler
def inspect_vpc(ec2_client: EC2Client, vpc_id: str) -> VpcSnapshot:
    """
    Fetch one VPC by ID.

    Args:
        ec2_client: Boto3 EC2 client
        vpc_id: VPC identifier, usually read from a Terraform output

    Returns:
        VpcSnapshot with the primary CIDR and all associated CIDR blocks
    """
    response = ec2_client.describe_vpcs(VpcIds=[vpc_id])
    vpcs = response.get("Vpcs", [])
    if not vpcs:
        raise NotFoundError(f"VPC {vpc_id} not found")
    vpc = vpcs[0]
    cidr_blocks = tuple(
        assoc.get("CidrBlock", "")
        for assoc in vpc.get("CidrBlockAssociationSet", [])
        if assoc.get("CidrBlock")
    )
    return VpcSnapshot(
        vpc_id=vpc.get("VpcId", vpc_id),
        cidr=vpc.get("CidrBlock", ""),
        state=vpc.get("State", ""),
        is_default=bool(vpc.get("IsDefault", False)),
        cidr_blocks=cidr_blocks,
    )


@inspector_error_handler
def inspect_subnet(ec2_client: EC2Client, subnet_id: str) -> SubnetSnapshot:
    """Fetch one subnet by ID."""
    response = ec2_client.describe_subnets(SubnetIds=[subnet_id])
    subnets = response.get("Subnets", [])
    if not subnets:
        raise NotFoundError(f"Subnet {subnet_id} not found")
    subnet = subnets[0]
    return SubnetSnapshot(
        subnet_id=subnet.get("SubnetId", subnet_id),
        vpc_id=subnet.get("VpcId", ""),
        cidr=subnet.get("CidrBlock", ""),
        availability_zone=subnet.get("AvailabilityZone", ""),
        map_public_ip_on_launch=bool(subnet.get("MapPublicIpOnLaunch", False)),
        state=subnet.get("State", ""),
    )


@inspector_error_handler
def inspect_route_table(ec2_client: EC2Client, route_table_id: str) -> RouteTableSnapshot:
    """
    Fetch one route table by ID.
    Routes keep the order AWS returns them in, so the local route comes first.
    """
    response = ec2_client.describe_route_tables(RouteTableIds=[route_table_id])
    tables = response.get("RouteTables", [])
    if not tables:
        raise NotFoundError(f"Route table {route_table_id} not found")
    table = tables[0]
    routes = tuple(
        Route(
            destination_cidr=route.get("DestinationCidrBlock")
            or route.get("DestinationIpv6CidrBlock")
            or route.get("DestinationPrefixListId", ""),
            gateway_id=route.get("GatewayId") or route.get("NatGatewayId", ""),
            state=route.get("State", ""),
        )
        for route in table.get("Routes", [])
    )
    subnet_ids = tuple(
        assoc["SubnetId"] for assoc in table.get("Associations", []) if assoc.get("SubnetId")
    )
    return RouteTableSnapshot(
        route_table_id=table.get("RouteTableId", route_table_id),
        vpc_id=table.get("VpcId", ""),
        routes=routes,
        subnet_ids=subnet_ids,
    )


@inspector_error_handler
def inspect_internet_gateway(ec2_client: EC2Client, vpc_id: str) -> InternetGatewaySnapshot:
    """
    Fetch the internet gateway attached to a VPC.
    Keyed by VPC ID because that is what the Terraform outputs expose.
    """
    response = ec2_client.describe_internet_gateways(
        Filters=[{"Name": "attachment.vpc-id", "Values": [vpc_id]}]
    )
    gateways = response.get("InternetGateways", [])
    if not gateways:
        raise NotFoundError(f"No internet gateway attached to VPC {vpc_id}")
    if len(gateways) > 1:
        logger.warning(f"VPC {vpc_id} has {len(gateways)} internet gateways; using the first")
    gateway = gateways[0]
    return InternetGatewaySnapshot(
        gateway_id=gateway.get("InternetGatewayId", ""),
        attached_vpc_ids=tuple(
            attachment.get("VpcId", "") for attachment in gateway.get("Attachments", [])
        ),
    )
