"""
sgrlib.authorizer: build and authorize ingress/egress rules on a security group.

Range construction is shared by both directions; the only difference between
an inbound and an outbound rule is the EC2 API operation that is called.
"""

import logging
from typing import Any, Dict, List, Sequence

from sgrlib.exceptions import RuleError
from sgrlib.rules_file import Direction

logger = logging.getLogger(__name__)

# Direction -> boto3 EC2 client method
AUTHORIZE_OPERATIONS = {
    Direction.INBOUND: "authorize_security_group_ingress",
    Direction.OUTBOUND: "authorize_security_group_egress",
}


def normalize_cidr(source: str) -> str:
    """Return source as a CIDR, treating a bare address as a single host (/32)."""
    if "/" in source:
        return source
    return f"{source}/32"


def build_ip_ranges(sources: Sequence[str], description: str) -> List[Dict[str, str]]:
    """
    Build one IpRange entry per source, each carrying the rule description.

    Args:
        sources: IPs and/or CIDRs, in order
        description: Free-text description for every range

    Returns:
        list: [{'CidrIp': ..., 'Description': ...}, ...]

    Raises:
        RuleError: if sources is empty
    """
    if not sources:
        raise RuleError("rule has no source addresses")

    return [{"CidrIp": normalize_cidr(source), "Description": description} for source in sources]


def build_ip_permission(protocol: str, port: int, ip_ranges: List[Dict[str, str]]) -> Dict[str, Any]:
    """Build a single-port IpPermission covering all ranges."""
    return {
        "IpProtocol": protocol,
        "FromPort": port,
        "ToPort": port,
        "IpRanges": ip_ranges,
    }


def authorize_rule(
    ec2_client,
    direction: Direction,
    group_id: str,
    protocol: str,
    description: str,
    sources: Sequence[str],
    port: int,
) -> Dict[str, Any]:
    """
    Authorize one rule on a security group with a single API call.

    Args:
        ec2_client: boto3 EC2 client
        direction: Direction.INBOUND (ingress) or Direction.OUTBOUND (egress)
        group_id: Target security group ID
        protocol: IP protocol
        description: Description attached to each source range
        sources: IPs and/or CIDRs
        port: From-port and to-port

    Returns:
        dict: Raw API response

    Raises:
        RuleError: if sources is empty
        botocore.exceptions.ClientError: if AWS rejects the rule
            (duplicate, invalid CIDR, throttling, ...)
    """
    operation = getattr(ec2_client, AUTHORIZE_OPERATIONS[Direction(direction)])
    permission = build_ip_permission(protocol, port, build_ip_ranges(sources, description))

    logger.debug(
        "%s on %s: %s port %d from %s",
        AUTHORIZE_OPERATIONS[Direction(direction)],
        group_id,
        protocol,
        port,
        ", ".join(r["CidrIp"] for r in permission["IpRanges"]),
    )
    return operation(GroupId=group_id, IpPermissions=[permission])
