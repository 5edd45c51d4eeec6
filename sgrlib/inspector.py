"""
sgrlib.inspector: fetch a security group and render its rules for the console.

Each rule entry (IPv4 range, IPv6 range, prefix list or referenced group) is
flattened onto its own row, inbound rules first.
"""

import logging
from typing import Any, Dict, List

import pandas as pd

from sgrlib.exceptions import GroupNotFoundError

logger = logging.getLogger(__name__)

RULE_COLUMNS = ["Direction", "Protocol", "Ports", "Source/Destination", "Description"]


def describe_group(ec2_client, group_id: str) -> Dict[str, Any]:
    """
    Fetch the current description of a security group.

    Raises:
        GroupNotFoundError: if the response holds no group
        botocore.exceptions.ClientError: if the API call fails
    """
    response = ec2_client.describe_security_groups(GroupIds=[group_id])
    groups = response.get("SecurityGroups", [])
    if not groups:
        raise GroupNotFoundError(f"security group {group_id} not found")
    return groups[0]


def format_port_range(protocol: str, from_port, to_port) -> str:
    if protocol == "-1" or from_port is None or to_port is None:
        return "All"
    if from_port == to_port:
        return str(from_port)
    return f"{from_port}-{to_port}"


def _permission_rows(permission: Dict[str, Any], direction: str) -> List[Dict[str, Any]]:
    protocol = permission.get("IpProtocol", "-1")
    ports = format_port_range(protocol, permission.get("FromPort"), permission.get("ToPort"))
    protocol_label = "All" if protocol == "-1" else protocol

    rows = []
    peers = (
        [(r.get("CidrIp", ""), r.get("Description", "")) for r in permission.get("IpRanges", [])]
        + [(r.get("CidrIpv6", ""), r.get("Description", "")) for r in permission.get("Ipv6Ranges", [])]
        + [
            (f"pl:{p.get('PrefixListId', 'Unknown')}", p.get("Description", ""))
            for p in permission.get("PrefixListIds", [])
        ]
        + [
            (f"sg:{g.get('GroupId', g.get('GroupName', 'Unknown'))}", g.get("Description", ""))
            for g in permission.get("UserIdGroupPairs", [])
        ]
    )
    for peer, description in peers:
        rows.append(
            {
                "Direction": direction,
                "Protocol": protocol_label,
                "Ports": ports,
                "Source/Destination": peer,
                "Description": description,
            }
        )
    return rows


def group_rules_table(group: Dict[str, Any]) -> pd.DataFrame:
    """
    Flatten a security group's ingress and egress permissions into a table.

    Returns:
        DataFrame with RULE_COLUMNS, one row per rule entry
    """
    rows: List[Dict[str, Any]] = []
    for permission in group.get("IpPermissions", []):
        rows.extend(_permission_rows(permission, "Inbound"))
    for permission in group.get("IpPermissionsEgress", []):
        rows.extend(_permission_rows(permission, "Outbound"))
    return pd.DataFrame(rows, columns=RULE_COLUMNS)


def format_group_rules(group: Dict[str, Any]) -> str:
    """Render a security group snapshot as printable text."""
    header = f"Security group {group.get('GroupId', 'unknown')} ({group.get('GroupName', 'Unnamed')})"
    if group.get("VpcId"):
        header += f" in {group['VpcId']}"

    table = group_rules_table(group)
    if table.empty:
        return f"{header}\nNo rules defined"
    return f"{header}\n{table.to_string(index=False)}"
