"""
sgrlib.resolver: map a private IP to the security group of its network interface.
"""

import logging
from typing import Optional, Tuple

from sgrlib.exceptions import GroupResolutionError

logger = logging.getLogger(__name__)


def resolve_group_id(ec2_client, ip: str) -> str:
    """
    Find the security group attached to the network interface holding an IP.

    The first matching interface and its first attached group win.

    Args:
        ec2_client: boto3 EC2 client
        ip: Private IPv4 address

    Returns:
        str: Security group ID

    Raises:
        GroupResolutionError: if no interface matches or it has no groups
        botocore.exceptions.ClientError: if the API call fails
    """
    response = ec2_client.describe_network_interfaces(
        Filters=[{"Name": "addresses.private-ip-address", "Values": [ip]}]
    )

    interfaces = response.get("NetworkInterfaces", [])
    if not interfaces:
        raise GroupResolutionError(f"no network interface found for IP {ip}")

    interface = interfaces[0]
    groups = interface.get("Groups", [])
    if not groups:
        raise GroupResolutionError(
            f"no security group attached to network interface "
            f"{interface.get('NetworkInterfaceId', 'unknown')} for IP {ip}"
        )

    group_id = groups[0]["GroupId"]
    logger.debug("Resolved %s -> %s (%s)", ip, group_id, interface.get("NetworkInterfaceId"))
    return group_id


class ConsecutiveGroupResolver:
    """
    Resolve destinations in row order, reusing the previous row's answer.

    A lookup happens only when the destination differs from the one asked
    for immediately before. Interleaved destinations (A, B, A) are looked up
    each time they change. Failures are reused the same way as successes.
    """

    def __init__(self, ec2_client):
        self.ec2_client = ec2_client
        self.lookups = 0
        self._previous: Optional[str] = None
        self._answer: Tuple[Optional[str], Optional[Exception]] = (None, None)

    def resolve(self, destination: str) -> str:
        if self.lookups == 0 or destination != self._previous:
            self._previous = destination
            self.lookups += 1
            try:
                self._answer = (resolve_group_id(self.ec2_client, destination), None)
            except Exception as e:
                self._answer = (None, e)

        group_id, error = self._answer
        if error is not None:
            raise error
        return group_id
