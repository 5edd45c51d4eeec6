"""
Tests for sgrlib.authorizer: range construction and the ingress/egress calls.

Covers:
- normalize_cidr / build_ip_ranges / build_ip_permission
- authorize_rule() against a stub client and against moto
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

sys.path.insert(0, str(Path(__file__).parent.parent.parent))
from sgrlib.authorizer import (
    AUTHORIZE_OPERATIONS,
    authorize_rule,
    build_ip_permission,
    build_ip_ranges,
    normalize_cidr,
)
from sgrlib.exceptions import RuleError
from sgrlib.rules_file import Direction

REGION = "us-east-1"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_aws_credentials(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)


def _vpc_group(ec2):
    vpc_id = ec2.create_vpc(CidrBlock="10.0.0.0/16")["Vpc"]["VpcId"]
    return ec2.create_security_group(
        GroupName="web", Description="web tier", VpcId=vpc_id
    )["GroupId"]


# ---------------------------------------------------------------------------
# Range construction
# ---------------------------------------------------------------------------


class TestNormalizeCidr:
    def test_bare_ip_gets_host_mask(self):
        assert normalize_cidr("1.2.3.4") == "1.2.3.4/32"

    def test_cidr_passes_through(self):
        assert normalize_cidr("5.6.7.0/24") == "5.6.7.0/24"
        assert normalize_cidr("1.2.3.4/32") == "1.2.3.4/32"


class TestBuildIpRanges:
    def test_documented_example(self):
        ranges = build_ip_ranges(["1.2.3.4", "5.6.7.0/24"], "web")
        assert ranges == [
            {"CidrIp": "1.2.3.4/32", "Description": "web"},
            {"CidrIp": "5.6.7.0/24", "Description": "web"},
        ]

    def test_single_source(self):
        assert build_ip_ranges(["8.8.8.8"], "dns") == [{"CidrIp": "8.8.8.8/32", "Description": "dns"}]

    def test_preserves_order(self):
        sources = ["3.3.3.3", "1.1.1.0/24", "2.2.2.2"]
        assert [r["CidrIp"] for r in build_ip_ranges(sources, "")] == [
            "3.3.3.3/32",
            "1.1.1.0/24",
            "2.2.2.2/32",
        ]

    def test_empty_sources_raise(self):
        with pytest.raises(RuleError):
            build_ip_ranges([], "web")


class TestBuildIpPermission:
    def test_single_port_range(self):
        ranges = [{"CidrIp": "1.2.3.4/32", "Description": "web"}]
        permission = build_ip_permission("tcp", 443, ranges)
        assert permission == {
            "IpProtocol": "tcp",
            "FromPort": 443,
            "ToPort": 443,
            "IpRanges": ranges,
        }


# ---------------------------------------------------------------------------
# authorize_rule: stub client
# ---------------------------------------------------------------------------


class TestAuthorizeRuleStub:
    def test_inbound_calls_ingress_once_with_all_ranges(self):
        client = MagicMock()
        authorize_rule(client, Direction.INBOUND, "sg-111", "tcp", "web", ["1.2.3.4", "5.6.7.0/24"], 443)

        client.authorize_security_group_ingress.assert_called_once_with(
            GroupId="sg-111",
            IpPermissions=[
                {
                    "IpProtocol": "tcp",
                    "FromPort": 443,
                    "ToPort": 443,
                    "IpRanges": [
                        {"CidrIp": "1.2.3.4/32", "Description": "web"},
                        {"CidrIp": "5.6.7.0/24", "Description": "web"},
                    ],
                }
            ],
        )
        client.authorize_security_group_egress.assert_not_called()

    def test_outbound_calls_egress(self):
        client = MagicMock()
        authorize_rule(client, Direction.OUTBOUND, "sg-222", "udp", "dns", ["8.8.8.8"], 53)

        client.authorize_security_group_egress.assert_called_once()
        client.authorize_security_group_ingress.assert_not_called()
        kwargs = client.authorize_security_group_egress.call_args[1]
        assert kwargs["GroupId"] == "sg-222"
        assert kwargs["IpPermissions"][0]["IpRanges"] == [{"CidrIp": "8.8.8.8/32", "Description": "dns"}]

    def test_accepts_direction_value_string(self):
        client = MagicMock()
        authorize_rule(client, "outbound", "sg-222", "tcp", "", ["1.1.1.1"], 22)
        client.authorize_security_group_egress.assert_called_once()

    def test_returns_api_response(self):
        client = MagicMock()
        client.authorize_security_group_ingress.return_value = {"Return": True}
        assert authorize_rule(client, Direction.INBOUND, "sg-1", "tcp", "", ["1.1.1.1"], 22) == {"Return": True}

    def test_empty_sources_make_no_call(self):
        client = MagicMock()
        with pytest.raises(RuleError):
            authorize_rule(client, Direction.INBOUND, "sg-1", "tcp", "", [], 22)
        client.authorize_security_group_ingress.assert_not_called()

    def test_operation_table_covers_both_directions(self):
        assert set(AUTHORIZE_OPERATIONS) == {Direction.INBOUND, Direction.OUTBOUND}


# ---------------------------------------------------------------------------
# authorize_rule: moto
# ---------------------------------------------------------------------------


@pytest.mark.usefixtures("fake_aws_credentials")
class TestAuthorizeRuleMoto:
    @mock_aws
    def test_ingress_rule_is_visible_on_group(self):
        ec2 = boto3.client("ec2", region_name=REGION)
        group_id = _vpc_group(ec2)

        authorize_rule(ec2, Direction.INBOUND, group_id, "tcp", "web", ["1.2.3.4", "5.6.7.0/24"], 443)

        group = ec2.describe_security_groups(GroupIds=[group_id])["SecurityGroups"][0]
        permissions = [p for p in group["IpPermissions"] if p.get("FromPort") == 443]
        assert len(permissions) == 1
        assert permissions[0]["ToPort"] == 443
        cidrs = sorted(r["CidrIp"] for r in permissions[0]["IpRanges"])
        assert cidrs == ["1.2.3.4/32", "5.6.7.0/24"]

    @mock_aws
    def test_egress_rule_is_visible_on_group(self):
        ec2 = boto3.client("ec2", region_name=REGION)
        group_id = _vpc_group(ec2)

        authorize_rule(ec2, Direction.OUTBOUND, group_id, "tcp", "db", ["10.1.0.0/16"], 5432)

        group = ec2.describe_security_groups(GroupIds=[group_id])["SecurityGroups"][0]
        ports = [p.get("FromPort") for p in group["IpPermissionsEgress"]]
        assert 5432 in ports

    @mock_aws
    def test_duplicate_rule_raises_client_error(self):
        ec2 = boto3.client("ec2", region_name=REGION)
        group_id = _vpc_group(ec2)
        authorize_rule(ec2, Direction.INBOUND, group_id, "tcp", "ssh", ["1.2.3.4"], 22)

        with pytest.raises(ClientError):
            authorize_rule(ec2, Direction.INBOUND, group_id, "tcp", "ssh", ["1.2.3.4"], 22)
