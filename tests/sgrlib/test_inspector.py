"""
Unit tests for sgrlib.inspector: group lookup and rule table rendering.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pandas as pd
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))
from sgrlib.exceptions import GroupNotFoundError
from sgrlib.inspector import (
    RULE_COLUMNS,
    describe_group,
    format_group_rules,
    format_port_range,
    group_rules_table,
)

GROUP = {
    "GroupId": "sg-111",
    "GroupName": "web",
    "VpcId": "vpc-1",
    "IpPermissions": [
        {
            "IpProtocol": "tcp",
            "FromPort": 443,
            "ToPort": 443,
            "IpRanges": [
                {"CidrIp": "1.2.3.4/32", "Description": "web"},
                {"CidrIp": "5.6.7.0/24", "Description": "web"},
            ],
            "Ipv6Ranges": [{"CidrIpv6": "::/0"}],
            "UserIdGroupPairs": [{"GroupId": "sg-999", "Description": "lb"}],
        }
    ],
    "IpPermissionsEgress": [
        {"IpProtocol": "-1", "IpRanges": [{"CidrIp": "0.0.0.0/0"}]},
    ],
}


# ---------------------------------------------------------------------------
# describe_group
# ---------------------------------------------------------------------------


class TestDescribeGroup:
    def test_returns_group(self):
        client = MagicMock()
        client.describe_security_groups.return_value = {"SecurityGroups": [GROUP]}

        assert describe_group(client, "sg-111") is GROUP
        client.describe_security_groups.assert_called_once_with(GroupIds=["sg-111"])

    def test_empty_response_raises(self):
        client = MagicMock()
        client.describe_security_groups.return_value = {"SecurityGroups": []}

        with pytest.raises(GroupNotFoundError, match="sg-404"):
            describe_group(client, "sg-404")


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


class TestFormatPortRange:
    def test_single_port(self):
        assert format_port_range("tcp", 22, 22) == "22"

    def test_range(self):
        assert format_port_range("tcp", 1000, 2000) == "1000-2000"

    def test_all_traffic(self):
        assert format_port_range("-1", None, None) == "All"


class TestGroupRulesTable:
    def test_one_row_per_rule_entry(self):
        table = group_rules_table(GROUP)

        assert isinstance(table, pd.DataFrame)
        assert list(table.columns) == RULE_COLUMNS
        assert len(table) == 5
        assert table["Direction"].tolist() == ["Inbound"] * 4 + ["Outbound"]

    def test_peers_and_ports(self):
        table = group_rules_table(GROUP)

        assert table["Source/Destination"].tolist() == [
            "1.2.3.4/32",
            "5.6.7.0/24",
            "::/0",
            "sg:sg-999",
            "0.0.0.0/0",
        ]
        assert table["Ports"].tolist() == ["443", "443", "443", "443", "All"]
        assert table.iloc[-1]["Protocol"] == "All"

    def test_group_without_rules(self):
        table = group_rules_table({"GroupId": "sg-1"})
        assert table.empty
        assert list(table.columns) == RULE_COLUMNS


class TestFormatGroupRules:
    def test_header_and_rows(self):
        text = format_group_rules(GROUP)
        first_line = text.splitlines()[0]

        assert first_line == "Security group sg-111 (web) in vpc-1"
        assert "5.6.7.0/24" in text
        assert "sg:sg-999" in text

    def test_no_rules(self):
        text = format_group_rules({"GroupId": "sg-1", "GroupName": "empty"})
        assert text == "Security group sg-1 (empty)\nNo rules defined"
