"""
sgrlib.rules_file: CSV rules loader.

Columns by position (the header row is always skipped):

    0 destination_ip  private IP whose network interface owns the target group
    1 protocol        e.g. tcp, udp, -1
    2 description     attached to every source range of the rule
    3 port            used as both from-port and to-port
    4 sources         space-separated IPs/CIDRs
    5 direction       "inbound" or "outbound"; other values are dropped
"""

import csv
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, NamedTuple, Union

from sgrlib.exceptions import (
    PortParseError,
    RulesFileError,
    RulesFileNotFoundError,
    RulesFileParseError,
)

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = 6

_PORT_PATTERN = re.compile(r"^[+-]?[0-9]+$")


class Direction(str, Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


@dataclass
class RuleRecord:
    """One parsed row of the rules file."""

    destination: str
    protocol: str
    description: str
    port: str
    sources: List[str] = field(default_factory=list)
    direction: Direction = Direction.INBOUND
    line_number: int = 0

    def port_number(self) -> int:
        """
        Parse the port column as a base-10 integer.

        Raises:
            PortParseError: if the column is not an integer
        """
        if not _PORT_PATTERN.match(self.port):
            raise PortParseError(f"invalid port {self.port!r}: not a base-10 integer")
        return int(self.port)


class RuleSet(NamedTuple):
    inbound: List[RuleRecord]
    outbound: List[RuleRecord]

    @property
    def total(self) -> int:
        return len(self.inbound) + len(self.outbound)


def _record_from_row(row: List[str], direction: Direction, line_number: int) -> RuleRecord:
    return RuleRecord(
        destination=row[0].strip(),
        protocol=row[1].strip(),
        description=row[2],
        port=row[3].strip(),
        sources=row[4].split(),
        direction=direction,
        line_number=line_number,
    )


def load_rules(path: Union[str, Path]) -> RuleSet:
    """
    Load a rules file into inbound and outbound record lists.

    Both lists keep the order rows appear in the file. Blank lines are
    ignored. The header row fixes the expected field count; every other row
    must match it.

    Args:
        path: Path to the CSV rules file

    Returns:
        RuleSet: (inbound, outbound)

    Raises:
        RulesFileNotFoundError: if the file does not exist
        RulesFileParseError: if the file is not valid delimited text
        RulesFileError: if the file cannot be read
    """
    rules_path = Path(path)
    if not rules_path.is_file():
        raise RulesFileNotFoundError(f"Rules file does not exist: {rules_path}")

    inbound: List[RuleRecord] = []
    outbound: List[RuleRecord] = []
    expected_fields = None
    dropped = 0

    try:
        with open(rules_path, "r", newline="", encoding="utf-8-sig") as f:
            reader = csv.reader(f, strict=True)
            for row in reader:
                if not row:
                    continue

                if expected_fields is None:
                    # Header row: only its width matters
                    expected_fields = len(row)
                    if expected_fields < REQUIRED_COLUMNS:
                        raise RulesFileParseError(
                            f"{rules_path}: expected at least {REQUIRED_COLUMNS} columns, "
                            f"header has {expected_fields}"
                        )
                    continue

                if len(row) != expected_fields:
                    raise RulesFileParseError(
                        f"{rules_path}, line {reader.line_num}: wrong number of fields "
                        f"(expected {expected_fields}, got {len(row)})"
                    )

                bound = row[5].strip()
                if bound == Direction.INBOUND.value:
                    inbound.append(_record_from_row(row, Direction.INBOUND, reader.line_num))
                elif bound == Direction.OUTBOUND.value:
                    outbound.append(_record_from_row(row, Direction.OUTBOUND, reader.line_num))
                else:
                    dropped += 1
                    logger.debug("Line %d: ignoring unknown direction %r", reader.line_num, bound)

    except csv.Error as e:
        raise RulesFileParseError(f"{rules_path}: {e}") from e
    except UnicodeDecodeError as e:
        raise RulesFileParseError(f"{rules_path}: not valid UTF-8 text ({e})") from e
    except OSError as e:
        raise RulesFileError(f"Cannot read rules file {rules_path}: {e}") from e

    logger.info(
        "Loaded %d inbound and %d outbound rule(s) from %s",
        len(inbound),
        len(outbound),
        rules_path,
    )
    if dropped:
        logger.warning("Skipped %d row(s) with a direction other than inbound/outbound", dropped)

    return RuleSet(inbound=inbound, outbound=outbound)
