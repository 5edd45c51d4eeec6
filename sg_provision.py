#!/usr/bin/env python3

"""
===========================
= SECURITY GROUP RULES =
===========================

Title: Security Group Rule Provisioner
Version: v0.1.0
Date: OCT-18-2026

Description:
This script reads security group rules from a CSV file and authorizes them on
the security groups that own each destination IP. For every row the
destination's network interface is looked up to find its security group
(reusing the previous row's answer while the destination stays the same),
then the ingress or egress rule is authorized and the group's current rules
are fetched for display. Rows are processed concurrently on a bounded thread
pool; a failing row is reported and never stops the rest of the batch.

Usage:
    sg-provision --source rules.csv [--max-workers N] [--no-log-file]
"""

import argparse
import datetime
import sys
import time
from concurrent.futures import Future
from dataclasses import dataclass
from typing import List, Optional

import utils
from sgrlib.authorizer import authorize_rule
from sgrlib.aws_client import get_boto3_client, load_aws_session
from sgrlib.concurrency import create_executor, iter_completed, submit_captured
from sgrlib.config import get_log_settings, get_region
from sgrlib.exceptions import ConfigurationError, RulesFileError
from sgrlib.inspector import describe_group, format_group_rules
from sgrlib.resolver import ConsecutiveGroupResolver
from sgrlib.rules_file import RuleRecord, RuleSet, load_rules

SCRIPT_NAME = "sg-provision"
BOX_WIDTH = 68

AUTHORIZE = "authorize"
INSPECT = "inspect"


@dataclass(frozen=True)
class RowTask:
    """Key attached to each submitted unit of work."""

    record: RuleRecord
    group_id: str
    port: int
    kind: str


@dataclass
class RowResult:
    """Final outcome of one rule row."""

    record: RuleRecord
    group_id: Optional[str] = None
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Console reporting
# ---------------------------------------------------------------------------


def report_success(record: RuleRecord, group_id: str, port: int) -> None:
    print(
        f"{record.direction.value} Rule created successfully: "
        f"{group_id} {record.protocol}/{port} (line {record.line_number}, {record.destination})"
    )


def report_failure(record: RuleRecord, error: BaseException) -> None:
    """Print a boxed diagnostic for a failed row, with its row context."""
    print("An error has occurred:")
    print("!" * BOX_WIDTH)
    print(
        f"Line {record.line_number}: {record.direction.value} rule for {record.destination} "
        f"({record.protocol}/{record.port})"
    )
    print(utils.format_aws_error(error))
    print("!" * BOX_WIDTH)
    utils.log_debug(f"Row at line {record.line_number} failed: {error!r}")


@utils.aws_error_handler("Describing security group", default_return=None)
def inspect_group(ec2_client, group_id: str):
    """Fetch a group for display; failures are logged and yield None."""
    return describe_group(ec2_client, group_id)


# ---------------------------------------------------------------------------
# Provisioning
# ---------------------------------------------------------------------------


def provision_rules(ec2_client, rule_set: RuleSet, max_workers: Optional[int] = None) -> List[RowResult]:
    """
    Authorize every rule in the rule set and report each outcome.

    Inbound rows are scheduled first, then outbound rows. Group resolution
    and port parsing happen in row order on the calling thread; the
    authorization and inspection of each row run on the thread pool.
    Outcomes are printed in completion order. On KeyboardInterrupt the
    tasks that have not started yet are cancelled before it propagates.

    Args:
        ec2_client: boto3 EC2 client shared by all tasks
        rule_set: Parsed rules (inbound, outbound)
        max_workers: Pool size (default: from config)

    Returns:
        list: One RowResult per row
    """
    results: List[RowResult] = []

    with create_executor(max_workers) as executor:
        futures: List[Future] = []
        try:
            for records in (rule_set.inbound, rule_set.outbound):
                _schedule_rows(executor, ec2_client, records, futures, results)

            for outcome in iter_completed(futures):
                task = outcome.key

                if task.kind == INSPECT:
                    if outcome.succeeded and outcome.result is not None:
                        print(format_group_rules(outcome.result))
                    continue

                if outcome.succeeded:
                    report_success(task.record, task.group_id, task.port)
                    results.append(RowResult(record=task.record, group_id=task.group_id))
                else:
                    report_failure(task.record, outcome.error)
                    results.append(RowResult(record=task.record, group_id=task.group_id, error=outcome.error))
        except KeyboardInterrupt:
            # Queued tasks must not touch AWS once the user has asked to stop
            cancelled = sum(1 for future in futures if future.cancel())
            utils.log_warning(f"Interrupted: cancelled {cancelled} pending task(s)")
            raise

    return results


def _schedule_rows(executor, ec2_client, records: List[RuleRecord], futures: List[Future],
                   results: List[RowResult]) -> None:
    """Resolve and submit one direction's rows in order; failures go straight to results."""
    resolver = ConsecutiveGroupResolver(ec2_client)

    for record in records:
        try:
            group_id = resolver.resolve(record.destination)
            port = record.port_number()
        except Exception as e:
            report_failure(record, e)
            results.append(RowResult(record=record, error=e))
            continue

        futures.append(
            submit_captured(
                executor,
                RowTask(record, group_id, port, AUTHORIZE),
                authorize_rule,
                ec2_client,
                record.direction,
                group_id,
                record.protocol,
                record.description,
                record.sources,
                port,
            )
        )
        futures.append(
            submit_captured(
                executor,
                RowTask(record, group_id, port, INSPECT),
                inspect_group,
                ec2_client,
                group_id,
            )
        )

    utils.log_debug(f"Scheduled {len(records)} row(s) with {resolver.lookups} group lookup(s)")


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=SCRIPT_NAME,
        description="Authorize security group rules listed in a CSV file",
    )
    parser.add_argument('--source', required=True,
                        help='Path to the rules CSV file')
    parser.add_argument('--max-workers', type=_positive_int, default=None,
                        help='Maximum concurrent API tasks (default: max_workers from config)')
    parser.add_argument('--no-log-file', action='store_true',
                        help='Log to the console only')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the provisioner.

    Returns:
        int: 0 once the batch has run (row failures included), 1 on a
             configuration or rules file error
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.source.strip():
        parser.error("the --source flag is required")

    start_time = datetime.datetime.now()
    started = time.perf_counter()

    # Console only until the logging section of the config has been read
    utils.setup_logging(SCRIPT_NAME, log_to_file=False)
    log_to_file, log_retention_days = get_log_settings()
    if log_to_file and not args.no_log_file:
        utils.setup_logging(SCRIPT_NAME, log_to_file=True, log_retention_days=log_retention_days)

    utils.log_script_start(SCRIPT_NAME, "Authorize security group rules from CSV")
    utils.log_system_info()

    try:
        region = get_region()
        session = load_aws_session(region)
        rule_set = load_rules(args.source)
    except (ConfigurationError, RulesFileError) as e:
        utils.log_error(str(e))
        return 1

    try:
        ec2_client = get_boto3_client('ec2', region_name=region, session=session)
        utils.log_info(f"Provisioning {rule_set.total} rule(s) in {region}")
        results = provision_rules(ec2_client, rule_set, args.max_workers)
    except KeyboardInterrupt:
        utils.log_info("User cancelled operation with Ctrl+C")
        print("\n\nScript interrupted by user. Exiting...")
        return 0

    failed = sum(1 for result in results if not result.succeeded)
    utils.log_info(f"Rules processed: {len(results)} ({len(results) - failed} succeeded, {failed} failed)")

    print(f"time took: {time.perf_counter() - started:.2f} seconds")
    utils.log_script_end(SCRIPT_NAME, start_time)
    return 0


if __name__ == "__main__":
    sys.exit(main())
