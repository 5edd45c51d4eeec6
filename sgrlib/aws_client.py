"""
sgrlib.aws_client: boto3 session and client factory.

Provides region validation, a one-time credential check for the configured
region, and EC2 client creation with timeouts from config and automatic FIPS
endpoint injection for GovCloud regions.

Imports from sgrlib.config (safe, config has no intra-package imports).
Zero dependency on utils.py.
"""

import logging
import re
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ProfileNotFound

from sgrlib.config import config_value
from sgrlib.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_REGION_PATTERN = re.compile(r"^[a-z]{2}(-gov)?-[a-z]+-[0-9]+$")


# ---------------------------------------------------------------------------
# Region validation
# ---------------------------------------------------------------------------


def is_aws_region(region: str) -> bool:
    """
    Check if a region name looks like a valid AWS region.

    Args:
        region: AWS region name

    Returns:
        bool: True if valid AWS region, False otherwise
    """
    # Pattern supports: us-east-1, us-gov-west-1, ap-southeast-2, etc.
    return bool(region) and bool(_REGION_PATTERN.match(region))


def validate_aws_region(region: str) -> bool:
    """
    Validate a region name and log a helpful error if it is malformed.

    Args:
        region: AWS region name

    Returns:
        bool: True if valid, False otherwise
    """
    if not is_aws_region(region):
        logger.error("Invalid AWS region: %s", region)
        logger.error("Valid AWS regions look like: us-east-1, us-east-2, eu-west-1, us-gov-west-1")
        return False
    return True


# ---------------------------------------------------------------------------
# Session and client factory
# ---------------------------------------------------------------------------


def get_aws_session(region_name: Optional[str] = None):
    """
    Create a boto3 session for the specified region.

    Args:
        region_name: AWS region (None = default from the environment)

    Returns:
        boto3.Session: Configured session
    """
    return boto3.Session(region_name=region_name)


def load_aws_session(region_name: str):
    """
    Create the run's boto3 session and confirm credentials are discoverable.

    Credentials are resolved through the standard chain (environment
    variables, shared profile, instance/role metadata). No API call is made.

    Args:
        region_name: Region every client of this run targets

    Returns:
        boto3.Session: Session with resolvable credentials

    Raises:
        ConfigurationError: invalid region, unknown profile, or no credentials
    """
    if not validate_aws_region(region_name):
        raise ConfigurationError(f"Invalid AWS region configured: {region_name!r}")

    try:
        session = get_aws_session(region_name)
        credentials = session.get_credentials()
    except ProfileNotFound as e:
        raise ConfigurationError(f"AWS profile not found: {e}") from e
    except BotoCoreError as e:
        raise ConfigurationError(f"Unable to load AWS configuration: {e}") from e

    if credentials is None:
        raise ConfigurationError(
            "No AWS credentials found. Configure credentials using 'aws configure', "
            "an AWS profile, or environment variables."
        )

    logger.debug("AWS session ready for region %s", region_name)
    return session


def get_boto3_client(service: str, region_name: Optional[str] = None, session=None, **kwargs):
    """
    Create boto3 client with connect/read timeouts from config.

    Automatically enables ``use_fips_endpoint`` for GovCloud regions
    (``us-gov-west-1``, ``us-gov-east-1``).

    Args:
        service: AWS service name (e.g., 'ec2')
        region_name: AWS region name (optional)
        session: Existing boto3 session to build the client from (optional)
        **kwargs: Additional arguments to pass to client creation

    Returns:
        boto3.client: Configured boto3 client
    """
    sdk_config = config_value("aws_sdk_config", default={}) or {}

    config_kwargs = {
        "connect_timeout": sdk_config.get("connect_timeout", 10),
        "read_timeout": sdk_config.get("read_timeout", 60),
    }

    # FIPS injection: GovCloud requires FIPS endpoints
    if region_name and region_name.startswith("us-gov-"):
        config_kwargs["use_fips_endpoint"] = True

    config = Config(**config_kwargs)

    if session is None:
        session = get_aws_session(region_name)
    return session.client(service, region_name=region_name, config=config, **kwargs)
