#!/usr/bin/env python3
"""
===========================
= SECURITY GROUP RULES =
===========================

Title: SG Rule Provisioner Utilities Module
Version: v0.1.0
Date: OCT-18-2026

Description:
Shared logging and error-handling helpers for the provisioner. Library code
under sgrlib logs through module loggers; the command-line entry point calls
setup_logging() once to attach console and file handlers to the 'sgrules'
logger tree.
"""

import datetime
import logging
import platform
import sys
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from botocore.exceptions import ClientError, NoCredentialsError

LOGGER_NAME = "sgrules"

# Global logger instance
logger = None


def _cleanup_old_logs(logs_dir: Path, log_retention_days: int = 14) -> None:
    """
    Remove log files older than log_retention_days from the logs directory.

    Args:
        logs_dir: Path to the logs directory
        log_retention_days: Number of days to retain log files (default: 14)
    """
    cutoff = datetime.datetime.now() - datetime.timedelta(days=log_retention_days)
    cutoff_timestamp = cutoff.timestamp()
    removed = 0
    for log_file in logs_dir.glob("*.log"):
        try:
            if log_file.stat().st_mtime < cutoff_timestamp:
                log_file.unlink()
                removed += 1
        except OSError:
            continue  # Skip files we cannot stat or remove
    if removed:
        logging.getLogger(LOGGER_NAME).debug(
            f"Cleaned up {removed} log file(s) older than {log_retention_days} days"
        )


def get_logs_dir() -> Path:
    """Return the directory log files are written to."""
    return Path(__file__).parent / "logs"


def setup_logging(
    script_name: str = "sg-provision",
    log_to_file: bool = True,
    log_retention_days: int = 14,
) -> logging.Logger:
    """
    Setup logging with console output and an optional debug log file.

    The 'sgrules' logger and the 'sgrlib' library loggers share the same
    handlers, so messages from sgrlib modules reach the console and file too.

    Args:
        script_name (str): Name of the script for log file naming
        log_to_file (bool): Whether to log to file in addition to console
        log_retention_days (int): Age after which old log files are removed

    Returns:
        logging.Logger: Configured logger instance
    """
    global logger

    # Create logger
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    # Clear any existing handlers
    logger.handlers = []

    # Create formatters
    console_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Console handler (always enabled)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(console_formatter)
    handlers = [console_handler]

    log_filepath = None
    file_error = None
    if log_to_file:
        try:
            logs_dir = get_logs_dir()
            logs_dir.mkdir(exist_ok=True)

            # Remove stale log files before creating the new one
            _cleanup_old_logs(logs_dir, log_retention_days)

            # Generate timestamp for log filename: MM.DD.YYYY-HHMM
            timestamp = datetime.datetime.now().strftime("%m.%d.%Y-%H%M")
            log_filepath = logs_dir / f"logs-{script_name}-{timestamp}.log"

            file_handler = logging.FileHandler(log_filepath, mode='w', encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(file_formatter)
            handlers.append(file_handler)
        except OSError as e:
            file_error = e

    library_logger = logging.getLogger("sgrlib")
    library_logger.setLevel(logging.DEBUG)
    library_logger.propagate = False
    library_logger.handlers = []

    for handler in handlers:
        logger.addHandler(handler)
        library_logger.addHandler(handler)

    if file_error is not None:
        # If file logging fails, continue with console only
        logger.error(f"Failed to setup file logging: {file_error}")
        logger.warning("Continuing with console logging only")
    elif log_filepath is not None:
        logger.debug(f"Logging initialized - Log file: {log_filepath}")
        logger.debug(f"Script: {script_name}")

    return logger


def get_logger() -> logging.Logger:
    """
    Get the current logger instance.

    If setup_logging() has not yet been called, returns a logger with a
    NullHandler so that library usage does not emit spurious output.

    Returns:
        logging.Logger: Logger instance
    """
    global logger
    if logger is None:
        _null_logger = logging.getLogger(LOGGER_NAME)
        if not _null_logger.handlers:
            _null_logger.addHandler(logging.NullHandler())
        return _null_logger
    return logger

# Do NOT call setup_logging() at module import time.
# Entry points call utils.setup_logging() explicitly to activate logging.


# =============================================================================
# LOGGING HELPERS
# =============================================================================

def log_error(error_message: str, error_obj: Optional[Exception] = None) -> None:
    """
    Log an error message to both console and file.

    Args:
        error_message: The error message to display
        error_obj: Optional exception object
    """
    current_logger = get_logger()
    if error_obj:
        current_logger.error(f"{error_message}: {str(error_obj)}")
        # Log stack trace for debugging
        current_logger.debug(f"Exception details: {error_obj}", exc_info=error_obj)
    else:
        current_logger.error(error_message)

def log_warning(warning_message: str) -> None:
    """Log a warning message to both console and file."""
    get_logger().warning(warning_message)

def log_info(info_message: str) -> None:
    """Log an informational message to both console and file."""
    get_logger().info(info_message)

def log_debug(debug_message: str) -> None:
    """Log a debug message (file only, not console)."""
    get_logger().debug(debug_message)

def log_script_start(script_name: str, description: str = "") -> None:
    """
    Log the start of a script execution with standardized format.

    Args:
        script_name: Name of the script being executed
        description: Optional description of the script's purpose
    """
    current_logger = get_logger()
    current_logger.info("=" * 80)
    current_logger.info(f"SCRIPT START: {script_name}")
    if description:
        current_logger.info(f"DESCRIPTION: {description}")
    current_logger.info(f"START TIME: {datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    current_logger.info("=" * 80)

def log_script_end(script_name: str, start_time: Optional[datetime.datetime] = None) -> None:
    """
    Log the end of a script execution with standardized format.

    Args:
        script_name: Name of the script that was executed
        start_time: Optional start time to calculate duration
    """
    current_logger = get_logger()
    end_time = datetime.datetime.now()

    current_logger.info("=" * 80)
    current_logger.info(f"SCRIPT END: {script_name}")
    current_logger.info(f"END TIME: {end_time.strftime('%Y-%m-%d %H:%M:%S')}")

    if start_time:
        current_logger.info(f"DURATION: {end_time - start_time}")

    current_logger.info("=" * 80)

def log_system_info() -> None:
    """Log interpreter and platform details (file only)."""
    log_debug(f"Python: {sys.version.split()[0]} on {platform.platform()}")


# =============================================================================
# STANDARDIZED ERROR HANDLING
# =============================================================================

# TypeVar for generic return types
T = TypeVar('T')


def format_aws_error(error: BaseException) -> str:
    """
    Render an exception the way it is shown to the user.

    ClientError is reduced to its error code and message; missing
    credentials get a configuration hint; anything else uses str().

    Args:
        error: Exception raised by an AWS call or by rule processing

    Returns:
        str: One-line description
    """
    if isinstance(error, NoCredentialsError):
        return (
            "No AWS credentials found. "
            "Please configure credentials using 'aws configure' or environment variables."
        )
    if isinstance(error, ClientError):
        error_code = error.response.get('Error', {}).get('Code', 'Unknown')
        error_msg = error.response.get('Error', {}).get('Message', str(error))
        return f"AWS error [{error_code}]: {error_msg}"
    return str(error) or error.__class__.__name__


def aws_error_handler(
    operation_name: str,
    default_return: Any = None,
    reraise: bool = False
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator for standardized AWS error handling.

    Errors are logged with format_aws_error() and either swallowed (the
    decorated call returns default_return) or re-raised.

    Args:
        operation_name: Human-readable operation description for logging
        default_return: Value to return on error (if not reraising)
        reraise: Whether to re-raise the exception after logging

    Returns:
        Decorator function that wraps the target function

    Example:
        @aws_error_handler("Describing security group", default_return=None)
        def inspect_group(ec2_client, group_id):
            return describe_group(ec2_client, group_id)
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if isinstance(e, (ClientError, NoCredentialsError)):
                    log_error(f"{operation_name}: {format_aws_error(e)}")
                else:
                    log_error(f"{operation_name}: Unexpected error", e)
                if reraise:
                    raise
                return default_return

        return wrapper
    return decorator
