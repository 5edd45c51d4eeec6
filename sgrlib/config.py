"""
sgrlib.config: configuration singleton and typed accessors.

Provides thread-safe lazy loading of config.json (or the file named by the
SGRULES_CONFIG environment variable) with defaults for every key the
provisioner reads.

Zero dependency on utils.py, uses only stdlib.
"""

import copy
import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SGRULES_CONFIG"

DEFAULT_REGION = "us-east-2"
DEFAULT_MAX_WORKERS = 8
DEFAULT_LOG_RETENTION_DAYS = 14

DEFAULT_CONFIG: Dict[str, Any] = {
    "region": DEFAULT_REGION,
    "max_workers": DEFAULT_MAX_WORKERS,
    "aws_sdk_config": {
        "connect_timeout": 10,
        "read_timeout": 60,
    },
    "logging": {
        "log_to_file": True,
        "log_retention_days": DEFAULT_LOG_RETENTION_DAYS,
    },
}

# ---------------------------------------------------------------------------
# Module-level state (config singleton)
# ---------------------------------------------------------------------------

CONFIG_DATA: Dict[str, Any] = {}
_CONFIG_LOADED: bool = False
_CONFIG_LOCK: threading.Lock = threading.Lock()


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _config_path() -> Path:
    """Return the path to config.json, honouring SGRULES_CONFIG."""
    override = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if override:
        return Path(override).expanduser()
    # sgrlib/config.py lives one level below the project root
    return Path(__file__).parent.parent / "config.json"


def _merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Merge overrides into a copy of base, one level of nested sections deep."""
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


# ---------------------------------------------------------------------------
# Config loading
# ---------------------------------------------------------------------------


def load_config() -> Dict[str, Any]:
    """
    Load configuration from config.json, layered over DEFAULT_CONFIG.

    A missing or unreadable file is not fatal: the defaults are used and the
    problem is logged.

    Returns:
        dict: CONFIG_DATA
    """
    global CONFIG_DATA

    config_file = _config_path()
    CONFIG_DATA = copy.deepcopy(DEFAULT_CONFIG)

    if not config_file.exists():
        logger.warning("%s not found. Using default configuration.", config_file)
        return CONFIG_DATA

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            user_config = json.load(f)
    except (OSError, ValueError) as e:
        logger.error("Error loading configuration from %s: %s", config_file, e)
        return CONFIG_DATA

    if not isinstance(user_config, dict):
        logger.error("Ignoring %s: top-level value must be a JSON object", config_file)
        return CONFIG_DATA

    CONFIG_DATA = _merge(DEFAULT_CONFIG, user_config)
    logger.debug("Configuration loaded from %s", config_file)
    return CONFIG_DATA


def get_config() -> Dict[str, Any]:
    """
    Lazy-load configuration. First call loads from disk; subsequent calls return cached values.
    Thread-safe: uses _CONFIG_LOCK to prevent concurrent initialization.

    Returns:
        dict: CONFIG_DATA
    """
    global _CONFIG_LOADED, CONFIG_DATA
    with _CONFIG_LOCK:
        if not _CONFIG_LOADED:
            CONFIG_DATA = load_config()
            _CONFIG_LOADED = True
    return CONFIG_DATA


def reset_config() -> None:
    """Forget the cached configuration so the next access reloads it."""
    global _CONFIG_LOADED, CONFIG_DATA
    with _CONFIG_LOCK:
        _CONFIG_LOADED = False
        CONFIG_DATA = {}


# ---------------------------------------------------------------------------
# Config value accessors
# ---------------------------------------------------------------------------


def config_value(key: str, default: Any = None, section: Optional[str] = None) -> Any:
    """
    Get a value from the configuration.

    Args:
        key: Configuration key
        default: Default value if key is not found
        section: Optional section in the configuration

    Returns:
        The configuration value or default
    """
    cfg = get_config()
    if not cfg:
        return default

    if section:
        section_data = cfg.get(section)
        if isinstance(section_data, dict) and key in section_data:
            return section_data[key]
    elif key in cfg:
        return cfg[key]

    return default


def get_region() -> str:
    """Return the single region rules are provisioned in."""
    region = config_value("region", default=DEFAULT_REGION)
    return str(region).strip() or DEFAULT_REGION


def get_max_workers() -> int:
    """
    Return the thread pool size for row tasks.

    Non-integer or non-positive values fall back to DEFAULT_MAX_WORKERS.
    """
    value = config_value("max_workers", default=DEFAULT_MAX_WORKERS)
    try:
        workers = int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid max_workers %r in config, using %d", value, DEFAULT_MAX_WORKERS)
        return DEFAULT_MAX_WORKERS

    if workers < 1:
        logger.warning("max_workers must be at least 1, using %d", DEFAULT_MAX_WORKERS)
        return DEFAULT_MAX_WORKERS
    return workers


def get_log_settings() -> Tuple[bool, int]:
    """
    Return (log_to_file, log_retention_days) from the logging section.

    A non-integer or non-positive retention falls back to
    DEFAULT_LOG_RETENTION_DAYS.
    """
    log_to_file = config_value("log_to_file", default=True, section="logging")
    value = config_value("log_retention_days", default=DEFAULT_LOG_RETENTION_DAYS, section="logging")
    try:
        days = int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid log_retention_days %r in config, using %d", value, DEFAULT_LOG_RETENTION_DAYS)
        return bool(log_to_file), DEFAULT_LOG_RETENTION_DAYS

    if days < 1:
        logger.warning("log_retention_days must be at least 1, using %d", DEFAULT_LOG_RETENTION_DAYS)
        return bool(log_to_file), DEFAULT_LOG_RETENTION_DAYS
    return bool(log_to_file), days
