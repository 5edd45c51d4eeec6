"""
sgrlib.exceptions: error taxonomy for rule provisioning.

Run-level errors (configuration, rules file) halt the whole run.
Row-level errors (RuleError and subclasses) are captured per task and
reported without stopping sibling rows.
"""


class SGRulesError(Exception):
    """Base class for all provisioning errors."""
    pass


class ConfigurationError(SGRulesError):
    """Raised when AWS credentials or region configuration is unavailable."""
    pass


# ---------------------------------------------------------------------------
# Rules file errors
# ---------------------------------------------------------------------------


class RulesFileError(SGRulesError):
    """Raised when the rules file cannot be loaded."""
    pass


class RulesFileNotFoundError(RulesFileError, FileNotFoundError):
    """Raised when the rules file does not exist."""
    pass


class RulesFileParseError(RulesFileError, ValueError):
    """Raised when the rules file is not valid delimited text."""
    pass


# ---------------------------------------------------------------------------
# Row-level errors
# ---------------------------------------------------------------------------


class RuleError(SGRulesError):
    """Raised when a single rule row cannot be provisioned."""
    pass


class PortParseError(RuleError, ValueError):
    """Raised when a row's port column is not an integer."""
    pass


class GroupResolutionError(RuleError):
    """Raised when no security group can be found for a destination IP."""
    pass


class GroupNotFoundError(RuleError):
    """Raised when a security group description comes back empty."""
    pass
