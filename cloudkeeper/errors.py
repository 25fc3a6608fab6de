"""
Exception types raised by cloudkeeper.
"""


class CloudkeeperError(Exception):
    """Base class for all cloudkeeper errors."""


class ConfigurationError(CloudkeeperError):
    """Invocation cannot proceed: missing region, unknown zone, bad settings."""


class ResourceNotFoundError(CloudkeeperError):
    """A resource named by the trigger event does not exist."""
