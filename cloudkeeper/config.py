"""
Runtime configuration for the lifecycle, compliance and DNS functions.

Defaults match the deployed Lambda functions; every value can be overridden
through ``CLOUDKEEPER_*`` environment variables.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ConfigurationError

DEFAULT_MARKER_KEY = "lambda:DetachedVolumeJanitor:delete-scheduled-on"
DEFAULT_VOLUME_TOPIC = "Lambda-DetachedVolumeJanitor"
DEFAULT_COMPLIANCE_TOPIC = "Lambda-EC2InstanceTagCompliance"
MAX_WINDOW_DAYS = 36500


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class LifecycleConfig:
    """Settings for the detached volume lifecycle."""
    retention_days: int = 30
    warning_days: int = 7
    marker_key: str = DEFAULT_MARKER_KEY
    topic_name: str = DEFAULT_VOLUME_TOPIC
    signature: str = "-Cloud Services Team"
    dry_run: bool = False

    def __post_init__(self):
        if self.retention_days < 1:
            raise ConfigurationError(f"retention_days must be at least 1, got {self.retention_days}")
        if self.warning_days < 0:
            raise ConfigurationError(f"warning_days must not be negative, got {self.warning_days}")
        for name in ("retention_days", "warning_days"):
            if getattr(self, name) > MAX_WINDOW_DAYS:
                raise ConfigurationError(f"{name} must be at most {MAX_WINDOW_DAYS}, got {getattr(self, name)}")
        if not self.marker_key.strip():
            raise ConfigurationError("marker_key must not be blank")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "LifecycleConfig":
        env = os.environ if env is None else env
        return cls(
            retention_days=_env_int(env, "CLOUDKEEPER_RETENTION_DAYS", 30),
            warning_days=_env_int(env, "CLOUDKEEPER_WARNING_DAYS", 7),
            marker_key=env.get("CLOUDKEEPER_MARKER_KEY") or DEFAULT_MARKER_KEY,
            topic_name=env.get("CLOUDKEEPER_VOLUME_TOPIC") or DEFAULT_VOLUME_TOPIC,
            dry_run=_env_bool(env, "CLOUDKEEPER_DRY_RUN", False),
        )


@dataclass
class ComplianceConfig:
    """Settings for the instance tag compliance check."""
    topic_name: str = DEFAULT_COMPLIANCE_TOPIC
    wait_seconds: float = 5.0

    def __post_init__(self):
        if self.wait_seconds < 0:
            raise ConfigurationError(f"wait_seconds must not be negative, got {self.wait_seconds}")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ComplianceConfig":
        env = os.environ if env is None else env
        return cls(
            topic_name=env.get("CLOUDKEEPER_COMPLIANCE_TOPIC") or DEFAULT_COMPLIANCE_TOPIC,
            wait_seconds=_env_float(env, "CLOUDKEEPER_COMPLIANCE_WAIT_SECONDS", 5.0),
        )


@dataclass
class DnsConfig:
    """Settings for the Route53 record updater."""
    hosted_zone_id: str = ""
    cross_account_role_arn: Optional[str] = None
    hostname_prefix: str = "lx"
    hostname_tag: str = "Name"
    record_ttl: int = 300
    session_name: str = "cloudkeeper-route53-update"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "DnsConfig":
        env = os.environ if env is None else env
        return cls(
            hosted_zone_id=env.get("CLOUDKEEPER_HOSTED_ZONE_ID", ""),
            cross_account_role_arn=env.get("CLOUDKEEPER_CROSS_ACCOUNT_ROLE_ARN") or None,
            hostname_prefix=env.get("CLOUDKEEPER_HOSTNAME_PREFIX") or "lx",
            record_ttl=_env_int(env, "CLOUDKEEPER_DNS_TTL", 300),
        )

    def require_zone(self) -> str:
        """Return the hosted zone id or raise if it is not configured."""
        if not self.hosted_zone_id.strip():
            raise ConfigurationError("CLOUDKEEPER_HOSTED_ZONE_ID is not set, cannot update DNS.")
        return self.hosted_zone_id.strip()


def log_level(env: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if env is None else env
    return (env.get("CLOUDKEEPER_LOG_LEVEL") or "INFO").upper()
