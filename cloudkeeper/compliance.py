"""
"Tag or warn" compliance check for EC2 instances.

Runs when an instance starts. After a short wait that gives launch-time
tagging a chance to finish, the instance's tags are checked against a fixed
rule set and a courtesy alert is published if anything is missing. The
instance is never stopped.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .config import ComplianceConfig
from .errors import ConfigurationError
from .gateways.base import InstanceGateway, NotificationGateway
from .models import Instance, TriggerEvent

logger = logging.getLogger(__name__)


@dataclass
class TagRule:
    """A requirement satisfied by a non-blank value under any one of ``keys``."""
    name: str
    keys: Tuple[str, ...]

    @property
    def message(self) -> str:
        return f"Please provide missing tag: {' or '.join(self.keys)}"

    def is_satisfied(self, tags: Dict[str, str]) -> bool:
        return any(has_tag(tags, key) for key in self.keys)


DEFAULT_RULES: List[TagRule] = [
    TagRule(name="ProjectOrBudgetCode", keys=("PO_Number", "Cost_Center")),
    TagRule(name="Application", keys=("Application_Name",)),
    TagRule(name="Approver", keys=("Approver",)),
    TagRule(name="Owner", keys=("Owner",)),
    TagRule(name="DisplayName", keys=("Name",)),
]


def normalize_tags(tag_list: Optional[List[Dict[str, str]]]) -> Dict[str, str]:
    """Map trimmed tag keys to their values; a missing value becomes ""."""
    tags = {}
    for tag in tag_list or []:
        tags[(tag.get("Key") or "").strip()] = tag.get("Value") or ""
    return tags


def has_tag(tags: Dict[str, str], key: str) -> bool:
    """A tag is present when its value is non-empty after trimming."""
    return bool((tags.get(key) or "").strip())


@dataclass
class ComplianceReport:
    instance_id: str
    violations: List[str] = field(default_factory=list)
    notified: bool = False

    @property
    def compliant(self) -> bool:
        return not self.violations

    def to_dict(self) -> Dict[str, object]:
        return {
            "instance_id": self.instance_id,
            "compliant": self.compliant,
            "violations": list(self.violations),
            "notified": self.notified,
        }


class ComplianceEvaluator:
    """Evaluates instance tags against the required tag rules."""

    def __init__(
        self,
        instances: Optional[InstanceGateway] = None,
        notifier: Optional[NotificationGateway] = None,
        config: Optional[ComplianceConfig] = None,
        rules: Optional[Sequence[TagRule]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.instances = instances
        self.notifier = notifier
        self.config = config or ComplianceConfig()
        self.rules = list(rules) if rules is not None else list(DEFAULT_RULES)
        self.sleep = sleep

    def evaluate(self, tag_list: Optional[List[Dict[str, str]]]) -> List[str]:
        """
        Check tags against every rule.

        Args:
            tag_list: Tags in EC2 API list form

        Returns:
            One message per unmet rule, in rule order; empty when compliant
        """
        tags = normalize_tags(tag_list)
        return [rule.message for rule in self.rules if not rule.is_satisfied(tags)]

    def check_instance(self, event: TriggerEvent) -> ComplianceReport:
        """
        Wait, describe the instance named by the event and alert on violations.

        Raises:
            ConfigurationError: If the event names no instance
            ResourceNotFoundError: If the instance does not exist
        """
        instance_id = event.instance_id
        if not instance_id:
            raise ConfigurationError("Event detail has no instance-id, cannot check tags.")

        logger.info(f"Handling event id: {event.id}")
        # Give launch-time tagging a chance to land before looking
        self.sleep(self.config.wait_seconds)

        instance = self.instances.describe_instance(instance_id)
        report = ComplianceReport(instance_id=instance_id, violations=self.evaluate(instance.tags))

        if report.compliant:
            logger.info(f"Instance {instance_id} has compliant tagging")
            return report

        report.notified = self.notify(instance, report.violations)
        for violation in report.violations:
            logger.info(violation)
        return report

    def notify(self, instance: Instance, violations: List[str]) -> bool:
        subject = f"ALERT: EC2 instance [{instance.instance_id}] has non-compliant tagging"
        body = compliance_message(instance, violations)

        try:
            topic = self.notifier.ensure_channel(self.config.topic_name)
            self.notifier.publish(topic, subject, body)
        except Exception as e:
            logger.error(f"Failed to publish compliance alert for {instance.instance_id}: {e}")
            return False

        logger.info(f"Email notification has been sent to SNS topic: {self.config.topic_name}")
        return True


def compliance_message(instance: Instance, violations: List[str]) -> str:
    lines = [
        f"As a courtesy, the EC2 instance with id [{instance.instance_id}] was NOT prevented from "
        "being started, but the tags are non-compliant and need to be corrected.",
        "",
        "Currently the tags look like:",
        "",
    ]
    for tag in instance.tags:
        lines.append(f"{tag.get('Key')}: {tag.get('Value')}")

    lines.append("")
    lines.append("Please correct the following tag requirements:")
    lines.append("")
    for violation in violations:
        lines.append(f" * {violation}")

    lines.append("")
    lines.append("With love from the Cloud Services team! :)")
    return "\n".join(lines)
