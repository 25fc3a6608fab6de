"""
Lambda entry points.

Each handler takes the EventBridge payload that triggered it, builds its
AWS gateways for the event's region and runs to completion. Configuration
problems raise and fail the invocation; per-resource problems are logged
and reported in the returned summary.
"""

import logging
import os
from typing import Any, Callable, Dict, Optional

from .compliance import ComplianceEvaluator
from .config import ComplianceConfig, DnsConfig, LifecycleConfig, log_level
from .dns import DnsUpdater
from .gateways import Ec2Gateway, SnsNotifier
from .lifecycle import LifecycleEngine
from .models import TriggerEvent, parse_event
from .errors import ConfigurationError

logger = logging.getLogger()
logger.setLevel(log_level())


def build_engine(event: TriggerEvent, config: Optional[LifecycleConfig] = None) -> LifecycleEngine:
    return LifecycleEngine(
        resources=Ec2Gateway(event.region),
        notifier=SnsNotifier(event.region),
        config=config or LifecycleConfig.from_env(),
        account=event.account,
        region=event.region,
    )


def handle_mark(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Tag detached volumes that have no deletion date yet."""
    trigger = parse_event(event)
    logger.info(f"Mark run for account {trigger.account} in {trigger.region}")
    result = build_engine(trigger).run_mark()
    return {"operation": "mark", **result.to_dict()}


def handle_notify_and_delete(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Warn about upcoming deletions and delete volumes whose date has passed."""
    trigger = parse_event(event)
    logger.info(f"Notify-and-delete run for account {trigger.account} in {trigger.region}")
    result = build_engine(trigger).run_notify_and_delete()
    return {"operation": "notify-and-delete", **result.to_dict()}


def handle_clear(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Remove the deletion marker from every detached volume."""
    trigger = parse_event(event)
    logger.info(f"Clear run for account {trigger.account} in {trigger.region}")
    result = build_engine(trigger).run_clear()
    return {"operation": "clear", **result.to_dict()}


def handle_tag_compliance(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Check a newly started instance for required tags."""
    trigger = parse_event(event)
    evaluator = ComplianceEvaluator(
        instances=Ec2Gateway(trigger.region),
        notifier=SnsNotifier(trigger.region),
        config=ComplianceConfig.from_env(),
    )
    report = evaluator.check_instance(trigger)
    return {"operation": "tag-compliance", **report.to_dict()}


def _dns_target(event: Dict[str, Any]):
    trigger = parse_event(event)
    if not trigger.instance_id:
        raise ConfigurationError("Event detail has no instance-id, cannot update DNS.")
    instance = Ec2Gateway(trigger.region).describe_instance(trigger.instance_id)
    return DnsUpdater(DnsConfig.from_env()), instance


def handle_dns_update(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Upsert the A record for an instance that started."""
    updater, instance = _dns_target(event)
    return {"operation": "dns-update", **updater.update(instance)}


def handle_dns_remove(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Remove the A record for an instance that stopped."""
    updater, instance = _dns_target(event)
    return {"operation": "dns-remove", **updater.remove(instance)}


OPERATIONS: Dict[str, Callable[[Dict[str, Any], Any], Dict[str, Any]]] = {
    "mark": handle_mark,
    "notify-and-delete": handle_notify_and_delete,
    "clear": handle_clear,
    "tag-compliance": handle_tag_compliance,
    "dns-update": handle_dns_update,
    "dns-remove": handle_dns_remove,
}


def dispatch(operation: str, event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """
    Run a named operation.

    Raises:
        KeyError: If the operation is unknown
    """
    handler = OPERATIONS[operation]
    return handler(event, context)


def handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Single entry point selecting the operation from ``CLOUDKEEPER_OPERATION``."""
    operation = os.environ.get("CLOUDKEEPER_OPERATION", "")
    if operation not in OPERATIONS:
        raise ConfigurationError(f"Unknown CLOUDKEEPER_OPERATION: {operation!r}")
    return dispatch(operation, event, context)
