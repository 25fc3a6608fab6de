"""
Lifecycle engine for detached EBS volumes.

The engine works in three stages, each triggered on its own schedule:

1. Mark: every detached volume without a valid deletion marker is tagged
   with a date ``retention_days`` in the future.
2. Notify and delete: volumes whose date falls within the next
   ``warning_days`` are announced in a single warning message, and volumes
   whose date has passed are deleted and listed in a confirmation message.
3. Clear: removes the marker from every detached volume, cancelling any
   scheduled deletion.

To rescue a volume, remove its marker tag (this restarts the countdown on
the next mark run) or set the tag to a date further in the future.

No state is kept between invocations. Every run re-reads the live tags, so
overlapping or repeated runs converge on the same result.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..config import LifecycleConfig
from ..gateways.base import NotificationGateway, ResourceGateway
from ..models import Resource
from ..timecodec import add_days, format_timestamp, to_marker_precision, utcnow
from . import messages
from .state import LifecycleState, read_marker, state_for_marker

logger = logging.getLogger(__name__)


@dataclass
class MarkResult:
    """Outcome of a mark pass."""
    marked: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    delete_on: Optional[str] = None
    dry_run: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class WarnResult:
    """Outcome of the warning phase."""
    warned: List[str] = field(default_factory=list)
    published: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DeleteResult:
    """Outcome of the deletion phase. ``submitted`` ids were accepted, not confirmed."""
    submitted: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    published: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class NotifyAndDeleteResult:
    warning: WarnResult
    deletion: DeleteResult
    total_checked: int = 0
    dry_run: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ClearResult:
    cleared: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    dry_run: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class LifecycleEngine:
    """Computes lifecycle transitions and applies them through the gateways."""

    def __init__(
        self,
        resources: ResourceGateway,
        notifier: NotificationGateway,
        config: Optional[LifecycleConfig] = None,
        account: str = "",
        region: str = "",
        clock: Callable[[], datetime] = utcnow,
    ):
        self.resources = resources
        self.notifier = notifier
        self.config = config or LifecycleConfig()
        self.account = account
        self.region = region
        self.clock = clock

    def now(self) -> datetime:
        return to_marker_precision(self.clock())

    def _resolve(self, now: Optional[datetime]) -> datetime:
        # Markers have second precision
        return self.now() if now is None else to_marker_precision(now)

    def state_of(self, resource: Resource, now: Optional[datetime] = None) -> LifecycleState:
        now = self._resolve(now)
        marker = read_marker(resource.tags, self.config.marker_key)
        return state_for_marker(now, marker, self.config.warning_days)

    # Entry points: each fetches the detached set once

    def run_mark(self) -> MarkResult:
        return self.mark(self.resources.list_detached())

    def run_notify_and_delete(self) -> NotifyAndDeleteResult:
        detached = self.resources.list_detached()
        now = self.now()
        warning = self.warn(detached, now)
        deletion = self.delete_due(detached, now)
        return NotifyAndDeleteResult(
            warning=warning,
            deletion=deletion,
            total_checked=len(detached),
            dry_run=self.config.dry_run,
        )

    def run_clear(self) -> ClearResult:
        return self.clear(self.resources.list_detached())

    # Phases

    def mark(self, detached: List[Resource], now: Optional[datetime] = None) -> MarkResult:
        """
        Tag every volume that has no valid marker with a future deletion date.

        Volumes that already carry a parseable date are left alone, even if
        that date has passed, so re-running never resets a countdown.

        Args:
            detached: Volumes to consider
            now: Current time; defaults to the engine clock

        Returns:
            MarkResult listing marked, skipped and failed volume ids
        """
        now = self._resolve(now)
        delete_on = format_timestamp(add_days(now, self.config.retention_days))
        result = MarkResult(delete_on=delete_on, dry_run=self.config.dry_run)

        for resource in detached:
            if read_marker(resource.tags, self.config.marker_key) is not None:
                result.skipped.append(resource.resource_id)
                continue

            raw = resource.tag(self.config.marker_key)
            if raw is not None:
                logger.warning(f"Volume {resource.resource_id} has unparseable marker {raw!r}, re-marking")

            if self.config.dry_run:
                logger.info(f"DRY RUN mark volume {resource.resource_id} for deletion on {delete_on}")
                result.marked.append(resource.resource_id)
                continue

            try:
                self.resources.set_metadata(resource.resource_id, self.config.marker_key, delete_on)
                result.marked.append(resource.resource_id)
            except Exception as e:
                logger.error(f"Failed to mark volume {resource.resource_id}: {e}")
                result.failed[resource.resource_id] = str(e)

        logger.info(f"Marked {len(result.marked)} Volumes with scheduled for deletion tag.")
        return result

    def select_for_warning(self, detached: List[Resource], now: datetime) -> List[Tuple[Resource, datetime]]:
        """Volumes strictly inside the warning window, with their deletion dates."""
        now = to_marker_precision(now)
        selected = []
        for resource in detached:
            marker = read_marker(resource.tags, self.config.marker_key)
            if state_for_marker(now, marker, self.config.warning_days) == LifecycleState.WARNING_DUE:
                selected.append((resource, marker))
        return selected

    def select_for_deletion(self, detached: List[Resource], now: datetime) -> List[Resource]:
        """Volumes whose deletion date is strictly in the past."""
        return [
            resource for resource in detached
            if self.state_of(resource, now) == LifecycleState.DELETION_DUE
        ]

    def warn(self, detached: List[Resource], now: Optional[datetime] = None) -> WarnResult:
        """
        Publish one warning listing every volume inside the warning window.

        Nothing is published when no volume qualifies.
        """
        now = self._resolve(now)
        batch = self.select_for_warning(detached, now)
        result = WarnResult(warned=[resource.resource_id for resource, _ in batch])

        if not batch:
            logger.info("No volumes inside the warning window")
            return result

        body = messages.warning_message(
            self.account,
            self.region,
            batch,
            self.config.warning_days,
            self.config.marker_key,
            self.config.signature,
        )
        result.published = self._publish(messages.warning_subject(self.account), body)
        return result

    def delete_due(self, detached: List[Resource], now: Optional[datetime] = None) -> DeleteResult:
        """
        Delete every volume whose deletion date has passed and confirm by message.

        A failed delete call is recorded and does not stop the remaining
        deletions; the volume stays due and is retried on the next run.
        """
        now = self._resolve(now)
        due = self.select_for_deletion(detached, now)
        result = DeleteResult()

        if not due:
            logger.info("No volumes due for deletion")
            return result

        logger.info(f"Deleting {len(due)} Volumes.")
        for resource in due:
            if self.config.dry_run:
                logger.info(f"DRY RUN delete volume {resource.resource_id}")
                result.submitted.append(resource.resource_id)
                continue

            try:
                self.resources.delete(resource.resource_id)
                result.submitted.append(resource.resource_id)
            except Exception as e:
                logger.error(f"Failed to delete volume {resource.resource_id}: {e}")
                result.failed[resource.resource_id] = str(e)

        body = messages.confirmation_message(
            self.account,
            self.region,
            result.submitted,
            result.failed,
            self.config.signature,
        )
        result.published = self._publish(messages.confirmation_subject(self.account), body)
        return result

    def clear(self, detached: List[Resource]) -> ClearResult:
        """Remove the marker from every volume, regardless of its state."""
        result = ClearResult(dry_run=self.config.dry_run)

        for resource in detached:
            if self.config.dry_run:
                logger.info(f"DRY RUN clear marker on volume {resource.resource_id}")
                result.cleared.append(resource.resource_id)
                continue

            try:
                self.resources.remove_metadata(resource.resource_id, self.config.marker_key)
                result.cleared.append(resource.resource_id)
            except Exception as e:
                logger.error(f"Failed to clear marker on volume {resource.resource_id}: {e}")
                result.failed[resource.resource_id] = str(e)

        logger.info(f"Cleared scheduled for deletion tag on {len(result.cleared)} Volumes.")
        return result

    def _publish(self, subject: str, body: str) -> bool:
        if self.config.dry_run:
            logger.info(f"DRY RUN publish '{subject}':\n{body}")
            return False

        try:
            topic = self.notifier.ensure_channel(self.config.topic_name)
            self.notifier.publish(topic, subject, body)
        except Exception as e:
            logger.error(f"Failed to publish '{subject}' to {self.config.topic_name}: {e}")
            return False

        return True
