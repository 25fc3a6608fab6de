"""
Data models for resources and trigger events.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError
from .tags import get_tag, tags_to_dict


@dataclass
class Resource:
    """A storage volume as seen in a single invocation."""
    resource_id: str
    tags: List[Dict[str, str]] = field(default_factory=list)

    def tag(self, key: str) -> Optional[str]:
        return get_tag(self.tags, key)

    def tag_dict(self) -> Dict[str, str]:
        return tags_to_dict(self.tags)

    @classmethod
    def from_api(cls, volume: Dict[str, Any]) -> "Resource":
        """Build from an item of ``describe_volumes()["Volumes"]``."""
        return cls(resource_id=volume["VolumeId"], tags=list(volume.get("Tags") or []))


@dataclass
class Instance:
    """A compute instance, reduced to what the handlers look at."""
    instance_id: str
    tags: List[Dict[str, str]] = field(default_factory=list)
    private_ip: Optional[str] = None

    def tag(self, key: str) -> Optional[str]:
        return get_tag(self.tags, key)

    @classmethod
    def from_api(cls, instance: Dict[str, Any]) -> "Instance":
        """Build from an item of ``describe_instances()`` reservations."""
        return cls(
            instance_id=instance["InstanceId"],
            tags=list(instance.get("Tags") or []),
            private_ip=instance.get("PrivateIpAddress"),
        )


class TriggerEvent(BaseModel):
    """
    Scheduled or state-change event delivered by EventBridge.

    Only the fields cloudkeeper reads are declared; everything else in the
    payload is ignored.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Optional[str] = None
    region: str
    account: str = ""
    detail_type: Optional[str] = Field(default=None, alias="detail-type")
    detail: Optional[Dict[str, Any]] = None

    @property
    def instance_id(self) -> Optional[str]:
        return self.detail.get("instance-id") if self.detail else None


def parse_event(payload: Optional[Dict[str, Any]]) -> TriggerEvent:
    """
    Validate a raw trigger payload.

    Args:
        payload: Event dictionary as passed to the Lambda handler

    Returns:
        Parsed TriggerEvent

    Raises:
        ConfigurationError: If the payload is missing or has no usable region
    """
    if not payload:
        raise ConfigurationError("Trigger event is empty, cannot determine region.")

    try:
        event = TriggerEvent.model_validate(payload)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid trigger event: {e}") from e

    if not event.region.strip():
        raise ConfigurationError("Region is blank, cannot create AWS clients.")

    return event
