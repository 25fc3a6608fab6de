"""
Shared fixtures: in-memory gateways standing in for EC2 and SNS.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

import pytest

from cloudkeeper.config import LifecycleConfig
from cloudkeeper.gateways.base import NotificationGateway, ResourceGateway
from cloudkeeper.lifecycle import LifecycleEngine
from cloudkeeper.models import Resource

MARKER = LifecycleConfig().marker_key
T0 = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class FakeVolumes(ResourceGateway):
    """Detached volumes held in memory, with optional per-call failures."""

    def __init__(self, volumes: Optional[Dict[str, Dict[str, str]]] = None):
        self.volumes: Dict[str, Dict[str, str]] = {k: dict(v) for k, v in (volumes or {}).items()}
        self.fail_tag: Set[str] = set()
        self.fail_delete: Set[str] = set()
        self.tag_writes: List[tuple] = []
        self.tag_removals: List[tuple] = []
        self.deleted: List[str] = []

    def list_detached(self) -> List[Resource]:
        return [
            Resource(resource_id=vid, tags=[{"Key": k, "Value": v} for k, v in tags.items()])
            for vid, tags in self.volumes.items()
        ]

    def set_metadata(self, resource_id: str, key: str, value: str) -> None:
        if resource_id in self.fail_tag:
            raise RuntimeError(f"tagging {resource_id} failed")
        self.tag_writes.append((resource_id, key, value))
        self.volumes[resource_id][key] = value

    def remove_metadata(self, resource_id: str, key: str) -> None:
        if resource_id in self.fail_tag:
            raise RuntimeError(f"untagging {resource_id} failed")
        self.tag_removals.append((resource_id, key))
        self.volumes[resource_id].pop(key, None)

    def delete(self, resource_id: str) -> None:
        if resource_id in self.fail_delete:
            raise RuntimeError(f"deleting {resource_id} failed")
        self.deleted.append(resource_id)
        self.volumes.pop(resource_id, None)


class FakeNotifier(NotificationGateway):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.channels: List[str] = []
        self.published: List[tuple] = []

    def ensure_channel(self, name: str) -> str:
        self.channels.append(name)
        return f"arn:aws:sns:us-east-1:123456789012:{name}"

    def publish(self, channel: str, subject: str, body: str) -> None:
        if self.fail:
            raise RuntimeError("sns unavailable")
        self.published.append((channel, subject, body))


class Clock:
    """Settable clock for driving the engine through time."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def volumes():
    return FakeVolumes()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def clock():
    return Clock(T0)


@pytest.fixture
def engine(volumes, notifier, clock):
    return LifecycleEngine(
        resources=volumes,
        notifier=notifier,
        config=LifecycleConfig(),
        account="123456789012",
        region="us-east-1",
        clock=clock,
    )
