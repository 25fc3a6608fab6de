"""
Lifecycle state derived from the deletion marker tag.

Nothing about a volume's lifecycle is stored anywhere except the marker tag
on the volume itself, so the state is recomputed from the live tags on every
invocation.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from ..tags import get_tag
from ..timecodec import add_days, parse_timestamp


class LifecycleState(Enum):
    """Lifecycle states, in the order a volume moves through them."""
    UNMARKED = "unmarked"
    MARKED = "marked"
    WARNING_DUE = "warning_due"
    GRACE = "grace"
    DELETION_DUE = "deletion_due"

    @property
    def rank(self) -> int:
        return _ORDER.index(self)


_ORDER = [
    LifecycleState.UNMARKED,
    LifecycleState.MARKED,
    LifecycleState.WARNING_DUE,
    LifecycleState.GRACE,
    LifecycleState.DELETION_DUE,
]


def read_marker(tags: Optional[List[Dict[str, str]]], marker_key: str) -> Optional[datetime]:
    """
    Return the scheduled deletion date from a tag list.

    Args:
        tags: Tags in EC2 API list form
        marker_key: Reserved tag key holding the deletion date

    Returns:
        Deletion date, or None if the tag is absent or unparseable
    """
    return parse_timestamp(get_tag(tags, marker_key))


def state_for_marker(now: datetime, marker: Optional[datetime], warning_days: int) -> LifecycleState:
    """Classify a parsed marker against ``now``."""
    if marker is None:
        return LifecycleState.UNMARKED
    if marker < now:
        return LifecycleState.DELETION_DUE
    if marker == now:
        return LifecycleState.GRACE
    if now > add_days(marker, -warning_days):
        return LifecycleState.WARNING_DUE
    return LifecycleState.MARKED


def derive_state(
    now: datetime,
    tags: Optional[List[Dict[str, str]]],
    warning_days: int,
    marker_key: str,
) -> LifecycleState:
    """
    Derive the lifecycle state of a resource from its tags.

    Both window edges are exclusive: a volume exactly ``warning_days`` out
    is still MARKED, and a volume whose date is exactly ``now`` is in GRACE
    and is only deleted by the next pass.

    Args:
        now: Current time (aware UTC)
        tags: Live tags of the resource
        warning_days: Length of the warning window in days
        marker_key: Reserved tag key holding the deletion date

    Returns:
        The resource's LifecycleState
    """
    return state_for_marker(now, read_marker(tags, marker_key), warning_days)
