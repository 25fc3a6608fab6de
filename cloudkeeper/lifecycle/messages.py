"""
Notification text for the volume lifecycle.
"""

from datetime import datetime
from typing import Dict, List, Tuple

from ..models import Resource
from ..tags import format_tags
from ..timecodec import format_timestamp


def account_line(account: str, region: str) -> str:
    return f"Account: {account} ({region})"


def warning_subject(account: str) -> str:
    return f"[{account}] WARN: Detached Volumes Scheduled for Deletion"


def confirmation_subject(account: str) -> str:
    return f"[{account}] INFO: Detached Volumes Deletion Completed"


def warning_message(
    account: str,
    region: str,
    batch: List[Tuple[Resource, datetime]],
    warning_days: int,
    marker_key: str,
    signature: str,
) -> str:
    """
    Compose the upcoming-deletion warning.

    Args:
        account: AWS account id
        region: AWS region
        batch: Volumes to warn about, each with its resolved deletion date
        warning_days: Warning window shown to readers
        marker_key: Tag key users remove to rescue a volume
        signature: Closing line

    Returns:
        Message body
    """
    lines = [
        account_line(account, region),
        "",
        f"The following EBS Volumes are scheduled for deletion within the next {warning_days} days:",
        "",
    ]

    for resource, delete_on in batch:
        lines.append(f"{resource.resource_id} -> {format_timestamp(delete_on)}")
        lines.append(f"Tags: {format_tags(resource.tags)}")
        lines.append("")

    lines.append(
        f"If you would like to prevent a volume from deletion, you can remove the Volume tag: "
        f"[{marker_key}] or set the tag value to a future date."
    )
    lines.append("")
    lines.append(signature)
    return "\n".join(lines)


def confirmation_message(
    account: str,
    region: str,
    submitted: List[str],
    failed: Dict[str, str],
    signature: str,
) -> str:
    """Compose the deletion confirmation listing submitted volume ids."""
    lines = [account_line(account, region), ""]

    if submitted:
        lines.append("The following EBS volumes have been deleted:")
        lines.append("")
        lines.extend(submitted)
        lines.append("")
        lines.append(
            "Sorry if we deleted a volume you weren't ready to dispose of yet, it may still be "
            "retrievable from a nightly snapshot ... but we did send warnings! :)"
        )
        lines.append("")

    if failed:
        lines.append("The following EBS volumes could not be deleted and will be retried on the next run:")
        lines.append("")
        for resource_id, error in failed.items():
            lines.append(f"{resource_id}: {error}")
        lines.append("")

    lines.append(signature)
    return "\n".join(lines)
