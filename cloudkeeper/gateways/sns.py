"""
SNS notification gateway.
"""

import logging
from typing import Any, Dict, Optional

import boto3

from ..errors import ConfigurationError
from .base import NotificationGateway

logger = logging.getLogger(__name__)

# SNS rejects subjects longer than this
MAX_SUBJECT_LENGTH = 100


class SnsNotifier(NotificationGateway):
    """Publishes messages to SNS topics, creating topics on first use."""

    def __init__(self, region: str, client: Optional[Any] = None):
        if not region or not region.strip():
            raise ConfigurationError("Region is blank, cannot create SNS client.")
        self.region = region
        self.client = client or boto3.client("sns", region_name=region)
        self._topics: Dict[str, str] = {}

    def ensure_channel(self, name: str) -> str:
        if name not in self._topics:
            # CreateTopic is idempotent and returns the existing ARN
            response = self.client.create_topic(Name=name)
            self._topics[name] = response["TopicArn"]
        return self._topics[name]

    def publish(self, channel: str, subject: str, body: str) -> None:
        if len(subject) > MAX_SUBJECT_LENGTH:
            subject = subject[:MAX_SUBJECT_LENGTH - 3] + "..."
        self.client.publish(TopicArn=channel, Subject=subject, Message=body)
        logger.info(f"Published '{subject}' to {channel}")
