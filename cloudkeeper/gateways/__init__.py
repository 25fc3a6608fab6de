"""
Gateways to the AWS control planes used by cloudkeeper.
"""

from .base import ResourceGateway, InstanceGateway, NotificationGateway
from .ec2 import Ec2Gateway
from .sns import SnsNotifier

__all__ = [
    "ResourceGateway",
    "InstanceGateway",
    "NotificationGateway",
    "Ec2Gateway",
    "SnsNotifier",
]
