"""
Interfaces the lifecycle engine and compliance checker depend on.
"""

from abc import ABC, abstractmethod
from typing import List

from ..models import Instance, Resource


class ResourceGateway(ABC):
    """Lists, tags and deletes detached storage volumes."""

    @abstractmethod
    def list_detached(self) -> List[Resource]:
        """Return every volume currently in the detached (available) state."""
        pass

    @abstractmethod
    def set_metadata(self, resource_id: str, key: str, value: str) -> None:
        """Create or overwrite one tag on a resource."""
        pass

    @abstractmethod
    def remove_metadata(self, resource_id: str, key: str) -> None:
        """Remove one tag from a resource, whatever its value."""
        pass

    @abstractmethod
    def delete(self, resource_id: str) -> None:
        """
        Submit a resource for deletion.

        Returns as soon as the control plane accepts the request; it does not
        wait for the deletion to complete.
        """
        pass


class InstanceGateway(ABC):
    """Looks up compute instances."""

    @abstractmethod
    def describe_instance(self, instance_id: str) -> Instance:
        """
        Args:
            instance_id: Instance to describe

        Raises:
            ResourceNotFoundError: If the instance does not exist
        """
        pass


class NotificationGateway(ABC):
    """Publishes text messages to named channels."""

    @abstractmethod
    def ensure_channel(self, name: str) -> str:
        """Return a handle for the channel, creating it if absent."""
        pass

    @abstractmethod
    def publish(self, channel: str, subject: str, body: str) -> None:
        pass
