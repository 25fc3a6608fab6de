"""
EC2 gateway for volumes and instances.
"""

import logging
from typing import Any, List, Optional

import boto3
from botocore.exceptions import ClientError

from ..errors import ConfigurationError, ResourceNotFoundError
from ..models import Instance, Resource
from .base import InstanceGateway, ResourceGateway

logger = logging.getLogger(__name__)

DETACHED_FILTER = {"Name": "status", "Values": ["available"]}


class Ec2Gateway(ResourceGateway, InstanceGateway):
    """Thin wrapper around the boto3 EC2 client."""

    def __init__(self, region: str, client: Optional[Any] = None):
        if not region or not region.strip():
            raise ConfigurationError("Region is blank, cannot create EC2 client.")
        self.region = region
        self.client = client or boto3.client("ec2", region_name=region)

    def list_detached(self) -> List[Resource]:
        resources = []
        paginator = self.client.get_paginator("describe_volumes")

        for page in paginator.paginate(Filters=[DETACHED_FILTER]):
            for volume in page.get("Volumes", []):
                resources.append(Resource.from_api(volume))

        logger.info(f"Found {len(resources)} detached volumes in {self.region}")
        return resources

    def set_metadata(self, resource_id: str, key: str, value: str) -> None:
        self.client.create_tags(Resources=[resource_id], Tags=[{"Key": key, "Value": value}])

    def remove_metadata(self, resource_id: str, key: str) -> None:
        # Omitting Value removes the tag regardless of its current value
        self.client.delete_tags(Resources=[resource_id], Tags=[{"Key": key}])

    def delete(self, resource_id: str) -> None:
        logger.info(f"Deleting EBS volume: {resource_id}")
        self.client.delete_volume(VolumeId=resource_id)

    def describe_instance(self, instance_id: str) -> Instance:
        logger.info(f"Describing instance-id: {instance_id}, in region: {self.region}")

        try:
            response = self.client.describe_instances(InstanceIds=[instance_id])
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "InvalidInstanceID.NotFound":
                raise ResourceNotFoundError(f"Instance {instance_id} was not found.") from e
            raise

        for reservation in response.get("Reservations", []):
            for instance in reservation.get("Instances", []):
                return Instance.from_api(instance)

        raise ResourceNotFoundError(f"No reservations/instances were found for {instance_id}.")
