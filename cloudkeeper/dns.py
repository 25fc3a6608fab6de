"""
Route53 A-record maintenance for Linux instances.

When an instance starts, an A record ``<Name tag>.<zone>`` pointing at its
private IP is upserted into a private hosted zone; when it stops, the record
is removed. Only instances whose Name follows the Linux hostname convention
and that are not part of an auto-scaling group are handled.

The hosted zone may live in another account. Route53 clients are resolved
through a chain of credential strategies: the Lambda's own identity first,
then an assumed cross-account role.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

import boto3
from botocore.exceptions import ClientError

from .config import DnsConfig
from .errors import ConfigurationError
from .models import Instance

logger = logging.getLogger(__name__)

AUTOSCALING_GROUP_TAG = "aws:autoscaling:groupName"


def normalize_zone_id(zone_id: str) -> str:
    """Strip the ``/hostedzone/`` prefix Route53 puts on zone ids."""
    return zone_id.split("/")[-1]


class CredentialStrategy(ABC):
    """One way of obtaining a Route53 client."""

    name = "abstract"

    @abstractmethod
    def client(self) -> Any:
        pass


class LocalIdentity(CredentialStrategy):
    """Route53 client using the function's own credentials."""

    name = "local-identity"

    def client(self) -> Any:
        return boto3.client("route53")


class AssumedRole(CredentialStrategy):
    """Route53 client using temporary credentials from an assumed role."""

    name = "assumed-role"

    def __init__(self, role_arn: str, session_name: str, sts_client: Optional[Any] = None):
        self.role_arn = role_arn
        self.session_name = session_name
        self.sts_client = sts_client

    def client(self) -> Any:
        sts = self.sts_client or boto3.client("sts")
        response = sts.assume_role(RoleArn=self.role_arn, RoleSessionName=self.session_name)
        credentials = response["Credentials"]
        return boto3.client(
            "route53",
            aws_access_key_id=credentials["AccessKeyId"],
            aws_secret_access_key=credentials["SecretAccessKey"],
            aws_session_token=credentials["SessionToken"],
        )


def find_hosted_zone(client: Any, zone_id: str) -> Optional[Dict[str, Any]]:
    """Return the hosted zone with ``zone_id`` visible to ``client``, if any."""
    wanted = normalize_zone_id(zone_id)
    paginator = client.get_paginator("list_hosted_zones")
    for page in paginator.paginate():
        for zone in page.get("HostedZones", []):
            if normalize_zone_id(zone["Id"]) == wanted:
                return zone
    return None


def resolve_zone_client(zone_id: str, strategies: Sequence[CredentialStrategy]) -> Tuple[Any, Dict[str, Any]]:
    """
    Find the first credential strategy whose client can see the hosted zone.

    Args:
        zone_id: Hosted zone id, with or without the ``/hostedzone/`` prefix
        strategies: Strategies to try, in order

    Returns:
        Tuple of (route53 client, hosted zone description)

    Raises:
        ConfigurationError: If no strategy can see the zone
    """
    for strategy in strategies:
        try:
            client = strategy.client()
            zone = find_hosted_zone(client, zone_id)
        except ClientError as e:
            logger.warning(f"Route53 lookup with {strategy.name} credentials failed: {e}")
            continue

        if zone is not None:
            logger.info(f"Hosted zone {zone_id} found using {strategy.name} credentials")
            return client, zone

        logger.info(f"Hosted zone {zone_id} not visible to {strategy.name} credentials")

    raise ConfigurationError(f"Zone with ID {zone_id} not found. Did not change DNS record.")


def default_strategies(config: DnsConfig) -> List[CredentialStrategy]:
    strategies: List[CredentialStrategy] = [LocalIdentity()]
    if config.cross_account_role_arn:
        strategies.append(AssumedRole(config.cross_account_role_arn, config.session_name))
    return strategies


class Route53Zone:
    """Record operations scoped to one hosted zone."""

    def __init__(self, client: Any, zone: Dict[str, Any], ttl: int = 300):
        self.client = client
        self.zone_id = normalize_zone_id(zone["Id"])
        self.zone_name = zone["Name"]
        self.ttl = ttl

    def qualify(self, hostname: str) -> str:
        zone_name = self.zone_name if self.zone_name.endswith(".") else self.zone_name + "."
        return f"{hostname}.{zone_name}"

    def upsert_a_record(self, hostname: str, ip_address: str) -> Dict[str, Any]:
        name = self.qualify(hostname)
        record_set = {
            "Name": name,
            "Type": "A",
            "TTL": self.ttl,
            "ResourceRecords": [{"Value": ip_address}],
        }
        response = self._change("UPSERT", record_set)
        logger.info(f"Route53: submitted type-A DNS record for [{ip_address} = {name}]")
        return response.get("ChangeInfo", {})

    def find_a_record(self, hostname: str) -> Optional[Dict[str, Any]]:
        name = self.qualify(hostname)
        response = self.client.list_resource_record_sets(
            HostedZoneId=self.zone_id,
            StartRecordName=name,
            StartRecordType="A",
            MaxItems="1",
        )
        for record_set in response.get("ResourceRecordSets", []):
            if record_set["Name"].lower() == name.lower() and record_set["Type"] == "A":
                return record_set
        return None

    def remove_a_record(self, hostname: str) -> Optional[Dict[str, Any]]:
        record_set = self.find_a_record(hostname)
        if record_set is None:
            logger.info(
                f"Route53: Could not find DNS record for {hostname} in zone: {self.zone_name} - no record removed."
            )
            return None

        response = self._change("DELETE", record_set)
        logger.info(f"Route53: removed type-A DNS record [{record_set['Name']}]")
        return response.get("ChangeInfo", {})

    def _change(self, action: str, record_set: Dict[str, Any]) -> Dict[str, Any]:
        return self.client.change_resource_record_sets(
            HostedZoneId=self.zone_id,
            ChangeBatch={"Changes": [{"Action": action, "ResourceRecordSet": record_set}]},
        )


def instance_hostname(instance: Instance, tag_key: str = "Name") -> Optional[str]:
    hostname = instance.tag(tag_key)
    if not hostname or not hostname.strip():
        logger.info(f"The <{tag_key}> tag is not present or is empty. Can't retrieve hostname.")
        return None
    return hostname.strip()


def is_managed_hostname(hostname: Optional[str], prefix: str) -> bool:
    """Linux naming convention: expected prefix (any case) and no spaces."""
    return bool(hostname) and hostname.lower().startswith(prefix.lower()) and " " not in hostname


class DnsUpdater:
    """Creates and removes instance A records."""

    def __init__(
        self,
        config: DnsConfig,
        strategies: Optional[Sequence[CredentialStrategy]] = None,
    ):
        self.config = config
        self.strategies = list(strategies) if strategies is not None else default_strategies(config)

    def eligible_hostname(self, instance: Instance) -> Optional[str]:
        if instance.tag(AUTOSCALING_GROUP_TAG):
            logger.info(f"Instance {instance.instance_id} belongs to an auto-scaling group, skipping DNS")
            return None

        hostname = instance_hostname(instance, self.config.hostname_tag)
        if not is_managed_hostname(hostname, self.config.hostname_prefix):
            logger.info(f"Instance {instance.instance_id} hostname {hostname!r} is not managed, skipping DNS")
            return None
        return hostname

    def zone(self) -> Route53Zone:
        client, zone = resolve_zone_client(self.config.require_zone(), self.strategies)
        return Route53Zone(client, zone, ttl=self.config.record_ttl)

    def update(self, instance: Instance) -> Dict[str, Any]:
        hostname = self.eligible_hostname(instance)
        if hostname is None:
            return {"instance_id": instance.instance_id, "action": "skipped"}

        if not instance.private_ip:
            raise ConfigurationError(f"Instance {instance.instance_id} has no private IP address.")

        self.zone().upsert_a_record(hostname, instance.private_ip)
        return {"instance_id": instance.instance_id, "action": "upserted", "hostname": hostname}

    def remove(self, instance: Instance) -> Dict[str, Any]:
        hostname = self.eligible_hostname(instance)
        if hostname is None:
            return {"instance_id": instance.instance_id, "action": "skipped"}

        change = self.zone().remove_a_record(hostname)
        action = "removed" if change is not None else "not_found"
        return {"instance_id": instance.instance_id, "action": action, "hostname": hostname}
