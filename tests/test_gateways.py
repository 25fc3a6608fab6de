"""
Tests for the EC2 and SNS gateways against mocked boto3 clients.
"""

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from cloudkeeper.errors import ConfigurationError, ResourceNotFoundError
from cloudkeeper.gateways import Ec2Gateway, SnsNotifier


def client_error(code):
    return ClientError({"Error": {"Code": code, "Message": code}}, "DescribeInstances")


class TestEc2Gateway:
    """Test EC2 volume and instance calls."""

    def test_blank_region_rejected(self):
        with pytest.raises(ConfigurationError, match="Region is blank"):
            Ec2Gateway("  ", client=MagicMock())

    @patch("cloudkeeper.gateways.ec2.boto3")
    def test_client_built_for_region(self, mock_boto3):
        Ec2Gateway("eu-west-1")
        mock_boto3.client.assert_called_once_with("ec2", region_name="eu-west-1")

    def test_list_detached_paginates(self):
        client = MagicMock()
        client.get_paginator.return_value.paginate.return_value = [
            {"Volumes": [{"VolumeId": "vol-1", "Tags": [{"Key": "Name", "Value": "a"}]}]},
            {"Volumes": [{"VolumeId": "vol-2"}]},
        ]

        resources = Ec2Gateway("us-east-1", client=client).list_detached()

        client.get_paginator.assert_called_once_with("describe_volumes")
        client.get_paginator.return_value.paginate.assert_called_once_with(
            Filters=[{"Name": "status", "Values": ["available"]}]
        )
        assert [r.resource_id for r in resources] == ["vol-1", "vol-2"]
        assert resources[0].tag("Name") == "a"
        assert resources[1].tags == []

    def test_set_metadata(self):
        client = MagicMock()
        Ec2Gateway("us-east-1", client=client).set_metadata("vol-1", "k", "v")
        client.create_tags.assert_called_once_with(Resources=["vol-1"], Tags=[{"Key": "k", "Value": "v"}])

    def test_remove_metadata_omits_value(self):
        client = MagicMock()
        Ec2Gateway("us-east-1", client=client).remove_metadata("vol-1", "k")
        client.delete_tags.assert_called_once_with(Resources=["vol-1"], Tags=[{"Key": "k"}])

    def test_delete(self):
        client = MagicMock()
        Ec2Gateway("us-east-1", client=client).delete("vol-9")
        client.delete_volume.assert_called_once_with(VolumeId="vol-9")

    def test_describe_instance(self):
        client = MagicMock()
        client.describe_instances.return_value = {
            "Reservations": [{
                "Instances": [{
                    "InstanceId": "i-1",
                    "PrivateIpAddress": "10.0.0.5",
                    "State": {"Name": "running"},
                    "Tags": [{"Key": "Name", "Value": "lx238web"}],
                }]
            }]
        }

        instance = Ec2Gateway("us-east-1", client=client).describe_instance("i-1")

        assert instance.instance_id == "i-1"
        assert instance.private_ip == "10.0.0.5"
        assert instance.tag("Name") == "lx238web"

    def test_describe_instance_empty(self):
        client = MagicMock()
        client.describe_instances.return_value = {"Reservations": []}

        with pytest.raises(ResourceNotFoundError):
            Ec2Gateway("us-east-1", client=client).describe_instance("i-1")

    def test_describe_instance_not_found_error(self):
        client = MagicMock()
        client.describe_instances.side_effect = client_error("InvalidInstanceID.NotFound")

        with pytest.raises(ResourceNotFoundError):
            Ec2Gateway("us-east-1", client=client).describe_instance("i-1")

    def test_describe_instance_other_errors_propagate(self):
        client = MagicMock()
        client.describe_instances.side_effect = client_error("UnauthorizedOperation")

        with pytest.raises(ClientError):
            Ec2Gateway("us-east-1", client=client).describe_instance("i-1")


class TestSnsNotifier:
    """Test SNS topic creation and publishing."""

    def test_ensure_channel_creates_once(self):
        client = MagicMock()
        client.create_topic.return_value = {"TopicArn": "arn:aws:sns:us-east-1:1:topic"}
        notifier = SnsNotifier("us-east-1", client=client)

        assert notifier.ensure_channel("topic") == "arn:aws:sns:us-east-1:1:topic"
        assert notifier.ensure_channel("topic") == "arn:aws:sns:us-east-1:1:topic"
        client.create_topic.assert_called_once_with(Name="topic")

    def test_publish(self):
        client = MagicMock()
        SnsNotifier("us-east-1", client=client).publish("arn:t", "subj", "body")
        client.publish.assert_called_once_with(TopicArn="arn:t", Subject="subj", Message="body")

    def test_long_subject_clipped(self):
        client = MagicMock()
        SnsNotifier("us-east-1", client=client).publish("arn:t", "x" * 150, "body")

        subject = client.publish.call_args.kwargs["Subject"]
        assert len(subject) == 100
        assert subject.endswith("...")

    def test_blank_region_rejected(self):
        with pytest.raises(ConfigurationError):
            SnsNotifier("", client=MagicMock())
