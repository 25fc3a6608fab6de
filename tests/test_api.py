"""
Tests for the HTTP trigger API.
"""

from unittest.mock import patch

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient

from cloudkeeper.api.app import app
from cloudkeeper.errors import ConfigurationError, ResourceNotFoundError


@pytest.fixture
def client():
    return TestClient(app)


def test_health(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["message"] == "Cloudkeeper API is running"


def test_list_operations(client):
    operations = client.get("/operations").json()["operations"]
    assert "mark" in operations
    assert "notify-and-delete" in operations
    assert "tag-compliance" in operations


@patch("cloudkeeper.api.app.dispatch")
def test_invoke(mock_dispatch, client):
    mock_dispatch.return_value = {"operation": "mark", "marked": ["vol-1"]}

    response = client.post("/operations/mark", json={"region": "us-east-1", "account": "123"})

    assert response.status_code == 200
    assert response.json() == {
        "operation": "mark",
        "result": {"operation": "mark", "marked": ["vol-1"]},
    }
    mock_dispatch.assert_called_once_with("mark", {"region": "us-east-1", "account": "123"})


def test_unknown_operation(client):
    response = client.post("/operations/explode", json={"region": "us-east-1"})

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "unknown_operation"


def test_region_required(client):
    response = client.post("/operations/mark", json={})
    assert response.status_code == 422


@pytest.mark.parametrize("error,status,code", [
    (ConfigurationError("Region is blank, cannot create AWS clients."), 400, "configuration_error"),
    (ResourceNotFoundError("Instance i-1 not found"), 404, "resource_not_found"),
    (ClientError({"Error": {"Code": "AccessDenied", "Message": "no"}}, "DescribeVolumes"), 502, "aws_error"),
])
@patch("cloudkeeper.api.app.dispatch")
def test_error_mapping(mock_dispatch, client, error, status, code):
    mock_dispatch.side_effect = error

    response = client.post("/operations/clear", json={"region": "us-east-1"})

    assert response.status_code == status
    assert response.json()["detail"]["code"] == code
