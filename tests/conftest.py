"""
Shared pytest fixtures and configuration for Dynavalve tests.

Unit tests run against MagicMock clients and the in-memory PagedStore.
Integration tests run against LocalStack.
"""

import os
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import boto3
import pytest
from botocore.exceptions import ClientError

from dynavalve import ClientCredentials
from tests.helpers.paged_store import PagedStore, raw_item

if TYPE_CHECKING:
    from tests.helpers.localstack import LocalStackHelper


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests with mocked dependencies")
    config.addinivalue_line("markers", "integration: Integration tests against LocalStack")


@pytest.fixture
def mock_client():
    """
    Creates a fully mocked boto3 DynamoDB client.

    scan() returns a single empty page unless a test overrides it.
    """
    client = MagicMock()
    client.scan.return_value = {"Items": [], "Count": 0}
    client.query.return_value = {"Items": [], "Count": 0}
    return client


@pytest.fixture
def mock_credentials(mock_client):
    """Credentials that always hand out the same mock client."""
    return ClientCredentials(lambda: mock_client)


@pytest.fixture
def three_page_store() -> PagedStore:
    """Store with three pages: two items, two items, one item."""
    return PagedStore(
        [
            [raw_item("a", n=1), raw_item("b", n=2)],
            [raw_item("c", n=3), raw_item("d", n=4)],
            [raw_item("e", n=5)],
        ]
    )


@pytest.fixture
def single_page_store() -> PagedStore:
    return PagedStore([[raw_item("only", n=1)]])


@pytest.fixture
def throttling_error() -> ClientError:
    return ClientError(
        error_response={"Error": {"Code": "ThrottlingException", "Message": "Rate exceeded"}},
        operation_name="Scan",
    )


@pytest.fixture
def validation_error() -> ClientError:
    return ClientError(
        error_response={"Error": {"Code": "ValidationException", "Message": "Bad request"}},
        operation_name="Scan",
    )


@pytest.fixture(scope="session")
def localstack_endpoint() -> str:
    """Get LocalStack endpoint URL from environment or default."""
    return os.getenv("LOCALSTACK_ENDPOINT", "http://localhost:4566")


@pytest.fixture(scope="session")
def localstack_client(localstack_endpoint: str):
    """
    Creates a boto3 client connected to LocalStack.

    Session-scoped; used only for table setup and seeding.
    """
    return boto3.client(
        "dynamodb",
        endpoint_url=localstack_endpoint,
        region_name="eu-south-1",
        aws_access_key_id="test",
        aws_secret_access_key="test",
    )


@pytest.fixture(scope="session")
def localstack_helper(localstack_endpoint: str) -> "LocalStackHelper":
    from tests.helpers.localstack import LocalStackHelper

    return LocalStackHelper(endpoint_url=localstack_endpoint)
