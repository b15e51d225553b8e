"""
Test configuration and fixtures for the DynamoDB ORM.

Provides configuration objects and stores backed by moto's in-memory
DynamoDB.
"""

import sys
from pathlib import Path

# Add parent directory to path so we can import dynamodb_orm
sys.path.insert(0, str(Path(__file__).parent.parent))

import boto3
import pytest
from moto import mock_aws

from dynamodb_orm import DynamoDBConfig, DynamoDbStore

OVERRIDE_ENV_VARS = (
    "DYNAMODB_CAMEL_CASE_TABLE_NAMES",
    "DYNAMODB_PLURALIZE_TABLE_NAMES",
    "DYNAMODB_CAMEL_CASE_ATTRIBUTES",
    "DYNAMODB_TABLE_PREFIX",
    "DYNAMODB_BILLING_MODE",
    "DYNAMODB_DEBUG_LOGGING",
    "ENVIRONMENT",
    "AWS_REGION",
    "DYNAMODB_ENDPOINT_URL",
)


@pytest.fixture(autouse=True)
def aws_environment(monkeypatch):
    """Fake credentials and no naming overrides leaking in from the shell."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    for name in OVERRIDE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def mock_dynamodb_config():
    """DynamoDB configuration for mocked testing."""
    return DynamoDBConfig(
        aws_access_key_id="test_key",
        aws_secret_access_key="test_secret",
        region_name="us-east-1",
        endpoint_url=None,  # Use default AWS endpoint for moto
        environment="test",
        table_prefix=""
    )


@pytest.fixture
def camel_case_config():
    """Configuration with every naming switch turned on."""
    return DynamoDBConfig(
        aws_access_key_id="test_key",
        aws_secret_access_key="test_secret",
        region_name="us-east-1",
        endpoint_url=None,
        environment="test",
        table_prefix="",
        camel_case_table_names=True,
        pluralize_table_names=True,
        camel_case_attribute_names=True
    )


@pytest.fixture
def mock_dynamodb_client():
    """Mock DynamoDB low-level client."""
    with mock_aws():
        yield boto3.client('dynamodb', region_name='us-east-1')


@pytest.fixture
def store(mock_dynamodb_config, mock_dynamodb_client):
    """Store over the mocked client with the default naming policy."""
    return DynamoDbStore(mock_dynamodb_config, client=mock_dynamodb_client)


@pytest.fixture
def camel_case_store(camel_case_config, mock_dynamodb_client):
    """Store over the mocked client with camel-cased, pluralized names."""
    return DynamoDbStore(camel_case_config, client=mock_dynamodb_client)
