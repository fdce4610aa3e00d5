"""Shared fixtures for the event status tests."""
import os
from unittest.mock import patch

import boto3
import pytest
from moto import mock_aws

TABLE_NAME = 'test-events'


@pytest.fixture(autouse=True)
def aws_credentials():
    """Point boto3 at fake credentials so nothing reaches real AWS."""
    env_vars = {
        'AWS_ACCESS_KEY_ID': 'testing',
        'AWS_SECRET_ACCESS_KEY': 'testing',
        'AWS_SECURITY_TOKEN': 'testing',
        'AWS_SESSION_TOKEN': 'testing',
        'AWS_DEFAULT_REGION': 'us-east-1'
    }
    with patch.dict(os.environ, env_vars):
        yield


@pytest.fixture
def dynamodb_table():
    """Create a mock events table for testing."""
    with mock_aws():
        dynamodb = boto3.resource('dynamodb', region_name='us-east-1')

        table = dynamodb.create_table(
            TableName=TABLE_NAME,
            KeySchema=[
                {'AttributeName': 'event_id', 'KeyType': 'HASH'}
            ],
            AttributeDefinitions=[
                {'AttributeName': 'event_id', 'AttributeType': 'S'}
            ],
            BillingMode='PAY_PER_REQUEST'
        )

        yield table
