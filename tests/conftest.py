import boto3
import pytest

from ecr_postprocessor.notifications import NotificationError
from ecr_postprocessor.records import PersistenceError
from helpers import FIXED_NOW, FakeChannel, FakeLambdaContext, FakeRecordStore


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def store():
    return FakeRecordStore()


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def lambda_context():
    return FakeLambdaContext()


@pytest.fixture
def persistence_timeout():
    return PersistenceError("20250101-1200-abc123", TimeoutError("read timed out"))


@pytest.fixture
def publish_error():
    return NotificationError("publish to arn:aws:sns:us-east-1:123456789012:image-push failed")


@pytest.fixture
def aws_env(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def ddb_client(aws_env):
    return boto3.client("dynamodb", region_name="us-east-1")


@pytest.fixture
def sns_client(aws_env):
    return boto3.client("sns", region_name="us-east-1")
