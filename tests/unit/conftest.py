"""Shared fixtures for unit tests."""
import copy
import json

import pytest

from fms_policy_manager.clients import PolicyTable
from fms_policy_manager.config import PolicyManagerConfig
from fms_policy_manager.models.policy import PolicyTags
from fms_policy_manager.policy import PolicyHelper
from simulation.aws_mock import MockAWSClients
from simulation.policy_simulator import SAMPLE_MANIFEST

TABLE = "fms-policy-table"
TOPIC_ARN = "arn:aws:sns:us-east-1:123456789012:fms-policy-topic"


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Keep botocore away from real credentials and regions."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def aws():
    return MockAWSClients(regions=["us-east-1", "us-west-2", "ap-northeast-3"])


@pytest.fixture
def manifest():
    return copy.deepcopy(SAMPLE_MANIFEST)


@pytest.fixture
def tags():
    return PolicyTags(resource_tags=[{"Key": "Environment", "Value": "Prod"}])


@pytest.fixture
def helper(aws, manifest, tags):
    return PolicyHelper(
        PolicyTable(TABLE, client_factory=aws.client),
        json.dumps(manifest),
        ["ou-abcd-12345678"],
        tags,
        "test",
        client_factory=aws.client
    )


@pytest.fixture
def config():
    return PolicyManagerConfig(
        table=TABLE,
        policy_manifest="fms-manifest-bucket|policy_manifest.json",
        policy_identifier="test",
        policy_topic_arn=TOPIC_ARN,
        send_metric=True,
        metrics_queue="https://sqs.us-east-1.amazonaws.com/123456789012/fms-metrics",
        uuid="uuid",
        solution_version="v1.0.0"
    )
