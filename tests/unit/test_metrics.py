"""Unit tests for anonymized metrics."""
import asyncio
import dataclasses
import json

from freezegun import freeze_time

from fms_policy_manager.clients import MetricsQueue
from fms_policy_manager.metrics import MetricsReporter
from fms_policy_manager.models.policy import PolicyType


@freeze_time("2024-03-01 08:30:15.123456")
def test_build_metric(config):
    """Test the metric document layout."""
    reporter = MetricsReporter(config, queue=object())

    metric = reporter.build_metric("Create", PolicyType.WAF_REGIONAL, "us-east-1", ou_count=3)

    assert metric == {
        "Solution": "SO0134",
        "UUID": "uuid",
        "TimeStamp": "2024-03-01 08:30:15.123",
        "Data": {
            "OUCount": "3",
            "Region": "us-east-1",
            "Event": "Create",
            "Type": "WAF_REGIONAL",
            "Version": "v1.0.0"
        }
    }


def test_delete_metric_has_no_ou_count(config):
    metric = MetricsReporter(config, queue=object()).build_metric("Delete", PolicyType.DNS_FIREWALL, "Global")

    assert "OUCount" not in metric["Data"]


def test_send_policy_event(config, aws):
    queue = MetricsQueue(config.metrics_queue, client_factory=aws.client)
    reporter = MetricsReporter(config, queue=queue)

    sent = asyncio.run(reporter.send_policy_event("Update", PolicyType.SG_USAGE_AUDIT, "us-east-1", 1))

    assert sent == True
    assert aws.messages[0]["QueueUrl"] == config.metrics_queue
    assert json.loads(aws.messages[0]["MessageBody"])["Data"]["Event"] == "Update"


def test_send_policy_event_disabled(config, aws):
    """Test nothing is sent when the deployment did not opt in."""
    disabled = dataclasses.replace(config, send_metric=False)
    reporter = MetricsReporter(disabled, client_factory=aws.client)

    sent = asyncio.run(reporter.send_policy_event("Create", PolicyType.WAF_GLOBAL, "Global"))

    assert sent == False
    assert aws.messages == []


def test_send_policy_event_failure_is_reported(config, aws):
    aws.fail("sqs", "SendMessage")
    reporter = MetricsReporter(config, client_factory=aws.client)

    assert asyncio.run(reporter.send_policy_event("Create", PolicyType.WAF_GLOBAL, "Global")) == False
