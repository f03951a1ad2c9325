"""Unit tests for data models and configuration."""
import pytest

from fms_policy_manager.config import PolicyManagerConfig
from fms_policy_manager.models.errors import AWSClientError, ResourceNotFoundError
from fms_policy_manager.models.policy import (
    GLOBAL_POLICIES,
    REGIONAL_POLICIES,
    Partition,
    PolicyIdentityRecord,
    PolicyTags,
    PolicyType,
    ValidationResults,
    supported_policies,
)
from fms_policy_manager.models.results import BatchAction, BatchResult, UnitFailure


def test_policy_sets():
    """Test the global and regional policy sets."""
    assert GLOBAL_POLICIES == [PolicyType.WAF_GLOBAL, PolicyType.SHIELD_GLOBAL]
    assert len(REGIONAL_POLICIES) == 5
    assert PolicyType.SG_USAGE_AUDIT.value == "SECURITY_GROUPS_USAGE_AUDIT"


def test_partition_dataplanes():
    """Test global dataplane region per partition."""
    assert Partition.AWS.global_dataplane == "us-east-1"
    assert Partition.AWS_CN.global_dataplane == "cn-north-1"
    assert Partition("aws-us-gov").global_dataplane == "us-gov-west-1"


@pytest.mark.parametrize("partition", [Partition.AWS_CN, Partition.AWS_US_GOV])
def test_supported_policies_filters_shield_and_global_waf(partition):
    """Test unsupported policy types are dropped outside the commercial partition."""
    assert supported_policies(GLOBAL_POLICIES, partition) == []
    assert supported_policies(REGIONAL_POLICIES, partition) == [
        PolicyType.SG_CONTENT_AUDIT,
        PolicyType.SG_USAGE_AUDIT,
        PolicyType.WAF_REGIONAL,
        PolicyType.DNS_FIREWALL,
    ]


def test_supported_policies_commercial():
    assert supported_policies(REGIONAL_POLICIES, Partition.AWS) == REGIONAL_POLICIES


def test_policy_tags_from_dict():
    """Test PolicyTags parsing."""
    tags = PolicyTags.from_dict({
        "ResourceTags": [{"Key": "env", "Value": "prod"}],
        "ExcludeResourceTags": True
    })

    assert tags.resource_tags == [{"Key": "env", "Value": "prod"}]
    assert tags.exclude_resource_tags == True
    assert PolicyTags().to_dict() == {"ResourceTags": [], "ExcludeResourceTags": False}


def test_policy_identity_record_dynamodb_item():
    """Test PolicyIdentityRecord DynamoDB conversion."""
    record = PolicyIdentityRecord(
        policy_name="FMS-WAF-Global-test",
        region="Global",
        policy_id="a9369754",
        policy_update_token="1:abc",
        last_updated_at="2024-01-01T00:00:00"
    )

    item = record.to_dynamodb_item()

    assert item["PolicyName"] == {"S": "FMS-WAF-Global-test"}
    assert item["Region"] == {"S": "Global"}
    assert item["PolicyUpdateToken"] == {"S": "1:abc"}
    assert PolicyIdentityRecord.from_dynamodb_item(item) == record


def test_policy_identity_record_partial_item():
    record = PolicyIdentityRecord.from_dynamodb_item({
        "PolicyName": {"S": "name"},
        "Region": {"S": "us-east-1"}
    })

    assert record.policy_id is None
    assert "PolicyId" not in record.to_dynamodb_item()


def test_validation_results_to_dict():
    results = ValidationResults(ou_valid=True, region_delete=True)

    assert results.to_dict() == {
        "RegionDelete": True,
        "RegionValid": False,
        "OUDelete": False,
        "OUValid": True,
        "TagDelete": False,
        "TagValid": False
    }


def test_batch_result():
    """Test BatchResult failure bookkeeping."""
    result = BatchResult(action=BatchAction.SAVE, region="us-east-1")
    result.succeeded["WAF_REGIONAL"] = "Create"
    assert result.ok == True

    result.failures.append(UnitFailure("DNS_FIREWALL", AWSClientError("boom")))

    assert result.ok == False
    assert result.failed_units == ["DNS_FIREWALL"]
    assert result.to_dict()["failures"] == [{"unit": "DNS_FIREWALL", "error": "boom"}]


def test_resource_not_found_is_client_error():
    error = ResourceNotFoundError()

    assert isinstance(error, AWSClientError)
    assert str(error) == "ResourceNotFound"


def test_config_from_env():
    """Test configuration is read from the environment mapping."""
    config = PolicyManagerConfig.from_env({
        "FMS_TABLE": "table",
        "POLICY_MANIFEST": "bucket|key",
        "POLICY_IDENTIFIER": "id",
        "POLICY_TOPIC_ARN": "arn:topic",
        "PARTITION": "aws-cn",
        "SSM_PARAM_PREFIX": "/Custom/",
        "SEND_METRIC": "Yes",
        "METRICS_QUEUE": "https://queue",
        "UUID": "uuid",
        "MAX_ATTEMPTS": "5",
        "LOG_LEVEL": "debug"
    })

    assert config.partition == Partition.AWS_CN
    assert config.region_parameter == "/Custom/Regions"
    assert config.ou_parameter == "/Custom/OUs"
    assert config.max_attempts == 5
    assert config.log_level == "DEBUG"
    assert config.metrics_enabled == True


def test_config_metrics_disabled_without_queue():
    config = PolicyManagerConfig.from_env({"SEND_METRIC": "Yes", "UUID": "uuid"})

    assert config.metrics_enabled == False
    assert config.partition == Partition.AWS
    assert config.ssm_param_prefix == "/FMS/"
