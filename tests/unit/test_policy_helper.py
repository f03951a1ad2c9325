"""Unit tests for building, saving and deleting FMS policies."""
import asyncio
import json

import pytest

from fms_policy_manager.models.errors import (
    AWSClientError,
    PolicyIdMissingError,
    PolicyNotFoundInManifestError,
    PolicyNotReturnedError,
    PolicyUpdateTokenMissingError,
)
from fms_policy_manager.models.policy import PolicyType
from fms_policy_manager.policy.policy_helper import CREATE, UPDATE


REGION = "us-east-1"
TABLE = "fms-policy-table"


def managed_data(policy):
    return json.loads(policy["SecurityServicePolicyData"]["ManagedServiceData"])


def test_build_policy_round_trips_manifest(helper, manifest, tags):
    """Test a non-DNS policy keeps the manifest fields apart from the name suffix."""
    rule = manifest["default"]["WAF_GLOBAL"]

    policy = asyncio.run(helper.build_policy(PolicyType.WAF_GLOBAL, "Global"))

    assert policy["PolicyName"] == "FMS-WAF-Global-test"
    assert policy["RemediationEnabled"] == rule["remediationEnabled"]
    assert policy["ResourceType"] == rule["resourceType"]
    assert policy["SecurityServicePolicyData"]["Type"] == "WAFV2"
    assert managed_data(policy) == rule["policyDetails"]
    assert policy["IncludeMap"] == {"ORG_UNIT": ["ou-abcd-12345678"]}
    assert policy["ResourceTags"] == tags.resource_tags
    assert policy["ExcludeResourceTags"] == False
    assert "ResourceTypeList" not in policy


@pytest.mark.parametrize("policy_type", [
    PolicyType.WAF_REGIONAL,
    PolicyType.SHIELD_REGIONAL,
    PolicyType.SG_CONTENT_AUDIT,
])
def test_build_policy_resource_type_list(helper, manifest, policy_type):
    policy = asyncio.run(helper.build_policy(policy_type, REGION))

    assert policy["ResourceTypeList"] == manifest["default"][policy_type.value]["resourceTypeList"]


def test_build_policy_with_only_resource_type_list(helper, aws):
    """Test a template carrying a resource type list and no resource type still builds and saves."""
    del helper.manifest["default"]["WAF_REGIONAL"]["resourceType"]

    policy = asyncio.run(helper.build_policy(PolicyType.WAF_REGIONAL, REGION))

    assert "ResourceType" not in policy
    assert policy["ResourceTypeList"] == [
        "AWS::ElasticLoadBalancingV2::LoadBalancer",
        "AWS::ApiGateway::Stage"
    ]
    assert asyncio.run(helper.save_or_update_policy(policy, REGION)) == CREATE


def test_build_policy_without_resource_type_list(helper):
    del helper.manifest["default"]["SHIELD_REGIONAL"]["resourceTypeList"]

    policy = asyncio.run(helper.build_policy(PolicyType.SHIELD_REGIONAL, REGION))

    assert policy["ResourceType"] == "ResourceTypeList"
    assert "ResourceTypeList" not in policy


def test_build_policy_missing_from_manifest(helper):
    """Test a policy type absent from the manifest fails the build."""
    del helper.manifest["default"]["SHIELD_GLOBAL"]

    with pytest.raises(PolicyNotFoundInManifestError, match="SHIELD_GLOBAL policy does not exist"):
        asyncio.run(helper.build_policy(PolicyType.SHIELD_GLOBAL, "Global"))


def test_build_dns_policy_resolves_placeholder(helper, aws):
    """Test %%AWS_MANAGED%% is replaced by the created rule group id."""
    policy = asyncio.run(helper.build_policy(PolicyType.DNS_FIREWALL, REGION))

    rule_group_id = managed_data(policy)["preProcessRuleGroups"][0]["ruleGroupId"]
    assert rule_group_id in aws.rule_groups[REGION]
    assert helper.unresolved_rule_groups == {}


def test_build_dns_policy_writes_post_process_list(helper, aws):
    """Test a post-process placeholder is resolved in the post-process list."""
    details = helper.manifest["default"]["DNS_FIREWALL"]["policyDetails"]
    details["preProcessRuleGroups"] = [{"ruleGroupId": "rslvr-frg-custom", "priority": 1}]
    details["postProcessRuleGroups"] = [{"ruleGroupId": "%%AWS_MANAGED%%", "priority": 9901}]

    data = managed_data(asyncio.run(helper.build_policy(PolicyType.DNS_FIREWALL, REGION)))

    assert data["preProcessRuleGroups"] == [{"ruleGroupId": "rslvr-frg-custom", "priority": 1}]
    assert data["postProcessRuleGroups"][0]["ruleGroupId"] in aws.rule_groups[REGION]
    assert data["postProcessRuleGroups"][0]["priority"] == 9901


def test_build_dns_policy_shares_one_rule_group(helper, aws):
    details = helper.manifest["default"]["DNS_FIREWALL"]["policyDetails"]
    details["postProcessRuleGroups"] = [{"ruleGroupId": "%%AWS_MANAGED%%", "priority": 9901}]

    data = managed_data(asyncio.run(helper.build_policy(PolicyType.DNS_FIREWALL, REGION)))

    assert data["preProcessRuleGroups"][0]["ruleGroupId"] == data["postProcessRuleGroups"][0]["ruleGroupId"]
    assert len(aws.rule_groups[REGION]) == 1


def test_build_dns_policy_reuses_existing_rule_group(helper, aws):
    """Test rebuilding the policy does not create a second rule group."""
    first = managed_data(asyncio.run(helper.build_policy(PolicyType.DNS_FIREWALL, REGION)))
    second = managed_data(asyncio.run(helper.build_policy(PolicyType.DNS_FIREWALL, REGION)))

    assert first == second
    assert len(aws.calls("route53resolver", "CreateFirewallRuleGroup")) == 1


def test_build_dns_policy_drops_unresolved_placeholders(helper, aws):
    """Test failed resolution removes the placeholder and records the failure."""
    details = helper.manifest["default"]["DNS_FIREWALL"]["policyDetails"]
    details["postProcessRuleGroups"] = [
        {"ruleGroupId": "rslvr-frg-custom", "priority": 9900},
        {"ruleGroupId": "%%AWS_MANAGED%%", "priority": 9901},
    ]
    aws.fail("route53resolver", "CreateFirewallRuleGroup")

    policy = asyncio.run(helper.build_policy(PolicyType.DNS_FIREWALL, REGION))
    data = managed_data(policy)

    assert data["preProcessRuleGroups"] == []
    assert data["postProcessRuleGroups"] == [{"ruleGroupId": "rslvr-frg-custom", "priority": 9900}]
    assert "%%AWS_MANAGED%%" not in policy["SecurityServicePolicyData"]["ManagedServiceData"]
    assert [failure.unit for failure in helper.unresolved_rule_groups[REGION]] == [
        "preProcessRuleGroups[0]",
        "postProcessRuleGroups[1]",
    ]


def test_save_or_update_policy_create_then_update(helper, aws):
    """Test the first save creates the policy and the second updates it."""
    policy = asyncio.run(helper.build_policy(PolicyType.WAF_REGIONAL, REGION))

    first = asyncio.run(helper.save_or_update_policy(policy, REGION))
    item = aws.items[(TABLE, "FMS-WAF-Regional-test", REGION)]
    second = asyncio.run(helper.save_or_update_policy(policy, REGION))

    assert first == CREATE
    assert second == UPDATE
    assert len(aws.policies[REGION]) == 1
    updated = aws.items[(TABLE, "FMS-WAF-Regional-test", REGION)]
    assert updated["PolicyId"] == item["PolicyId"]
    assert updated["PolicyUpdateToken"]["S"].startswith("2:")
    assert "PolicyId" not in policy


def test_save_global_policy_uses_dataplane(helper, aws):
    policy = asyncio.run(helper.build_policy(PolicyType.SHIELD_GLOBAL, "Global"))

    asyncio.run(helper.save_or_update_policy(policy, "Global"))

    assert len(aws.policies["us-east-1"]) == 1
    assert (TABLE, "FMS-Shield-Global-test", "Global") in aws.items


@pytest.mark.parametrize("response, error", [
    ({}, PolicyNotReturnedError),
    ({"Policy": {"PolicyId": "pid", "PolicyUpdateToken": ""}}, PolicyUpdateTokenMissingError),
    ({"Policy": {"PolicyId": "", "PolicyUpdateToken": "1:tok"}}, PolicyIdMissingError),
])
def test_save_or_update_policy_bad_response(helper, aws, mocker, response, error):
    """Test an incomplete PutPolicy response fails without writing a record."""
    policy = asyncio.run(helper.build_policy(PolicyType.SG_USAGE_AUDIT, REGION))
    mocker.patch.object(helper.fms(REGION).client, "put_policy", return_value=response)

    with pytest.raises(error):
        asyncio.run(helper.save_or_update_policy(policy, REGION))

    assert aws.items == {}


def test_save_or_update_policy_rethrows_lookup_errors(helper, aws):
    policy = asyncio.run(helper.build_policy(PolicyType.SG_USAGE_AUDIT, REGION))
    aws.fail("dynamodb", "GetItem")

    with pytest.raises(AWSClientError, match="error getting ddb item"):
        asyncio.run(helper.save_or_update_policy(policy, REGION))

    assert aws.calls("fms", "PutPolicy") == []


def test_delete_policy_without_record_is_noop(helper, aws):
    """Test deleting a never-created policy does nothing."""
    assert asyncio.run(helper.delete_policy(PolicyType.WAF_REGIONAL, REGION)) is None
    assert aws.calls("fms", "DeletePolicy") == []


def test_delete_policy_removes_policy_and_record(helper, aws):
    policy = asyncio.run(helper.build_policy(PolicyType.WAF_REGIONAL, REGION))
    asyncio.run(helper.save_or_update_policy(policy, REGION))

    asyncio.run(helper.delete_policy(PolicyType.WAF_REGIONAL, REGION))

    assert aws.policies[REGION] == {}
    assert aws.items == {}
    assert aws.calls("fms", "DeletePolicy")[0]["parameters"]["DeleteAllPolicyResources"] == True


def test_delete_dns_policy_tears_down_rule_group(helper, aws):
    policy = asyncio.run(helper.build_policy(PolicyType.DNS_FIREWALL, REGION))
    asyncio.run(helper.save_or_update_policy(policy, REGION))

    result = asyncio.run(helper.delete_policy(PolicyType.DNS_FIREWALL, REGION))

    assert result.ok == True
    assert aws.rule_groups[REGION] == {}


def test_delete_dns_policy_without_rule_group_continues(helper, aws):
    """Test a missing rule group does not block the policy delete."""
    policy = asyncio.run(helper.build_policy(PolicyType.DNS_FIREWALL, REGION))
    asyncio.run(helper.save_or_update_policy(policy, REGION))
    aws.rule_groups[REGION].clear()

    result = asyncio.run(helper.delete_policy(PolicyType.DNS_FIREWALL, REGION))

    assert result.ok == False
    assert aws.items == {}
    assert aws.policies[REGION] == {}
