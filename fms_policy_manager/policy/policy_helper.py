"""Builds FMS policy documents from the manifest and persists them."""
import copy
import json
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from fms_policy_manager.clients.base_client import ClientFactory
from fms_policy_manager.clients.dynamodb_client import PolicyTable
from fms_policy_manager.clients.fms_client import FMSClient
from fms_policy_manager.clients.ram_client import ResourceShareClient
from fms_policy_manager.clients.route53_client import DNSFirewallClient
from fms_policy_manager.models.errors import (
    AWSClientError,
    PolicyIdMissingError,
    PolicyNotFoundInManifestError,
    PolicyNotReturnedError,
    PolicyUpdateTokenMissingError,
    ResourceNotFoundError,
)
from fms_policy_manager.models.policy import (
    AWS_MANAGED_PLACEHOLDER,
    NO_RULE_GROUP,
    RESOURCE_TYPE_LIST_POLICIES,
    Partition,
    PolicyTags,
    PolicyType,
)
from fms_policy_manager.models.results import RuleGroupResult, UnitFailure
from .dns_firewall import DNSFirewallRuleGroups

logger = logging.getLogger(__name__)

CREATE = "Create"
UPDATE = "Update"

RULE_GROUP_LISTS = ("preProcessRuleGroups", "postProcessRuleGroups")


class PolicyHelper:
    """Create, update and delete FMS policies for one invocation.

    The manifest, OU list and tags are fixed for the lifetime of the helper.
    AWS clients are created lazily, once per service and region.
    """

    def __init__(self, table: PolicyTable, manifest: Union[str, Dict[str, Any]],
                 ous: List[str], tags: PolicyTags, policy_identifier: str,
                 partition: Partition = Partition.AWS,
                 client_factory: Optional[ClientFactory] = None,
                 user_agent: Optional[str] = None,
                 max_attempts: Optional[int] = None):
        self.table = table
        self.manifest = json.loads(manifest) if isinstance(manifest, str) else manifest
        self.ous = ous
        self.tags = tags
        self.policy_identifier = policy_identifier
        self.partition = partition
        self.client_kwargs = {
            "client_factory": client_factory,
            "user_agent": user_agent,
            "max_attempts": max_attempts,
        }
        self._clients: Dict[Tuple[str, str], Any] = {}
        # Placeholders that could not be resolved, by region
        self.unresolved_rule_groups: Dict[str, List[UnitFailure]] = {}

    def fms(self, region: str) -> FMSClient:
        key = ("fms", region)
        if key not in self._clients:
            self._clients[key] = FMSClient(region, self.partition, **self.client_kwargs)
        return self._clients[key]

    def rule_groups(self, region: str) -> DNSFirewallRuleGroups:
        key = ("dns-firewall", region)
        if key not in self._clients:
            self._clients[key] = DNSFirewallRuleGroups(
                self.policy_identifier,
                DNSFirewallClient(region=region, **self.client_kwargs),
                ResourceShareClient(region=region, **self.client_kwargs)
            )
        return self._clients[key]

    def _template(self, policy_type: PolicyType) -> Dict[str, Any]:
        rule = self.manifest.get("default", {}).get(policy_type.value)
        if not rule:
            raise PolicyNotFoundInManifestError(f"{policy_type.value} policy does not exist")
        return rule

    def policy_name(self, policy_type: PolicyType) -> str:
        return f"{self._template(policy_type)['policyName']}-{self.policy_identifier}"

    async def build_policy(self, policy_type: PolicyType, region: str) -> Dict[str, Any]:
        """Build the FMS policy document for a policy type in a region."""
        logger.debug(f"Building FMS policy {policy_type.value} in {region}")
        rule = self._template(policy_type)
        policy_details = copy.deepcopy(rule["policyDetails"])

        if policy_type == PolicyType.DNS_FIREWALL:
            failures = await self.resolve_managed_rule_groups(policy_details, region)
            if failures:
                self.unresolved_rule_groups[region] = failures

        policy: Dict[str, Any] = {
            "PolicyName": f"{rule['policyName']}-{self.policy_identifier}",
            "RemediationEnabled": rule["remediationEnabled"],
            "ResourceTags": self.tags.resource_tags,
            "ExcludeResourceTags": self.tags.exclude_resource_tags,
            "SecurityServicePolicyData": {
                "Type": policy_details["type"],
                "ManagedServiceData": json.dumps(policy_details),
            },
            "IncludeMap": {"ORG_UNIT": self.ous},
        }
        if rule.get("resourceType"):
            policy["ResourceType"] = rule["resourceType"]
        if policy_type in RESOURCE_TYPE_LIST_POLICIES and rule.get("resourceTypeList"):
            policy["ResourceTypeList"] = rule["resourceTypeList"]

        logger.debug(f"Policy: {json.dumps(policy)}")
        return policy

    async def resolve_managed_rule_groups(self, policy_details: Dict[str, Any],
                                          region: str) -> List[UnitFailure]:
        """Swap %%AWS_MANAGED%% references for the managed rule group id.

        One rule group is resolved per build and shared by the pre- and
        post-process lists. References that cannot be resolved are removed
        from the list they appear in and returned as failures.
        """
        placeholders = [
            (list_name, index)
            for list_name in RULE_GROUP_LISTS
            for index, group in enumerate(policy_details.get(list_name, []))
            if group.get("ruleGroupId") == AWS_MANAGED_PLACEHOLDER
        ]
        if not placeholders:
            return []

        rule_group_id: Optional[str] = None
        error: Optional[BaseException] = None
        try:
            rule_group_id = await self._managed_rule_group_id(region)
        except AWSClientError as e:
            error = e
        if rule_group_id is None and error is None:
            error = AWSClientError(f"managed rule group could not be created in {region}")

        failures: List[UnitFailure] = []
        for list_name, index in placeholders:
            if rule_group_id:
                policy_details[list_name][index]["ruleGroupId"] = rule_group_id
            else:
                logger.warning(f"{list_name}[{index}] create failed in {region} error {error}")
                failures.append(UnitFailure(f"{list_name}[{index}]", error))

        if failures:
            for list_name in RULE_GROUP_LISTS:
                if list_name in policy_details:
                    policy_details[list_name] = [
                        group for group in policy_details[list_name]
                        if group.get("ruleGroupId") != AWS_MANAGED_PLACEHOLDER
                    ]
        return failures

    async def _managed_rule_group_id(self, region: str) -> Optional[str]:
        rule_groups = self.rule_groups(region)
        existing = await rule_groups.find_existing()
        if existing:
            logger.debug(f"Reusing rule group {existing} in {region}")
            return existing

        created = await rule_groups.create()
        if created.failures:
            logger.warning(f"Rule group {created.rule_group_id} in {region} created with "
                           f"{len(created.failures)} rule failures")
        if created.rule_group_id in (None, NO_RULE_GROUP):
            return None
        return created.rule_group_id

    async def save_or_update_policy(self, policy: Dict[str, Any], region: str) -> str:
        """Put the policy and record its identity; return "Create" or "Update"."""
        name = policy["PolicyName"]
        outgoing = dict(policy)
        event = UPDATE

        try:
            record = await self.table.get_record(name, region)
        except ResourceNotFoundError:
            record = None

        if record and record.policy_id:
            current = await self.fms(region).get_policy(record.policy_id)
            outgoing["PolicyId"] = record.policy_id
            outgoing["PolicyUpdateToken"] = current.get("PolicyUpdateToken")
        else:
            outgoing.pop("PolicyId", None)
            outgoing.pop("PolicyUpdateToken", None)
            event = CREATE

        response = await self.fms(region).put_policy(outgoing)
        saved = response.get("Policy")
        if not saved:
            raise PolicyNotReturnedError()
        if not saved.get("PolicyUpdateToken"):
            raise PolicyUpdateTokenMissingError()
        if not saved.get("PolicyId"):
            raise PolicyIdMissingError()

        await self.table.save_record(name, region, saved["PolicyId"], saved["PolicyUpdateToken"])
        logger.info(f"{event} policy {name} in {region}")
        return event

    async def delete_policy(self, policy_type: PolicyType, region: str) -> Optional[RuleGroupResult]:
        """Delete the policy and its identity record if one exists.

        For DNS_FIREWALL the managed rule group is torn down as well; that
        outcome is returned but never raised.
        """
        name = self.policy_name(policy_type)
        try:
            record = await self.table.get_record(name, region)
        except ResourceNotFoundError:
            logger.info(f"Policy {name} in {region} has no record, nothing to delete")
            return None
        if not record.policy_id:
            logger.info(f"Policy {name} in {region} has no policy id, nothing to delete")
            return None

        await self.fms(region).delete_policy(record.policy_id)
        await self.table.delete_record(name, region)
        logger.info(f"Deleted policy {name} in {region}")

        if policy_type != PolicyType.DNS_FIREWALL:
            return None
        teardown = await self.rule_groups(region).teardown()
        if not teardown.ok:
            logger.warning(f"DNS firewall rule group teardown in {region} incomplete: "
                           f"{[failure.to_dict() for failure in teardown.failures]}")
        return teardown
