"""DNS Firewall rule group lifecycle for the AWS managed bad-domain lists."""
import logging
from typing import Optional

from fms_policy_manager.clients.ram_client import ResourceShareClient
from fms_policy_manager.clients.route53_client import DNSFirewallClient
from fms_policy_manager.models.errors import AWSClientError, WaiterTimeoutError
from fms_policy_manager.models.policy import NO_RULE_GROUP
from fms_policy_manager.models.results import RuleGroupResult, UnitFailure, WaiterState
from .waiter import wait_until_rule_group_not_shared

logger = logging.getLogger(__name__)

RULE_GROUP_PREFIX = "DNS-Block-AWSManagedBadDomains"
MANAGED_DOMAIN_LISTS = [
    "AWSManagedDomainsMalwareDomainList",
    "AWSManagedDomainsBotnetCommandandControl",
]


def rule_group_name(policy_identifier: str) -> str:
    return f"{RULE_GROUP_PREFIX}-{policy_identifier}"


class DNSFirewallRuleGroups:
    """Creates and tears down the managed-domain block rule group in one region."""

    def __init__(self, policy_identifier: str, firewall: DNSFirewallClient,
                 shares: ResourceShareClient, waiter=wait_until_rule_group_not_shared):
        self.name = rule_group_name(policy_identifier)
        self.firewall = firewall
        self.shares = shares
        self.waiter = waiter

    async def find_existing(self) -> Optional[str]:
        """Id of a rule group already carrying the deterministic name."""
        groups = await self.firewall.list_rule_groups(self.name)
        for group in groups:
            if group.get("Id"):
                return group["Id"]
        return None

    async def create(self) -> RuleGroupResult:
        """Create the rule group and one BLOCK rule per managed domain list.

        ``rule_group_id`` is NO_RULE_GROUP when the group could not be
        created. Rule creation failures are tolerated and recorded.
        """
        result = RuleGroupResult()
        domain_lists = await self.firewall.list_domain_lists(MANAGED_DOMAIN_LISTS)
        if not domain_lists:
            logger.warning(f"No AWS managed domain lists found in {self.firewall.region}")
            result.rule_group_id = NO_RULE_GROUP
            return result

        rule_group_id = await self.firewall.create_rule_group(self.name)
        if not rule_group_id:
            logger.warning(f"Rule group {self.name} was not created in {self.firewall.region}")
            result.rule_group_id = NO_RULE_GROUP
            return result
        result.rule_group_id = rule_group_id

        for index, domain_list in enumerate(domain_lists):
            rule_name = f"Block-{domain_list['Name']}"
            try:
                await self.firewall.create_block_rule(
                    rule_group_id, domain_list["Id"], rule_name, priority=index + 1
                )
            except AWSClientError as e:
                logger.warning(f"Rule {rule_name} not added to {rule_group_id}: {e}")
                result.failures.append(UnitFailure(rule_name, e))

        logger.info(f"Created rule group {self.name} ({rule_group_id}) in {self.firewall.region}")
        return result

    async def teardown(self) -> RuleGroupResult:
        """Delete every rule group with the deterministic name. Never raises."""
        result = RuleGroupResult()
        try:
            groups = await self.firewall.list_rule_groups(self.name)
        except AWSClientError as e:
            logger.error(f"Rule group teardown in {self.firewall.region} aborted: {e}")
            result.failures.append(UnitFailure(self.name, e))
            return result

        if not groups:
            error = AWSClientError(f"rule group {self.name} not found")
            logger.error(f"Rule group teardown in {self.firewall.region} aborted: {error}")
            result.failures.append(UnitFailure(self.name, error))
            return result

        for group in groups:
            try:
                await self._delete_group(group)
                result.deleted_rule_groups.append(group["Id"])
            except Exception as e:
                logger.error(f"DNS firewall rule group {group.get('Id')} delete failed "
                             f"in {self.firewall.region}, error: {e}")
                result.failures.append(UnitFailure(group.get("Id", self.name), e))
        return result

    async def _delete_group(self, group) -> None:
        rule_group_id = group["Id"]
        for rule in await self.firewall.list_rules(rule_group_id):
            await self.firewall.delete_rule(rule_group_id, rule["FirewallDomainListId"])

        if group.get("Arn"):
            for share_arn in await self.shares.list_shares_for_resource(group["Arn"]):
                await self.shares.delete_share(share_arn)

        waited = await self.waiter(self.firewall, rule_group_id)
        if waited.state == WaiterState.FAILURE:
            raise AWSClientError(f"error reading share status of {rule_group_id}: {waited.reason}")
        if waited.state == WaiterState.TIMEOUT:
            raise WaiterTimeoutError(f"rule group {rule_group_id} still shared: {waited.reason}")

        await self.firewall.delete_rule_group(rule_group_id)
