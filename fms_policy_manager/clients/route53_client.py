"""Route 53 Resolver DNS Firewall client."""
import logging
import uuid
from typing import Dict, Any, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from fms_policy_manager.models.errors import AWSClientError
from .base_client import BaseAWSClient

logger = logging.getLogger(__name__)


class DNSFirewallClient(BaseAWSClient):
    service_name = "route53resolver"

    async def list_rule_groups(self, name: str) -> List[Dict[str, Any]]:
        """Rule groups whose name matches exactly."""
        try:
            groups = await self._paginate("list_firewall_rule_groups", "FirewallRuleGroups")
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error listing firewall rule groups in {self.region}: {e}")
            raise AWSClientError("error listing firewall rule groups") from e
        return [group for group in groups if group.get("Name") == name]

    async def list_domain_lists(self, names: List[str]) -> List[Dict[str, Any]]:
        try:
            domain_lists = await self._paginate("list_firewall_domain_lists", "FirewallDomainLists")
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error listing firewall domain lists in {self.region}: {e}")
            raise AWSClientError("error listing firewall domain lists") from e
        return [domain_list for domain_list in domain_lists if domain_list.get("Name") in names]

    async def create_rule_group(self, name: str) -> Optional[str]:
        """Create a rule group and return its id, if the service returned one."""
        try:
            response = await self._call(
                "create_firewall_rule_group",
                Name=name,
                CreatorRequestId=str(uuid.uuid4())
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error creating firewall rule group {name} in {self.region}: {e}")
            raise AWSClientError("error creating firewall rule group") from e
        return response.get("FirewallRuleGroup", {}).get("Id")

    async def create_block_rule(self, rule_group_id: str, domain_list_id: str,
                                name: str, priority: int) -> None:
        try:
            await self._call(
                "create_firewall_rule",
                CreatorRequestId=str(uuid.uuid4()),
                FirewallRuleGroupId=rule_group_id,
                FirewallDomainListId=domain_list_id,
                Priority=priority,
                Action="BLOCK",
                BlockResponse="NODATA",
                Name=name
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error creating firewall rule {name} in {self.region}: {e}")
            raise AWSClientError("error creating firewall rule") from e

    async def list_rules(self, rule_group_id: str) -> List[Dict[str, Any]]:
        try:
            return await self._paginate(
                "list_firewall_rules", "FirewallRules", FirewallRuleGroupId=rule_group_id
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error listing firewall rules for {rule_group_id}: {e}")
            raise AWSClientError("error listing firewall rules") from e

    async def delete_rule(self, rule_group_id: str, domain_list_id: str) -> None:
        try:
            await self._call(
                "delete_firewall_rule",
                FirewallRuleGroupId=rule_group_id,
                FirewallDomainListId=domain_list_id
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error deleting firewall rule {domain_list_id} from {rule_group_id}: {e}")
            raise AWSClientError("error deleting firewall rule") from e

    async def delete_rule_group(self, rule_group_id: str) -> None:
        try:
            await self._call("delete_firewall_rule_group", FirewallRuleGroupId=rule_group_id)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error deleting firewall rule group {rule_group_id}: {e}")
            raise AWSClientError("error deleting firewall rule group") from e
        logger.debug(f"Deleted firewall rule group {rule_group_id} in {self.region}")

    async def get_share_status(self, rule_group_id: str) -> Optional[str]:
        """Current ShareStatus of a rule group; errors propagate to the waiter."""
        response = await self._call("get_firewall_rule_group", FirewallRuleGroupId=rule_group_id)
        return response.get("FirewallRuleGroup", {}).get("ShareStatus")
