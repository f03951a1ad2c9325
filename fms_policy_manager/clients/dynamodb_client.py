"""DynamoDB access for policy identity records."""
import json
import logging
from typing import Dict, Any, Optional

from botocore.exceptions import BotoCoreError, ClientError

from fms_policy_manager.models.errors import AWSClientError, ResourceNotFoundError
from fms_policy_manager.models.policy import PolicyIdentityRecord
from .base_client import BaseAWSClient

logger = logging.getLogger(__name__)


class PolicyTable(BaseAWSClient):
    """Policy identity records keyed by (PolicyName, Region)."""

    service_name = "dynamodb"

    def __init__(self, table: str, **kwargs):
        super().__init__(**kwargs)
        self.table = table

    def _describe(self, policy_name: str, region: str) -> str:
        return json.dumps({"primaryKey": policy_name, "sortKey": region, "table": self.table})

    async def get_record(self, policy_name: str, region: str) -> PolicyIdentityRecord:
        """Fetch a record; raise ResourceNotFoundError when it does not exist."""
        logger.debug(f"Fetching policy item {policy_name} in {region}")
        key = PolicyIdentityRecord(policy_name, region).key()
        try:
            response = await self._call("get_item", TableName=self.table, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error fetching policy item {policy_name} in {region}: {e}")
            raise AWSClientError(f"error getting ddb item {self._describe(policy_name, region)}") from e

        item = response.get("Item")
        if not item:
            logger.warning(f"Policy item not found: {self._describe(policy_name, region)}")
            raise ResourceNotFoundError()
        return PolicyIdentityRecord.from_dynamodb_item(item)

    async def save_record(self, policy_name: str, region: str, policy_id: str,
                          update_token: Optional[str]) -> PolicyIdentityRecord:
        """Create or overwrite the record with a fresh LastUpdatedAt."""
        record = PolicyIdentityRecord(
            policy_name=policy_name,
            region=region,
            policy_id=policy_id,
            policy_update_token=update_token,
            last_updated_at=PolicyIdentityRecord.timestamp()
        )
        names: Dict[str, str] = {"#AT": "LastUpdatedAt", "#PI": "PolicyId"}
        values: Dict[str, Any] = {
            ":t": {"S": record.last_updated_at},
            ":pi": {"S": policy_id},
        }
        expression = "SET #AT = :t, #PI = :pi"
        if update_token:
            names["#PO"] = "PolicyUpdateToken"
            values[":p"] = {"S": update_token}
            expression += ", #PO = :p"

        try:
            await self._call(
                "update_item",
                TableName=self.table,
                Key=record.key(),
                UpdateExpression=expression,
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error saving policy item {policy_name} in {region}: {e}")
            raise AWSClientError(f"error saving ddb item {self._describe(policy_name, region)}") from e

        logger.debug(f"Saved policy item {policy_name} in {region}")
        return record

    async def delete_record(self, policy_name: str, region: str) -> None:
        key = PolicyIdentityRecord(policy_name, region).key()
        try:
            await self._call("delete_item", TableName=self.table, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error deleting policy item {policy_name} in {region}: {e}")
            raise AWSClientError(f"error deleting ddb item {self._describe(policy_name, region)}") from e
        logger.debug(f"Deleted policy item {policy_name} in {region}")
