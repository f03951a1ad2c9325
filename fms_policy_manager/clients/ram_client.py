"""Resource Access Manager client for rule-group shares."""
import logging
from typing import List

from botocore.exceptions import BotoCoreError, ClientError

from fms_policy_manager.models.errors import AWSClientError
from .base_client import BaseAWSClient

logger = logging.getLogger(__name__)


class ResourceShareClient(BaseAWSClient):
    service_name = "ram"

    async def list_shares_for_resource(self, resource_arn: str) -> List[str]:
        """Share ARNs owned by this account that include the resource."""
        try:
            resources = await self._paginate(
                "list_resources", "resources",
                resourceOwner="SELF",
                resourceArns=[resource_arn]
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error listing resource shares for {resource_arn}: {e}")
            raise AWSClientError("error listing resources") from e
        return [resource["resourceShareArn"] for resource in resources if resource.get("resourceShareArn")]

    async def delete_share(self, share_arn: str) -> None:
        try:
            await self._call("delete_resource_share", resourceShareArn=share_arn)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to delete resource share {share_arn}: {e}")
            raise AWSClientError("error deleting resource shares") from e
        logger.debug(f"Deleted resource share {share_arn}")
