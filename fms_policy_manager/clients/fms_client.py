"""Firewall Manager policy client."""
import logging
from typing import Dict, Any

from botocore.exceptions import BotoCoreError, ClientError

from fms_policy_manager.models.errors import AWSClientError, PolicyNotReturnedError
from fms_policy_manager.models.policy import GLOBAL_REGION, Partition
from .base_client import BaseAWSClient

logger = logging.getLogger(__name__)


class FMSClient(BaseAWSClient):
    """FMS client bound to one region; "Global" maps to the partition dataplane."""

    service_name = "fms"

    def __init__(self, region: str, partition: Partition = Partition.AWS, **kwargs):
        self.policy_region = region
        client_region = partition.global_dataplane if region == GLOBAL_REGION else region
        super().__init__(region=client_region, **kwargs)

    async def put_policy(self, policy: Dict[str, Any]) -> Dict[str, Any]:
        name = policy.get("PolicyName")
        try:
            response = await self._call("put_policy", Policy=policy)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error putting policy {name} in {self.policy_region}: {e} "
                         f"(request id {self._request_id(e)})")
            raise AWSClientError(f"failed to save policy {name} in {self.policy_region}") from e

        logger.debug(f"Put policy {name} in {self.policy_region}")
        return response

    async def get_policy(self, policy_id: str) -> Dict[str, Any]:
        try:
            response = await self._call("get_policy", PolicyId=policy_id)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error getting policy {policy_id} in {self.policy_region}: {e}")
            raise AWSClientError("error getting policy") from e

        if not response.get("Policy"):
            raise PolicyNotReturnedError(f"No Policy found with policyId {policy_id}")
        return response["Policy"]

    async def delete_policy(self, policy_id: str) -> None:
        try:
            await self._call("delete_policy", PolicyId=policy_id, DeleteAllPolicyResources=True)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error deleting policy {policy_id} in {self.policy_region}: {e}")
            raise AWSClientError("error deleting policy") from e
        logger.debug(f"Deleted policy {policy_id} in {self.policy_region}")
