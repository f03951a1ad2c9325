"""Region listing through EC2 DescribeRegions."""
import logging
from typing import List

from botocore.exceptions import BotoCoreError, ClientError

from fms_policy_manager.models.errors import AWSClientError
from .base_client import BaseAWSClient

logger = logging.getLogger(__name__)

# Osaka is opt-in only and not targeted by the policies
EXCLUDED_REGIONS = ("ap-northeast-3",)


class RegionLister(BaseAWSClient):
    service_name = "ec2"

    async def get_regions(self) -> List[str]:
        """Return every region name except the excluded ones."""
        try:
            response = await self._call("describe_regions", AllRegions=True)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error describing EC2 regions: {e}")
            raise AWSClientError("error fetching ec2 regions") from e

        if "Regions" not in response:
            logger.error("DescribeRegions returned no Regions")
            raise AWSClientError("error fetching ec2 regions")

        regions = [
            region["RegionName"] for region in response["Regions"]
            if region.get("RegionName") and region["RegionName"] not in EXCLUDED_REGIONS
        ]
        logger.debug(f"Retrieved regions: {regions}")
        return regions
