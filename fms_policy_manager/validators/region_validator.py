"""Region parameter checks against the live region list."""
import logging
from typing import List

from fms_policy_manager.clients.ec2_client import RegionLister
from fms_policy_manager.models.errors import RegionsNotFoundError
from .base_validator import BaseValidator

logger = logging.getLogger(__name__)


class RegionValidator(BaseValidator):

    def __init__(self, region_lister: RegionLister):
        self.region_lister = region_lister

    def is_delete(self, regions: List[str]) -> bool:
        delete = self._is_delete_list(regions)
        logger.debug(f"Region parameter set to delete: {delete}")
        return delete

    async def is_valid(self, regions: List[str]) -> bool:
        """True when every requested region is a known region.

        Raises RegionsNotFoundError if the region lister itself comes back
        empty, since nothing can be validated against it.
        """
        known_regions = await self.region_lister.get_regions()
        if not isinstance(known_regions, list) or not known_regions:
            raise RegionsNotFoundError()

        if not isinstance(regions, list):
            logger.error("Region parameter is not a list")
            return False
        for region in regions:
            if region not in known_regions:
                logger.error(f"Invalid region provided: {region}")
                return False
        return True
