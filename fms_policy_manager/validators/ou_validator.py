"""Organizational unit parameter checks."""
import logging
import re
from typing import List

from .base_validator import BaseValidator

logger = logging.getLogger(__name__)

OU_PATTERN = re.compile(r"^ou-[0-9a-z]{4,32}-[0-9a-z]{8,32}$")


class OUValidator(BaseValidator):

    def is_delete(self, ous: List[str]) -> bool:
        delete = self._is_delete_list(ous)
        logger.debug(f"OU parameter set to delete: {delete}")
        return delete

    async def is_valid(self, ous: List[str]) -> bool:
        if not isinstance(ous, list):
            logger.error("OU parameter is not a list")
            return False
        for ou in ous:
            if not isinstance(ou, str) or not OU_PATTERN.match(ou):
                logger.error(f"Invalid OU id provided: {ou}")
                return False
        return True
