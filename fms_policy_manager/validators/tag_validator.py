"""Tag parameter checks."""
import json
import logging

from fms_policy_manager.models.policy import DELETE_SENTINEL
from .base_validator import BaseValidator

logger = logging.getLogger(__name__)

TAG_KEYS = {"Key", "Value"}


class TagValidator(BaseValidator):

    def is_delete(self, tags: str) -> bool:
        delete = isinstance(tags, str) and tags.lower() == DELETE_SENTINEL
        logger.debug(f"Tag parameter set to delete: {delete}")
        return delete

    async def is_valid(self, tags: str) -> bool:
        """Expects {"ResourceTags": [{"Key": str, "Value": str}], "ExcludeResourceTags": bool}."""
        try:
            parsed = json.loads(tags)
        except (TypeError, ValueError) as e:
            logger.warning(f"Tag parameter is not valid JSON: {e}")
            return False

        if not isinstance(parsed, dict):
            return False
        resource_tags = parsed.get("ResourceTags")
        if not isinstance(resource_tags, list) or not isinstance(parsed.get("ExcludeResourceTags"), bool):
            logger.warning("Tag parameter is missing ResourceTags or ExcludeResourceTags")
            return False

        for tag in resource_tags:
            if not isinstance(tag, dict) or set(tag) != TAG_KEYS:
                logger.warning(f"Invalid tag: {tag}")
                return False
            if not isinstance(tag["Key"], str) or not isinstance(tag["Value"], str):
                logger.warning(f"Invalid tag: {tag}")
                return False
        return True
