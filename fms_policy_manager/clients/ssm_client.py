"""SSM Parameter Store access for the control inputs."""
import logging
from typing import Dict, List

from botocore.exceptions import BotoCoreError, ClientError

from fms_policy_manager.models.errors import AWSClientError
from .base_client import BaseAWSClient

logger = logging.getLogger(__name__)


class ParameterStore(BaseAWSClient):
    service_name = "ssm"

    async def get_parameters(self, names: List[str]) -> Dict[str, str]:
        """Return the values of the named parameters keyed by full name.

        Every name must exist; a partial answer is an error.
        """
        try:
            response = await self._call("get_parameters", Names=list(names), WithDecryption=True)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error fetching SSM parameters {names}: {e}")
            raise AWSClientError(f"error fetching SSM parameters {names}") from e

        invalid = response.get("InvalidParameters", [])
        if invalid:
            logger.error(f"SSM parameters not found: {invalid}")
            raise AWSClientError(f"missing parameters {invalid}")

        values = {parameter["Name"]: parameter["Value"] for parameter in response.get("Parameters", [])}
        missing = [name for name in names if name not in values]
        if missing:
            raise AWSClientError(f"missing parameters {missing}")

        logger.info(f"Fetched SSM parameters: {sorted(values)}")
        return values
