"""Object store reads."""
import logging

from botocore.exceptions import BotoCoreError, ClientError

from fms_policy_manager.models.errors import AWSClientError
from .base_client import BaseAWSClient

logger = logging.getLogger(__name__)


class ObjectStore(BaseAWSClient):
    service_name = "s3"

    async def get_object(self, bucket: str, key: str) -> str:
        """Return the object body decoded as UTF-8."""
        def _read() -> str:
            response = self.client.get_object(Bucket=bucket, Key=key)
            return response["Body"].read().decode("utf-8")

        try:
            body = await self._run(_read)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to fetch s3://{bucket}/{key}: {e}")
            raise AWSClientError("error getting object") from e

        logger.info(f"Fetched object {key} from bucket {bucket}")
        return body
