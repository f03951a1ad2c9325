"""Policy manifest retrieval."""
import logging

from fms_policy_manager.clients.s3_client import ObjectStore
from fms_policy_manager.clients.sns_client import NotificationPublisher
from fms_policy_manager.models.errors import AWSClientError, ManifestFetchError

logger = logging.getLogger(__name__)

MANIFEST_ERROR_SUBJECT = "FMS Policy Manager Error Retrieving policy_manifest File From S3"
MANIFEST_ERROR_MESSAGE = (
    "The FMS Policy Manager could not retrieve the policy_manifest file from S3. "
    "No policies were changed. Verify the manifest object exists and the function can read it."
)


class ManifestHelper:

    def __init__(self, topic_arn: str, object_store: ObjectStore, publisher: NotificationPublisher):
        self.topic_arn = topic_arn
        self.object_store = object_store
        self.publisher = publisher

    async def fetch_manifest(self, manifest_location: str) -> str:
        """Download the manifest addressed as "<bucket>|<key>"."""
        bucket, _, key = manifest_location.partition("|")
        try:
            if not bucket or not key:
                raise AWSClientError(f"invalid manifest location {manifest_location}")
            manifest = await self.object_store.get_object(bucket, key)
        except AWSClientError as e:
            await self.publisher.publish(self.topic_arn, MANIFEST_ERROR_SUBJECT, MANIFEST_ERROR_MESSAGE)
            logger.error(f"Failed to fetch policy manifest {manifest_location}: {e}")
            raise ManifestFetchError() from e

        logger.info(f"Fetched policy manifest from bucket {bucket}")
        return manifest
