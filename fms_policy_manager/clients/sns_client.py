"""Notification publisher."""
import logging

from botocore.exceptions import BotoCoreError, ClientError

from .base_client import BaseAWSClient

logger = logging.getLogger(__name__)


class NotificationPublisher(BaseAWSClient):
    service_name = "sns"

    async def publish(self, topic_arn: str, subject: str, message: str) -> bool:
        """Publish a message; failures are logged and reported as False."""
        try:
            await self._call("publish", TopicArn=topic_arn, Subject=subject, Message=message)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error publishing message to SNS topic {topic_arn}: {e}")
            return False
        logger.debug(f"Published '{subject}' to {topic_arn}")
        return True
