"""Metrics queue client."""
import json
import logging
from typing import Dict, Any

from botocore.exceptions import BotoCoreError, ClientError

from .base_client import BaseAWSClient

logger = logging.getLogger(__name__)


class MetricsQueue(BaseAWSClient):
    service_name = "sqs"

    def __init__(self, queue_url: str, **kwargs):
        super().__init__(**kwargs)
        self.queue_url = queue_url

    async def send(self, metric: Dict[str, Any]) -> bool:
        try:
            await self._call("send_message", QueueUrl=self.queue_url, MessageBody=json.dumps(metric))
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"Error sending metric to {self.queue_url}: {e}")
            return False
        return True
