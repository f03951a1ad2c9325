"""Anonymized operational metrics."""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fms_policy_manager.clients.base_client import ClientFactory
from fms_policy_manager.clients.sqs_client import MetricsQueue
from fms_policy_manager.config import PolicyManagerConfig
from fms_policy_manager.models.policy import PolicyType

logger = logging.getLogger(__name__)


class MetricsReporter:
    """Sends one metric per reconciled policy when the deployment opted in."""

    def __init__(self, config: PolicyManagerConfig, queue: Optional[MetricsQueue] = None,
                 client_factory: Optional[ClientFactory] = None):
        self.config = config
        self.queue = queue
        if self.queue is None and config.metrics_enabled:
            self.queue = MetricsQueue(
                config.metrics_queue,
                client_factory=client_factory,
                user_agent=config.user_agent
            )

    @property
    def enabled(self) -> bool:
        return self.config.metrics_enabled and self.queue is not None

    @staticmethod
    def timestamp() -> str:
        # java.sql.Timestamp compatible
        return datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]

    def build_metric(self, event: str, policy_type: PolicyType, region: str,
                     ou_count: Optional[int] = None) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if ou_count is not None:
            data["OUCount"] = str(ou_count)
        data.update({
            "Region": region,
            "Event": event,
            "Type": policy_type.value,
            "Version": self.config.solution_version,
        })
        return {
            "Solution": self.config.solution_id,
            "UUID": self.config.uuid,
            "TimeStamp": self.timestamp(),
            "Data": data,
        }

    async def send_policy_event(self, event: str, policy_type: PolicyType, region: str,
                                ou_count: Optional[int] = None) -> bool:
        if not self.enabled:
            return False
        metric = self.build_metric(event, policy_type, region, ou_count)
        logger.debug(f"Sending metric {metric}")
        return await self.queue.send(metric)
