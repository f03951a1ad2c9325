"""Invocation configuration, read once from the Lambda environment."""
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from fms_policy_manager.models.policy import Partition


@dataclass(frozen=True)
class PolicyManagerConfig:
    table: str
    policy_manifest: str
    policy_identifier: str
    policy_topic_arn: str
    partition: Partition = Partition.AWS
    ssm_param_prefix: str = "/FMS/"
    region_parameter: str = "/FMS/Regions"
    ou_parameter: str = "/FMS/OUs"
    tag_parameter: str = "/FMS/Tags"
    send_metric: bool = False
    metrics_queue: Optional[str] = None
    uuid: Optional[str] = None
    solution_id: str = "SO0134"
    solution_version: str = "v0.1.0"
    max_attempts: int = 10
    user_agent: Optional[str] = None
    log_level: str = "INFO"

    @property
    def metrics_enabled(self) -> bool:
        return bool(self.send_metric and self.uuid and self.metrics_queue)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PolicyManagerConfig":
        """Build the configuration from environment variables."""
        env = os.environ if environ is None else environ
        prefix = env.get("SSM_PARAM_PREFIX", "/FMS/")
        return cls(
            table=env.get("FMS_TABLE", ""),
            policy_manifest=env.get("POLICY_MANIFEST", ""),
            policy_identifier=env.get("POLICY_IDENTIFIER", ""),
            policy_topic_arn=env.get("POLICY_TOPIC_ARN", ""),
            partition=Partition(env.get("PARTITION", "aws")),
            ssm_param_prefix=prefix,
            region_parameter=env.get("FMS_REGION", f"{prefix}Regions"),
            ou_parameter=env.get("FMS_OU", f"{prefix}OUs"),
            tag_parameter=env.get("FMS_TAG", f"{prefix}Tags"),
            send_metric=env.get("SEND_METRIC", "No").lower() == "yes",
            metrics_queue=env.get("METRICS_QUEUE") or None,
            uuid=env.get("UUID") or None,
            solution_id=env.get("SOLUTION_ID", "SO0134"),
            solution_version=env.get("SOLUTION_VERSION", "v0.1.0"),
            max_attempts=int(env.get("MAX_ATTEMPTS", "10")),
            user_agent=env.get("CUSTOM_SDK_USER_AGENT") or None,
            log_level=env.get("LOG_LEVEL", "INFO").upper()
        )
