from .base_client import BaseAWSClient
from .dynamodb_client import PolicyTable
from .ec2_client import RegionLister
from .fms_client import FMSClient
from .ram_client import ResourceShareClient
from .route53_client import DNSFirewallClient
from .s3_client import ObjectStore
from .sns_client import NotificationPublisher
from .sqs_client import MetricsQueue
from .ssm_client import ParameterStore

__all__ = [
    "BaseAWSClient",
    "PolicyTable",
    "RegionLister",
    "FMSClient",
    "ResourceShareClient",
    "DNSFirewallClient",
    "ObjectStore",
    "NotificationPublisher",
    "MetricsQueue",
    "ParameterStore",
]
