"""Policy data models shared by the builder, persistence layer and engine."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Any, List, Optional

GLOBAL_REGION = "Global"
DELETE_SENTINEL = "delete"
AWS_MANAGED_PLACEHOLDER = "%%AWS_MANAGED%%"
NO_RULE_GROUP = "NOP"


class PolicyType(str, Enum):
    """Policy types supported by the manifest."""
    WAF_GLOBAL = "WAF_GLOBAL"
    WAF_REGIONAL = "WAF_REGIONAL"
    SHIELD_GLOBAL = "SHIELD_GLOBAL"
    SHIELD_REGIONAL = "SHIELD_REGIONAL"
    SG_USAGE_AUDIT = "SECURITY_GROUPS_USAGE_AUDIT"
    SG_CONTENT_AUDIT = "SECURITY_GROUPS_CONTENT_AUDIT"
    DNS_FIREWALL = "DNS_FIREWALL"


class EventSource(str, Enum):
    REGION = "Region"
    OU = "OU"
    TAG = "Tag"
    S3 = "S3"


class Partition(str, Enum):
    AWS = "aws"
    AWS_CN = "aws-cn"
    AWS_US_GOV = "aws-us-gov"

    @property
    def global_dataplane(self) -> str:
        """Region that serves global (CloudFront scoped) policies."""
        return _GLOBAL_DATAPLANES[self]


_GLOBAL_DATAPLANES = {
    Partition.AWS: "us-east-1",
    Partition.AWS_CN: "cn-north-1",
    Partition.AWS_US_GOV: "us-gov-west-1",
}

GLOBAL_POLICIES: List[PolicyType] = [PolicyType.WAF_GLOBAL, PolicyType.SHIELD_GLOBAL]

REGIONAL_POLICIES: List[PolicyType] = [
    PolicyType.SG_CONTENT_AUDIT,
    PolicyType.SG_USAGE_AUDIT,
    PolicyType.SHIELD_REGIONAL,
    PolicyType.WAF_REGIONAL,
    PolicyType.DNS_FIREWALL,
]

# Shield Advanced and global WAF are not offered outside the commercial partition
UNSUPPORTED_POLICIES: Dict[Partition, List[PolicyType]] = {
    Partition.AWS: [],
    Partition.AWS_CN: [PolicyType.SHIELD_GLOBAL, PolicyType.SHIELD_REGIONAL, PolicyType.WAF_GLOBAL],
    Partition.AWS_US_GOV: [PolicyType.SHIELD_GLOBAL, PolicyType.SHIELD_REGIONAL, PolicyType.WAF_GLOBAL],
}

# Policy types whose manifest entry carries a resourceTypeList
RESOURCE_TYPE_LIST_POLICIES = (
    PolicyType.WAF_REGIONAL,
    PolicyType.SHIELD_REGIONAL,
    PolicyType.SG_CONTENT_AUDIT,
)


def supported_policies(policies: List[PolicyType], partition: Partition) -> List[PolicyType]:
    """Drop the policy types a partition does not support."""
    unsupported = UNSUPPORTED_POLICIES.get(partition, [])
    return [policy for policy in policies if policy not in unsupported]


@dataclass
class PolicyTags:
    """Resource tags used to scope every policy."""
    resource_tags: List[Dict[str, str]] = field(default_factory=list)
    exclude_resource_tags: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PolicyTags":
        return cls(
            resource_tags=list(data.get("ResourceTags", [])),
            exclude_resource_tags=bool(data.get("ExcludeResourceTags", False))
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ResourceTags": self.resource_tags,
            "ExcludeResourceTags": self.exclude_resource_tags
        }


@dataclass
class ValidationResults:
    """Outcome of validating the three control inputs."""
    region_delete: bool = False
    region_valid: bool = False
    ou_delete: bool = False
    ou_valid: bool = False
    tag_delete: bool = False
    tag_valid: bool = False

    def to_dict(self) -> Dict[str, bool]:
        return {
            "RegionDelete": self.region_delete,
            "RegionValid": self.region_valid,
            "OUDelete": self.ou_delete,
            "OUValid": self.ou_valid,
            "TagDelete": self.tag_delete,
            "TagValid": self.tag_valid
        }


@dataclass
class PolicyIdentityRecord:
    """Maps a logical policy in a region to its FMS identity."""
    policy_name: str
    region: str
    policy_id: Optional[str] = None
    policy_update_token: Optional[str] = None
    last_updated_at: Optional[str] = None

    def key(self) -> Dict[str, Any]:
        return {
            "PolicyName": {"S": self.policy_name},
            "Region": {"S": self.region}
        }

    def to_dynamodb_item(self) -> Dict[str, Any]:
        """Convert to DynamoDB item format"""
        item = self.key()
        if self.policy_id:
            item["PolicyId"] = {"S": self.policy_id}
        if self.policy_update_token:
            item["PolicyUpdateToken"] = {"S": self.policy_update_token}
        if self.last_updated_at:
            item["LastUpdatedAt"] = {"S": self.last_updated_at}
        return item

    @classmethod
    def from_dynamodb_item(cls, item: Dict[str, Any]) -> "PolicyIdentityRecord":
        """Create a record from a DynamoDB item"""
        def _s(name: str) -> Optional[str]:
            return item.get(name, {}).get("S")

        return cls(
            policy_name=_s("PolicyName"),
            region=_s("Region"),
            policy_id=_s("PolicyId"),
            policy_update_token=_s("PolicyUpdateToken"),
            last_updated_at=_s("LastUpdatedAt")
        )

    @staticmethod
    def timestamp() -> str:
        return datetime.utcnow().isoformat()
