from .dns_firewall import DNSFirewallRuleGroups
from .manifest_helper import ManifestHelper
from .policy_helper import PolicyHelper
from .policy_manager import PolicyManager
from .waiter import wait_until_rule_group_not_shared

__all__ = [
    "DNSFirewallRuleGroups",
    "ManifestHelper",
    "PolicyHelper",
    "PolicyManager",
    "wait_until_rule_group_not_shared",
]
