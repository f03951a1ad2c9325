"""In-memory AWS services for local simulation and intent logging."""
import io
import logging
import re
import uuid
from datetime import datetime
from typing import Dict, Any, List, Optional, Tuple

from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

ACCOUNT_ID = "123456789012"
DEFAULT_REGIONS = ["us-east-1", "us-west-2", "eu-west-1", "ap-northeast-3"]
MANAGED_DOMAIN_LISTS = [
    "AWSManagedDomainsMalwareDomainList",
    "AWSManagedDomainsBotnetCommandandControl",
    "AWSManagedDomainsAggregateThreatList",
]


class MockAWSClients:
    """Stateful fakes for the AWS APIs the policy manager calls.

    ``client`` has the signature of ``boto3.client`` so it can be handed to
    any wrapper as its client factory. Every call is recorded in ``logs``.
    """

    def __init__(self, mode: str = "dry_run", regions: Optional[List[str]] = None,
                 partition: str = "aws"):
        self.mode = mode
        self.partition = partition
        self.logs: List[Dict[str, Any]] = []
        self.regions = list(regions or DEFAULT_REGIONS)

        self.parameters: Dict[str, Tuple[str, str]] = {}
        self.objects: Dict[Tuple[str, str], str] = {}
        self.items: Dict[Tuple[str, str, str], Dict[str, Any]] = {}
        self.policies: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.rule_groups: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.firewall_rules: Dict[str, List[Dict[str, Any]]] = {}
        self.shares: Dict[str, List[str]] = {}
        self.published: List[Dict[str, str]] = []
        self.messages: List[Dict[str, str]] = []
        self._failures: Dict[Tuple[str, str], str] = {}

    def log_intent(self, service: str, operation: str, params: Dict[str, Any], region: Optional[str] = None):
        """Log API call intent"""
        log_entry = {
            "timestamp": datetime.utcnow().isoformat(),
            "service": service,
            "operation": operation,
            "region": region,
            "parameters": params,
            "mode": self.mode
        }
        self.logs.append(log_entry)
        logger.debug(f"[MOCK AWS] {service}.{operation} in {region}")

        error_code = self._failures.get((service, operation))
        if error_code:
            raise ClientError(
                {"Error": {"Code": error_code, "Message": f"simulated {error_code}"},
                 "ResponseMetadata": {"RequestId": str(uuid.uuid4())}},
                operation
            )

    def fail(self, service: str, operation: str, error_code: str = "InternalFailure"):
        """Make every later call of an operation raise ClientError."""
        self._failures[(service, operation)] = error_code

    def recover(self, service: str, operation: str):
        self._failures.pop((service, operation), None)

    def calls(self, service: str, operation: str) -> List[Dict[str, Any]]:
        return [log for log in self.logs if log["service"] == service and log["operation"] == operation]

    def client(self, service_name: str, region_name: Optional[str] = None, config=None):
        """Drop-in replacement for ``boto3.client``."""
        clients = {
            "ssm": MockSSMClient,
            "ec2": MockEC2Client,
            "s3": MockS3Client,
            "dynamodb": MockDynamoDBClient,
            "fms": MockFMSClient,
            "route53resolver": MockRoute53ResolverClient,
            "ram": MockRAMClient,
            "sns": MockSNSClient,
            "sqs": MockSQSClient,
        }
        if service_name not in clients:
            raise ValueError(f"No mock client for {service_name}")
        return clients[service_name](self, region_name or "us-east-1")

    # Seed helpers

    def put_parameter(self, name: str, value: str, parameter_type: str = "String"):
        self.parameters[name] = (value, parameter_type)

    def put_object(self, bucket: str, key: str, body: str):
        self.objects[(bucket, key)] = body

    def share_rule_group(self, region: str, rule_group_id: str) -> str:
        """Share a rule group through RAM and return the share ARN."""
        group = self.rule_groups[region][rule_group_id]
        share_arn = f"arn:{self.partition}:ram:{region}:{ACCOUNT_ID}:resource-share/{uuid.uuid4()}"
        self.shares[share_arn] = [group["Arn"]]
        group["ShareStatus"] = "SHARED_BY_ME"
        return share_arn

    def get_logs(self) -> list:
        """Get all logged intents"""
        return self.logs

    def clear_logs(self):
        """Clear intent logs"""
        self.logs = []


def _not_found(operation: str, message: str = "not found") -> ClientError:
    return ClientError(
        {"Error": {"Code": "ResourceNotFoundException", "Message": message}},
        operation
    )


class _MockClient:
    service = ""

    def __init__(self, parent: MockAWSClients, region: str):
        self.parent = parent
        self.region = region

    def _log(self, operation: str, params: Dict[str, Any]):
        self.parent.log_intent(self.service, operation, params, self.region)

    def get_paginator(self, operation: str):
        return _SinglePagePaginator(getattr(self, operation))


class _SinglePagePaginator:

    def __init__(self, method):
        self.method = method

    def paginate(self, **kwargs):
        yield self.method(**kwargs)


class MockSSMClient(_MockClient):
    service = "ssm"

    def get_parameters(self, **kwargs):
        self._log("GetParameters", kwargs)
        names = kwargs["Names"]
        found = [name for name in names if name in self.parent.parameters]
        return {
            "Parameters": [
                {"Name": name, "Value": self.parent.parameters[name][0], "Type": self.parent.parameters[name][1]}
                for name in found
            ],
            "InvalidParameters": [name for name in names if name not in found]
        }


class MockEC2Client(_MockClient):
    service = "ec2"

    def describe_regions(self, **kwargs):
        self._log("DescribeRegions", kwargs)
        return {"Regions": [{"RegionName": region} for region in self.parent.regions]}


class MockS3Client(_MockClient):
    service = "s3"

    def get_object(self, **kwargs):
        self._log("GetObject", kwargs)
        body = self.parent.objects.get((kwargs["Bucket"], kwargs["Key"]))
        if body is None:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "key not found"}}, "GetObject")
        return {"Body": io.BytesIO(body.encode("utf-8"))}


class MockDynamoDBClient(_MockClient):
    service = "dynamodb"

    @staticmethod
    def _key(table: str, key: Dict[str, Any]) -> Tuple[str, str, str]:
        return table, key["PolicyName"]["S"], key["Region"]["S"]

    def get_item(self, **kwargs):
        self._log("GetItem", kwargs)
        item = self.parent.items.get(self._key(kwargs["TableName"], kwargs["Key"]))
        return {"Item": dict(item)} if item else {}

    def update_item(self, **kwargs):
        self._log("UpdateItem", kwargs)
        item_key = self._key(kwargs["TableName"], kwargs["Key"])
        item = self.parent.items.setdefault(item_key, dict(kwargs["Key"]))
        names = kwargs.get("ExpressionAttributeNames", {})
        values = kwargs.get("ExpressionAttributeValues", {})
        for name, value in re.findall(r"(#\w+)\s*=\s*(:\w+)", kwargs["UpdateExpression"]):
            item[names[name]] = values[value]
        return {}

    def delete_item(self, **kwargs):
        self._log("DeleteItem", kwargs)
        self.parent.items.pop(self._key(kwargs["TableName"], kwargs["Key"]), None)
        return {}


class MockFMSClient(_MockClient):
    service = "fms"

    @property
    def _policies(self) -> Dict[str, Dict[str, Any]]:
        return self.parent.policies.setdefault(self.region, {})

    def put_policy(self, **kwargs):
        self._log("PutPolicy", kwargs)
        policy = dict(kwargs["Policy"])
        policy_id = policy.get("PolicyId")
        if policy_id:
            current = self._policies.get(policy_id)
            if current is None:
                raise _not_found("PutPolicy", f"policy {policy_id} not found")
            if policy.get("PolicyUpdateToken") != current["PolicyUpdateToken"]:
                raise ClientError(
                    {"Error": {"Code": "InvalidOperationException", "Message": "stale update token"}},
                    "PutPolicy"
                )
            version = int(current["PolicyUpdateToken"].split(":")[0]) + 1
        else:
            policy_id = str(uuid.uuid4())
            version = 1

        policy["PolicyId"] = policy_id
        policy["PolicyUpdateToken"] = f"{version}:{uuid.uuid4().hex[:22]}"
        self._policies[policy_id] = policy
        return {
            "Policy": dict(policy),
            "PolicyArn": f"arn:{self.parent.partition}:fms:{self.region}:{ACCOUNT_ID}:policy/{policy_id}"
        }

    def get_policy(self, **kwargs):
        self._log("GetPolicy", kwargs)
        policy = self._policies.get(kwargs["PolicyId"])
        if policy is None:
            raise _not_found("GetPolicy", f"policy {kwargs['PolicyId']} not found")
        return {"Policy": dict(policy)}

    def delete_policy(self, **kwargs):
        self._log("DeletePolicy", kwargs)
        if self._policies.pop(kwargs["PolicyId"], None) is None:
            raise _not_found("DeletePolicy", f"policy {kwargs['PolicyId']} not found")
        return {}


class MockRoute53ResolverClient(_MockClient):
    service = "route53resolver"

    @property
    def _groups(self) -> Dict[str, Dict[str, Any]]:
        return self.parent.rule_groups.setdefault(self.region, {})

    def list_firewall_rule_groups(self, **kwargs):
        self._log("ListFirewallRuleGroups", kwargs)
        return {
            "FirewallRuleGroups": [
                {"Id": group["Id"], "Name": group["Name"], "Arn": group["Arn"]}
                for group in self._groups.values()
            ]
        }

    def list_firewall_domain_lists(self, **kwargs):
        self._log("ListFirewallDomainLists", kwargs)
        return {
            "FirewallDomainLists": [
                {"Id": f"rslvr-fdl-{index}-{self.region}", "Name": name, "ManagedOwnerName": "Route 53 Resolver DNS Firewall"}
                for index, name in enumerate(MANAGED_DOMAIN_LISTS)
            ]
        }

    def create_firewall_rule_group(self, **kwargs):
        self._log("CreateFirewallRuleGroup", kwargs)
        group_id = f"rslvr-frg-{uuid.uuid4().hex[:16]}"
        group = {
            "Id": group_id,
            "Name": kwargs["Name"],
            "Arn": f"arn:{self.parent.partition}:route53resolver:{self.region}:{ACCOUNT_ID}:firewall-rule-group/{group_id}",
            "ShareStatus": "NOT_SHARED",
        }
        self._groups[group_id] = group
        self.parent.firewall_rules[group_id] = []
        return {"FirewallRuleGroup": dict(group)}

    def create_firewall_rule(self, **kwargs):
        self._log("CreateFirewallRule", kwargs)
        group_id = kwargs["FirewallRuleGroupId"]
        if group_id not in self._groups:
            raise _not_found("CreateFirewallRule")
        rule = {key: kwargs[key] for key in (
            "FirewallRuleGroupId", "FirewallDomainListId", "Name", "Priority", "Action", "BlockResponse"
        )}
        self.parent.firewall_rules[group_id].append(rule)
        return {"FirewallRule": dict(rule)}

    def list_firewall_rules(self, **kwargs):
        self._log("ListFirewallRules", kwargs)
        return {"FirewallRules": list(self.parent.firewall_rules.get(kwargs["FirewallRuleGroupId"], []))}

    def delete_firewall_rule(self, **kwargs):
        self._log("DeleteFirewallRule", kwargs)
        rules = self.parent.firewall_rules.get(kwargs["FirewallRuleGroupId"], [])
        self.parent.firewall_rules[kwargs["FirewallRuleGroupId"]] = [
            rule for rule in rules if rule["FirewallDomainListId"] != kwargs["FirewallDomainListId"]
        ]
        return {}

    def delete_firewall_rule_group(self, **kwargs):
        self._log("DeleteFirewallRuleGroup", kwargs)
        group = self._groups.get(kwargs["FirewallRuleGroupId"])
        if group is None:
            raise _not_found("DeleteFirewallRuleGroup")
        if group["ShareStatus"] != "NOT_SHARED" or self.parent.firewall_rules.get(group["Id"]):
            raise ClientError(
                {"Error": {"Code": "ConflictException", "Message": "rule group in use"}},
                "DeleteFirewallRuleGroup"
            )
        del self._groups[group["Id"]]
        self.parent.firewall_rules.pop(group["Id"], None)
        return {}

    def get_firewall_rule_group(self, **kwargs):
        self._log("GetFirewallRuleGroup", kwargs)
        group = self._groups.get(kwargs["FirewallRuleGroupId"])
        if group is None:
            raise _not_found("GetFirewallRuleGroup")
        return {"FirewallRuleGroup": dict(group)}


class MockRAMClient(_MockClient):
    service = "ram"

    def list_resources(self, **kwargs):
        self._log("ListResources", kwargs)
        wanted = set(kwargs.get("resourceArns", []))
        return {
            "resources": [
                {"arn": arn, "resourceShareArn": share_arn}
                for share_arn, arns in self.parent.shares.items()
                for arn in arns
                if not wanted or arn in wanted
            ]
        }

    def delete_resource_share(self, **kwargs):
        self._log("DeleteResourceShare", kwargs)
        arns = self.parent.shares.pop(kwargs["resourceShareArn"], None)
        if arns is None:
            raise ClientError(
                {"Error": {"Code": "UnknownResourceException", "Message": "share not found"}},
                "DeleteResourceShare"
            )
        for groups in self.parent.rule_groups.values():
            for group in groups.values():
                if group["Arn"] in arns:
                    group["ShareStatus"] = "NOT_SHARED"
        return {"returnValue": True}


class MockSNSClient(_MockClient):
    service = "sns"

    def publish(self, **kwargs):
        self._log("Publish", kwargs)
        self.parent.published.append(
            {"TopicArn": kwargs["TopicArn"], "Subject": kwargs.get("Subject"), "Message": kwargs["Message"]}
        )
        return {"MessageId": str(uuid.uuid4())}


class MockSQSClient(_MockClient):
    service = "sqs"

    def send_message(self, **kwargs):
        self._log("SendMessage", kwargs)
        self.parent.messages.append({"QueueUrl": kwargs["QueueUrl"], "MessageBody": kwargs["MessageBody"]})
        return {"MessageId": str(uuid.uuid4())}
