"""Local policy reconciliation scenarios against the in-memory AWS services."""
import json
from typing import Dict, Any, List, Optional

from fms_policy_manager.config import PolicyManagerConfig
from fms_policy_manager.handler import local_test
from simulation.aws_mock import MockAWSClients

MANIFEST_BUCKET = "fms-policy-manifest"
MANIFEST_KEY = "policy_manifest.json"

SAMPLE_MANIFEST = {
    "default": {
        "WAF_GLOBAL": {
            "policyName": "FMS-WAF-Global",
            "remediationEnabled": False,
            "resourceType": "AWS::CloudFront::Distribution",
            "policyDetails": {"type": "WAFV2", "defaultAction": {"type": "ALLOW"}}
        },
        "SHIELD_GLOBAL": {
            "policyName": "FMS-Shield-Global",
            "remediationEnabled": False,
            "resourceType": "AWS::CloudFront::Distribution",
            "policyDetails": {"type": "SHIELD_ADVANCED"}
        },
        "WAF_REGIONAL": {
            "policyName": "FMS-WAF-Regional",
            "remediationEnabled": False,
            "resourceType": "ResourceTypeList",
            "resourceTypeList": [
                "AWS::ElasticLoadBalancingV2::LoadBalancer",
                "AWS::ApiGateway::Stage"
            ],
            "policyDetails": {"type": "WAFV2", "defaultAction": {"type": "ALLOW"}}
        },
        "SHIELD_REGIONAL": {
            "policyName": "FMS-Shield-Regional",
            "remediationEnabled": False,
            "resourceType": "ResourceTypeList",
            "resourceTypeList": [
                "AWS::ElasticLoadBalancingV2::LoadBalancer",
                "AWS::EC2::EIP"
            ],
            "policyDetails": {"type": "SHIELD_ADVANCED"}
        },
        "SECURITY_GROUPS_USAGE_AUDIT": {
            "policyName": "FMS-SG-Usage-Audit",
            "remediationEnabled": False,
            "resourceType": "AWS::EC2::SecurityGroup",
            "policyDetails": {"type": "SECURITY_GROUPS_USAGE_AUDIT", "deleteUnusedSecurityGroups": False}
        },
        "SECURITY_GROUPS_CONTENT_AUDIT": {
            "policyName": "FMS-SG-Content-Audit",
            "remediationEnabled": False,
            "resourceType": "ResourceTypeList",
            "resourceTypeList": ["AWS::EC2::Instance", "AWS::EC2::NetworkInterface"],
            "policyDetails": {"type": "SECURITY_GROUPS_CONTENT_AUDIT"}
        },
        "DNS_FIREWALL": {
            "policyName": "FMS-DNS-Firewall",
            "remediationEnabled": False,
            "resourceType": "AWS::EC2::VPC",
            "policyDetails": {
                "type": "DNS_FIREWALL",
                "preProcessRuleGroups": [{"ruleGroupId": "%%AWS_MANAGED%%", "priority": 11}],
                "postProcessRuleGroups": []
            }
        }
    }
}


class PolicySimulator:
    """Runs parameter change scenarios end to end."""

    def __init__(self, mode: str = "dry_run", regions: str = "us-east-1,eu-west-1",
                 ous: str = "ou-abcd-12345678", config: Optional[PolicyManagerConfig] = None):
        self.mode = mode
        self.aws_client = MockAWSClients(mode=mode)
        self.config = config or PolicyManagerConfig(
            table="fms-policy-table",
            policy_manifest=f"{MANIFEST_BUCKET}|{MANIFEST_KEY}",
            policy_identifier="sim",
            policy_topic_arn="arn:aws:sns:us-east-1:123456789012:fms-policy-topic",
            send_metric=True,
            metrics_queue="https://sqs.us-east-1.amazonaws.com/123456789012/fms-metrics",
            uuid="00000000-0000-0000-0000-000000000000"
        )

        self.aws_client.put_parameter(self.config.region_parameter, regions, "StringList")
        self.aws_client.put_parameter(self.config.ou_parameter, ous, "StringList")
        self.aws_client.put_parameter(
            self.config.tag_parameter,
            json.dumps({"ResourceTags": [{"Key": "Environment", "Value": "Prod"}], "ExcludeResourceTags": False})
        )
        bucket, _, key = self.config.policy_manifest.partition("|")
        self.aws_client.put_object(bucket, key, json.dumps(SAMPLE_MANIFEST))

        print(f"Initialized Policy Simulator in {mode} mode")

    def run_scenario(self, scenario_name: str, parameter_name: str) -> Dict[str, Any]:
        """Run one parameter change and print what it did."""
        print(f"\n🧪 Running Scenario: {scenario_name}")
        print("=" * 50)

        self.aws_client.clear_logs()
        summary = local_test(parameter_name, self.config, self.aws_client.client)

        for batch in summary.get("batches", []):
            failed = [failure["unit"] for failure in batch["failures"]]
            print(f"{batch['action']} in {batch['region']}: "
                  f"{len(batch['succeeded'])} ok, {len(failed)} failed {failed or ''}")

        writes = [log for log in self.aws_client.get_logs()
                  if log["operation"] in ("PutPolicy", "DeletePolicy", "CreateFirewallRuleGroup",
                                          "DeleteFirewallRuleGroup")]
        print(f"\n🔧 AWS API Intent Logs ({self.mode} mode): {len(writes)} writes")
        for i, log in enumerate(writes, 1):
            print(f"{i}. {log['service']}.{log['operation']} in {log['region']}")

        return summary

    def set_parameter(self, name: str, value: str, parameter_type: str = "StringList"):
        self.aws_client.put_parameter(name, value, parameter_type)

    def run_all_scenarios(self) -> List[Dict[str, Any]]:
        results = [
            self.run_scenario("Tag change saves every policy", self.config.tag_parameter),
            self.run_scenario("Re-run updates in place", self.config.tag_parameter),
        ]

        self.set_parameter(self.config.region_parameter, "us-east-1")
        results.append(self.run_scenario("Region removed", self.config.region_parameter))

        self.set_parameter(self.config.ou_parameter, "delete")
        results.append(self.run_scenario("OUs deleted", self.config.ou_parameter))
        return results


def main():
    """Main entry point for policy simulation."""
    import argparse

    parser = argparse.ArgumentParser(description="FMS Policy Manager Simulator")
    parser.add_argument("--regions", default="us-east-1,eu-west-1", help="Comma separated regions")
    parser.add_argument("--ous", default="ou-abcd-12345678", help="Comma separated OU ids")
    parser.add_argument("--output", help="Write the scenario summaries to this JSON file")
    parser.add_argument("--env-file", help="Read PolicyManagerConfig settings from a .env file")

    args = parser.parse_args()

    config = None
    if args.env_file:
        from dotenv import dotenv_values
        config = PolicyManagerConfig.from_env(dotenv_values(args.env_file))

    simulator = PolicySimulator(regions=args.regions, ous=args.ous, config=config)
    results = simulator.run_all_scenarios()

    if args.output:
        with open(args.output, 'w') as f:
            json.dump(results, f, indent=2, default=str)
        print(f"\n💾 All simulation results saved to: {args.output}")


if __name__ == "__main__":
    main()
