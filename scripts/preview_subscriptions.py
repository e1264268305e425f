"""
Preview what LogRelay would add to a template.
==============================================
Runs the subscription engine against a compiled CloudFormation template on
disk and prints the resources it would add plus any warnings. The template
file is not modified.

Usage:
  # e.g. .serverless/cloudformation-template-update-stack.json
  python scripts/preview_subscriptions.py \\
      --template template.json \\
      --forwarder arn:aws:lambda:us-east-1:123456789012:function:log-forwarder \\
      --service my-service --stage dev --no-extension

  # Offline: skip the forwarder and quota lookups against AWS
  python scripts/preview_subscriptions.py --template template.json \\
      --forwarder '{"Fn::ImportValue": "LogForwarderArn"}' --offline
"""
from __future__ import annotations

import argparse
import json
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "services"))

from shared.config import ForwarderConfig, LoggingConfig  # noqa: E402
from shared.naming import StackNaming  # noqa: E402
from shared.resources import Handler  # noqa: E402
from subscription_service.engine import plan_forwarder_subscriptions  # noqa: E402
from subscription_service.execution_logs import plan_execution_log_groups  # noqa: E402
from subscription_service.quota import QuotaDecision  # noqa: E402


OFFLINE_NOTICE = "Offline: forwarder existence and existing subscription filters were not checked."


class _OfflineLambda:
    """Stand-in Lambda client that reports every forwarder as present."""

    def get_function(self, FunctionName: str):
        return {"Configuration": {"FunctionName": FunctionName}}


class _OfflineQuota:
    """Stand-in quota check that assumes every log group is empty."""

    def check(self, log_group_name: str, expected_prefix: str):
        return QuotaDecision(allowed=True, log_group_name=log_group_name)


def _parse_destination(value: str):
    # Intrinsics are passed as JSON objects
    if value.lstrip().startswith("{"):
        return json.loads(value)
    return value


def preview(args: argparse.Namespace) -> int:
    with open(args.template) as f:
        template = json.load(f)
    resources = template.get("Resources")

    destination = _parse_destination(args.forwarder)
    config = ForwarderConfig(
        extension_active=args.extension,
        subscribe_access_logs=not args.no_access_logs,
        subscribe_execution_logs=args.execution_logs,
    )
    flags = LoggingConfig.resolve(json.loads(args.logs_config) if args.logs_config else None)
    naming = StackNaming(service=args.service, stage=args.stage, stack_name=args.stack_name)
    handlers = [Handler(name=name) for name in args.function]

    plan = plan_forwarder_subscriptions(
        resources, destination, config, handlers, flags, naming,
        quota=_OfflineQuota() if args.offline else None,
        lambda_client=_OfflineLambda() if args.offline else None,
    )
    patch = plan.patch
    if config.subscribe_execution_logs and resources:
        patch = patch.merge(plan_execution_log_groups(destination, flags, args.stage))

    print(json.dumps(patch.to_cfn(), indent=2))
    warnings = [OFFLINE_NOTICE, *plan.warnings] if args.offline else plan.warnings
    for warning in warnings:
        print(f"WARNING: {warning}", file=sys.stderr)
    print(f"\n{len(patch)} resource(s) would be added", file=sys.stderr)
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Preview LogRelay forwarder subscriptions")
    parser.add_argument("--template", required=True, help="Compiled CloudFormation template (JSON)")
    parser.add_argument("--forwarder", required=True, help="Forwarder ARN, or an intrinsic as JSON")
    parser.add_argument("--service", default="service")
    parser.add_argument("--stage", default="dev")
    parser.add_argument("--stack-name", default=None)
    parser.add_argument("--function", action="append", default=[], help="Function name (repeatable)")
    parser.add_argument("--logs-config", default=None, help="Provider API logging block as JSON")
    parser.add_argument("--extension", action=argparse.BooleanOptionalAction, default=True)
    parser.add_argument("--no-access-logs", action="store_true")
    parser.add_argument("--execution-logs", action="store_true")
    parser.add_argument("--offline", action="store_true", help="Skip AWS lookups")
    args = parser.parse_args()

    sys.exit(preview(args))
