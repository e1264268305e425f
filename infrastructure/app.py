#!/usr/bin/env python3
"""
LogRelay CDK App
================
Deploys the LogRelay CloudFormation macro into one account/region. Templates
in the same region opt in with:

    Transform: LogRelay

or, with parameters:

    Transform:
      Name: LogRelay
      Parameters:
        forwarderArn: arn:aws:lambda:us-east-1:123456789012:function:log-forwarder
        addExtension: false

Run: cdk deploy -c forwarder_arn=<arn>
"""
import aws_cdk as cdk

from logrelay.macro_stack import MacroStack

app = cdk.App()

env = cdk.Environment(
    account=app.node.try_get_context("account"),
    region=app.node.try_get_context("region") or "us-east-1",
)

MacroStack(
    app, "LogRelayMacro",
    forwarder_arn=app.node.try_get_context("forwarder_arn"),
    env=env,
)

app.synth()
