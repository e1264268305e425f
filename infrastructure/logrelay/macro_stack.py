"""
Macro Stack
===========
Deploys the LogRelay transform: one Lambda function registered as the
CloudFormation macro `LogRelay`.

The function needs read-only access to two APIs:
- lambda:GetFunction                    (forwarder existence check)
- logs:DescribeSubscriptionFilters      (per-log-group quota check)

The whole services/ tree is shipped as the code asset so `shared` and
`subscription_service` import as packages.
"""
import aws_cdk as cdk
from aws_cdk import aws_iam as iam
from aws_cdk import aws_lambda as _lambda
from aws_cdk import aws_logs as logs
from constructs import Construct

LAMBDA_RUNTIME = _lambda.Runtime.PYTHON_3_11
MACRO_NAME = "LogRelay"


class MacroStack(cdk.Stack):
    def __init__(self, scope: Construct, id: str, *, forwarder_arn: str | None = None, **kwargs):
        super().__init__(scope, id, **kwargs)

        environment = {"LOG_LEVEL": "INFO"}
        if forwarder_arn:
            # Default forwarder for templates that don't pass one
            environment["FORWARDER_ARN"] = forwarder_arn

        self.macro_fn = _lambda.Function(
            self, "MacroFunction",
            function_name="logrelay-macro",
            runtime=LAMBDA_RUNTIME,
            handler="subscription_service.handler.handler",
            code=_lambda.Code.from_asset("../services"),
            environment=environment,
            tracing=_lambda.Tracing.ACTIVE,
            log_retention=logs.RetentionDays.ONE_WEEK,
            timeout=cdk.Duration.seconds(60),  # one DescribeSubscriptionFilters per log group
            memory_size=256,
        )

        self.macro_fn.add_to_role_policy(iam.PolicyStatement(
            actions=["lambda:GetFunction"],
            resources=["*"],
        ))
        self.macro_fn.add_to_role_policy(iam.PolicyStatement(
            actions=["logs:DescribeSubscriptionFilters"],
            resources=["*"],
        ))

        cdk.CfnMacro(
            self, "Macro",
            name=MACRO_NAME,
            function_name=self.macro_fn.function_arn,
            description="Subscribes log groups to a log forwarder function",
        )

        cdk.CfnOutput(self, "MacroName", value=MACRO_NAME)
        cdk.CfnOutput(self, "MacroFunctionArn", value=self.macro_fn.function_arn)
