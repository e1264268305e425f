"""
Pytest configuration and shared fixtures.
Unit tests use moto (AWS mocks in-process) or botocore's Stubber when an
exact service reply is needed.
Integration tests use LocalStack (real service emulation via Docker).
"""
import io
import json
import os
import zipfile

import boto3
import pytest
from moto import mock_aws

# No X-Ray daemon in tests; must be set before aws_xray_sdk is imported
os.environ.setdefault("AWS_XRAY_SDK_ENABLED", "false")

REGION = "us-east-1"
FORWARDER_NAME = "log-forwarder"


@pytest.fixture(autouse=True)
def aws_env(monkeypatch):
    """Set fake AWS credentials so boto3 doesn't error in tests."""
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "test")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "test")
    monkeypatch.delenv("FORWARDER_ARN", raising=False)
    monkeypatch.delenv("SERVICE_NAME", raising=False)
    monkeypatch.delenv("STAGE", raising=False)


def _zip_handler() -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("lambda_function.py", "def lambda_handler(event, context):\n    return event\n")
    return buf.getvalue()


def create_forwarder(function_name: str = FORWARDER_NAME) -> str:
    """
    Create a forwarder Lambda (and its role) inside an active mock.
    Returns the function ARN.
    """
    iam = boto3.client("iam", region_name=REGION)
    role = iam.create_role(
        RoleName=f"{function_name}-role",
        AssumeRolePolicyDocument=json.dumps({
            "Version": "2012-10-17",
            "Statement": [{
                "Effect": "Allow",
                "Principal": {"Service": "lambda.amazonaws.com"},
                "Action": "sts:AssumeRole",
            }],
        }),
    )
    fn = boto3.client("lambda", region_name=REGION).create_function(
        FunctionName=function_name,
        Runtime="python3.11",
        Role=role["Role"]["Arn"],
        Handler="lambda_function.lambda_handler",
        Code={"ZipFile": _zip_handler()},
    )
    return fn["FunctionArn"]


class FakeQuota:
    """Records quota checks; rejects the log group names listed in `full`."""

    def __init__(self, full=()):
        self.full = set(full)
        self.calls = []

    def check(self, log_group_name, expected_prefix):
        from subscription_service.quota import QuotaDecision

        self.calls.append((log_group_name, expected_prefix))
        rejected = log_group_name in self.full
        return QuotaDecision(
            allowed=not rejected,
            log_group_name=log_group_name,
            existing_count=2 if rejected else 0,
        )


@pytest.fixture
def fake_quota():
    return FakeQuota()


@pytest.fixture
def make_quota():
    return FakeQuota


@pytest.fixture
def mocked_aws(aws_env):
    """All boto3 calls inside the test go to moto."""
    with mock_aws():
        yield


@pytest.fixture
def forwarder_arn(mocked_aws):
    return create_forwarder()
