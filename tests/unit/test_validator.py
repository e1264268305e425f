"""
Unit tests for forwarder validation.
"""
import sys
sys.path.insert(0, "services")

from unittest.mock import MagicMock

import boto3
from botocore.exceptions import NoRegionError
import pytest
from moto import mock_aws

from shared.config import ForwarderConfig
from subscription_service.validator import (
    SKIPPED_INTEGRATION_TESTING,
    SKIPPED_INTRINSIC,
    ForwarderNotFoundError,
    validate_forwarder,
)


def test_existing_forwarder_passes(forwarder_arn):
    assert validate_forwarder(forwarder_arn, ForwarderConfig()) == []


@mock_aws
def test_missing_forwarder_raises(aws_env):
    arn = "arn:aws:lambda:us-east-1:123456789012:function:does-not-exist"

    with pytest.raises(ForwarderNotFoundError) as exc_info:
        validate_forwarder(arn, ForwarderConfig(), lambda_client=boto3.client("lambda"))

    assert exc_info.value.destination == arn
    assert f"Could not perform GetFunction on {arn}." == str(exc_info.value)


def test_intrinsic_destination_skips_lookup():
    client = MagicMock()

    warnings = validate_forwarder({"Fn::ImportValue": "Forwarder"}, ForwarderConfig(), lambda_client=client)

    assert warnings == [SKIPPED_INTRINSIC]
    client.get_function.assert_not_called()


def test_integration_testing_skips_lookup():
    client = MagicMock()

    warnings = validate_forwarder("arn:forwarder", ForwarderConfig(integration_testing=True), lambda_client=client)

    assert warnings == [SKIPPED_INTEGRATION_TESTING]
    client.get_function.assert_not_called()


def test_intrinsic_warning_takes_precedence_over_integration_testing():
    warnings = validate_forwarder(
        {"Ref": "Forwarder"}, ForwarderConfig(integration_testing=True), lambda_client=MagicMock(),
    )
    assert warnings == [SKIPPED_INTRINSIC]


def test_lookup_is_issued_exactly_once():
    client = MagicMock()

    validate_forwarder("arn:forwarder", ForwarderConfig(), lambda_client=client)

    client.get_function.assert_called_once_with(FunctionName="arn:forwarder")


def test_client_construction_failure_is_a_missing_forwarder(monkeypatch):
    def no_region(*args, **kwargs):
        raise NoRegionError()

    monkeypatch.setattr("subscription_service.validator.boto3.client", no_region)

    with pytest.raises(ForwarderNotFoundError):
        validate_forwarder("arn:forwarder", ForwarderConfig())
