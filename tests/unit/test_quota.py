"""
Unit tests for the subscription filter quota check.

CloudWatch Logs allows two subscription filters per log group. These tests
pin the decision rule:
  - an existing filter with our prefix -> allowed (it is ours)
  - two foreign filters                -> rejected
  - fewer than two                     -> allowed
  - describe fails                     -> treated as no filters
"""
import sys
sys.path.insert(0, "services")

import boto3
import pytest
from botocore.stub import Stubber
from moto import mock_aws

from subscription_service.quota import (
    MAX_SUBSCRIPTION_FILTERS,
    SubscriptionQuota,
    can_subscribe_log_group,
)

LOG_GROUP = "/aws/lambda/foo"
PREFIX = "svc-dev-FooLogGroupSubscription-"


def _filter(name: str) -> dict:
    return {
        "filterName": name,
        "logGroupName": LOG_GROUP,
        "filterPattern": "",
        "destinationArn": "arn:aws:lambda:us-east-1:123456789012:function:other",
        "roleArn": "arn:aws:iam::123456789012:role/other",
        "distribution": "ByLogStream",
        "creationTime": 1700000000000,
    }


@pytest.fixture
def stubbed_logs():
    client = boto3.client("logs", region_name="us-east-1")
    with Stubber(client) as stubber:
        yield client, stubber
        stubber.assert_no_pending_responses()


def _reply(stubber, *names):
    stubber.add_response(
        "describe_subscription_filters",
        {"subscriptionFilters": [_filter(n) for n in names]},
        {"logGroupName": LOG_GROUP},
    )


def test_quota_limit_is_two():
    assert MAX_SUBSCRIPTION_FILTERS == 2


def test_two_foreign_filters_reject(stubbed_logs):
    client, stubber = stubbed_logs
    _reply(stubber, "audit-shipper", "security-shipper")

    decision = SubscriptionQuota(client).check(LOG_GROUP, PREFIX)

    assert decision.allowed is False
    assert decision.existing_count == 2
    assert decision.owned is False
    assert LOG_GROUP in decision.warning()


def test_one_foreign_filter_allows(stubbed_logs):
    client, stubber = stubbed_logs
    _reply(stubber, "audit-shipper")

    decision = SubscriptionQuota(client).check(LOG_GROUP, PREFIX)

    assert decision.allowed is True
    assert decision.existing_count == 1


def test_own_filter_allows_even_at_limit(stubbed_logs):
    """Our filter from a previous deploy gets replaced, not added."""
    client, stubber = stubbed_logs
    _reply(stubber, "audit-shipper", f"{PREFIX}1A2B3C4D5E6F")

    decision = SubscriptionQuota(client).check(LOG_GROUP, PREFIX)

    assert decision.allowed is True
    assert decision.owned is True


def test_describe_failure_counts_as_no_filters(stubbed_logs):
    client, stubber = stubbed_logs
    stubber.add_client_error(
        "describe_subscription_filters",
        service_error_code="ThrottlingException",
        http_status_code=400,
    )

    assert can_subscribe_log_group(LOG_GROUP, PREFIX, logs_client=client) is True


@mock_aws
def test_missing_log_group_is_not_an_error(aws_env):
    quota = SubscriptionQuota(boto3.client("logs"))

    assert quota.describe_subscription_filters("/aws/lambda/not-created-yet") == []
    assert quota.check("/aws/lambda/not-created-yet", PREFIX).allowed is True


@mock_aws
def test_existing_log_group_without_filters_allows(aws_env):
    client = boto3.client("logs")
    client.create_log_group(logGroupName=LOG_GROUP)

    decision = SubscriptionQuota(client).check(LOG_GROUP, PREFIX)

    assert decision.allowed is True
    assert decision.existing_count == 0
