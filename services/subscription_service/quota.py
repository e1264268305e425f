"""
Subscription Quota
==================
CloudWatch Logs allows at most two subscription filters per log group.
Adding a third fails the stack deploy, so every candidate log group is
checked against what is already attached to it.

Decision rule:
  - a filter whose name starts with our expected prefix is ours from a
    previous deploy; CloudFormation will replace it in place -> allow
  - otherwise, two or more foreign filters -> reject
  - otherwise -> allow

DescribeSubscriptionFilters fails when the log group does not exist yet
(first deploy). Any failure is read as "no filters". This cannot tell a
missing group from throttling or a permission error, so during an outage
the check errs towards subscribing.
"""
from __future__ import annotations

import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel

logger = logging.getLogger(__name__)

MAX_SUBSCRIPTION_FILTERS = 2


class QuotaDecision(BaseModel):
    allowed: bool
    log_group_name: str
    existing_count: int = 0
    owned: bool = False  # an existing filter already carries our prefix

    def warning(self) -> str:
        return (
            "Could not subscribe forwarder due to too many existing subscription "
            f"filter(s) for {self.log_group_name}."
        )


class SubscriptionQuota:
    """
    Checks one log group at a time against the per-group filter limit.

    Parameters
    ----------
    logs_client: a boto3 CloudWatch Logs client; created on first use if omitted
    max_filters: the account's per-log-group subscription filter limit
    """

    def __init__(self, logs_client=None, max_filters: int = MAX_SUBSCRIPTION_FILTERS):
        self._client = logs_client
        self.max_filters = max_filters

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client("logs")
        return self._client

    def describe_subscription_filters(self, log_group_name: str) -> list[dict]:
        try:
            resp = self.client.describe_subscription_filters(logGroupName=log_group_name)
        except (ClientError, BotoCoreError) as e:
            # Usually ResourceNotFoundException: the group is created by this deploy
            logger.info(
                "No subscription filters readable for %s (%s), assuming none",
                log_group_name, e,
            )
            return []
        return resp.get("subscriptionFilters", [])

    def check(self, log_group_name: str, expected_prefix: str) -> QuotaDecision:
        filters = self.describe_subscription_filters(log_group_name)
        owned = any(f.get("filterName", "").startswith(expected_prefix) for f in filters)
        allowed = owned or len(filters) < self.max_filters
        return QuotaDecision(
            allowed=allowed,
            log_group_name=log_group_name,
            existing_count=len(filters),
            owned=owned,
        )


def can_subscribe_log_group(log_group_name: str, expected_prefix: str, logs_client=None) -> bool:
    return SubscriptionQuota(logs_client).check(log_group_name, expected_prefix).allowed
